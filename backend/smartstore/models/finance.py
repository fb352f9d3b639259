"""
Expense tracking
"""
from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, CheckConstraint

from smartstore.core.database import Base
from smartstore.models.base import TimestampMixin


class Expense(TimestampMixin, Base):
    __tablename__ = "expenses"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),)

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    description = Column(Text)
    expense_date = Column(Date, nullable=False, index=True)
    vendor = Column(String(255))
    created_by_id = Column(Integer, ForeignKey("users.id"))
