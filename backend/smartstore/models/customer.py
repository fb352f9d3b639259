"""
Customer model
"""
from sqlalchemy import Column, Integer, String, Boolean, Text, Numeric, JSON, ForeignKey
from sqlalchemy.orm import relationship

from smartstore.core.database import Base
from smartstore.models.base import TimestampMixin


class Customer(TimestampMixin, Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), index=True)
    phone = Column(String(50))
    address = Column(Text)
    city = Column(String(100))
    country = Column(String(100))
    tags = Column(JSON, default=list)

    # Aggregates refreshed by the order service
    total_spent = Column(Numeric(12, 2), default=0, nullable=False)
    total_orders = Column(Integer, default=0, nullable=False)
    membership_tier = Column(String(50), default="bronze")

    is_active = Column(Boolean, default=True, nullable=False)

    orders = relationship("Order", back_populates="customer")
