"""
Customer interaction tracking and A/B experiments
"""
from sqlalchemy import Column, Integer, String, Text, JSON, ForeignKey, DateTime

from smartstore.core.database import Base
from smartstore.models.base import TimestampMixin, utcnow


class CustomerInteraction(Base):
    __tablename__ = "customer_interactions"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    interaction_type = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Experiment(TimestampMixin, Base):
    __tablename__ = "experiments"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    type = Column(String(50), default="recommendation", nullable=False)
    status = Column(String(20), default="draft", nullable=False)
    # [{"id": "a", "name": "Control", "traffic_allocation": 50, "config": {...}}, ...]
    variants = Column(JSON, nullable=False, default=list)
