"""
Subscription plans, subscriptions and metered usage
"""
from sqlalchemy import Column, Integer, String, Boolean, Text, Numeric, JSON, ForeignKey, DateTime
from sqlalchemy.orm import relationship

from smartstore.core.database import Base
from smartstore.models.base import TimestampMixin, utcnow


class SubscriptionPlan(TimestampMixin, Base):
    __tablename__ = "subscription_plans"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    price = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    interval = Column(String(10), default="month", nullable=False)
    interval_count = Column(Integer, default=1, nullable=False)
    trial_period_days = Column(Integer)
    features = Column(JSON, default=list)
    limits = Column(JSON, default=dict)
    is_active = Column(Boolean, default=True, nullable=False)
    is_popular = Column(Boolean, default=False, nullable=False)


class Subscription(TimestampMixin, Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("subscription_plans.id"), nullable=False, index=True)

    status = Column(String(20), default="active", nullable=False, index=True)
    current_period_start = Column(DateTime, nullable=False)
    current_period_end = Column(DateTime, nullable=False)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)
    canceled_at = Column(DateTime)
    cancel_reason = Column(Text)

    payment_method = Column(String(20), default="manual", nullable=False)
    external_subscription_id = Column(String(255))
    usage = Column(JSON, default=dict)

    plan = relationship("SubscriptionPlan")
    customer = relationship("Customer")


class UsageRecord(Base):
    __tablename__ = "usage_records"

    id = Column(Integer, primary_key=True, index=True)
    subscription_id = Column(Integer, ForeignKey("subscriptions.id", ondelete="CASCADE"), nullable=False, index=True)
    metric_type = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    # "metadata" is reserved on declarative classes
    extra_data = Column("metadata", JSON, default=dict)
    recorded_at = Column(DateTime, default=utcnow, nullable=False)
