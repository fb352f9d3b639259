"""
Subscription Domain Models
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field

from smartstore.domain.common import DomainModel, Money


class BillingInterval(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class SubscriptionStatus(str, Enum):
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"


class SubscriptionPlanCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    interval: BillingInterval = BillingInterval.MONTH
    interval_count: int = Field(1, ge=1)
    trial_period_days: Optional[int] = Field(None, ge=0)
    features: List[str] = Field(default_factory=list)
    limits: Dict[str, int] = Field(default_factory=dict)
    is_popular: bool = False


class SubscriptionPlan(DomainModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Money
    currency: str
    interval: str
    interval_count: int
    trial_period_days: Optional[int] = None
    features: Optional[List[str]] = None
    limits: Optional[Dict[str, int]] = None
    is_active: bool
    is_popular: bool


class SubscriptionCreate(BaseModel):
    customer_id: int
    plan_id: int
    payment_method: str = Field("manual", pattern=r"^(stripe|paypal|manual)$")
    trial_days: Optional[int] = Field(None, ge=0)


class SubscriptionUpdate(BaseModel):
    plan_id: Optional[int] = None
    payment_method: Optional[str] = Field(None, pattern=r"^(stripe|paypal|manual)$")
    status: Optional[SubscriptionStatus] = None
    external_subscription_id: Optional[str] = None


class SubscriptionCancel(BaseModel):
    immediate: bool = False
    reason: Optional[str] = None


class UsageCreate(BaseModel):
    metric_type: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class Subscription(DomainModel):
    id: int
    customer_id: int
    plan_id: int
    status: str
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool
    canceled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    payment_method: str
    external_subscription_id: Optional[str] = None
    usage: Optional[Dict[str, int]] = None
    created_at: datetime


class UsageRecord(DomainModel):
    id: int
    subscription_id: int
    metric_type: str
    quantity: int
    extra_data: Optional[Dict[str, Any]] = None
    recorded_at: datetime
