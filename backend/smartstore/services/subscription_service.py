"""
Subscription Service
Plans, subscription lifecycle, metered usage and membership tiers

Author: SmartStore
Date: 2025-11-08
"""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from smartstore.core.config import settings
from smartstore.core.exceptions import UsageLimitExceededError, ValidationError
from smartstore.domain.order import OrderStatus
from smartstore.domain.subscription import (
    BillingInterval, SubscriptionCreate, SubscriptionPlanCreate, SubscriptionStatus, SubscriptionUpdate,
)
from smartstore.models import Order, Subscription, SubscriptionPlan, UsageRecord
from smartstore.models.base import utcnow
from smartstore.repositories import CustomerRepository, PlanRepository, SubscriptionRepository

logger = logging.getLogger(__name__)

INTERVAL_DAYS = {
    BillingInterval.DAY: 1,
    BillingInterval.WEEK: 7,
    BillingInterval.MONTH: 30,
    BillingInterval.YEAR: 365,
}

# (tier, minimum total spent), ascending
MEMBERSHIP_TIERS = [
    ("bronze", Decimal("0")),
    ("silver", Decimal("500")),
    ("gold", Decimal("2000")),
    ("platinum", Decimal("5000")),
    ("diamond", Decimal("10000")),
]

MEMBERSHIP_ORDER_STATUSES = [OrderStatus.COMPLETED.value, OrderStatus.DELIVERED.value]


def period_length(interval: str, interval_count: int = 1) -> timedelta:
    return timedelta(days=INTERVAL_DAYS[BillingInterval(interval)] * max(interval_count or 1, 1))


def get_tier(total_spent) -> str:
    total_spent = Decimal(str(total_spent or 0))
    tier = MEMBERSHIP_TIERS[0][0]
    for name, minimum in MEMBERSHIP_TIERS:
        if total_spent >= minimum:
            tier = name
    return tier


def tier_progress(total_spent) -> Dict[str, Any]:
    """Current tier, next tier, percent of the way there and amount still required"""
    total_spent = Decimal(str(total_spent or 0))
    tier = get_tier(total_spent)
    names = [name for name, _ in MEMBERSHIP_TIERS]
    index = names.index(tier)

    if index == len(MEMBERSHIP_TIERS) - 1:
        return {"tier": tier, "next_tier": None, "progress": 100.0, "amount_to_next_tier": 0.0}

    floor = MEMBERSHIP_TIERS[index][1]
    next_name, ceiling = MEMBERSHIP_TIERS[index + 1]
    progress = (total_spent - floor) / (ceiling - floor) * 100
    return {
        "tier": tier,
        "next_tier": next_name,
        "progress": round(float(min(max(progress, Decimal("0")), Decimal("100"))), 2),
        "amount_to_next_tier": float(ceiling - total_spent),
    }


class SubscriptionService:
    """
    Service for subscriptions and memberships of one organization
    """

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.plans = PlanRepository(db, organization_id)
        self.subscriptions = SubscriptionRepository(db, organization_id)
        self.customers = CustomerRepository(db, organization_id)

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    def create_plan(self, data: SubscriptionPlanCreate) -> SubscriptionPlan:
        values = data.model_dump()
        values["interval"] = data.interval.value
        values["currency"] = (data.currency or settings.DEFAULT_CURRENCY).upper()
        plan = self.plans.add(SubscriptionPlan(**values))
        self.db.commit()
        self.db.refresh(plan)
        return plan

    def list_plans(self, active_only: bool = True) -> List[SubscriptionPlan]:
        return self.plans.find_all_ordered(active_only)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def list_subscriptions(self, customer_id: Optional[int] = None, status: Optional[str] = None) -> List[Subscription]:
        return self.subscriptions.find_filtered(customer_id, status)

    def get_subscription(self, subscription_id: int) -> Subscription:
        return self.subscriptions.get(subscription_id)

    def create_subscription(
        self,
        customer_id: int,
        plan_id: int,
        payment_method: str = "manual",
        trial_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Subscription:
        """
        Start a subscription

        A trial (explicit or from the plan) gives status trialing with the
        first period ending when the trial ends.
        """
        customer = self.customers.get(customer_id)
        plan = self.plans.get(plan_id)
        if not plan.is_active:
            raise ValidationError(f"Plan {plan.name} is not active")

        now = now or utcnow()
        trial = trial_days if trial_days is not None else plan.trial_period_days
        if trial:
            status = SubscriptionStatus.TRIALING
            period_end = now + timedelta(days=trial)
        else:
            status = SubscriptionStatus.ACTIVE
            period_end = now + period_length(plan.interval, plan.interval_count)

        subscription = self.subscriptions.add(Subscription(
            customer_id=customer.id,
            plan_id=plan.id,
            status=status.value,
            current_period_start=now,
            current_period_end=period_end,
            cancel_at_period_end=False,
            payment_method=payment_method,
            usage={},
        ))
        self.db.commit()
        self.db.refresh(subscription)
        logger.info(f"Subscription {subscription.id} created: customer {customer.id}, plan {plan.name}, {status.value}")
        return subscription

    def update_subscription(self, subscription_id: int, data: SubscriptionUpdate) -> Subscription:
        subscription = self.subscriptions.get(subscription_id)
        changes = data.model_dump(exclude_unset=True)

        if "plan_id" in changes:
            plan = self.plans.get(changes["plan_id"])
            if not plan.is_active:
                raise ValidationError(f"Plan {plan.name} is not active")
        if changes.get("status") is not None:
            changes["status"] = SubscriptionStatus(changes["status"]).value

        for field, value in changes.items():
            setattr(subscription, field, value)
        self.db.commit()
        self.db.refresh(subscription)
        return subscription

    def cancel_subscription(self, subscription_id: int, immediate: bool = False, reason: Optional[str] = None) -> Subscription:
        subscription = self.subscriptions.get(subscription_id)
        if subscription.status == SubscriptionStatus.CANCELED.value:
            raise ValidationError("Subscription is already canceled")

        subscription.cancel_reason = reason
        if immediate:
            subscription.status = SubscriptionStatus.CANCELED.value
            subscription.canceled_at = utcnow()
            subscription.cancel_at_period_end = False
        else:
            subscription.cancel_at_period_end = True

        self.db.commit()
        self.db.refresh(subscription)
        return subscription

    def renew_subscription(self, subscription_id: int) -> Subscription:
        """
        Roll the subscription into its next period

        Subscriptions flagged cancel_at_period_end become canceled instead.
        """
        subscription = self.subscriptions.get(subscription_id)
        if subscription.status == SubscriptionStatus.CANCELED.value:
            raise ValidationError("Canceled subscriptions cannot be renewed")

        if subscription.cancel_at_period_end:
            subscription.status = SubscriptionStatus.CANCELED.value
            subscription.canceled_at = subscription.current_period_end
        else:
            plan = subscription.plan
            start = subscription.current_period_end
            subscription.current_period_start = start
            subscription.current_period_end = start + period_length(plan.interval, plan.interval_count)
            subscription.status = SubscriptionStatus.ACTIVE.value
            subscription.usage = {}

        self.db.commit()
        self.db.refresh(subscription)
        return subscription

    def record_usage(
        self,
        subscription_id: int,
        metric_type: str,
        quantity: int,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> UsageRecord:
        """
        Raises:
            UsageLimitExceededError: usage + quantity would pass the plan limit
        """
        subscription = self.subscriptions.get(subscription_id)
        if subscription.status == SubscriptionStatus.CANCELED.value:
            raise ValidationError("Cannot record usage on a canceled subscription")

        usage = dict(subscription.usage or {})
        current = int(usage.get(metric_type, 0))
        limit = (subscription.plan.limits or {}).get(metric_type)
        if limit is not None and current + quantity > int(limit):
            raise UsageLimitExceededError(
                f"Usage limit exceeded for {metric_type}: {current} + {quantity} > {limit}",
                {"metric_type": metric_type, "current": current, "requested": quantity, "limit": int(limit)},
            )

        record = UsageRecord(
            subscription_id=subscription.id,
            metric_type=metric_type,
            quantity=quantity,
            extra_data=metadata or {},
        )
        usage[metric_type] = current + quantity
        # Reassign so the JSON column is marked dirty
        subscription.usage = usage
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def update_membership_status(self, customer_id: int) -> Dict[str, Any]:
        """Recompute spend from completed/delivered orders and store the tier on the customer"""
        customer = self.customers.get(customer_id)
        total = (
            self.db.query(func.coalesce(func.sum(Order.total), 0))
            .filter(
                Order.organization_id == self.organization_id,
                Order.customer_id == customer.id,
                Order.status.in_(MEMBERSHIP_ORDER_STATUSES),
            )
            .scalar()
        )
        total = Decimal(str(total or 0))
        progress = tier_progress(total)
        customer.membership_tier = progress["tier"]
        self.db.commit()

        return {"customer_id": customer.id, "total_spent": float(total), **progress}
