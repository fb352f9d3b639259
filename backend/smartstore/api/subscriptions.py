"""
Subscriptions API Endpoints
Plans, recurring subscriptions, metered usage and membership tiers
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission
from smartstore.domain.subscription import (
    Subscription,
    SubscriptionCancel,
    SubscriptionCreate,
    SubscriptionPlan,
    SubscriptionPlanCreate,
    SubscriptionStatus,
    SubscriptionUpdate,
    UsageCreate,
    UsageRecord,
)
from smartstore.services.subscription_service import SubscriptionService

router = APIRouter()


# =============================================================================
# Plans
# =============================================================================

@router.get("/plans")
async def list_plans(
    active_only: bool = Query(True),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_READ)),
    db: Session = Depends(get_db),
):
    plans = SubscriptionService(db, get_organization_scope(user, organization_id)).list_plans(active_only)
    return {
        "status": "success",
        "count": len(plans),
        "data": [SubscriptionPlan.model_validate(p).to_dict() for p in plans],
    }


@router.post("/plans", status_code=status.HTTP_201_CREATED)
async def create_plan(
    data: SubscriptionPlanCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.SETTINGS_UPDATE)),
    db: Session = Depends(get_db),
):
    plan = SubscriptionService(db, get_organization_scope(user, organization_id)).create_plan(data)
    return {"status": "success", "data": SubscriptionPlan.model_validate(plan).to_dict()}


# =============================================================================
# Membership
# =============================================================================

@router.post("/membership/{customer_id}")
async def update_membership(
    customer_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    """Recalculate the customer's tier (bronze/silver/gold/platinum) from order spend"""
    service = SubscriptionService(db, get_organization_scope(user, organization_id))
    return {"status": "success", "data": service.update_membership_status(customer_id)}


# =============================================================================
# Subscriptions
# =============================================================================

@router.get("")
async def list_subscriptions(
    customer_id: Optional[int] = Query(None),
    status_filter: Optional[SubscriptionStatus] = Query(None, alias="status"),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_READ)),
    db: Session = Depends(get_db),
):
    service = SubscriptionService(db, get_organization_scope(user, organization_id))
    subscriptions = service.list_subscriptions(customer_id, status_filter.value if status_filter else None)
    return {
        "status": "success",
        "count": len(subscriptions),
        "data": [Subscription.model_validate(s).to_dict() for s in subscriptions],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_subscription(
    data: SubscriptionCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    service = SubscriptionService(db, get_organization_scope(user, organization_id))
    subscription = service.create_subscription(data.customer_id, data.plan_id, data.payment_method, data.trial_days)
    return {"status": "success", "data": Subscription.model_validate(subscription).to_dict()}


@router.get("/{subscription_id}")
async def get_subscription(
    subscription_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_READ)),
    db: Session = Depends(get_db),
):
    subscription = SubscriptionService(db, get_organization_scope(user, organization_id)).get_subscription(subscription_id)
    return {"status": "success", "data": Subscription.model_validate(subscription).to_dict()}


@router.patch("/{subscription_id}")
async def update_subscription(
    subscription_id: int,
    data: SubscriptionUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    service = SubscriptionService(db, get_organization_scope(user, organization_id))
    subscription = service.update_subscription(subscription_id, data)
    return {"status": "success", "data": Subscription.model_validate(subscription).to_dict()}


@router.post("/{subscription_id}/cancel")
async def cancel_subscription(
    subscription_id: int,
    data: SubscriptionCancel,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    """Immediate cancel ends access now; otherwise it stops at the end of the current period"""
    service = SubscriptionService(db, get_organization_scope(user, organization_id))
    subscription = service.cancel_subscription(subscription_id, data.immediate, data.reason)
    return {"status": "success", "data": Subscription.model_validate(subscription).to_dict()}


@router.post("/{subscription_id}/renew")
async def renew_subscription(
    subscription_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    subscription = SubscriptionService(db, get_organization_scope(user, organization_id)).renew_subscription(subscription_id)
    return {"status": "success", "data": Subscription.model_validate(subscription).to_dict()}


@router.post("/{subscription_id}/usage", status_code=status.HTTP_201_CREATED)
async def record_usage(
    subscription_id: int,
    data: UsageCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    """429 when the quantity would push the metric past the plan limit"""
    service = SubscriptionService(db, get_organization_scope(user, organization_id))
    record = service.record_usage(subscription_id, data.metric_type, data.quantity, data.metadata)
    return {"status": "success", "data": UsageRecord.model_validate(record).to_dict()}
