"""
Orders API Endpoints
Order creation (with stock decrement), status workflow and stats

Author: SmartStore
Date: 2025-11-05
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission
from smartstore.domain.order import Order, OrderCreate, OrderStatus, OrderUpdate, PaymentStatus
from smartstore.services.order_service import OrderService

router = APIRouter()


@router.get("/")
async def get_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status", description="Filter by order status"),
    payment_status: Optional[PaymentStatus] = Query(None),
    customer_id: Optional[int] = Query(None),
    from_date: Optional[datetime] = Query(None, description="Created at or after"),
    to_date: Optional[datetime] = Query(None, description="Created at or before"),
    search: Optional[str] = Query(None, description="Order number, customer name or email"),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_permission(Permission.ORDER_READ)),
    db: Session = Depends(get_db),
):
    service = OrderService(db, get_organization_scope(user, organization_id))
    orders, total = service.list_orders(
        status=status_filter.value if status_filter else None,
        payment_status=payment_status.value if payment_status else None,
        customer_id=customer_id,
        from_date=from_date,
        to_date=to_date,
        search=search,
        limit=limit,
        offset=offset,
    )
    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(orders),
        "data": [Order.model_validate(o).to_dict() for o in orders],
    }


@router.get("/stats")
async def get_order_stats(
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.ORDER_READ)),
    db: Session = Depends(get_db),
):
    """
    Order statistics

    Returns:
    - Total orders and counts by status
    - Revenue (cancelled and refunded excluded)
    - Average order value
    """
    stats = OrderService(db, get_organization_scope(user, organization_id)).get_stats()
    return {"status": "success", "data": stats}


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_order(
    data: OrderCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.ORDER_CREATE)),
    db: Session = Depends(get_db),
):
    order = OrderService(db, get_organization_scope(user, organization_id)).create_order(data, created_by_id=user.id)
    return {"status": "success", "data": Order.model_validate(order).to_dict()}


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.ORDER_READ)),
    db: Session = Depends(get_db),
):
    order = OrderService(db, get_organization_scope(user, organization_id)).get_order(order_id)
    return {"status": "success", "data": Order.model_validate(order).to_dict()}


@router.patch("/{order_id}")
async def update_order(
    order_id: int,
    data: OrderUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.ORDER_UPDATE, Permission.ORDER_CANCEL)),
    db: Session = Depends(get_db),
):
    """Status changes follow the transition table; CANCELLED / REFUNDED put the stock back"""
    order = OrderService(db, get_organization_scope(user, organization_id)).update_order(order_id, data)
    return {"status": "success", "data": Order.model_validate(order).to_dict()}


@router.delete("/{order_id}")
async def delete_order(
    order_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.ORDER_DELETE)),
    db: Session = Depends(get_db),
):
    OrderService(db, get_organization_scope(user, organization_id)).delete_order(order_id)
    return {"status": "success", "message": f"Order {order_id} deleted"}
