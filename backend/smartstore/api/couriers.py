"""
Couriers and Deliveries API Endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission
from smartstore.domain.logistics import (
    Courier,
    CourierCreate,
    CourierUpdate,
    Delivery,
    DeliveryAssign,
    DeliveryStatus,
    DeliveryStatusUpdate,
)
from smartstore.services.logistics_service import CourierService

router = APIRouter()


@router.get("/")
async def get_couriers(
    is_active: Optional[bool] = Query(None),
    is_online: Optional[bool] = Query(None),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_permission(Permission.ORDER_READ)),
    db: Session = Depends(get_db),
):
    service = CourierService(db, get_organization_scope(user, organization_id))
    couriers, total = service.list_couriers(is_active=is_active, is_online=is_online, limit=limit, offset=offset)
    return {
        "status": "success",
        "total": total,
        "count": len(couriers),
        "data": [Courier.model_validate(c).to_dict() for c in couriers],
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_courier(
    data: CourierCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.ORDER_UPDATE)),
    db: Session = Depends(get_db),
):
    courier = CourierService(db, get_organization_scope(user, organization_id)).create_courier(data)
    return {"status": "success", "data": Courier.model_validate(courier).to_dict()}


# =============================================================================
# Deliveries
# =============================================================================

@router.get("/deliveries")
async def get_deliveries(
    courier_id: Optional[int] = Query(None),
    status_filter: Optional[DeliveryStatus] = Query(None, alias="status"),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_permission(Permission.ORDER_READ)),
    db: Session = Depends(get_db),
):
    service = CourierService(db, get_organization_scope(user, organization_id))
    deliveries, total = service.list_deliveries(
        courier_id=courier_id,
        status=status_filter.value if status_filter else None,
        limit=limit,
        offset=offset,
    )
    return {
        "status": "success",
        "total": total,
        "count": len(deliveries),
        "data": [Delivery.model_validate(d).to_dict() for d in deliveries],
    }


@router.post("/deliveries", status_code=status.HTTP_201_CREATED)
async def assign_delivery(
    data: DeliveryAssign,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.ORDER_UPDATE)),
    db: Session = Depends(get_db),
):
    """Assign an order to a courier; confirmed/processing orders move to SHIPPED"""
    service = CourierService(db, get_organization_scope(user, organization_id))
    delivery = service.assign_delivery(data.order_id, data.courier_id, address=data.address, notes=data.notes)
    return {"status": "success", "data": Delivery.model_validate(delivery).to_dict()}


@router.get("/deliveries/{delivery_id}")
async def get_delivery(
    delivery_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.ORDER_READ)),
    db: Session = Depends(get_db),
):
    delivery = CourierService(db, get_organization_scope(user, organization_id)).get_delivery(delivery_id)
    return {"status": "success", "data": Delivery.model_validate(delivery).to_dict()}


@router.patch("/deliveries/{delivery_id}/status")
async def update_delivery_status(
    delivery_id: int,
    data: DeliveryStatusUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.ORDER_UPDATE)),
    db: Session = Depends(get_db),
):
    service = CourierService(db, get_organization_scope(user, organization_id))
    delivery = service.update_delivery_status(delivery_id, data.status.value, notes=data.notes)
    return {"status": "success", "data": Delivery.model_validate(delivery).to_dict()}


# =============================================================================
# Single courier
# =============================================================================

@router.get("/{courier_id}")
async def get_courier(
    courier_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.ORDER_READ)),
    db: Session = Depends(get_db),
):
    courier = CourierService(db, get_organization_scope(user, organization_id)).get_courier(courier_id)
    return {"status": "success", "data": Courier.model_validate(courier).to_dict()}


@router.patch("/{courier_id}")
async def update_courier(
    courier_id: int,
    data: CourierUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.ORDER_UPDATE)),
    db: Session = Depends(get_db),
):
    courier = CourierService(db, get_organization_scope(user, organization_id)).update_courier(courier_id, data)
    return {"status": "success", "data": Courier.model_validate(courier).to_dict()}


@router.delete("/{courier_id}")
async def delete_courier(
    courier_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.ORDER_DELETE)),
    db: Session = Depends(get_db),
):
    CourierService(db, get_organization_scope(user, organization_id)).delete_courier(courier_id)
    return {"status": "success", "message": f"Courier {courier_id} deleted"}
