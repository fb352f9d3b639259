"""
Warehouses API Endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission
from smartstore.domain.logistics import Warehouse, WarehouseCreate, WarehouseUpdate
from smartstore.domain.product import InventoryMovement
from smartstore.services.logistics_service import WarehouseService

router = APIRouter()


@router.get("/")
async def get_warehouses(
    is_active: Optional[bool] = Query(None),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_permission(Permission.INVENTORY_READ)),
    db: Session = Depends(get_db),
):
    service = WarehouseService(db, get_organization_scope(user, organization_id))
    warehouses, total = service.list_warehouses(is_active=is_active, limit=limit, offset=offset)
    return {
        "status": "success",
        "total": total,
        "count": len(warehouses),
        "data": [Warehouse.model_validate(w).to_dict() for w in warehouses],
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_warehouse(
    data: WarehouseCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.INVENTORY_UPDATE)),
    db: Session = Depends(get_db),
):
    warehouse = WarehouseService(db, get_organization_scope(user, organization_id)).create_warehouse(data)
    return {"status": "success", "data": Warehouse.model_validate(warehouse).to_dict()}


@router.get("/{warehouse_id}")
async def get_warehouse(
    warehouse_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.INVENTORY_READ)),
    db: Session = Depends(get_db),
):
    warehouse = WarehouseService(db, get_organization_scope(user, organization_id)).get_warehouse(warehouse_id)
    return {"status": "success", "data": Warehouse.model_validate(warehouse).to_dict()}


@router.get("/{warehouse_id}/stock")
async def get_warehouse_stock(
    warehouse_id: int,
    movement_limit: int = Query(50, ge=1, le=500),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.INVENTORY_READ)),
    db: Session = Depends(get_db),
):
    """
    Stock summary

    Returns:
    - Product count, units on hand, stock value at cost, low-stock count
    - Movements recorded against this warehouse
    """
    service = WarehouseService(db, get_organization_scope(user, organization_id))
    summary = service.stock_summary(warehouse_id, movement_limit=movement_limit)
    summary["movements"] = [InventoryMovement.model_validate(m).to_dict() for m in summary["movements"]]
    return {"status": "success", "data": summary}


@router.patch("/{warehouse_id}")
async def update_warehouse(
    warehouse_id: int,
    data: WarehouseUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.INVENTORY_UPDATE)),
    db: Session = Depends(get_db),
):
    warehouse = WarehouseService(db, get_organization_scope(user, organization_id)).update_warehouse(warehouse_id, data)
    return {"status": "success", "data": Warehouse.model_validate(warehouse).to_dict()}


@router.delete("/{warehouse_id}")
async def delete_warehouse(
    warehouse_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.INVENTORY_UPDATE)),
    db: Session = Depends(get_db),
):
    WarehouseService(db, get_organization_scope(user, organization_id)).delete_warehouse(warehouse_id)
    return {"status": "success", "message": f"Warehouse {warehouse_id} deleted"}
