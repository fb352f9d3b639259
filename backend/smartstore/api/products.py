"""
Products API Endpoints
Catalog management, stock adjustments and bulk import

Author: SmartStore
Date: 2025-11-05
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission
from smartstore.domain.product import (
    Category,
    CategoryCreate,
    InventoryMovement,
    Product,
    ProductCreate,
    ProductUpdate,
    StockAdjustment,
)
from smartstore.services.product_service import ProductService

router = APIRouter()


@router.get("/")
async def get_products(
    search: Optional[str] = Query(None, description="Search by name, SKU or brand"),
    category_id: Optional[int] = Query(None, description="Filter by category"),
    is_active: Optional[bool] = Query(None, description="Filter by active status"),
    low_stock: bool = Query(False, description="Only products at or below min_stock"),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_READ)),
    db: Session = Depends(get_db),
):
    """
    Get all products with optional filters

    Each product carries is_low_stock and margin
    """
    service = ProductService(db, get_organization_scope(user, organization_id))
    products, total = service.list_products(
        search=search,
        category_id=category_id,
        is_active=is_active,
        low_stock=low_stock,
        limit=limit,
        offset=offset,
    )
    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(products),
        "data": [Product.model_validate(p).to_dict() for p in products],
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_CREATE)),
    db: Session = Depends(get_db),
):
    product = ProductService(db, get_organization_scope(user, organization_id)).create_product(data)
    return {"status": "success", "data": Product.model_validate(product).to_dict()}


# =============================================================================
# Categories, movements and import (declared before /{product_id})
# =============================================================================

@router.get("/categories")
async def get_categories(
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_READ)),
    db: Session = Depends(get_db),
):
    categories = ProductService(db, get_organization_scope(user, organization_id)).list_categories()
    return {
        "status": "success",
        "count": len(categories),
        "data": [Category.model_validate(c).to_dict() for c in categories],
    }


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_CREATE)),
    db: Session = Depends(get_db),
):
    category = ProductService(db, get_organization_scope(user, organization_id)).create_category(data)
    return {"status": "success", "data": Category.model_validate(category).to_dict()}


@router.get("/movements")
async def get_movements(
    product_id: Optional[int] = Query(None),
    warehouse_id: Optional[int] = Query(None),
    movement_type: Optional[str] = Query(None, description="adjustment, sale, return, transfer or sync"),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_permission(Permission.INVENTORY_READ)),
    db: Session = Depends(get_db),
):
    service = ProductService(db, get_organization_scope(user, organization_id))
    movements, total = service.list_movements(
        product_id=product_id,
        warehouse_id=warehouse_id,
        movement_type=movement_type,
        limit=limit,
        offset=offset,
    )
    return {
        "status": "success",
        "total": total,
        "count": len(movements),
        "data": [InventoryMovement.model_validate(m).to_dict() for m in movements],
    }


@router.post("/import")
async def import_products(
    file: UploadFile = File(..., description="CSV or XLSX with sku, name, price, cost, stock, ... columns"),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_CREATE)),
    db: Session = Depends(get_db),
):
    """
    Bulk create/update products from a spreadsheet

    Rows are matched on SKU; rows without sku or name are reported in errors.
    """
    content = await file.read()
    service = ProductService(db, get_organization_scope(user, organization_id))
    result = service.import_products(content, file.filename or "upload.csv", user=user.email)
    return {"status": "success", "data": result}


# =============================================================================
# Single product
# =============================================================================

@router.get("/{product_id}")
async def get_product(
    product_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_READ)),
    db: Session = Depends(get_db),
):
    product = ProductService(db, get_organization_scope(user, organization_id)).get_product(product_id)
    return {"status": "success", "data": Product.model_validate(product).to_dict()}


@router.patch("/{product_id}")
async def update_product(
    product_id: int,
    data: ProductUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_UPDATE)),
    db: Session = Depends(get_db),
):
    product = ProductService(db, get_organization_scope(user, organization_id)).update_product(product_id, data)
    return {"status": "success", "data": Product.model_validate(product).to_dict()}


@router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_DELETE)),
    db: Session = Depends(get_db),
):
    ProductService(db, get_organization_scope(user, organization_id)).delete_product(product_id)
    return {"status": "success", "message": f"Product {product_id} deleted"}


@router.post("/{product_id}/adjust-stock")
async def adjust_stock(
    product_id: int,
    adjustment: StockAdjustment,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.INVENTORY_ADJUST)),
    db: Session = Depends(get_db),
):
    """Add (positive) or remove (negative) stock; the result never goes below zero"""
    service = ProductService(db, get_organization_scope(user, organization_id))
    product, movement = service.adjust_stock(
        product_id,
        adjustment.quantity_change,
        reason=adjustment.reason,
        user=user.email,
        warehouse_id=adjustment.warehouse_id,
    )
    return {
        "status": "success",
        "data": {
            "product": Product.model_validate(product).to_dict(),
            "movement": InventoryMovement.model_validate(movement).to_dict(),
        },
    }
