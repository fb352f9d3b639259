"""
Marketplace API Endpoints
Vendors, their listings, sales and payouts
"""
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission
from smartstore.domain.marketplace import (
    PayoutRequest,
    Vendor,
    VendorCreate,
    VendorPayout,
    VendorProduct,
    VendorProductCreate,
    VendorSale,
    VendorSaleCreate,
    VendorStatus,
)
from smartstore.services.marketplace_service import MarketplaceService

router = APIRouter()


@router.get("/vendors")
async def search_vendors(
    q: Optional[str] = Query(None, description="Business name or email"),
    status_filter: Optional[VendorStatus] = Query(None, alias="status"),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_READ)),
    db: Session = Depends(get_db),
):
    service = MarketplaceService(db, get_organization_scope(user, organization_id))
    vendors, total = service.search_vendors(q, status_filter.value if status_filter else None, limit, offset)
    return {
        "status": "success",
        "total": total,
        "count": len(vendors),
        "data": [Vendor.model_validate(v).to_dict() for v in vendors],
    }


@router.post("/vendors", status_code=status.HTTP_201_CREATED)
async def register_vendor(
    data: VendorCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_CREATE)),
    db: Session = Depends(get_db),
):
    vendor = MarketplaceService(db, get_organization_scope(user, organization_id)).register_vendor(data)
    return {"status": "success", "data": Vendor.model_validate(vendor).to_dict()}


@router.post("/payouts/process")
async def process_payouts(
    request: PayoutRequest,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.FINANCE_CREATE)),
    db: Session = Depends(get_db),
):
    """One pending payout per approved vendor with unpaid sales in the period"""
    service = MarketplaceService(db, get_organization_scope(user, organization_id))
    payouts = service.process_vendor_payouts(request.period_start, request.period_end)
    return {
        "status": "success",
        "count": len(payouts),
        "data": [VendorPayout.model_validate(p).to_dict() for p in payouts],
    }


@router.post("/sales", status_code=status.HTTP_201_CREATED)
async def record_sale(
    data: VendorSaleCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.ORDER_CREATE)),
    db: Session = Depends(get_db),
):
    service = MarketplaceService(db, get_organization_scope(user, organization_id))
    sale = service.record_vendor_sale(data.vendor_product_id, data.quantity, data.unit_price)
    return {"status": "success", "data": VendorSale.model_validate(sale).to_dict()}


@router.patch("/products/{vendor_product_id}/status")
async def set_vendor_product_status(
    vendor_product_id: int,
    new_status: str = Body(..., embed=True, alias="status"),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_UPDATE)),
    db: Session = Depends(get_db),
):
    service = MarketplaceService(db, get_organization_scope(user, organization_id))
    listing = service.set_vendor_product_status(vendor_product_id, new_status)
    return {"status": "success", "data": VendorProduct.model_validate(listing).to_dict()}


# =============================================================================
# Single vendor
# =============================================================================

@router.get("/vendors/{vendor_id}")
async def get_vendor(
    vendor_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_READ)),
    db: Session = Depends(get_db),
):
    vendor = MarketplaceService(db, get_organization_scope(user, organization_id)).get_vendor(vendor_id)
    return {"status": "success", "data": Vendor.model_validate(vendor).to_dict()}


@router.post("/vendors/{vendor_id}/approve")
async def approve_vendor(
    vendor_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.SETTINGS_UPDATE)),
    db: Session = Depends(get_db),
):
    vendor = MarketplaceService(db, get_organization_scope(user, organization_id)).approve_vendor(vendor_id, user.id)
    return {"status": "success", "data": Vendor.model_validate(vendor).to_dict()}


@router.post("/vendors/{vendor_id}/suspend")
async def suspend_vendor(
    vendor_id: int,
    reason: Optional[str] = Body(None, embed=True),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.SETTINGS_UPDATE)),
    db: Session = Depends(get_db),
):
    vendor = MarketplaceService(db, get_organization_scope(user, organization_id)).suspend_vendor(vendor_id, reason)
    return {"status": "success", "data": Vendor.model_validate(vendor).to_dict()}


@router.post("/vendors/{vendor_id}/reject")
async def reject_vendor(
    vendor_id: int,
    reason: Optional[str] = Body(None, embed=True),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.SETTINGS_UPDATE)),
    db: Session = Depends(get_db),
):
    vendor = MarketplaceService(db, get_organization_scope(user, organization_id)).reject_vendor(vendor_id, reason)
    return {"status": "success", "data": Vendor.model_validate(vendor).to_dict()}


@router.get("/vendors/{vendor_id}/products")
async def list_vendor_products(
    vendor_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_READ)),
    db: Session = Depends(get_db),
):
    listings = MarketplaceService(db, get_organization_scope(user, organization_id)).list_vendor_products(vendor_id)
    return {
        "status": "success",
        "count": len(listings),
        "data": [VendorProduct.model_validate(p).to_dict() for p in listings],
    }


@router.post("/vendors/{vendor_id}/products", status_code=status.HTTP_201_CREATED)
async def add_vendor_product(
    vendor_id: int,
    data: VendorProductCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.PRODUCT_CREATE)),
    db: Session = Depends(get_db),
):
    """Listing goes live right away only when the vendor auto-approves products"""
    listing = MarketplaceService(db, get_organization_scope(user, organization_id)).add_vendor_product(vendor_id, data)
    return {"status": "success", "data": VendorProduct.model_validate(listing).to_dict()}


@router.get("/vendors/{vendor_id}/payout-preview")
async def preview_payout(
    vendor_id: int,
    amount: Decimal = Query(..., ge=0, description="Gross sale amount"),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.FINANCE_READ)),
    db: Session = Depends(get_db),
):
    service = MarketplaceService(db, get_organization_scope(user, organization_id))
    result = service.calculate_vendor_payout(service.get_vendor(vendor_id), amount)
    return {"status": "success", "data": {k: float(v) for k, v in result.items()}}


@router.get("/vendors/{vendor_id}/payouts")
async def list_payouts(
    vendor_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.FINANCE_READ)),
    db: Session = Depends(get_db),
):
    payouts = MarketplaceService(db, get_organization_scope(user, organization_id)).list_payouts(vendor_id)
    return {
        "status": "success",
        "count": len(payouts),
        "data": [VendorPayout.model_validate(p).to_dict() for p in payouts],
    }


@router.get("/vendors/{vendor_id}/analytics")
async def vendor_analytics(
    vendor_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.REPORTS_VIEW)),
    db: Session = Depends(get_db),
):
    service = MarketplaceService(db, get_organization_scope(user, organization_id))
    return {"status": "success", "data": service.get_vendor_analytics(vendor_id, start_date, end_date)}
