"""
Marketplace Service
Vendor onboarding, vendor listings, commission math and payouts

Author: SmartStore
Date: 2025-11-08
"""
import logging
from collections import defaultdict
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from smartstore.core.exceptions import ConflictError, NotFoundError, ValidationError
from smartstore.domain.marketplace import (
    VendorCreate, VendorProductCreate, VendorStatus, CommissionType, DEFAULT_VENDOR_SETTINGS,
)
from smartstore.models import Vendor, VendorProduct, VendorSale, VendorPayout
from smartstore.models.base import utcnow
from smartstore.repositories import VendorRepository, ProductRepository

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(TWO_PLACES)


def calculate_commission(
    amount,
    commission_type: str,
    commission_rate,
    commission_tiers: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Decimal]:
    """
    Split a sale amount into marketplace commission and vendor payout

    - fixed: commission is the rate value itself
    - percentage: amount * rate / 100
    - tiered: rate of the first tier with min_amount <= amount and
      (max_amount is null or amount <= max_amount), else the base rate

    Commission never exceeds the amount.
    """
    amount = Decimal(str(amount))
    rate = Decimal(str(commission_rate or 0))
    kind = CommissionType(commission_type)

    if kind == CommissionType.FIXED:
        commission = rate
    else:
        if kind == CommissionType.TIERED:
            for tier in commission_tiers or []:
                min_amount = Decimal(str(tier.get("min_amount", 0)))
                max_amount = tier.get("max_amount")
                if min_amount <= amount and (max_amount is None or amount <= Decimal(str(max_amount))):
                    rate = Decimal(str(tier["rate"]))
                    break
        commission = amount * rate / Decimal("100")

    commission = _money(min(max(commission, Decimal("0")), amount))
    return {
        "amount": _money(amount),
        "commission": commission,
        "payout": _money(amount - commission),
        "rate": rate,
    }


class MarketplaceService:
    """
    Service for the marketplace of one organization

    Handles:
    - Vendor registration and approval workflow
    - Vendor product listings
    - Sales, commissions and payouts
    - Vendor analytics and search
    """

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.vendors = VendorRepository(db, organization_id)
        self.products = ProductRepository(db, organization_id)

    # ------------------------------------------------------------------
    # Vendors
    # ------------------------------------------------------------------

    def register_vendor(self, data: VendorCreate) -> Vendor:
        if self.vendors.find_by_email(data.email):
            raise ConflictError(f"A vendor with email {data.email} already exists", {"email": data.email})

        vendor = self.vendors.add(Vendor(
            business_name=data.business_name,
            business_type=data.business_type,
            email=data.email,
            phone=data.phone,
            description=data.description,
            tax_id=data.tax_id,
            bank_account=data.bank_account,
            status=VendorStatus.PENDING.value,
            verification_status="unverified",
            commission_type=data.commission_type.value,
            commission_rate=data.commission_rate,
            commission_tiers=[tier.model_dump(mode="json") for tier in data.commission_tiers],
            settings={**DEFAULT_VENDOR_SETTINGS, **data.settings},
        ))
        self.db.commit()
        self.db.refresh(vendor)
        logger.info(f"Vendor registered: {vendor.business_name} (org {self.organization_id})")
        return vendor

    def get_vendor(self, vendor_id: int) -> Vendor:
        return self.vendors.get(vendor_id)

    def approve_vendor(self, vendor_id: int, admin_id: int) -> Vendor:
        """
        Raises:
            ValidationError: vendor is not pending
        """
        vendor = self.vendors.get(vendor_id)
        if vendor.status != VendorStatus.PENDING.value:
            raise ValidationError(f"Only pending vendors can be approved (vendor is {vendor.status})")

        vendor.status = VendorStatus.APPROVED.value
        vendor.verification_status = "verified"
        vendor.approved_by_id = admin_id
        vendor.approved_at = utcnow()
        self.db.commit()
        self.db.refresh(vendor)
        logger.info(f"Vendor {vendor.id} approved by user {admin_id}")
        return vendor

    def suspend_vendor(self, vendor_id: int, reason: Optional[str] = None) -> Vendor:
        vendor = self.vendors.get(vendor_id)
        if vendor.status != VendorStatus.APPROVED.value:
            raise ValidationError(f"Only approved vendors can be suspended (vendor is {vendor.status})")
        vendor.status = VendorStatus.SUSPENDED.value
        if reason:
            vendor.settings = {**(vendor.settings or {}), "suspension_reason": reason}
        self.db.commit()
        self.db.refresh(vendor)
        return vendor

    def reject_vendor(self, vendor_id: int, reason: Optional[str] = None) -> Vendor:
        vendor = self.vendors.get(vendor_id)
        if vendor.status != VendorStatus.PENDING.value:
            raise ValidationError(f"Only pending vendors can be rejected (vendor is {vendor.status})")
        vendor.status = VendorStatus.REJECTED.value
        vendor.verification_status = "rejected"
        if reason:
            vendor.settings = {**(vendor.settings or {}), "rejection_reason": reason}
        self.db.commit()
        self.db.refresh(vendor)
        return vendor

    def search_vendors(self, query: Optional[str] = None, status: Optional[str] = None, limit: int = 50, offset: int = 0) -> Tuple[List[Vendor], int]:
        return self.vendors.search(query, status, limit, offset)

    # ------------------------------------------------------------------
    # Listings and sales
    # ------------------------------------------------------------------

    def add_vendor_product(self, vendor_id: int, data: VendorProductCreate) -> VendorProduct:
        vendor = self.vendors.get(vendor_id)
        if vendor.status != VendorStatus.APPROVED.value:
            raise ValidationError("Vendor must be approved before listing products")
        product = self.products.get(data.product_id)

        auto_approve = (vendor.settings or {}).get("auto_approve_products", False)
        listing = VendorProduct(
            vendor_id=vendor.id,
            product_id=product.id,
            price=data.price,
            stock=data.stock,
            sku=data.sku or product.sku,
            condition=data.condition,
            processing_days=data.processing_days,
            status="active" if auto_approve else "pending_approval",
        )
        self.db.add(listing)
        self.db.commit()
        self.db.refresh(listing)
        return listing

    def list_vendor_products(self, vendor_id: int) -> List[VendorProduct]:
        vendor = self.vendors.get(vendor_id)
        return self.db.query(VendorProduct).filter(VendorProduct.vendor_id == vendor.id).order_by(VendorProduct.id).all()

    def set_vendor_product_status(self, vendor_product_id: int, status: str) -> VendorProduct:
        if status not in ("active", "inactive", "pending_approval", "rejected"):
            raise ValidationError(f"Unknown listing status '{status}'")
        listing = self.vendors.find_product(vendor_product_id)
        if listing is None:
            raise NotFoundError("Vendor product", vendor_product_id)
        listing.status = status
        self.db.commit()
        self.db.refresh(listing)
        return listing

    def calculate_vendor_payout(self, vendor: Vendor, amount) -> Dict[str, Decimal]:
        return calculate_commission(amount, vendor.commission_type, vendor.commission_rate, vendor.commission_tiers)

    def record_vendor_sale(self, vendor_product_id: int, quantity: int, unit_price=None) -> VendorSale:
        """
        Record a sale of a vendor listing

        Raises:
            ValidationError: listing inactive, vendor not approved or not enough vendor stock
        """
        listing = self.vendors.find_product(vendor_product_id)
        if listing is None:
            raise NotFoundError("Vendor product", vendor_product_id)
        vendor = listing.vendor
        if vendor.status != VendorStatus.APPROVED.value:
            raise ValidationError(f"Vendor is {vendor.status}")
        if listing.status != "active":
            raise ValidationError(f"Listing is {listing.status}")
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        if listing.stock < quantity:
            raise ValidationError(
                f"Insufficient vendor stock: {listing.stock} available, {quantity} requested",
                {"available": listing.stock, "requested": quantity},
            )

        price = _money(unit_price if unit_price is not None else listing.price)
        split = self.calculate_vendor_payout(vendor, price * quantity)

        sale = VendorSale(
            vendor_id=vendor.id,
            vendor_product_id=listing.id,
            quantity=quantity,
            unit_price=price,
            amount=split["amount"],
            commission=split["commission"],
            payout_amount=split["payout"],
        )
        listing.stock -= quantity
        vendor.total_sales = _money(vendor.total_sales) + split["amount"]
        vendor.total_orders = (vendor.total_orders or 0) + 1
        self.db.add(sale)
        self.db.commit()
        self.db.refresh(sale)
        return sale

    def process_vendor_payouts(self, period_start: date, period_end: date) -> List[VendorPayout]:
        """One pending payout per approved vendor with unpaid sales in the period"""
        if period_start > period_end:
            raise ValidationError("period_start must be on or before period_end")
        start = datetime.combine(period_start, time.min)
        end = datetime.combine(period_end, time.max)

        payouts = []
        for vendor in self.vendors.find_approved():
            sales = self.vendors.sales_for_vendor(vendor.id, start, end, unpaid_only=True)
            if not sales:
                continue

            payout = VendorPayout(
                vendor_id=vendor.id,
                period_start=period_start,
                period_end=period_end,
                gross_amount=sum((s.amount for s in sales), Decimal("0")),
                commission=sum((s.commission for s in sales), Decimal("0")),
                payout_amount=sum((s.payout_amount for s in sales), Decimal("0")),
                status="pending",
            )
            self.db.add(payout)
            self.db.flush()
            for sale in sales:
                sale.payout_id = payout.id
            payouts.append(payout)

        self.db.commit()
        logger.info(f"Created {len(payouts)} vendor payouts for {period_start} - {period_end} (org {self.organization_id})")
        return payouts

    def list_payouts(self, vendor_id: int) -> List[VendorPayout]:
        vendor = self.vendors.get(vendor_id)
        return self.db.query(VendorPayout).filter(VendorPayout.vendor_id == vendor.id).order_by(VendorPayout.id.desc()).all()

    def get_vendor_analytics(
        self,
        vendor_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Dict[str, Any]:
        vendor = self.vendors.get(vendor_id)
        start_dt = datetime.combine(start, time.min) if start else None
        end_dt = datetime.combine(end, time.max) if end else None
        sales = self.vendors.sales_for_vendor(vendor.id, start_dt, end_dt)

        revenue = sum((s.amount for s in sales), Decimal("0"))
        commission = sum((s.commission for s in sales), Decimal("0"))

        by_product: Dict[int, Dict[str, Any]] = {}
        by_month: Dict[str, Decimal] = defaultdict(Decimal)
        for sale in sales:
            entry = by_product.setdefault(sale.vendor_product_id, {
                "vendor_product_id": sale.vendor_product_id,
                "name": sale.vendor_product.product.name if sale.vendor_product.product else None,
                "quantity": 0,
                "revenue": Decimal("0"),
            })
            entry["quantity"] += sale.quantity
            entry["revenue"] += sale.amount
            by_month[sale.created_at.strftime("%Y-%m")] += sale.amount

        top_products = sorted(by_product.values(), key=lambda p: p["revenue"], reverse=True)[:5]
        product_count = self.db.query(VendorProduct).filter(VendorProduct.vendor_id == vendor.id).count()

        return {
            "vendor_id": vendor.id,
            "revenue": float(revenue),
            "commission": float(commission),
            "payout": float(revenue - commission),
            "orders": len(sales),
            "products": product_count,
            "average_order_value": float(_money(revenue / len(sales))) if sales else 0.0,
            "top_products": [{**p, "revenue": float(p["revenue"])} for p in top_products],
            "sales_by_month": [{"month": m, "revenue": float(v)} for m, v in sorted(by_month.items())],
        }
