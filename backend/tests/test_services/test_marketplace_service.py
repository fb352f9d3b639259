"""
Tests for MarketplaceService and the commission calculation
"""
from datetime import timedelta
from decimal import Decimal

import pytest

from smartstore.core.exceptions import ConflictError, ValidationError
from smartstore.domain.marketplace import CommissionType, VendorCreate, VendorProductCreate
from smartstore.models.base import utcnow
from smartstore.services.marketplace_service import MarketplaceService, calculate_commission

TIERS = [
    {"min_amount": 0, "max_amount": 100, "rate": 15},
    {"min_amount": "100.01", "max_amount": None, "rate": 8},
]


class TestCalculateCommission:
    """Test the commission split"""

    def test_percentage(self):
        split = calculate_commission("250", "percentage", "10")

        assert split["commission"] == Decimal("25.00")
        assert split["payout"] == Decimal("225.00")

    def test_fixed_is_capped_at_amount(self):
        split = calculate_commission("3", "fixed", "5")

        assert split["commission"] == Decimal("3.00")
        assert split["payout"] == Decimal("0.00")

    def test_tiered_picks_matching_tier(self):
        assert calculate_commission("50", "tiered", "12", TIERS)["commission"] == Decimal("7.50")
        assert calculate_commission("200", "tiered", "12", TIERS)["commission"] == Decimal("16.00")

    def test_tiered_falls_back_to_base_rate(self):
        split = calculate_commission("100", "tiered", "12", [{"min_amount": 500, "max_amount": None, "rate": 5}])

        assert split["commission"] == Decimal("12.00")
        assert split["rate"] == Decimal("12")

    def test_rounding_to_cents(self):
        split = calculate_commission("33.33", "percentage", "7.5")

        assert split["commission"] == Decimal("2.50")
        assert split["commission"] + split["payout"] == Decimal("33.33")


@pytest.fixture
def marketplace(db, demo_org):
    return MarketplaceService(db, demo_org.id)


@pytest.fixture
def vendor(marketplace):
    return marketplace.register_vendor(VendorCreate(
        business_name="Andes Crafts",
        email="hello@andes.example",
        commission_type=CommissionType.PERCENTAGE,
        commission_rate=Decimal("10"),
        bank_account="CL0012345678",
    ))


class TestVendorOnboarding:
    """Test the vendor approval workflow"""

    def test_new_vendor_is_pending(self, vendor):
        assert vendor.status == "pending"
        assert vendor.settings["return_window_days"] == 30

    def test_duplicate_email(self, marketplace, vendor):
        with pytest.raises(ConflictError):
            marketplace.register_vendor(VendorCreate(business_name="Copy", email="hello@andes.example"))

    def test_approve_then_suspend(self, marketplace, vendor, demo_org):
        approved = marketplace.approve_vendor(vendor.id, admin_id=1)
        assert approved.status == "approved"
        assert approved.verification_status == "verified"

        with pytest.raises(ValidationError):
            marketplace.approve_vendor(vendor.id, admin_id=1)

        suspended = marketplace.suspend_vendor(vendor.id, reason="Late shipments")
        assert suspended.settings["suspension_reason"] == "Late shipments"

    def test_reject_only_pending(self, marketplace, vendor):
        rejected = marketplace.reject_vendor(vendor.id, reason="Incomplete documents")
        assert rejected.status == "rejected"

        with pytest.raises(ValidationError):
            marketplace.suspend_vendor(vendor.id)

    def test_search_by_status(self, marketplace, vendor):
        marketplace.register_vendor(VendorCreate(business_name="Pacific Goods", email="sales@pacific.example"))
        marketplace.approve_vendor(vendor.id, admin_id=1)

        approved, total = marketplace.search_vendors(status="approved")

        assert total == 1
        assert approved[0].business_name == "Andes Crafts"


class TestVendorSales:
    """Test listings, sales and payouts"""

    @pytest.fixture
    def listing(self, marketplace, vendor, product):
        marketplace.approve_vendor(vendor.id, admin_id=1)
        listing = marketplace.add_vendor_product(
            vendor.id, VendorProductCreate(product_id=product("ELEC-001").id, price=Decimal("100"), stock=5),
        )
        return listing

    def test_listing_requires_approved_vendor(self, marketplace, vendor, product):
        with pytest.raises(ValidationError):
            marketplace.add_vendor_product(
                vendor.id, VendorProductCreate(product_id=product("ELEC-001").id, price=Decimal("10")),
            )

    def test_listing_awaits_approval(self, listing):
        assert listing.status == "pending_approval"
        assert listing.sku == "ELEC-001"

    def test_pending_listing_cannot_sell(self, marketplace, listing):
        with pytest.raises(ValidationError):
            marketplace.record_vendor_sale(listing.id, 1)

    def test_sale_splits_commission(self, marketplace, listing, vendor):
        marketplace.set_vendor_product_status(listing.id, "active")

        sale = marketplace.record_vendor_sale(listing.id, 2)

        assert sale.amount == Decimal("200.00")
        assert sale.commission == Decimal("20.00")
        assert sale.payout_amount == Decimal("180.00")
        assert listing.stock == 3
        assert marketplace.get_vendor(vendor.id).total_orders == 1

    def test_sale_beyond_vendor_stock(self, marketplace, listing):
        marketplace.set_vendor_product_status(listing.id, "active")

        with pytest.raises(ValidationError) as exc:
            marketplace.record_vendor_sale(listing.id, 6)

        assert exc.value.details == {"available": 5, "requested": 6}

    def test_payouts_cover_unpaid_sales_once(self, marketplace, listing, vendor):
        marketplace.set_vendor_product_status(listing.id, "active")
        marketplace.record_vendor_sale(listing.id, 1)
        marketplace.record_vendor_sale(listing.id, 1, unit_price=Decimal("50"))
        today = utcnow().date()

        payouts = marketplace.process_vendor_payouts(today - timedelta(days=1), today)

        assert len(payouts) == 1
        assert payouts[0].gross_amount == Decimal("150.00")
        assert payouts[0].payout_amount == Decimal("135.00")
        assert marketplace.process_vendor_payouts(today - timedelta(days=1), today) == []
        assert len(marketplace.list_payouts(vendor.id)) == 1

    def test_inverted_payout_period(self, marketplace):
        today = utcnow().date()
        with pytest.raises(ValidationError):
            marketplace.process_vendor_payouts(today, today - timedelta(days=1))

    def test_analytics(self, marketplace, listing, vendor):
        marketplace.set_vendor_product_status(listing.id, "active")
        marketplace.record_vendor_sale(listing.id, 3)

        analytics = marketplace.get_vendor_analytics(vendor.id)

        assert analytics["revenue"] == 300.0
        assert analytics["commission"] == 30.0
        assert analytics["orders"] == 1
        assert analytics["products"] == 1
        assert analytics["top_products"][0]["name"] == "Wireless Headphones"

    def test_unknown_listing_status(self, marketplace, listing):
        with pytest.raises(ValidationError):
            marketplace.set_vendor_product_status(listing.id, "archived")
