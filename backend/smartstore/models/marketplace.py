"""
Marketplace: third-party vendors selling through an organization's store
"""
from sqlalchemy import Column, Integer, String, Text, Numeric, JSON, ForeignKey, DateTime, Date
from sqlalchemy.orm import relationship

from smartstore.core.database import Base
from smartstore.models.base import TimestampMixin, utcnow


class Vendor(TimestampMixin, Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)

    business_name = Column(String(255), nullable=False)
    business_type = Column(String(50), default="individual", nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50))
    description = Column(Text)
    tax_id = Column(String(100))
    bank_account = Column(String(100))

    status = Column(String(20), default="pending", nullable=False, index=True)
    verification_status = Column(String(20), default="unverified", nullable=False)

    # Commission
    commission_type = Column(String(20), default="percentage", nullable=False)
    commission_rate = Column(Numeric(10, 2), default=10, nullable=False)
    commission_tiers = Column(JSON, default=list)

    rating = Column(Numeric(3, 2), default=0, nullable=False)
    total_sales = Column(Numeric(14, 2), default=0, nullable=False)
    total_orders = Column(Integer, default=0, nullable=False)
    settings = Column(JSON, default=dict)

    approved_by_id = Column(Integer, ForeignKey("users.id"))
    approved_at = Column(DateTime)

    products = relationship("VendorProduct", back_populates="vendor")


class VendorProduct(TimestampMixin, Base):
    __tablename__ = "vendor_products"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    price = Column(Numeric(12, 2), nullable=False)
    stock = Column(Integer, default=0, nullable=False)
    sku = Column(String(100))
    condition = Column(String(20), default="new", nullable=False)
    processing_days = Column(Integer, default=1, nullable=False)
    status = Column(String(30), default="pending_approval", nullable=False)

    vendor = relationship("Vendor", back_populates="products")
    product = relationship("Product")


class VendorSale(Base):
    """One sale of a vendor listing; payout_id is set once the sale is paid out"""
    __tablename__ = "vendor_sales"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor_product_id = Column(Integer, ForeignKey("vendor_products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    commission = Column(Numeric(12, 2), nullable=False)
    payout_amount = Column(Numeric(12, 2), nullable=False)
    payout_id = Column(Integer, ForeignKey("vendor_payouts.id"), index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    vendor_product = relationship("VendorProduct")


class VendorPayout(Base):
    __tablename__ = "vendor_payouts"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    gross_amount = Column(Numeric(14, 2), nullable=False)
    commission = Column(Numeric(14, 2), nullable=False)
    payout_amount = Column(Numeric(14, 2), nullable=False)
    status = Column(String(20), default="pending", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
