"""
Marketplace Domain Models
"""
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field, EmailStr, field_serializer

from smartstore.domain.common import DomainModel, Money


class VendorStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    SUSPENDED = "suspended"
    REJECTED = "rejected"


class CommissionType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    TIERED = "tiered"


DEFAULT_VENDOR_SETTINGS: Dict[str, Any] = {
    "auto_approve_products": False,
    "allow_returns": True,
    "return_window_days": 30,
    "shipping_methods": ["standard", "express"],
    "payment_methods": ["card", "paypal"],
}


class CommissionTier(BaseModel):
    min_amount: Decimal = Field(..., ge=0)
    max_amount: Optional[Decimal] = Field(None, ge=0)
    rate: Decimal = Field(..., ge=0)


class VendorCreate(BaseModel):
    business_name: str = Field(..., min_length=1, max_length=255)
    business_type: str = Field("individual", pattern=r"^(individual|company|corporation)$")
    email: EmailStr
    phone: Optional[str] = None
    description: Optional[str] = None
    tax_id: Optional[str] = None
    bank_account: Optional[str] = None
    commission_type: CommissionType = CommissionType.PERCENTAGE
    commission_rate: Decimal = Field(Decimal("10"), ge=0)
    commission_tiers: List[CommissionTier] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=dict)


class Vendor(DomainModel):
    id: int
    business_name: str
    business_type: str
    email: str
    phone: Optional[str] = None
    description: Optional[str] = None
    tax_id: Optional[str] = None
    bank_account: Optional[str] = None
    status: str
    verification_status: str
    commission_type: str
    commission_rate: Money
    commission_tiers: Optional[List[Dict[str, Any]]] = None
    rating: Money
    total_sales: Money
    total_orders: int
    settings: Optional[Dict[str, Any]] = None
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: datetime

    @field_serializer("bank_account")
    def mask_bank_account(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return value
        return "*" * max(len(value) - 4, 0) + value[-4:]


class VendorProductCreate(BaseModel):
    product_id: int
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    sku: Optional[str] = None
    condition: str = Field("new", pattern=r"^(new|used|refurbished)$")
    processing_days: int = Field(1, ge=0)


class VendorProduct(DomainModel):
    id: int
    vendor_id: int
    product_id: int
    price: Money
    stock: int
    sku: Optional[str] = None
    condition: str
    processing_days: int
    status: str
    created_at: datetime


class VendorSaleCreate(BaseModel):
    vendor_product_id: int
    quantity: int = Field(..., ge=1)
    unit_price: Optional[Decimal] = Field(None, ge=0)


class VendorPayout(DomainModel):
    id: int
    vendor_id: int
    period_start: date
    period_end: date
    gross_amount: Money
    commission: Money
    payout_amount: Money
    status: str
    created_at: datetime


class PayoutRequest(BaseModel):
    period_start: date
    period_end: date


class VendorSale(DomainModel):
    id: int
    vendor_id: int
    vendor_product_id: int
    quantity: int
    unit_price: Money
    amount: Money
    commission: Money
    payout_amount: Money
    payout_id: Optional[int] = None
    created_at: datetime
