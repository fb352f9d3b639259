"""
Order Domain Models

Represents orders and their line items, plus the order status machine.

Author: SmartStore
Date: 2025-11-04
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Set

from pydantic import BaseModel, Field

from smartstore.domain.common import DomainModel, Money


class OrderStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


# Allowed status transitions (current -> possible next states)
ORDER_TRANSITIONS: Dict[OrderStatus, Set[OrderStatus]] = {
    OrderStatus.DRAFT: {OrderStatus.PENDING, OrderStatus.CANCELLED},
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: {OrderStatus.COMPLETED, OrderStatus.REFUNDED},
    OrderStatus.COMPLETED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}

# Orders in these states no longer hold stock and do not count as revenue
STOCK_RELEASED_STATUSES = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}


def can_transition(current: str, target: str) -> bool:
    if current == target:
        return True
    return OrderStatus(target) in ORDER_TRANSITIONS[OrderStatus(current)]


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1)
    unit_price: Optional[Decimal] = Field(None, ge=0, description="Defaults to the product price")


class OrderCreate(BaseModel):
    customer_id: Optional[int] = None
    order_number: Optional[str] = Field(None, max_length=100)
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    tax: Decimal = Field(Decimal("0"), ge=0)
    shipping: Decimal = Field(Decimal("0"), ge=0)
    discount: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = None
    source: str = "manual"
    external_id: Optional[str] = None
    items: List[OrderItemCreate] = Field(..., min_length=1)


class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    courier_id: Optional[int] = None
    tracking_number: Optional[str] = None


class OrderItem(DomainModel):
    id: int
    order_id: int
    product_id: Optional[int] = None
    sku: Optional[str] = None
    name: Optional[str] = None
    quantity: int
    unit_price: Money
    total: Money


class Order(DomainModel):
    """
    Order domain model

    Fields:
        order_number: ORD-YYYYMMDD-XXXXXX unless supplied
        subtotal: sum of line totals
        total: subtotal + tax + shipping - discount (never negative)
    """
    id: int
    organization_id: int
    order_number: str
    customer_id: Optional[int] = None
    status: str
    payment_status: str
    payment_method: Optional[str] = None
    currency: str
    subtotal: Money
    tax: Money
    shipping: Money
    discount: Money
    total: Money
    notes: Optional[str] = None
    source: str
    external_id: Optional[str] = None
    courier_id: Optional[int] = None
    tracking_number: Optional[str] = None
    created_by_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    items: List[OrderItem] = Field(default_factory=list)

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["item_count"] = self.item_count
        data["is_paid"] = self.is_paid
        return data
