"""
Product Domain Model

Represents a catalog product and its stock movements.

Author: SmartStore
Date: 2025-11-04
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator

from smartstore.domain.common import DomainModel, Money


class ProductSource(str, Enum):
    MANUAL = "manual"
    SHOPIFY = "shopify"
    WOOCOMMERCE = "woocommerce"
    IMPORT = "import"


class MovementType(str, Enum):
    ADJUSTMENT = "adjustment"
    SALE = "sale"
    RETURN = "return"
    TRANSFER = "transfer"
    SYNC = "sync"


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[int] = None


class Category(DomainModel):
    id: int
    name: str
    description: Optional[str] = None
    parent_id: Optional[int] = None


class ProductCreate(BaseModel):
    sku: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    brand: Optional[str] = None
    category_id: Optional[int] = None
    price: Decimal = Field(Decimal("0"), ge=0)
    cost: Optional[Decimal] = Field(None, ge=0)
    stock_quantity: int = Field(0, ge=0)
    min_stock: int = Field(0, ge=0)
    is_active: bool = True
    tags: List[str] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    """Partial update; stock changes go through stock adjustment instead"""
    sku: Optional[str] = Field(None, min_length=1, max_length=100)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    brand: Optional[str] = None
    category_id: Optional[int] = None
    price: Optional[Decimal] = Field(None, ge=0)
    cost: Optional[Decimal] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    tags: Optional[List[str]] = None


class Product(DomainModel):
    """
    Product domain model - what the API returns for a catalog entry

    Fields:
        sku: Stock Keeping Unit, unique inside the organization
        price / cost: selling price and purchase cost
        stock_quantity: on-hand units (never negative)
        min_stock: low stock alert threshold
        source: manual, shopify, woocommerce or import
    """
    id: int
    organization_id: int
    category_id: Optional[int] = None
    sku: str
    name: str
    description: Optional[str] = None
    brand: Optional[str] = None
    price: Money
    cost: Optional[Money] = None
    stock_quantity: int
    min_stock: int
    is_active: bool
    tags: Optional[List[str]] = None
    external_id: Optional[str] = None
    source: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.min_stock

    @property
    def margin(self) -> Optional[float]:
        """Gross margin percentage, None when cost or price is unknown"""
        if self.cost is None or not self.price:
            return None
        return round(float((self.price - self.cost) / self.price * 100), 2)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["is_low_stock"] = self.is_low_stock
        data["margin"] = self.margin
        return data


class StockAdjustment(BaseModel):
    quantity_change: int = Field(..., description="Positive adds stock, negative removes it")
    reason: Optional[str] = None
    warehouse_id: Optional[int] = None

    @field_validator("quantity_change")
    @classmethod
    def not_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("quantity_change must not be zero")
        return v


class InventoryMovement(DomainModel):
    id: int
    product_id: int
    warehouse_id: Optional[int] = None
    movement_type: str
    quantity: int
    stock_before: int
    stock_after: int
    reason: Optional[str] = None
    reference: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
