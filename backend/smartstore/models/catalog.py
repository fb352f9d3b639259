"""
Catalog and inventory models
"""
from sqlalchemy import (
    Column, Integer, String, Boolean, Text, Numeric, JSON, ForeignKey, DateTime, UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from smartstore.core.database import Base
from smartstore.models.base import TimestampMixin, utcnow


class Category(TimestampMixin, Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    parent_id = Column(Integer, ForeignKey("categories.id"))

    products = relationship("Product", back_populates="category")


class Product(TimestampMixin, Base):
    """
    Product catalog entry - stock_quantity is the single source of truth for on-hand units
    """
    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("organization_id", "sku", name="uq_products_org_sku"),
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), index=True)

    # Identificación
    sku = Column(String(100), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    brand = Column(String(100))

    # Precios
    price = Column(Numeric(12, 2), nullable=False, default=0)
    cost = Column(Numeric(12, 2))

    # Stock
    stock_quantity = Column(Integer, nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, default=True, nullable=False)
    tags = Column(JSON, default=list)

    # Origen externo (shopify, woocommerce, import)
    external_id = Column(String(255), index=True)
    source = Column(String(50), default="manual", nullable=False)

    category = relationship("Category", back_populates="products")
    order_items = relationship("OrderItem", back_populates="product")


class Warehouse(TimestampMixin, Base):
    __tablename__ = "warehouses"
    __table_args__ = (UniqueConstraint("organization_id", "code", name="uq_warehouses_org_code"),)

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False)
    address = Column(Text)
    city = Column(String(100))
    capacity = Column(Integer)
    manager_name = Column(String(255))
    is_active = Column(Boolean, default=True, nullable=False)


class InventoryMovement(Base):
    """
    Every stock change leaves one row here (adjustment, sale, return, transfer, sync)
    """
    __tablename__ = "inventory_movements"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), index=True)

    movement_type = Column(String(50), nullable=False)
    quantity = Column(Integer, nullable=False)
    stock_before = Column(Integer, nullable=False)
    stock_after = Column(Integer, nullable=False)
    reason = Column(Text)
    reference = Column(String(100))
    created_by = Column(String(255))
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    product = relationship("Product")
