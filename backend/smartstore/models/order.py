"""
Modelos relacionados con órdenes/pedidos
"""
from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from smartstore.core.database import Base
from smartstore.models.base import TimestampMixin


class Order(TimestampMixin, Base):
    __tablename__ = "orders"
    __table_args__ = (UniqueConstraint("organization_id", "order_number", name="uq_orders_org_number"),)

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)

    # Identificación
    order_number = Column(String(100), nullable=False, index=True)
    external_id = Column(String(255))
    source = Column(String(50), default="manual", nullable=False)

    # Relaciones
    customer_id = Column(Integer, ForeignKey("customers.id"), index=True)
    courier_id = Column(Integer, ForeignKey("couriers.id"), index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"))

    # Estados
    status = Column(String(50), default="PENDING", nullable=False, index=True)
    payment_status = Column(String(50), default="PENDING", nullable=False)
    payment_method = Column(String(50))

    # Montos
    currency = Column(String(3), default="USD", nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    shipping = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)

    tracking_number = Column(String(100))
    notes = Column(Text)

    customer = relationship("Customer", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), index=True)

    # Datos del producto al momento de venta
    sku = Column(String(100))
    name = Column(String(255))

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="order_items")
