"""
Order Service
Order creation with stock reservation, status machine and order stats

Author: SmartStore
Date: 2025-11-05
"""
import logging
import secrets
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from smartstore.core.config import settings
from smartstore.core.exceptions import ConflictError, NotFoundError, ValidationError
from smartstore.domain.order import (
    OrderCreate, OrderUpdate, OrderStatus, STOCK_RELEASED_STATUSES, can_transition,
)
from smartstore.domain.product import MovementType
from smartstore.models import Order, OrderItem, Customer, Courier
from smartstore.models.base import utcnow
from smartstore.repositories import OrderRepository, ProductRepository, CustomerRepository
from smartstore.services.product_service import ProductService

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
DELETABLE_STATUSES = {OrderStatus.DRAFT.value, OrderStatus.CANCELLED.value}
RELEASED = {s.value for s in STOCK_RELEASED_STATUSES}


def money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(TWO_PLACES)


def generate_order_number(now: Optional[datetime] = None) -> str:
    """ORD-YYYYMMDD-XXXXXX"""
    now = now or utcnow()
    return f"ORD-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


class OrderService:
    """
    Service for the orders of one organization

    Handles:
    - Order creation (totals, stock decrement, customer aggregates)
    - Status transitions (cancel/refund restore stock)
    - Stats for the dashboard
    """

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.orders = OrderRepository(db, organization_id)
        self.products = ProductRepository(db, organization_id)
        self.customers = CustomerRepository(db, organization_id)
        self.product_service = ProductService(db, organization_id)

    def list_orders(self, **filters) -> Tuple[List[Order], int]:
        return self.orders.find_all(**filters)

    def get_order(self, order_id: int) -> Order:
        return self.orders.get(order_id)

    def _unique_order_number(self) -> str:
        for _ in range(10):
            number = generate_order_number()
            if self.orders.find_by_number(number) is None:
                return number
        raise ConflictError("Could not generate a unique order number")

    def create_order(self, data: OrderCreate, created_by_id: Optional[int] = None, commit: bool = True) -> Order:
        """
        Create an order and take its items out of stock

        Args:
            data: Validated order payload
            created_by_id: User creating the order
            commit: False lets a caller (workflow engine) fold this into a larger unit of work

        Raises:
            NotFoundError: customer or product outside this organization
            ValidationError: insufficient stock (nothing is written)
            ConflictError: order number already used
        """
        if data.customer_id is not None:
            self.customers.get(data.customer_id)

        if data.order_number:
            if self.orders.find_by_number(data.order_number):
                raise ConflictError(f"Order number {data.order_number} already exists")
            order_number = data.order_number
        else:
            order_number = self._unique_order_number()

        try:
            order = Order(
                order_number=order_number,
                customer_id=data.customer_id,
                status=data.status.value,
                payment_status=data.payment_status.value,
                payment_method=data.payment_method,
                currency=(data.currency or settings.DEFAULT_CURRENCY).upper(),
                tax=money(data.tax),
                shipping=money(data.shipping),
                discount=money(data.discount),
                notes=data.notes,
                source=data.source,
                external_id=data.external_id,
                created_by_id=created_by_id,
            )
            self.orders.add(order)

            subtotal = Decimal("0")
            for item_data in data.items:
                product = self.products.get(item_data.product_id)
                unit_price = money(item_data.unit_price if item_data.unit_price is not None else product.price)
                line_total = money(unit_price * item_data.quantity)
                subtotal += line_total

                self.db.add(OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    sku=product.sku,
                    name=product.name,
                    quantity=item_data.quantity,
                    unit_price=unit_price,
                    total=line_total,
                ))
                self.product_service.apply_stock_change(
                    product, -item_data.quantity, MovementType.SALE,
                    reason=f"Order {order_number}", reference=order_number,
                )

            order.subtotal = money(subtotal)
            order.total = max(order.subtotal + order.tax + order.shipping - order.discount, Decimal("0.00"))
            self.db.flush()

            if order.customer_id is not None:
                self.refresh_customer_totals(order.customer_id)

            if commit:
                self.db.commit()
                self.db.refresh(order)
        except (NotFoundError, ValidationError):
            self.db.rollback()
            raise

        logger.info(f"Order {order.order_number} created: total {order.total} {order.currency}")
        return order

    def refresh_customer_totals(self, customer_id: int) -> None:
        """Recompute total_orders / total_spent from the customer's live orders"""
        count, spent = (
            self.db.query(func.count(Order.id), func.coalesce(func.sum(Order.total), 0))
            .filter(
                Order.organization_id == self.organization_id,
                Order.customer_id == customer_id,
                Order.status.notin_(list(RELEASED)),
            )
            .one()
        )
        customer = self.db.get(Customer, customer_id)
        customer.total_orders = count
        customer.total_spent = money(spent)
        self.db.flush()

    def change_status(self, order: Order, new_status: str) -> Order:
        """
        Move an order to a new status (no commit)

        Raises:
            ValidationError: transition not allowed from the current status
        """
        new_status = OrderStatus(new_status).value
        if order.status == new_status:
            return order

        if not can_transition(order.status, new_status):
            raise ValidationError(
                f"Cannot change order status from {order.status} to {new_status}",
                {"from": order.status, "to": new_status},
            )

        if new_status in RELEASED and order.status not in RELEASED:
            for item in order.items:
                if item.product is None:
                    continue
                self.product_service.apply_stock_change(
                    item.product, item.quantity, MovementType.RETURN,
                    reason=f"Order {order.order_number} {new_status.lower()}",
                    reference=order.order_number,
                )

        previous = order.status
        order.status = new_status
        if new_status == OrderStatus.REFUNDED.value:
            order.payment_status = "REFUNDED"
        self.db.flush()

        if order.customer_id is not None:
            self.refresh_customer_totals(order.customer_id)

        logger.info(f"Order {order.order_number}: {previous} -> {new_status}")
        return order

    def update_order(self, order_id: int, data: OrderUpdate) -> Order:
        order = self.orders.get(order_id)
        changes = data.model_dump(exclude_unset=True)

        try:
            if changes.get("courier_id") is not None:
                courier = self.db.query(Courier).filter(
                    Courier.id == changes["courier_id"], Courier.organization_id == self.organization_id
                ).first()
                if courier is None:
                    raise NotFoundError("Courier", changes["courier_id"])

            new_status = changes.pop("status", None)
            for field, value in changes.items():
                setattr(order, field, value.value if hasattr(value, "value") else value)

            if new_status is not None:
                self.change_status(order, new_status)

            self.db.commit()
        except (NotFoundError, ValidationError):
            self.db.rollback()
            raise

        self.db.refresh(order)
        return order

    def delete_order(self, order_id: int) -> None:
        order = self.orders.get(order_id)
        if order.status not in DELETABLE_STATUSES:
            raise ValidationError(
                f"Only DRAFT or CANCELLED orders can be deleted (order is {order.status})",
                {"status": order.status},
            )

        if order.status == OrderStatus.DRAFT.value:
            # Drafts still hold their stock
            for item in order.items:
                if item.product is not None:
                    self.product_service.apply_stock_change(
                        item.product, item.quantity, MovementType.RETURN,
                        reason=f"Draft order {order.order_number} deleted", reference=order.order_number,
                    )

        customer_id = order.customer_id
        self.orders.delete(order)
        if customer_id is not None:
            self.refresh_customer_totals(customer_id)
        self.db.commit()

    def get_stats(self) -> Dict:
        """Counts by status, revenue (live orders only) and average order value"""
        by_status = self.orders.count_by_status()
        revenue, live_count = (
            self.db.query(func.coalesce(func.sum(Order.total), 0), func.count(Order.id))
            .filter(Order.organization_id == self.organization_id, Order.status.notin_(list(RELEASED)))
            .one()
        )
        revenue = money(revenue)
        average = money(revenue / live_count) if live_count else Decimal("0.00")

        return {
            "total_orders": sum(by_status.values()),
            "by_status": {s.value: by_status.get(s.value, 0) for s in OrderStatus},
            "revenue": float(revenue),
            "average_order_value": float(average),
        }
