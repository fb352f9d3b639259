"""
Logistics Service
Couriers, deliveries and warehouses

Author: SmartStore
Date: 2025-11-05
"""
import logging
import secrets
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, case
from sqlalchemy.orm import Session

from smartstore.core.exceptions import ConflictError, ValidationError
from smartstore.domain.logistics import (
    CourierCreate, CourierUpdate, DeliveryStatus, WarehouseCreate, WarehouseUpdate,
)
from smartstore.domain.order import OrderStatus, can_transition
from smartstore.models import Courier, Delivery, Warehouse, Product
from smartstore.models.base import utcnow
from smartstore.repositories import (
    CourierRepository, DeliveryRepository, WarehouseRepository, OrderRepository, InventoryMovementRepository,
)
from smartstore.services.order_service import OrderService

logger = logging.getLogger(__name__)

TERMINAL_DELIVERY_STATUSES = {DeliveryStatus.DELIVERED.value, DeliveryStatus.FAILED.value}
SHIPPABLE_ORDER_STATUSES = {OrderStatus.CONFIRMED.value, OrderStatus.PROCESSING.value}


def generate_tracking_number() -> str:
    return f"TRK{utcnow():%Y%m%d}{secrets.token_hex(4).upper()}"


class CourierService:
    """
    Service for couriers and the deliveries assigned to them
    """

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.couriers = CourierRepository(db, organization_id)
        self.deliveries = DeliveryRepository(db, organization_id)
        self.orders = OrderRepository(db, organization_id)

    def list_couriers(self, **filters) -> Tuple[List[Courier], int]:
        return self.couriers.find_all(**filters)

    def get_courier(self, courier_id: int) -> Courier:
        return self.couriers.get(courier_id)

    def create_courier(self, data: CourierCreate) -> Courier:
        courier = self.couriers.add(Courier(**data.model_dump()))
        self.db.commit()
        self.db.refresh(courier)
        return courier

    def update_courier(self, courier_id: int, data: CourierUpdate) -> Courier:
        courier = self.couriers.get(courier_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(courier, field, value)
        self.db.commit()
        self.db.refresh(courier)
        return courier

    def delete_courier(self, courier_id: int) -> None:
        courier = self.couriers.get(courier_id)
        if self.db.query(Delivery.id).filter(Delivery.courier_id == courier.id).first():
            raise ConflictError("Courier has deliveries; deactivate instead", {"courier_id": courier.id})
        self.couriers.delete(courier)
        self.db.commit()

    def assign_delivery(
        self,
        order_id: int,
        courier_id: int,
        address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Delivery:
        """
        Hand an order to a courier

        Creates the delivery with a fresh tracking number, copies courier and
        tracking onto the order and ships a confirmed/processing order.

        Raises:
            NotFoundError: order or courier outside this organization
            ValidationError: inactive courier, closed order or order already out for delivery
        """
        order = self.orders.get(order_id)
        courier = self.couriers.get(courier_id)

        if not courier.is_active:
            raise ValidationError(f"Courier {courier.name} is not active")
        if order.status in {OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value, OrderStatus.DRAFT.value}:
            raise ValidationError(f"Order {order.order_number} is {order.status} and cannot be delivered")
        if self.deliveries.find_open_for_order(order.id):
            raise ValidationError(f"Order {order.order_number} already has an open delivery")

        if not address and order.customer is not None:
            parts = [order.customer.address, order.customer.city]
            address = ", ".join(p for p in parts if p) or None

        delivery = self.deliveries.add(Delivery(
            order_id=order.id,
            courier_id=courier.id,
            status=DeliveryStatus.ASSIGNED.value,
            tracking_number=generate_tracking_number(),
            address=address,
            notes=notes,
        ))

        order.courier_id = courier.id
        order.tracking_number = delivery.tracking_number
        if order.status in SHIPPABLE_ORDER_STATUSES:
            OrderService(self.db, self.organization_id).change_status(order, OrderStatus.SHIPPED.value)

        self.db.commit()
        self.db.refresh(delivery)
        logger.info(f"Order {order.order_number} assigned to courier {courier.name} ({delivery.tracking_number})")
        return delivery

    def update_delivery_status(self, delivery_id: int, status: str, notes: Optional[str] = None) -> Delivery:
        """
        Advance a delivery; DELIVERED stamps delivered_at, bumps the courier's
        delivery count and marks the order DELIVERED
        """
        delivery = self.deliveries.get(delivery_id)
        status = DeliveryStatus(status).value

        if delivery.status in TERMINAL_DELIVERY_STATUSES and delivery.status != status:
            raise ValidationError(
                f"Delivery is already {delivery.status}",
                {"from": delivery.status, "to": status},
            )
        if delivery.status == status:
            return delivery

        delivery.status = status
        if notes:
            delivery.notes = notes

        if status == DeliveryStatus.DELIVERED.value:
            delivery.delivered_at = utcnow()
            delivery.courier.total_deliveries = (delivery.courier.total_deliveries or 0) + 1
            order = delivery.order
            if can_transition(order.status, OrderStatus.DELIVERED.value):
                OrderService(self.db, self.organization_id).change_status(order, OrderStatus.DELIVERED.value)

        self.db.commit()
        self.db.refresh(delivery)
        return delivery

    def list_deliveries(self, **filters) -> Tuple[List[Delivery], int]:
        return self.deliveries.find_all(**filters)

    def get_delivery(self, delivery_id: int) -> Delivery:
        return self.deliveries.get(delivery_id)


class WarehouseService:

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.warehouses = WarehouseRepository(db, organization_id)
        self.movements = InventoryMovementRepository(db, organization_id)

    def list_warehouses(self, **filters) -> Tuple[List[Warehouse], int]:
        return self.warehouses.find_all(**filters)

    def get_warehouse(self, warehouse_id: int) -> Warehouse:
        return self.warehouses.get(warehouse_id)

    def create_warehouse(self, data: WarehouseCreate) -> Warehouse:
        if self.warehouses.find_by_code(data.code):
            raise ConflictError(f"Warehouse code '{data.code}' already exists", {"code": data.code})
        warehouse = self.warehouses.add(Warehouse(**data.model_dump()))
        self.db.commit()
        self.db.refresh(warehouse)
        return warehouse

    def update_warehouse(self, warehouse_id: int, data: WarehouseUpdate) -> Warehouse:
        warehouse = self.warehouses.get(warehouse_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(warehouse, field, value)
        self.db.commit()
        self.db.refresh(warehouse)
        return warehouse

    def delete_warehouse(self, warehouse_id: int) -> None:
        warehouse = self.warehouses.get(warehouse_id)
        _, movement_count = self.movements.find_all(warehouse_id=warehouse.id, limit=1)
        if movement_count:
            raise ConflictError("Warehouse has stock movements; deactivate instead", {"warehouse_id": warehouse.id})
        self.warehouses.delete(warehouse)
        self.db.commit()

    def stock_summary(self, warehouse_id: int, movement_limit: int = 50) -> Dict:
        """
        Organization stock position plus the movements recorded against this warehouse

        Stock value is at cost, falling back to price when cost is missing.
        """
        warehouse = self.warehouses.get(warehouse_id)

        product_count, units, value, low_stock = (
            self.db.query(
                func.count(Product.id),
                func.coalesce(func.sum(Product.stock_quantity), 0),
                func.coalesce(func.sum(Product.stock_quantity * func.coalesce(Product.cost, Product.price)), 0),
                func.coalesce(func.sum(case((Product.stock_quantity <= Product.min_stock, 1), else_=0)), 0),
            )
            .filter(Product.organization_id == self.organization_id, Product.is_active.is_(True))
            .one()
        )
        movements, movement_count = self.movements.find_all(warehouse_id=warehouse.id, limit=movement_limit)

        return {
            "warehouse_id": warehouse.id,
            "warehouse_name": warehouse.name,
            "product_count": int(product_count),
            "total_units": int(units),
            "stock_value": float(Decimal(str(value)).quantize(Decimal("0.01"))),
            "low_stock_count": int(low_stock),
            "movement_count": movement_count,
            "movements": movements,
        }
