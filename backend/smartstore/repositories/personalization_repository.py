"""
Personalization repositories

Purchase and popularity queries read orders directly; they only count orders
that were not cancelled or refunded.
"""
from typing import Dict, List, Optional

from sqlalchemy import func

from smartstore.domain.order import STOCK_RELEASED_STATUSES
from smartstore.models import CustomerInteraction, Experiment, Order, OrderItem, Product
from smartstore.repositories.base import OrganizationScopedRepository

RELEASED = [s.value for s in STOCK_RELEASED_STATUSES]


class InteractionRepository(OrganizationScopedRepository[CustomerInteraction]):
    model = CustomerInteraction
    entity_name = "Interaction"

    def find_for_customer(self, customer_id: int, types: Optional[List[str]] = None) -> List[CustomerInteraction]:
        query = self._query().filter(CustomerInteraction.customer_id == customer_id)
        if types:
            query = query.filter(CustomerInteraction.interaction_type.in_(types))
        return query.order_by(CustomerInteraction.id).all()

    def purchases_for_customer(self, customer_id: int) -> List[OrderItem]:
        return (
            self.db.query(OrderItem)
            .join(Order, OrderItem.order_id == Order.id)
            .filter(
                Order.organization_id == self.organization_id,
                Order.customer_id == customer_id,
                Order.status.notin_(RELEASED),
            )
            .order_by(Order.created_at, OrderItem.id)
            .all()
        )

    def orders_for_customer(self, customer_id: int) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(
                Order.organization_id == self.organization_id,
                Order.customer_id == customer_id,
                Order.status.notin_(RELEASED),
            )
            .order_by(Order.created_at)
            .all()
        )

    def units_sold_by_product(self) -> Dict[int, int]:
        rows = (
            self.db.query(OrderItem.product_id, func.sum(OrderItem.quantity))
            .join(Order, OrderItem.order_id == Order.id)
            .filter(
                Order.organization_id == self.organization_id,
                Order.status.notin_(RELEASED),
                OrderItem.product_id.isnot(None),
            )
            .group_by(OrderItem.product_id)
            .all()
        )
        return {product_id: int(units or 0) for product_id, units in rows}

    def similar_candidates(self, product: Product) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(
                Product.organization_id == self.organization_id,
                Product.category_id == product.category_id,
                Product.id != product.id,
                Product.is_active.is_(True),
            )
            .all()
        )


class ExperimentRepository(OrganizationScopedRepository[Experiment]):
    model = Experiment
    entity_name = "Experiment"

    def find_all(self, status: Optional[str] = None, limit: int = 100, offset: int = 0):
        query = self._query()
        if status:
            query = query.filter(Experiment.status == status)
        return self._paginate(query, limit, offset, Experiment.id.desc())
