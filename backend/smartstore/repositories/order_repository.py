"""
Order Repository - Data Access Layer for Orders

Author: SmartStore
Date: 2025-11-04
"""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_, func

from smartstore.models import Order, Customer
from smartstore.repositories.base import OrganizationScopedRepository


class OrderRepository(OrganizationScopedRepository[Order]):
    """
    Repository for Order data access
    """
    model = Order
    entity_name = "Order"

    def find_by_number(self, order_number: str) -> Optional[Order]:
        return self._query().filter(Order.order_number == order_number).first()

    def find_all(
        self,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        customer_id: Optional[int] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Order], int]:
        """
        Find orders with filters

        Args:
            status: Filter by order status
            payment_status: Filter by payment status
            customer_id: Filter by customer
            from_date / to_date: created_at range (inclusive)
            search: Order number, customer name or customer email

        Returns:
            Tuple of (list of orders, total count)
        """
        query = self._query()

        if status:
            query = query.filter(Order.status == status)
        if payment_status:
            query = query.filter(Order.payment_status == payment_status)
        if customer_id is not None:
            query = query.filter(Order.customer_id == customer_id)
        if from_date:
            query = query.filter(Order.created_at >= from_date)
        if to_date:
            query = query.filter(Order.created_at <= to_date)
        if search:
            term = f"%{search}%"
            query = query.outerjoin(Customer, Order.customer_id == Customer.id).filter(or_(
                Order.order_number.ilike(term),
                Customer.name.ilike(term),
                Customer.email.ilike(term),
            ))

        return self._paginate(query, limit, offset, Order.created_at.desc())

    def count_by_status(self) -> dict:
        rows = (
            self.db.query(Order.status, func.count(Order.id))
            .filter(Order.organization_id == self.organization_id)
            .group_by(Order.status)
            .all()
        )
        return {status: count for status, count in rows}

    def find_in_range(self, start: datetime, end: datetime, exclude_statuses=()) -> List[Order]:
        query = self._query().filter(Order.created_at >= start, Order.created_at <= end)
        if exclude_statuses:
            query = query.filter(Order.status.notin_(list(exclude_statuses)))
        return query.order_by(Order.created_at).all()
