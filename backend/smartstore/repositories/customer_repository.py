"""
Customer Repository
"""
from typing import List, Optional, Tuple

from sqlalchemy import or_

from smartstore.models import Customer, Order
from smartstore.repositories.base import OrganizationScopedRepository


class CustomerRepository(OrganizationScopedRepository[Customer]):
    model = Customer
    entity_name = "Customer"

    def find_by_email(self, email: str) -> Optional[Customer]:
        return self._query().filter(Customer.email == email).first()

    def find_all(
        self,
        search: Optional[str] = None,
        tag: Optional[str] = None,
        is_active: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Customer], int]:
        query = self._query()

        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Customer.name.ilike(term),
                Customer.email.ilike(term),
                Customer.phone.ilike(term),
                Customer.city.ilike(term),
            ))

        if is_active is not None:
            query = query.filter(Customer.is_active == is_active)

        if tag:
            # Tags live in a JSON list; filtered in Python to stay portable across SQLite/PostgreSQL
            matching = [c for c in query.order_by(Customer.name).all() if tag in (c.tags or [])]
            return matching[offset:offset + limit], len(matching)

        return self._paginate(query, limit, offset, Customer.name)

    def find_by_tags(self, tags: List[str]) -> List[Customer]:
        """Active customers carrying any of the tags (all active customers when tags is empty)"""
        customers = self._query().filter(Customer.is_active.is_(True)).order_by(Customer.id).all()
        if not tags:
            return customers
        wanted = set(tags)
        return [c for c in customers if wanted.intersection(c.tags or [])]

    def has_orders(self, customer_id: int) -> bool:
        return self.db.query(Order.id).filter(Order.customer_id == customer_id).first() is not None

    def recent_orders(self, customer_id: int, limit: int = 10) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.organization_id == self.organization_id, Order.customer_id == customer_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
            .all()
        )
