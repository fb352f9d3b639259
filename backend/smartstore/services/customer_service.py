"""
Customer Service
"""
import logging
from typing import List, Tuple

from sqlalchemy.orm import Session

from smartstore.core.exceptions import ConflictError
from smartstore.domain.customer import CustomerCreate, CustomerUpdate
from smartstore.models import Customer, Order
from smartstore.repositories import CustomerRepository

logger = logging.getLogger(__name__)


class CustomerService:

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.customers = CustomerRepository(db, organization_id)

    def list_customers(self, **filters) -> Tuple[List[Customer], int]:
        return self.customers.find_all(**filters)

    def get_customer(self, customer_id: int) -> Customer:
        return self.customers.get(customer_id)

    def get_recent_orders(self, customer_id: int, limit: int = 10) -> List[Order]:
        self.customers.get(customer_id)
        return self.customers.recent_orders(customer_id, limit)

    def _check_email(self, email, current_id=None) -> None:
        if not email:
            return
        existing = self.customers.find_by_email(email)
        if existing and existing.id != current_id:
            raise ConflictError(f"A customer with email {email} already exists", {"email": email})

    def create_customer(self, data: CustomerCreate) -> Customer:
        self._check_email(data.email)
        customer = self.customers.add(Customer(**data.model_dump()))
        self.db.commit()
        self.db.refresh(customer)
        return customer

    def update_customer(self, customer_id: int, data: CustomerUpdate) -> Customer:
        customer = self.customers.get(customer_id)
        changes = data.model_dump(exclude_unset=True)
        if "email" in changes:
            self._check_email(changes["email"], customer.id)

        for field, value in changes.items():
            setattr(customer, field, value)

        self.db.commit()
        self.db.refresh(customer)
        return customer

    def delete_customer(self, customer_id: int) -> None:
        customer = self.customers.get(customer_id)
        if self.customers.has_orders(customer.id):
            raise ConflictError(
                "Customer has orders and cannot be deleted; deactivate instead",
                {"customer_id": customer.id},
            )
        self.customers.delete(customer)
        self.db.commit()
        logger.info(f"Customer {customer_id} deleted (org {self.organization_id})")
