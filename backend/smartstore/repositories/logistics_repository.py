"""
Courier, Delivery and Warehouse repositories
"""
from typing import List, Optional, Tuple

from smartstore.models import Courier, Delivery, Warehouse
from smartstore.repositories.base import OrganizationScopedRepository


class CourierRepository(OrganizationScopedRepository[Courier]):
    model = Courier
    entity_name = "Courier"

    def find_all(
        self,
        is_active: Optional[bool] = None,
        is_online: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Courier], int]:
        query = self._query()
        if is_active is not None:
            query = query.filter(Courier.is_active == is_active)
        if is_online is not None:
            query = query.filter(Courier.is_online == is_online)
        return self._paginate(query, limit, offset, Courier.name)


class DeliveryRepository(OrganizationScopedRepository[Delivery]):
    model = Delivery
    entity_name = "Delivery"

    def find_all(
        self,
        courier_id: Optional[int] = None,
        status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Delivery], int]:
        query = self._query()
        if courier_id is not None:
            query = query.filter(Delivery.courier_id == courier_id)
        if status:
            query = query.filter(Delivery.status == status)
        return self._paginate(query, limit, offset, Delivery.id.desc())

    def find_open_for_order(self, order_id: int) -> Optional[Delivery]:
        return (
            self._query()
            .filter(Delivery.order_id == order_id, Delivery.status.notin_(["DELIVERED", "FAILED"]))
            .first()
        )


class WarehouseRepository(OrganizationScopedRepository[Warehouse]):
    model = Warehouse
    entity_name = "Warehouse"

    def find_by_code(self, code: str) -> Optional[Warehouse]:
        return self._query().filter(Warehouse.code == code).first()

    def find_all(self, is_active: Optional[bool] = None, limit: int = 100, offset: int = 0):
        query = self._query()
        if is_active is not None:
            query = query.filter(Warehouse.is_active == is_active)
        return self._paginate(query, limit, offset, Warehouse.name)
