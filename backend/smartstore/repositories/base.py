"""
Base repository for organization-owned rows

Every query goes through _query(), which pins organization_id, so a row of
another tenant is indistinguishable from a missing one.

Author: SmartStore
Date: 2025-11-04
"""
from typing import Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy.orm import Session, Query

from smartstore.core.exceptions import NotFoundError

ModelT = TypeVar("ModelT")


class OrganizationScopedRepository(Generic[ModelT]):
    """
    Repository for a model with an organization_id column

    Subclasses set `model` and `entity_name` and add their own finders.
    """

    model: Type[ModelT]
    entity_name: str = "Record"

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id

    def _query(self) -> Query:
        return self.db.query(self.model).filter(self.model.organization_id == self.organization_id)

    def find_by_id(self, entity_id: int) -> Optional[ModelT]:
        return self._query().filter(self.model.id == entity_id).first()

    def get(self, entity_id: int) -> ModelT:
        """Like find_by_id, raising NotFoundError instead of returning None"""
        entity = self.find_by_id(entity_id)
        if entity is None:
            raise NotFoundError(self.entity_name, entity_id)
        return entity

    def _paginate(self, query: Query, limit: int, offset: int, order_by=None) -> Tuple[List[ModelT], int]:
        total = query.count()
        if order_by is not None:
            query = query.order_by(order_by)
        return query.offset(offset).limit(limit).all(), total

    def find_all(self, limit: int = 100, offset: int = 0) -> Tuple[List[ModelT], int]:
        return self._paginate(self._query(), limit, offset, self.model.id.desc())

    def add(self, entity: ModelT) -> ModelT:
        entity.organization_id = self.organization_id
        self.db.add(entity)
        self.db.flush()
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.flush()
