"""
Organization and user repositories
"""
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from smartstore.core.exceptions import NotFoundError
from smartstore.models import Organization, User
from smartstore.repositories.base import OrganizationScopedRepository


class OrganizationRepository:
    """Tenants themselves; only super admins reach this one"""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, organization_id: int) -> Optional[Organization]:
        return self.db.query(Organization).filter(Organization.id == organization_id).first()

    def get(self, organization_id: int) -> Organization:
        organization = self.find_by_id(organization_id)
        if organization is None:
            raise NotFoundError("Organization", organization_id)
        return organization

    def find_by_slug(self, slug: str) -> Optional[Organization]:
        return self.db.query(Organization).filter(Organization.slug == slug).first()

    def find_all(self, is_active: Optional[bool] = None, limit: int = 100, offset: int = 0) -> Tuple[List[Organization], int]:
        query = self.db.query(Organization)
        if is_active is not None:
            query = query.filter(Organization.is_active == is_active)
        total = query.count()
        return query.order_by(Organization.id).offset(offset).limit(limit).all(), total

    def count_users(self, organization_id: int) -> int:
        return self.db.query(User).filter(User.organization_id == organization_id).count()

    def add(self, organization: Organization) -> Organization:
        self.db.add(organization)
        self.db.flush()
        return organization

    def delete(self, organization: Organization) -> None:
        self.db.delete(organization)
        self.db.flush()


class UserRepository(OrganizationScopedRepository[User]):
    model = User
    entity_name = "User"

    def find_by_email(self, email: str) -> Optional[User]:
        """Emails are unique across organizations, so this lookup is not scoped"""
        return self.db.query(User).filter(User.email == email.lower()).first()

    def find_all(
        self,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[User], int]:
        query = self._query()
        if role:
            query = query.filter(User.role == role)
        if is_active is not None:
            query = query.filter(User.is_active == is_active)
        return self._paginate(query, limit, offset, User.id)

    def find_active_in_org(self, user_id: int) -> Optional[User]:
        return self._query().filter(User.id == user_id, User.is_active.is_(True)).first()
