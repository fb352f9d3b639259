"""
Organization Service
Tenant management for super admins

Author: SmartStore
Date: 2025-11-04
"""
import logging
import re
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from smartstore.core.exceptions import ConflictError
from smartstore.domain.organization import OrganizationCreate, OrganizationUpdate
from smartstore.models import Organization
from smartstore.repositories import OrganizationRepository

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug[:90] or "organization"


class OrganizationService:

    def __init__(self, db: Session):
        self.db = db
        self.organizations = OrganizationRepository(db)

    def list_organizations(self, is_active: Optional[bool] = None, limit: int = 100,
                           offset: int = 0) -> Tuple[List[Organization], int]:
        return self.organizations.find_all(is_active, limit, offset)

    def get_organization(self, organization_id: int) -> Organization:
        return self.organizations.get(organization_id)

    def _unique_slug(self, name: str) -> str:
        base = slugify(name)
        slug, suffix = base, 2
        while self.organizations.find_by_slug(slug):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    def create_organization(self, data: OrganizationCreate) -> Organization:
        if data.slug:
            if self.organizations.find_by_slug(data.slug):
                raise ConflictError(f"Slug {data.slug} is already taken", {"slug": data.slug})
            slug = data.slug
        else:
            slug = self._unique_slug(data.name)

        organization = self.organizations.add(Organization(
            name=data.name,
            slug=slug,
            plan=data.plan,
            settings=data.settings,
            is_active=True,
        ))
        self.db.commit()
        self.db.refresh(organization)
        logger.info(f"Organization {organization.slug} created (id {organization.id})")
        return organization

    def update_organization(self, organization_id: int, data: OrganizationUpdate) -> Organization:
        organization = self.organizations.get(organization_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(organization, field, value)
        self.db.commit()
        self.db.refresh(organization)
        return organization

    def delete_organization(self, organization_id: int) -> None:
        organization = self.organizations.get(organization_id)
        users = self.organizations.count_users(organization.id)
        if users:
            raise ConflictError(
                f"Organization {organization.slug} still has {users} user(s)",
                {"organization_id": organization.id, "users": users},
            )
        self.organizations.delete(organization)
        self.db.commit()
        logger.info(f"Organization {organization.slug} deleted")
