"""
Organizations (tenants) API Endpoints
Super admin only
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission
from smartstore.domain.organization import Organization, OrganizationCreate, OrganizationUpdate
from smartstore.services.organization_service import OrganizationService

router = APIRouter()


@router.get("/")
async def list_organizations(
    is_active: Optional[bool] = Query(None, description="Filter by active status"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_permission(Permission.TENANT_READ)),
    db: Session = Depends(get_db),
):
    organizations, total = OrganizationService(db).list_organizations(is_active, limit, offset)
    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(organizations),
        "data": [Organization.model_validate(o).to_dict() for o in organizations],
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_organization(
    data: OrganizationCreate,
    user: TokenUser = Depends(require_permission(Permission.TENANT_CREATE)),
    db: Session = Depends(get_db),
):
    organization = OrganizationService(db).create_organization(data)
    return {"status": "success", "data": Organization.model_validate(organization).to_dict()}


@router.get("/{organization_id}")
async def get_organization(
    organization_id: int,
    user: TokenUser = Depends(require_permission(Permission.TENANT_READ)),
    db: Session = Depends(get_db),
):
    organization = OrganizationService(db).get_organization(organization_id)
    return {"status": "success", "data": Organization.model_validate(organization).to_dict()}


@router.patch("/{organization_id}")
async def update_organization(
    organization_id: int,
    data: OrganizationUpdate,
    user: TokenUser = Depends(require_permission(Permission.TENANT_UPDATE)),
    db: Session = Depends(get_db),
):
    organization = OrganizationService(db).update_organization(organization_id, data)
    return {"status": "success", "data": Organization.model_validate(organization).to_dict()}


@router.delete("/{organization_id}")
async def delete_organization(
    organization_id: int,
    user: TokenUser = Depends(require_permission(Permission.TENANT_DELETE)),
    db: Session = Depends(get_db),
):
    OrganizationService(db).delete_organization(organization_id)
    return {"status": "success", "message": f"Organization {organization_id} deleted"}
