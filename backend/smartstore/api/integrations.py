"""
Integrations API Endpoints
Per-organization credentials for Stripe, Shopify, WooCommerce, Twilio and SendGrid
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission
from smartstore.domain.integration import IntegrationConfigUpdate
from smartstore.services.integration_service import IntegrationService

router = APIRouter()


@router.get("/")
async def list_integrations(
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.INTEGRATIONS_MANAGE)),
    db: Session = Depends(get_db),
):
    """Every supported provider, with a configured flag and masked credentials"""
    integrations = IntegrationService(db, get_organization_scope(user, organization_id)).list()
    return {"status": "success", "count": len(integrations), "data": integrations}


@router.get("/{provider}")
async def get_integration(
    provider: str,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.INTEGRATIONS_MANAGE)),
    db: Session = Depends(get_db),
):
    data = IntegrationService(db, get_organization_scope(user, organization_id)).get(provider)
    return {"status": "success", "data": data}


@router.put("/{provider}")
async def save_integration(
    provider: str,
    payload: IntegrationConfigUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.INTEGRATIONS_MANAGE)),
    db: Session = Depends(get_db),
):
    """Store credentials; masked values sent back unchanged keep the stored secret"""
    service = IntegrationService(db, get_organization_scope(user, organization_id))
    data = service.save(provider, payload.config, is_active=payload.is_active)
    return {"status": "success", "data": data}


@router.delete("/{provider}")
async def delete_integration(
    provider: str,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.INTEGRATIONS_MANAGE)),
    db: Session = Depends(get_db),
):
    IntegrationService(db, get_organization_scope(user, organization_id)).delete(provider)
    return {"status": "success", "message": f"{provider} integration removed"}


@router.post("/{provider}/test")
async def test_integration(
    provider: str,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.INTEGRATIONS_MANAGE)),
    db: Session = Depends(get_db),
):
    result = IntegrationService(db, get_organization_scope(user, organization_id)).test(provider)
    return {"status": "success", "data": result}


@router.post("/{provider}/sync")
async def sync_integration(
    provider: str,
    limit: int = Query(250, ge=1, le=250),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.INTEGRATIONS_MANAGE)),
    db: Session = Depends(get_db),
):
    """Pull products from Shopify or WooCommerce into the catalog"""
    result = IntegrationService(db, get_organization_scope(user, organization_id)).sync_products(provider, limit=limit)
    return {"status": "success", "data": result}
