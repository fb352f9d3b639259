"""
Campaigns API Endpoints
Email / SMS campaigns and reusable templates
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission
from smartstore.domain.marketing import (
    Campaign,
    CampaignCreate,
    CampaignStatus,
    CampaignTemplate,
    CampaignTemplateCreate,
    CampaignUpdate,
)
from smartstore.services.campaign_service import CampaignService

router = APIRouter()


@router.get("/")
async def get_campaigns(
    status_filter: Optional[CampaignStatus] = Query(None, alias="status"),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_READ)),
    db: Session = Depends(get_db),
):
    service = CampaignService(db, get_organization_scope(user, organization_id))
    campaigns, total = service.list_campaigns(status_filter.value if status_filter else None, limit, offset)
    return {
        "status": "success",
        "total": total,
        "count": len(campaigns),
        "data": [Campaign.model_validate(c).to_dict() for c in campaigns],
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_campaign(
    data: CampaignCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_MANAGE)),
    db: Session = Depends(get_db),
):
    campaign = CampaignService(db, get_organization_scope(user, organization_id)).create_campaign(data)
    return {"status": "success", "data": Campaign.model_validate(campaign).to_dict()}


# =============================================================================
# Templates
# =============================================================================

@router.get("/templates")
async def get_templates(
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_READ)),
    db: Session = Depends(get_db),
):
    templates = CampaignService(db, get_organization_scope(user, organization_id)).list_templates()
    return {
        "status": "success",
        "count": len(templates),
        "data": [CampaignTemplate.model_validate(t).to_dict() for t in templates],
    }


@router.post("/templates", status_code=status.HTTP_201_CREATED)
async def create_template(
    data: CampaignTemplateCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_MANAGE)),
    db: Session = Depends(get_db),
):
    template = CampaignService(db, get_organization_scope(user, organization_id)).create_template(data)
    return {"status": "success", "data": CampaignTemplate.model_validate(template).to_dict()}


@router.delete("/templates/{template_id}")
async def delete_template(
    template_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_MANAGE)),
    db: Session = Depends(get_db),
):
    CampaignService(db, get_organization_scope(user, organization_id)).delete_template(template_id)
    return {"status": "success", "message": f"Template {template_id} deleted"}


# =============================================================================
# Single campaign
# =============================================================================

@router.get("/{campaign_id}")
async def get_campaign(
    campaign_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_READ)),
    db: Session = Depends(get_db),
):
    campaign = CampaignService(db, get_organization_scope(user, organization_id)).get_campaign(campaign_id)
    return {"status": "success", "data": Campaign.model_validate(campaign).to_dict()}


@router.patch("/{campaign_id}")
async def update_campaign(
    campaign_id: int,
    data: CampaignUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_MANAGE)),
    db: Session = Depends(get_db),
):
    campaign = CampaignService(db, get_organization_scope(user, organization_id)).update_campaign(campaign_id, data)
    return {"status": "success", "data": Campaign.model_validate(campaign).to_dict()}


@router.delete("/{campaign_id}")
async def delete_campaign(
    campaign_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_MANAGE)),
    db: Session = Depends(get_db),
):
    CampaignService(db, get_organization_scope(user, organization_id)).delete_campaign(campaign_id)
    return {"status": "success", "message": f"Campaign {campaign_id} deleted"}


@router.post("/{campaign_id}/send")
async def send_campaign(
    campaign_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_MANAGE)),
    db: Session = Depends(get_db),
):
    """Render and deliver to every matching customer through SendGrid / Twilio"""
    campaign = CampaignService(db, get_organization_scope(user, organization_id)).send_campaign(campaign_id)
    return {"status": "success", "data": Campaign.model_validate(campaign).to_dict()}


@router.post("/{campaign_id}/pause")
async def pause_campaign(
    campaign_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_MANAGE)),
    db: Session = Depends(get_db),
):
    campaign = CampaignService(db, get_organization_scope(user, organization_id)).pause_campaign(campaign_id)
    return {"status": "success", "data": Campaign.model_validate(campaign).to_dict()}


@router.post("/{campaign_id}/cancel")
async def cancel_campaign(
    campaign_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.MARKETING_MANAGE)),
    db: Session = Depends(get_db),
):
    campaign = CampaignService(db, get_organization_scope(user, organization_id)).cancel_campaign(campaign_id)
    return {"status": "success", "data": Campaign.model_validate(campaign).to_dict()}
