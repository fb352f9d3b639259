"""
Campaign Service
Email/SMS campaigns rendered per customer and delivered through SendGrid/Twilio

Author: SmartStore
Date: 2025-11-06
"""
import logging
from typing import Dict, List, Tuple

from sqlalchemy.orm import Session

from smartstore.core.exceptions import IntegrationError, ValidationError
from smartstore.domain.marketing import (
    CampaignCreate, CampaignUpdate, CampaignStatus, CampaignType, CampaignTemplateCreate, extract_variables,
)
from smartstore.models import Campaign, CampaignTemplate, Customer
from smartstore.models.base import utcnow
from smartstore.repositories import CustomerRepository, CampaignRepository, CampaignTemplateRepository
from smartstore.services.expression_evaluator import render_template
from smartstore.services.integration_service import IntegrationService

logger = logging.getLogger(__name__)

CLOSED_STATUSES = {CampaignStatus.SENT.value, CampaignStatus.CANCELLED.value}


def customer_context(customer: Customer) -> Dict:
    """Values available to {{placeholders}} in campaign content"""
    name = customer.name or ""
    return {
        "name": name,
        "first_name": name.split(" ")[0] if name else "",
        "email": customer.email or "",
        "phone": customer.phone or "",
        "city": customer.city or "",
        "country": customer.country or "",
        "membership_tier": customer.membership_tier or "",
    }


class CampaignService:
    """
    Service for marketing campaigns of one organization

    Handles:
    - Campaign and template CRUD
    - Sending: target customers by tag, render content, deliver, record stats
    """

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.campaigns = CampaignRepository(db, organization_id)
        self.templates = CampaignTemplateRepository(db, organization_id)
        self.customers = CustomerRepository(db, organization_id)

    def list_campaigns(self, status: str = None, limit: int = 100, offset: int = 0) -> Tuple[List[Campaign], int]:
        return self.campaigns.find_all(status=status, limit=limit, offset=offset)

    def get_campaign(self, campaign_id: int) -> Campaign:
        return self.campaigns.get(campaign_id)

    def create_campaign(self, data: CampaignCreate) -> Campaign:
        values = data.model_dump()
        values["type"] = data.type.value
        if data.type == CampaignType.EMAIL and not data.subject:
            raise ValidationError("Email campaigns need a subject")

        status = CampaignStatus.SCHEDULED if data.scheduled_for else CampaignStatus.DRAFT
        campaign = self.campaigns.add(Campaign(**values, status=status.value, stats={}))
        self.db.commit()
        self.db.refresh(campaign)
        return campaign

    def update_campaign(self, campaign_id: int, data: CampaignUpdate) -> Campaign:
        campaign = self.campaigns.get(campaign_id)
        if campaign.status in CLOSED_STATUSES:
            raise ValidationError(f"Campaign is {campaign.status} and can no longer be edited")

        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(campaign, field, value)
        if "scheduled_for" in changes and campaign.status in (CampaignStatus.DRAFT.value, CampaignStatus.SCHEDULED.value):
            campaign.status = (CampaignStatus.SCHEDULED if campaign.scheduled_for else CampaignStatus.DRAFT).value

        self.db.commit()
        self.db.refresh(campaign)
        return campaign

    def delete_campaign(self, campaign_id: int) -> None:
        campaign = self.campaigns.get(campaign_id)
        if campaign.status == CampaignStatus.SENDING.value:
            raise ValidationError("Campaign is being sent")
        self.campaigns.delete(campaign)
        self.db.commit()

    def _recipients(self, campaign: Campaign) -> List[Customer]:
        customers = self.customers.find_by_tags(campaign.target_tags or [])
        if campaign.type == CampaignType.EMAIL.value:
            return [c for c in customers if c.email]
        return [c for c in customers if c.phone]

    def send_campaign(self, campaign_id: int) -> Campaign:
        """
        Deliver a campaign to every matching customer

        Per-recipient failures are counted, not raised.

        Raises:
            ValidationError: campaign already SENT or CANCELLED
            IntegrationError: SendGrid/Twilio not configured for the organization
        """
        campaign = self.campaigns.get(campaign_id)
        if campaign.status in CLOSED_STATUSES:
            raise ValidationError(f"Campaign is already {campaign.status}", {"status": campaign.status})

        provider = "sendgrid" if campaign.type == CampaignType.EMAIL.value else "twilio"
        connector = IntegrationService(self.db, self.organization_id).get_connector(provider)

        recipients = self._recipients(campaign)
        campaign.status = CampaignStatus.SENDING.value
        self.db.commit()

        sent = failed = 0
        for customer in recipients:
            context = customer_context(customer)
            body = render_template(campaign.content, context)
            try:
                if campaign.type == CampaignType.EMAIL.value:
                    connector.send_email(customer.email, render_template(campaign.subject or "", context), body)
                else:
                    connector.send_sms(customer.phone, body)
                sent += 1
            except IntegrationError as e:
                failed += 1
                logger.warning(f"Campaign {campaign.id}: delivery to customer {customer.id} failed: {e.message}")

        campaign.stats = {"recipients": len(recipients), "sent": sent, "delivered": sent, "failed": failed}
        campaign.status = CampaignStatus.SENT.value
        campaign.sent_at = utcnow()
        self.db.commit()
        self.db.refresh(campaign)

        logger.info(f"Campaign {campaign.id} sent: {sent} sent, {failed} failed")
        return campaign

    def pause_campaign(self, campaign_id: int) -> Campaign:
        campaign = self.campaigns.get(campaign_id)
        if campaign.status not in (CampaignStatus.DRAFT.value, CampaignStatus.SCHEDULED.value):
            raise ValidationError(f"Only draft or scheduled campaigns can be paused (campaign is {campaign.status})")
        campaign.status = CampaignStatus.PAUSED.value
        self.db.commit()
        self.db.refresh(campaign)
        return campaign

    def cancel_campaign(self, campaign_id: int) -> Campaign:
        campaign = self.campaigns.get(campaign_id)
        if campaign.status in CLOSED_STATUSES:
            raise ValidationError(f"Campaign is already {campaign.status}")
        campaign.status = CampaignStatus.CANCELLED.value
        self.db.commit()
        self.db.refresh(campaign)
        return campaign

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def list_templates(self) -> List[CampaignTemplate]:
        return self.templates.find_all_ordered()

    def create_template(self, data: CampaignTemplateCreate) -> CampaignTemplate:
        template = self.templates.add(CampaignTemplate(
            name=data.name,
            type=data.type.value,
            subject=data.subject,
            content=data.content,
            variables=extract_variables(f"{data.subject or ''} {data.content}"),
        ))
        self.db.commit()
        self.db.refresh(template)
        return template

    def delete_template(self, template_id: int) -> None:
        self.templates.delete(self.templates.get(template_id))
        self.db.commit()
