"""
Campaign repositories
"""
from typing import List, Optional, Tuple

from smartstore.models import Campaign, CampaignTemplate
from smartstore.repositories.base import OrganizationScopedRepository


class CampaignRepository(OrganizationScopedRepository[Campaign]):
    model = Campaign
    entity_name = "Campaign"

    def find_all(self, status: Optional[str] = None, limit: int = 100, offset: int = 0) -> Tuple[List[Campaign], int]:
        query = self._query()
        if status:
            query = query.filter(Campaign.status == status)
        return self._paginate(query, limit, offset, Campaign.id.desc())


class CampaignTemplateRepository(OrganizationScopedRepository[CampaignTemplate]):
    model = CampaignTemplate
    entity_name = "Campaign template"

    def find_all_ordered(self) -> List[CampaignTemplate]:
        return self._query().order_by(CampaignTemplate.name).all()
