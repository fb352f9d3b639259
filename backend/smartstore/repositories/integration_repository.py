"""
Integration config repository
"""
from typing import List, Optional

from smartstore.models import IntegrationConfig
from smartstore.repositories.base import OrganizationScopedRepository


class IntegrationRepository(OrganizationScopedRepository[IntegrationConfig]):
    model = IntegrationConfig
    entity_name = "Integration"

    def find_by_provider(self, provider: str) -> Optional[IntegrationConfig]:
        return self._query().filter(IntegrationConfig.provider == provider).first()

    def find_all_ordered(self) -> List[IntegrationConfig]:
        return self._query().order_by(IntegrationConfig.provider).all()
