"""
Subscription repositories
"""
from typing import List, Optional

from smartstore.models import Subscription, SubscriptionPlan
from smartstore.repositories.base import OrganizationScopedRepository


class PlanRepository(OrganizationScopedRepository[SubscriptionPlan]):
    model = SubscriptionPlan
    entity_name = "Subscription plan"

    def find_all_ordered(self, active_only: bool = True) -> List[SubscriptionPlan]:
        query = self._query()
        if active_only:
            query = query.filter(SubscriptionPlan.is_active.is_(True))
        return query.order_by(SubscriptionPlan.price).all()


class SubscriptionRepository(OrganizationScopedRepository[Subscription]):
    model = Subscription
    entity_name = "Subscription"

    def find_filtered(self, customer_id: Optional[int] = None, status: Optional[str] = None) -> List[Subscription]:
        query = self._query()
        if customer_id is not None:
            query = query.filter(Subscription.customer_id == customer_id)
        if status:
            query = query.filter(Subscription.status == status)
        return query.order_by(Subscription.id.desc()).all()
