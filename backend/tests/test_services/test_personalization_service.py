"""
Tests for PersonalizationService: profiles, recommendations and experiments
"""
from datetime import datetime, timedelta

import pydantic
import pytest

from smartstore.core.exceptions import NotFoundError
from smartstore.domain.personalization import ExperimentCreate, ExperimentVariant
from smartstore.services.personalization_service import (
    PersonalizationService,
    churn_probability,
    customer_segments,
)

NOW = datetime(2025, 6, 1)


@pytest.fixture
def personalization(db, demo_org):
    return PersonalizationService(db, demo_org.id)


class TestScoringHelpers:
    """Test churn and segment rules"""

    @pytest.mark.parametrize("days_ago,expected", [(10, 0.1), (30, 0.1), (45, 0.3), (61, 0.5), (91, 0.7)])
    def test_churn_by_recency(self, days_ago, expected):
        assert churn_probability(NOW - timedelta(days=days_ago), now=NOW) == expected

    def test_churn_without_purchases(self):
        assert churn_probability(None) == 0.8

    def test_segments(self):
        assert customer_segments(0, 0, None) == ["new_customer", "low_value"]
        assert customer_segments(12, 1500, "Home Decor") == ["frequent_buyer", "high_value", "home_decor_enthusiast"]
        assert customer_segments(3, 500, None) == []


class TestProfile:
    """Test customer profiles built from order history"""

    def test_profile_from_orders(self, personalization, customer):
        profile = personalization.build_profile(customer("ana@example.com").id)

        assert profile["order_count"] == 2
        assert profile["lifetime_value"] == 177.7
        assert profile["preferred_categories"] == ["Electronics", "Apparel"]
        assert profile["price_range"]["max"] == 89.9
        assert profile["segments"] == ["electronics_enthusiast"]
        assert profile["churn_probability"] == 0.1

    def test_profile_without_orders(self, personalization, customer):
        profile = personalization.build_profile(customer("carla@example.com").id)

        assert profile["purchase_history"] == []
        assert profile["segments"] == ["new_customer", "low_value"]
        assert profile["churn_probability"] == 0.8

    def test_unknown_customer(self, personalization):
        with pytest.raises(NotFoundError):
            personalization.build_profile(424242)


class TestRecommendations:
    """Test scored recommendations"""

    def test_recommend_excludes_purchased(self, personalization, customer):
        recommendations = personalization.recommend(customer("ana@example.com").id)

        assert [r["sku"] for r in recommendations] == ["ELEC-002", "HOME-001"]
        assert recommendations[0]["reason"] == "Because you like Electronics"
        assert recommendations[0]["score"] == 0.7
        assert recommendations[1]["reason"] == "Popular in the store"

    def test_new_customer_gets_trending(self, personalization, customer):
        recommendations = personalization.recommend(customer("carla@example.com").id, limit=3)

        assert [r["sku"] for r in recommendations] == ["HOME-001", "ELEC-003", "APP-001"]
        assert {r["reason"] for r in recommendations} == {"trending"}

    def test_views_shape_affinity(self, personalization, customer, product):
        carla = customer("carla@example.com")
        personalization.track_interaction(carla.id, product("HOME-002").id, "view")

        recommendations = personalization.recommend(carla.id, limit=2)

        assert [r["sku"] for r in recommendations] == ["HOME-001", "HOME-002"]
        assert recommendations[0]["reason"] == "Because you like Home"

    def test_similar_products_by_price(self, personalization, product):
        similar = personalization.similar_products(product("ELEC-001").id)

        assert [s["sku"] for s in similar] == ["ELEC-002", "ELEC-003"]
        assert similar[0]["score"] > similar[1]["score"]

    def test_unknown_interaction_type(self, personalization, customer, product):
        with pytest.raises(ValueError):
            personalization.track_interaction(customer("ana@example.com").id, product("ELEC-001").id, "wishlist")


class TestExperiments:
    """Test A/B variant assignment"""

    @staticmethod
    def _experiment(personalization, allocations):
        return personalization.create_experiment(ExperimentCreate(
            name="Homepage ranking",
            status="running",
            variants=[
                ExperimentVariant(id=f"v{i}", name=f"Variant {i}", traffic_allocation=share)
                for i, share in enumerate(allocations)
            ],
        ))

    def test_allocation_must_sum_to_100(self):
        with pytest.raises(pydantic.ValidationError):
            ExperimentCreate(name="Broken", variants=[ExperimentVariant(id="a", name="A", traffic_allocation=60)])

    def test_assignment_is_deterministic(self, personalization):
        experiment = self._experiment(personalization, [50, 50])

        first = personalization.assign_variant(experiment.id, 17)
        second = personalization.assign_variant(experiment.id, 17)

        assert first == second
        assert 0 <= first["bucket"] < 100

    def test_full_allocation_always_wins(self, personalization):
        experiment = self._experiment(personalization, [0, 100])

        variants = {personalization.assign_variant(experiment.id, cid)["variant"]["id"] for cid in range(50)}

        assert variants == {"v1"}

    def test_split_is_roughly_even(self, personalization):
        experiment = self._experiment(personalization, [50, 50])

        assigned = [personalization.assign_variant(experiment.id, cid)["variant"]["id"] for cid in range(1000)]

        assert 400 < assigned.count("v0") < 600
