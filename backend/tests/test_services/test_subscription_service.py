"""
Tests for SubscriptionService: lifecycle, metered usage and membership tiers
"""
from datetime import datetime

import pytest

from smartstore.core.exceptions import UsageLimitExceededError, ValidationError
from smartstore.domain.subscription import BillingInterval, SubscriptionPlanCreate
from smartstore.services.subscription_service import SubscriptionService, get_tier, tier_progress

START = datetime(2025, 1, 1, 12, 0, 0)


@pytest.fixture
def subscriptions(db, demo_org):
    return SubscriptionService(db, demo_org.id)


@pytest.fixture
def premium(subscriptions):
    return next(p for p in subscriptions.list_plans() if p.name == "Premium Club")


class TestMembershipTiers:
    """Test tier thresholds"""

    def test_thresholds(self):
        assert get_tier(0) == "bronze"
        assert get_tier("499.99") == "bronze"
        assert get_tier(500) == "silver"
        assert get_tier(2500) == "gold"
        assert get_tier(10000) == "diamond"

    def test_progress_towards_next_tier(self):
        progress = tier_progress(1250)

        assert progress["tier"] == "silver"
        assert progress["next_tier"] == "gold"
        assert progress["progress"] == 50.0
        assert progress["amount_to_next_tier"] == 750.0

    def test_top_tier_is_complete(self):
        assert tier_progress(20000)["progress"] == 100.0

    def test_membership_counts_delivered_orders_only(self, subscriptions, customer):
        ana = customer("ana@example.com")

        result = subscriptions.update_membership_status(ana.id)

        # ORD-DEMO-0003 is still pending
        assert result["total_spent"] == 129.7
        assert result["tier"] == "bronze"
        assert result["amount_to_next_tier"] == 370.3
        assert ana.membership_tier == "bronze"


class TestSubscriptionLifecycle:
    """Test trials, renewals and cancellation"""

    def test_plan_trial_starts_trialing(self, subscriptions, premium, customer):
        sub = subscriptions.create_subscription(customer("ana@example.com").id, premium.id, now=START)

        assert sub.status == "trialing"
        assert sub.current_period_end == datetime(2025, 1, 15, 12, 0, 0)

    def test_no_trial_starts_active(self, subscriptions, premium, customer):
        sub = subscriptions.create_subscription(customer("ana@example.com").id, premium.id, trial_days=0, now=START)

        assert sub.status == "active"
        assert sub.current_period_end == datetime(2025, 1, 31, 12, 0, 0)

    def test_renew_rolls_period_and_resets_usage(self, subscriptions, premium, customer):
        sub = subscriptions.create_subscription(customer("ana@example.com").id, premium.id, trial_days=0, now=START)
        subscriptions.record_usage(sub.id, "orders", 3)

        renewed = subscriptions.renew_subscription(sub.id)

        assert renewed.current_period_start == datetime(2025, 1, 31, 12, 0, 0)
        assert renewed.current_period_end == datetime(2025, 3, 2, 12, 0, 0)
        assert renewed.usage == {}

    def test_cancel_at_period_end(self, subscriptions, premium, customer):
        sub = subscriptions.create_subscription(customer("ana@example.com").id, premium.id, trial_days=0, now=START)

        canceled = subscriptions.cancel_subscription(sub.id, reason="Too expensive")
        assert canceled.status == "active"
        assert canceled.cancel_at_period_end is True

        ended = subscriptions.renew_subscription(sub.id)
        assert ended.status == "canceled"
        assert ended.canceled_at == datetime(2025, 1, 31, 12, 0, 0)

    def test_immediate_cancel(self, subscriptions, premium, customer):
        sub = subscriptions.create_subscription(customer("bruno@example.com").id, premium.id)

        canceled = subscriptions.cancel_subscription(sub.id, immediate=True)

        assert canceled.status == "canceled"
        assert canceled.canceled_at is not None
        with pytest.raises(ValidationError):
            subscriptions.cancel_subscription(sub.id)
        with pytest.raises(ValidationError):
            subscriptions.renew_subscription(sub.id)

    def test_inactive_plan_rejected(self, subscriptions, customer, db):
        plan = subscriptions.create_plan(SubscriptionPlanCreate(name="Legacy", price="4.90", interval=BillingInterval.WEEK))
        plan.is_active = False
        db.commit()

        with pytest.raises(ValidationError):
            subscriptions.create_subscription(customer("ana@example.com").id, plan.id)

    def test_plan_currency_defaults(self, subscriptions):
        plan = subscriptions.create_plan(SubscriptionPlanCreate(name="Yearly", price="99", interval=BillingInterval.YEAR))

        assert plan.currency == "USD"
        assert plan.interval == "year"


class TestUsage:
    """Test metered usage against plan limits"""

    def test_usage_accumulates(self, subscriptions, premium, customer):
        sub = subscriptions.create_subscription(customer("ana@example.com").id, premium.id)

        subscriptions.record_usage(sub.id, "orders", 15)
        record = subscriptions.record_usage(sub.id, "orders", 5, {"source": "checkout"})

        assert record.extra_data == {"source": "checkout"}
        assert subscriptions.get_subscription(sub.id).usage == {"orders": 20}

    def test_limit_exceeded(self, subscriptions, premium, customer):
        sub = subscriptions.create_subscription(customer("ana@example.com").id, premium.id)
        subscriptions.record_usage(sub.id, "orders", 15)

        with pytest.raises(UsageLimitExceededError) as exc:
            subscriptions.record_usage(sub.id, "orders", 6)

        assert exc.value.details["limit"] == 20
        assert subscriptions.get_subscription(sub.id).usage == {"orders": 15}

    def test_unlimited_metric(self, subscriptions, premium, customer):
        sub = subscriptions.create_subscription(customer("ana@example.com").id, premium.id)

        subscriptions.record_usage(sub.id, "api_calls", 10000)

        assert subscriptions.get_subscription(sub.id).usage["api_calls"] == 10000


class TestSubscriptionsApi:
    """Test /api/v1/subscriptions"""

    def test_usage_over_limit_is_429(self, client, auth_headers, customer):
        headers = auth_headers("admin@demo.store")
        plan_id = client.get("/api/v1/subscriptions/plans", headers=headers).json()["data"][0]["id"]
        created = client.post(
            "/api/v1/subscriptions",
            headers=headers,
            json={"customer_id": customer("carla@example.com").id, "plan_id": plan_id},
        )
        assert created.status_code == 201
        sub_id = created.json()["data"]["id"]

        response = client.post(
            f"/api/v1/subscriptions/{sub_id}/usage", headers=headers, json={"metric_type": "orders", "quantity": 21},
        )

        assert response.status_code == 429
        assert response.json()["code"] == "UsageLimitExceededError"
