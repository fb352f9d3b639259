"""
Personalization Service
Customer profiles, product recommendations and A/B variant assignment

Profiles are computed from orders and interactions on every call.

Author: SmartStore
Date: 2025-11-10
"""
import hashlib
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from smartstore.core.exceptions import ValidationError
from smartstore.domain.personalization import ExperimentCreate, InteractionType
from smartstore.models import CustomerInteraction, Experiment, Product
from smartstore.models.base import utcnow
from smartstore.repositories import (
    CustomerRepository,
    ExperimentRepository,
    InteractionRepository,
    ProductRepository,
)

logger = logging.getLogger(__name__)

CATEGORY_WEIGHT = 0.5
BRAND_WEIGHT = 0.2
POPULARITY_WEIGHT = 0.3

# Interactions that count towards category affinity besides purchases
BROWSING_TYPES = [InteractionType.VIEW.value, InteractionType.CLICK.value]


def churn_probability(last_purchase_at: Optional[datetime], now: Optional[datetime] = None) -> float:
    """Recency-based churn estimate"""
    if last_purchase_at is None:
        return 0.8
    days = ((now or utcnow()) - last_purchase_at).days
    if days > 90:
        return 0.7
    if days > 60:
        return 0.5
    if days > 30:
        return 0.3
    return 0.1


def customer_segments(order_count: int, lifetime_value: float, top_category: Optional[str]) -> List[str]:
    segments = []
    if order_count == 0:
        segments.append("new_customer")
    elif order_count > 10:
        segments.append("frequent_buyer")

    if lifetime_value > 1000:
        segments.append("high_value")
    elif lifetime_value < 100:
        segments.append("low_value")

    if top_category:
        segments.append(f"{top_category.lower().replace(' ', '_')}_enthusiast")
    return segments


def _normalized(counter: Counter) -> Dict[Any, float]:
    if not counter:
        return {}
    top = max(counter.values())
    return {key: value / top for key, value in counter.items()}


class PersonalizationService:
    """
    Service for recommendations within one organization

    Handles:
    - Customer profile (history, preferences, segments, churn)
    - Scored recommendations and similar products
    - Interaction tracking
    - Experiments with deterministic variant assignment
    """

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.customers = CustomerRepository(db, organization_id)
        self.products = ProductRepository(db, organization_id)
        self.interactions = InteractionRepository(db, organization_id)
        self.experiments = ExperimentRepository(db, organization_id)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def _category_name(self, product: Optional[Product]) -> Optional[str]:
        if product is None or product.category is None:
            return None
        return product.category.name

    def build_profile(self, customer_id: int) -> Dict[str, Any]:
        customer = self.customers.get(customer_id)
        orders = self.interactions.orders_for_customer(customer.id)
        items = self.interactions.purchases_for_customer(customer.id)

        history = []
        categories: Counter = Counter()
        brands: Counter = Counter()
        prices = []
        for item in items:
            category = self._category_name(item.product)
            brand = item.product.brand if item.product else None
            price = float(item.unit_price)
            history.append({
                "product_id": item.product_id,
                "name": item.name,
                "category": category,
                "price": price,
                "quantity": item.quantity,
                "date": item.order.created_at.isoformat(),
            })
            prices.append(price)
            if category:
                categories[category] += 1
            if brand:
                brands[brand] += 1

        lifetime_value = round(sum(float(o.total) for o in orders), 2)
        last_purchase_at = orders[-1].created_at if orders else None
        top_category = categories.most_common(1)[0][0] if categories else None

        return {
            "customer_id": customer.id,
            "purchase_history": history,
            "preferred_categories": [name for name, _ in categories.most_common()],
            "preferred_brands": [name for name, _ in brands.most_common()],
            "price_range": {
                "min": min(prices) if prices else 0.0,
                "max": max(prices) if prices else 0.0,
                "average": round(sum(prices) / len(prices), 2) if prices else 0.0,
            },
            "lifetime_value": lifetime_value,
            "order_count": len(orders),
            "last_purchase_at": last_purchase_at.isoformat() if last_purchase_at else None,
            "segments": customer_segments(len(orders), lifetime_value, top_category),
            "churn_probability": churn_probability(last_purchase_at),
        }

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------

    def _affinities(self, customer_id: int):
        categories: Counter = Counter()
        brands: Counter = Counter()
        purchased = set()

        for item in self.interactions.purchases_for_customer(customer_id):
            if item.product_id is not None:
                purchased.add(item.product_id)
            if item.product is None:
                continue
            if item.product.category_id is not None:
                categories[item.product.category_id] += 1
            if item.product.brand:
                brands[item.product.brand] += 1

        for interaction in self.interactions.find_for_customer(customer_id, BROWSING_TYPES):
            product = self.products.find_by_id(interaction.product_id)
            if product is not None and product.category_id is not None:
                categories[product.category_id] += 1

        return categories, brands, purchased

    @staticmethod
    def _recommendation(product: Product, score: float, reason: str) -> Dict[str, Any]:
        return {
            "product_id": product.id,
            "sku": product.sku,
            "name": product.name,
            "price": float(product.price),
            "category": product.category.name if product.category else None,
            "brand": product.brand,
            "score": round(score, 4),
            "reason": reason,
        }

    def recommend(self, customer_id: int, limit: int = 10) -> List[Dict[str, Any]]:
        customer = self.customers.get(customer_id)
        categories, brands, purchased = self._affinities(customer.id)

        popularity = _normalized(Counter(self.interactions.units_sold_by_product()))
        candidates = [p for p in self.products.find_active_in_stock() if p.id not in purchased]

        if not categories and not brands:
            ranked = sorted(candidates, key=lambda p: (-popularity.get(p.id, 0.0), p.id))
            return [self._recommendation(p, popularity.get(p.id, 0.0), "trending") for p in ranked[:limit]]

        category_affinity = _normalized(categories)
        brand_affinity = _normalized(brands)

        scored = []
        for product in candidates:
            parts = {
                "category": CATEGORY_WEIGHT * category_affinity.get(product.category_id, 0.0),
                "brand": BRAND_WEIGHT * brand_affinity.get(product.brand, 0.0),
                "popularity": POPULARITY_WEIGHT * popularity.get(product.id, 0.0),
            }
            score = sum(parts.values())
            if score <= 0:
                continue

            strongest = max(parts, key=parts.get)
            if strongest == "category":
                reason = f"Because you like {product.category.name if product.category else 'this category'}"
            elif strongest == "brand":
                reason = f"More from {product.brand}"
            else:
                reason = "Popular in the store"
            scored.append((score, product, reason))

        scored.sort(key=lambda entry: (-entry[0], entry[1].id))
        return [self._recommendation(p, score, reason) for score, p, reason in scored[:limit]]

    def similar_products(self, product_id: int, limit: int = 5) -> List[Dict[str, Any]]:
        product = self.products.get(product_id)
        if product.category_id is None:
            return []

        price = float(product.price)
        candidates = sorted(
            self.interactions.similar_candidates(product),
            key=lambda p: (abs(float(p.price) - price), p.id),
        )
        results = []
        for candidate in candidates[:limit]:
            distance = abs(float(candidate.price) - price)
            similarity = 1 / (1 + distance / price) if price > 0 else 0.0
            results.append(self._recommendation(candidate, similarity, "Same category, similar price"))
        return results

    def track_interaction(self, customer_id: int, product_id: int, interaction_type: str) -> CustomerInteraction:
        customer = self.customers.get(customer_id)
        product = self.products.get(product_id)
        interaction = self.interactions.add(CustomerInteraction(
            customer_id=customer.id,
            product_id=product.id,
            interaction_type=InteractionType(interaction_type).value,
        ))
        self.db.commit()
        self.db.refresh(interaction)
        return interaction

    # ------------------------------------------------------------------
    # Experiments
    # ------------------------------------------------------------------

    def create_experiment(self, data: ExperimentCreate) -> Experiment:
        experiment = self.experiments.add(Experiment(
            name=data.name,
            description=data.description,
            type=data.type,
            status=data.status,
            variants=[v.model_dump() for v in data.variants],
        ))
        self.db.commit()
        self.db.refresh(experiment)
        logger.info(f"Experiment {experiment.id} created with {len(data.variants)} variants")
        return experiment

    def list_experiments(self, status: Optional[str] = None, limit: int = 100, offset: int = 0):
        return self.experiments.find_all(status, limit, offset)

    def get_experiment(self, experiment_id: int) -> Experiment:
        return self.experiments.get(experiment_id)

    @staticmethod
    def bucket_for(experiment_id: int, customer_id: int) -> int:
        digest = hashlib.sha256(f"{experiment_id}:{customer_id}".encode()).hexdigest()
        return int(digest, 16) % 100

    def assign_variant(self, experiment_id: int, customer_id: int) -> Dict[str, Any]:
        experiment = self.experiments.get(experiment_id)
        variants = experiment.variants or []
        if not variants:
            raise ValidationError(f"Experiment {experiment_id} has no variants")

        bucket = self.bucket_for(experiment.id, customer_id)
        cumulative = 0
        chosen = variants[-1]
        for variant in variants:
            cumulative += int(variant.get("traffic_allocation", 0))
            if bucket < cumulative:
                chosen = variant
                break

        return {
            "experiment_id": experiment.id,
            "customer_id": customer_id,
            "bucket": bucket,
            "variant": chosen,
        }
