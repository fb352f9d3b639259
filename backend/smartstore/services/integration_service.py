"""
Integration Service
Stores per-organization provider credentials, tests them and builds connectors

Author: SmartStore
Date: 2025-11-06
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from smartstore.connectors.sendgrid_connector import SendGridConnector
from smartstore.connectors.shopify_connector import ShopifyConnector
from smartstore.connectors.stripe_connector import StripeConnector
from smartstore.connectors.twilio_connector import TwilioConnector
from smartstore.connectors.woocommerce_connector import WooCommerceConnector
from smartstore.core.exceptions import IntegrationError, NotFoundError, ValidationError
from smartstore.domain.integration import IntegrationProvider, REQUIRED_CONFIG_KEYS, SECRET_CONFIG_KEYS
from smartstore.domain.product import MovementType
from smartstore.models import IntegrationConfig, Product
from smartstore.models.base import utcnow
from smartstore.repositories import IntegrationRepository, ProductRepository
from smartstore.services.product_service import ProductService

logger = logging.getLogger(__name__)

CONNECTORS = {
    IntegrationProvider.STRIPE: StripeConnector,
    IntegrationProvider.SHOPIFY: ShopifyConnector,
    IntegrationProvider.WOOCOMMERCE: WooCommerceConnector,
    IntegrationProvider.TWILIO: TwilioConnector,
    IntegrationProvider.SENDGRID: SendGridConnector,
}

SYNCABLE_PROVIDERS = {IntegrationProvider.SHOPIFY, IntegrationProvider.WOOCOMMERCE}


def mask_secret(value: Any) -> Any:
    """Hide all but the last 4 characters"""
    if not isinstance(value, str) or not value:
        return value
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


def mask_config(config: Dict[str, Any]) -> Dict[str, Any]:
    return {key: mask_secret(value) if key in SECRET_CONFIG_KEYS else value for key, value in (config or {}).items()}


def parse_provider(provider: str) -> IntegrationProvider:
    try:
        return IntegrationProvider(provider.lower())
    except ValueError:
        raise NotFoundError("Integration provider", provider)


class IntegrationService:
    """
    Service for the third-party integrations of one organization

    Handles:
    - Credential storage (validated per provider, masked on output)
    - Connection tests (outcome stored on the config row)
    - Connector construction for other services
    - Product sync from Shopify / WooCommerce
    """

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.configs = IntegrationRepository(db, organization_id)

    @staticmethod
    def serialize(config: IntegrationConfig) -> Dict[str, Any]:
        return {
            "id": config.id,
            "provider": config.provider,
            "config": mask_config(config.config),
            "is_active": config.is_active,
            "last_tested_at": config.last_tested_at.isoformat() if config.last_tested_at else None,
            "last_test_success": config.last_test_success,
            "last_test_message": config.last_test_message,
            "last_synced_at": config.last_synced_at.isoformat() if config.last_synced_at else None,
        }

    def list(self) -> List[Dict[str, Any]]:
        """Every provider, configured or not"""
        configured = {c.provider: c for c in self.configs.find_all_ordered()}
        result = []
        for provider in IntegrationProvider:
            config = configured.get(provider.value)
            if config is None:
                result.append({"provider": provider.value, "configured": False, "is_active": False})
            else:
                result.append({**self.serialize(config), "configured": True})
        return result

    def _get_config(self, provider: IntegrationProvider) -> IntegrationConfig:
        config = self.configs.find_by_provider(provider.value)
        if config is None:
            raise NotFoundError("Integration", provider.value)
        return config

    def get(self, provider: str) -> Dict[str, Any]:
        return self.serialize(self._get_config(parse_provider(provider)))

    def save(self, provider: str, config: Dict[str, Any], is_active: bool = True) -> Dict[str, Any]:
        """
        Create or replace the credentials for a provider

        Masked values sent back unchanged (e.g. '****abcd') keep the stored secret.

        Raises:
            ValidationError: a required key is missing or empty
        """
        provider = parse_provider(provider)
        existing = self.configs.find_by_provider(provider.value)

        merged = dict(config or {})
        if existing is not None:
            for key, value in (existing.config or {}).items():
                if key in SECRET_CONFIG_KEYS and merged.get(key) == mask_secret(value):
                    merged[key] = value

        missing = [key for key in REQUIRED_CONFIG_KEYS[provider] if not merged.get(key)]
        if missing:
            raise ValidationError(
                f"Missing required {provider.value} settings: {', '.join(missing)}",
                {"missing": missing},
            )

        if existing is None:
            existing = self.configs.add(IntegrationConfig(provider=provider.value, config=merged, is_active=is_active))
        else:
            existing.config = merged
            existing.is_active = is_active
            # New credentials invalidate the last test result
            existing.last_tested_at = None
            existing.last_test_success = None
            existing.last_test_message = None

        self.db.commit()
        self.db.refresh(existing)
        logger.info(f"Integration {provider.value} saved for org {self.organization_id}")
        return self.serialize(existing)

    def delete(self, provider: str) -> None:
        config = self._get_config(parse_provider(provider))
        self.configs.delete(config)
        self.db.commit()

    @staticmethod
    def _build(provider: IntegrationProvider, config: Dict[str, Any]):
        return CONNECTORS[provider](**(config or {}))

    def test(self, provider: str) -> Dict[str, Any]:
        """Run the provider's connection test and store the outcome"""
        provider = parse_provider(provider)
        config = self._get_config(provider)

        try:
            result = self._build(provider, config.config).test_connection()
        except ValueError as e:
            result = {"success": False, "message": str(e), "details": {}}

        config.last_tested_at = utcnow()
        config.last_test_success = bool(result["success"])
        config.last_test_message = result["message"]
        self.db.commit()

        log = logger.info if result["success"] else logger.warning
        log(f"Integration test {provider.value} (org {self.organization_id}): {result['message']}")
        return result

    def get_connector(self, provider: str):
        """
        Connector built from the stored credentials

        Raises:
            IntegrationError: not configured, inactive or credentials incomplete
        """
        provider = parse_provider(provider)
        config = self.configs.find_by_provider(provider.value)
        if config is None:
            raise IntegrationError(provider.value, f"{provider.value} integration is not configured")
        if not config.is_active:
            raise IntegrationError(provider.value, f"{provider.value} integration is disabled")

        try:
            return self._build(provider, config.config)
        except ValueError as e:
            raise IntegrationError(provider.value, str(e))

    def is_active(self, provider: str) -> bool:
        config = self.configs.find_by_provider(parse_provider(provider).value)
        return bool(config and config.is_active)

    def sync_products(self, provider: str, limit: int = 250) -> Dict[str, Any]:
        """
        Pull products from Shopify/WooCommerce and upsert them by (source, external_id)

        Stock differences on existing products are recorded as sync movements.
        """
        provider = parse_provider(provider)
        if provider not in SYNCABLE_PROVIDERS:
            raise ValidationError(f"{provider.value} does not support product sync")

        connector = self.get_connector(provider.value)
        if provider == IntegrationProvider.SHOPIFY:
            raw_products = connector.get_products(limit=limit)
        else:
            raw_products = connector.get_products(per_page=limit)

        products = ProductRepository(self.db, self.organization_id)
        product_service = ProductService(self.db, self.organization_id)
        created = updated = skipped = 0
        errors = []

        for raw in raw_products:
            data = connector.normalize_product(raw)
            try:
                price = Decimal(str(data["price"]))
            except ArithmeticError:
                errors.append({"external_id": data["external_id"], "error": f"Invalid price {data['price']}"})
                continue

            product = products.find_by_external_id(provider.value, data["external_id"])
            if product is None:
                if products.find_by_sku(data["sku"]):
                    # SKU already owned by a product from another source
                    skipped += 1
                    continue
                products.add(Product(
                    sku=data["sku"],
                    name=data["name"],
                    description=data["description"],
                    brand=data["brand"],
                    price=price,
                    stock_quantity=data["stock_quantity"],
                    is_active=data["is_active"],
                    source=provider.value,
                    external_id=data["external_id"],
                ))
                created += 1
                continue

            product.name = data["name"]
            product.description = data["description"]
            product.price = price
            product.is_active = data["is_active"]
            if data["brand"]:
                product.brand = data["brand"]
            delta = data["stock_quantity"] - (product.stock_quantity or 0)
            if delta:
                product_service.apply_stock_change(
                    product, delta, MovementType.SYNC, reason=f"{provider.value} sync", created_by="sync",
                )
            updated += 1

        config = self._get_config(provider)
        config.last_synced_at = utcnow()
        self.db.commit()

        logger.info(
            f"{provider.value} sync for org {self.organization_id}: "
            f"{created} created, {updated} updated, {skipped} skipped"
        )
        return {"provider": provider.value, "created": created, "updated": updated, "skipped": skipped, "errors": errors}
