"""
WooCommerce Connector
REST API v3 with consumer key / secret basic auth
"""
import logging
from typing import Dict, List, Any, Optional

import requests

from smartstore.connectors.base import connection_result, default_timeout, error_text, json_object
from smartstore.core.exceptions import IntegrationError

logger = logging.getLogger(__name__)


class WooCommerceConnector:

    def __init__(
        self,
        site_url: str = None,
        consumer_key: str = None,
        consumer_secret: str = None,
        api_version: str = "wc/v3",
        timeout: Optional[float] = None,
        **_options,
    ):
        if not site_url or not consumer_key or not consumer_secret:
            raise ValueError("WooCommerce credentials not configured. Set site_url, consumer_key and consumer_secret")

        self.site_url = site_url.rstrip("/")
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.api_version = api_version or "wc/v3"
        self.timeout = timeout or default_timeout()

    @property
    def api_url(self) -> str:
        return f"{self.site_url}/wp-json/{self.api_version}"

    @property
    def auth(self):
        return (self.consumer_key, self.consumer_secret)

    def test_connection(self) -> Dict[str, Any]:
        try:
            response = requests.get(f"{self.api_url}/system_status", auth=self.auth, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"WooCommerce connection test failed: {e}")
            return connection_result(False, f"Could not reach {self.site_url}: {e}")

        if response.status_code == 200:
            body = json_object(response)
            if body is None:
                return connection_result(False, "WooCommerce returned an unreadable response", {"status_code": 200})
            environment = body.get("environment") or {}
            return connection_result(
                True,
                "Connected to WooCommerce",
                {
                    "site_url": environment.get("site_url", self.site_url),
                    "wc_version": environment.get("version"),
                    "wp_version": environment.get("wp_version"),
                },
            )

        return connection_result(
            False,
            f"WooCommerce returned {response.status_code}: {error_text(response)}",
            {"status_code": response.status_code},
        )

    def get_products(self, per_page: int = 50) -> List[Dict]:
        try:
            response = requests.get(
                f"{self.api_url}/products",
                params={"per_page": min(per_page, 100)},
                auth=self.auth,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"WooCommerce product fetch failed: {e}")
            raise IntegrationError("woocommerce", f"Error fetching WooCommerce products: {e}")

        return response.json()

    @staticmethod
    def normalize_product(product: Dict) -> Dict[str, Any]:
        return {
            "external_id": str(product.get("id")),
            "sku": product.get("sku") or f"WC-{product.get('id')}",
            "name": product.get("name") or "Untitled",
            "description": product.get("short_description") or product.get("description"),
            "brand": None,
            "price": product.get("price") or product.get("regular_price") or 0,
            "stock_quantity": max(int(product.get("stock_quantity") or 0), 0),
            "is_active": product.get("status", "publish") == "publish",
        }
