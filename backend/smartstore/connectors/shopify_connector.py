"""
Shopify REST Connector
Handles credential verification and product retrieval through the Admin API

Author: SmartStore
Date: 2025-11-06
"""
import logging
from typing import Dict, List, Any, Optional

import httpx

from smartstore.connectors.base import connection_result, default_timeout, error_text, json_object
from smartstore.core.exceptions import IntegrationError

logger = logging.getLogger(__name__)


class ShopifyConnector:
    """
    Connector for the Shopify Admin REST API

    Handles:
    - Connection test (shop.json)
    - Product listing for catalog sync
    """

    def __init__(
        self,
        shop_name: str = None,
        access_token: str = None,
        api_version: str = "2024-10",
        timeout: Optional[float] = None,
        **_options,
    ):
        """
        Initialize Shopify connector

        Args:
            shop_name: Shopify store name (e.g., 'demo-store', with or without .myshopify.com)
            access_token: Shopify Admin API access token
            api_version: Admin API version
        """
        if not shop_name or not access_token:
            raise ValueError("Shopify credentials not configured. Set shop_name and access_token")

        self.shop_name = shop_name.replace(".myshopify.com", "").strip()
        self.access_token = access_token
        self.api_version = api_version or "2024-10"
        self.timeout = timeout or default_timeout()

        self.api_url = f"https://{self.shop_name}.myshopify.com/admin/api/{self.api_version}"
        self.headers = {
            'Content-Type': 'application/json',
            'X-Shopify-Access-Token': self.access_token
        }

    def test_connection(self) -> Dict[str, Any]:
        try:
            response = httpx.get(f"{self.api_url}/shop.json", headers=self.headers, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.warning(f"Shopify connection test failed: {e}")
            return connection_result(False, f"Could not reach Shopify: {e}")

        if response.status_code == 200:
            body = json_object(response)
            if body is None:
                return connection_result(False, "Shopify returned an unreadable response", {"status_code": 200})
            shop = body.get("shop") or {}
            return connection_result(
                True,
                f"Connected to {shop.get('name', self.shop_name)}",
                {
                    "shop_name": shop.get("name"),
                    "domain": shop.get("domain"),
                    "currency": shop.get("currency"),
                    "plan": shop.get("plan_name"),
                },
            )

        return connection_result(
            False,
            f"Shopify returned {response.status_code}: {error_text(response)}",
            {"status_code": response.status_code},
        )

    def get_products(self, limit: int = 50) -> List[Dict]:
        """
        Get products from Shopify

        Args:
            limit: Number of products to fetch (max 250)

        Returns:
            List of product dicts as returned by products.json
        """
        try:
            response = httpx.get(
                f"{self.api_url}/products.json",
                params={"limit": min(limit, 250)},
                headers=self.headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Shopify product fetch failed: {e}")
            raise IntegrationError("shopify", f"Error fetching Shopify products: {e}")

        return response.json().get("products", [])

    @staticmethod
    def normalize_product(product: Dict) -> Dict[str, Any]:
        """Flatten a Shopify product (first variant) into catalog fields"""
        variants = product.get("variants") or [{}]
        variant = variants[0]
        return {
            "external_id": str(product.get("id")),
            "sku": variant.get("sku") or f"SHOPIFY-{product.get('id')}",
            "name": product.get("title") or "Untitled",
            "description": product.get("body_html"),
            "brand": product.get("vendor"),
            "price": variant.get("price") or 0,
            "stock_quantity": max(int(variant.get("inventory_quantity") or 0), 0),
            "is_active": product.get("status", "active") == "active",
        }
