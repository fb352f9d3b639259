"""
Stripe Connector
Verifies API credentials against the Stripe REST API

Author: SmartStore
Date: 2025-11-06
"""
import logging
from typing import Dict, Any, Optional

import requests

from smartstore.connectors.base import connection_result, default_timeout, error_text, json_object

logger = logging.getLogger(__name__)


class StripeConnector:
    """
    Connector for the Stripe API

    Handles:
    - Credential verification (balance endpoint)
    """

    BASE_URL = "https://api.stripe.com/v1"

    def __init__(
        self,
        secret_key: str = None,
        publishable_key: str = None,
        webhook_secret: str = None,
        timeout: Optional[float] = None,
        **_options,
    ):
        if not secret_key:
            raise ValueError("Stripe credentials not configured. Set secret_key")

        self.secret_key = secret_key
        self.publishable_key = publishable_key
        self.webhook_secret = webhook_secret
        self.timeout = timeout or default_timeout()

    @property
    def is_test_mode(self) -> bool:
        return self.secret_key.startswith("sk_test_")

    def test_connection(self) -> Dict[str, Any]:
        """GET /v1/balance with the secret key"""
        try:
            response = requests.get(
                f"{self.BASE_URL}/balance",
                headers={"Authorization": f"Bearer {self.secret_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Stripe connection test failed: {e}")
            return connection_result(False, f"Could not reach Stripe: {e}")

        if response.status_code == 200:
            balance = json_object(response)
            if balance is None:
                return connection_result(False, "Stripe returned an unreadable response", {"status_code": 200})
            available = [
                {"amount": entry.get("amount"), "currency": entry.get("currency")}
                for entry in balance.get("available", [])
            ]
            return connection_result(
                True,
                "Connected to Stripe",
                {"livemode": balance.get("livemode", False), "available": available},
            )

        return connection_result(
            False,
            f"Stripe rejected the credentials: {error_text(response)}",
            {"status_code": response.status_code},
        )
