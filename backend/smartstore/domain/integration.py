"""
Integration Domain Models
"""
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, Field

from smartstore.domain.common import DomainModel


class IntegrationProvider(str, Enum):
    STRIPE = "stripe"
    SHOPIFY = "shopify"
    WOOCOMMERCE = "woocommerce"
    TWILIO = "twilio"
    SENDGRID = "sendgrid"


# Keys each provider must have in its config
REQUIRED_CONFIG_KEYS: Dict[IntegrationProvider, List[str]] = {
    IntegrationProvider.STRIPE: ["secret_key"],
    IntegrationProvider.SHOPIFY: ["shop_name", "access_token"],
    IntegrationProvider.WOOCOMMERCE: ["site_url", "consumer_key", "consumer_secret"],
    IntegrationProvider.TWILIO: ["account_sid", "auth_token", "from_phone_number"],
    IntegrationProvider.SENDGRID: ["api_key", "from_email"],
}

# Config keys holding credentials (masked on output)
SECRET_CONFIG_KEYS = {
    "secret_key",
    "webhook_secret",
    "access_token",
    "consumer_key",
    "consumer_secret",
    "auth_token",
    "api_key",
}


class IntegrationConfigUpdate(BaseModel):
    config: Dict[str, Any] = Field(..., description="Provider credentials and options")
    is_active: bool = True


class IntegrationConfig(DomainModel):
    id: int
    provider: str
    config: Dict[str, Any]
    is_active: bool
    last_tested_at: Optional[datetime] = None
    last_test_success: Optional[bool] = None
    last_test_message: Optional[str] = None
    last_synced_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
