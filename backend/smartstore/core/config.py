"""
Configuración centralizada de la aplicación
"""
import json
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env"""

    # API Settings
    API_TITLE: str = "SmartStore API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Multi-tenant e-commerce administration API for SmartStore SaaS"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./smartstore.db"

    # Authentication
    AUTH_SECRET: str = ""
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 720
    LOGIN_RATE_LIMIT_PER_MINUTE: int = 10
    # Peers allowed to set X-Forwarded-For (comma-separated IPs, "*" for any)
    # Leave empty unless the API runs behind a reverse proxy
    TRUSTED_PROXIES: Optional[str] = ""

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://yourdomain.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000"

    # Workflow engine limits
    WORKFLOW_MAX_STEPS: int = 100
    WORKFLOW_MAX_DELAY_SECONDS: float = 30.0

    # External integrations
    INTEGRATION_TIMEOUT_SECONDS: float = 15.0
    DEFAULT_CURRENCY: str = "USD"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        # Try JSON parse first (for array format)
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    def get_trusted_proxies(self) -> List[str]:
        return [ip.strip() for ip in (self.TRUSTED_PROXIES or "").split(",") if ip.strip()]


settings = Settings()
