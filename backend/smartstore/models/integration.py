"""
Per-organization credentials for third-party providers
"""
from sqlalchemy import Column, Integer, String, Boolean, Text, JSON, ForeignKey, DateTime, UniqueConstraint

from smartstore.core.database import Base
from smartstore.models.base import TimestampMixin


class IntegrationConfig(TimestampMixin, Base):
    __tablename__ = "integration_configs"
    __table_args__ = (UniqueConstraint("organization_id", "provider", name="uq_integration_org_provider"),)

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    provider = Column(String(50), nullable=False)
    config = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, default=True, nullable=False)

    # Last "test connection" outcome
    last_tested_at = Column(DateTime)
    last_test_success = Column(Boolean)
    last_test_message = Column(Text)

    last_synced_at = Column(DateTime)
