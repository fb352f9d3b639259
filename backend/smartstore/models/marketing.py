"""
Marketing campaigns and reusable message templates
"""
from sqlalchemy import Column, Integer, String, Text, JSON, ForeignKey, DateTime

from smartstore.core.database import Base
from smartstore.models.base import TimestampMixin


class Campaign(TimestampMixin, Base):
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)  # EMAIL | SMS
    status = Column(String(20), default="DRAFT", nullable=False, index=True)
    subject = Column(String(255))
    content = Column(Text, nullable=False)
    target_tags = Column(JSON, default=list)
    scheduled_for = Column(DateTime)
    sent_at = Column(DateTime)
    stats = Column(JSON, default=dict)


class CampaignTemplate(TimestampMixin, Base):
    __tablename__ = "campaign_templates"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)
    subject = Column(String(255))
    content = Column(Text, nullable=False)
    variables = Column(JSON, default=list)
