"""
Campaign Domain Models
"""
import re
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field

from smartstore.domain.common import DomainModel

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([\w.]+)\s*\}\}")


class CampaignType(str, Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"


class CampaignStatus(str, Enum):
    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    SENDING = "SENDING"
    SENT = "SENT"
    PAUSED = "PAUSED"
    CANCELLED = "CANCELLED"


def extract_variables(content: str) -> List[str]:
    """Placeholder names in order of first appearance"""
    seen: List[str] = []
    for name in PLACEHOLDER_PATTERN.findall(content or ""):
        if name not in seen:
            seen.append(name)
    return seen


class CampaignCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: CampaignType
    subject: Optional[str] = None
    content: str = Field(..., min_length=1)
    target_tags: List[str] = Field(default_factory=list)
    scheduled_for: Optional[datetime] = None


class CampaignUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    subject: Optional[str] = None
    content: Optional[str] = Field(None, min_length=1)
    target_tags: Optional[List[str]] = None
    scheduled_for: Optional[datetime] = None


class Campaign(DomainModel):
    id: int
    name: str
    type: str
    status: str
    subject: Optional[str] = None
    content: str
    target_tags: Optional[List[str]] = None
    scheduled_for: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    stats: Optional[Dict[str, Any]] = None
    created_at: datetime


class CampaignTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: CampaignType
    subject: Optional[str] = None
    content: str = Field(..., min_length=1)


class CampaignTemplate(DomainModel):
    id: int
    name: str
    type: str
    subject: Optional[str] = None
    content: str
    variables: Optional[List[str]] = None
    created_at: datetime
