"""
Omnichannel Domain Models
"""
from datetime import datetime
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, Field

from smartstore.domain.common import DomainModel


class Channel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    WHATSAPP = "whatsapp"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"


class ConversationStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ConversationCreate(BaseModel):
    customer_id: int
    channel: Channel
    initial_message: Optional[str] = None
    priority: Priority = Priority.MEDIUM


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1)
    subject: Optional[str] = None


class IncomingMessage(BaseModel):
    customer_id: int
    channel: Channel
    content: str = Field(..., min_length=1)
    external_id: Optional[str] = None


class AgentAssign(BaseModel):
    agent_id: int


class StatusUpdate(BaseModel):
    status: ConversationStatus


class TagsUpdate(BaseModel):
    tags: List[str] = Field(..., min_length=1)


class ChannelMessage(DomainModel):
    id: int
    conversation_id: int
    channel: str
    content: str
    is_incoming: bool
    status: str
    external_id: Optional[str] = None
    created_at: datetime


class Conversation(DomainModel):
    id: int
    customer_id: int
    channel: str
    status: str
    priority: str
    assigned_agent_id: Optional[int] = None
    tags: Optional[List[str]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
