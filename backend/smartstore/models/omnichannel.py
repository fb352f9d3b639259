"""
Unified inbox: conversations and their messages across channels
"""
from sqlalchemy import Column, Integer, String, Boolean, Text, JSON, ForeignKey, DateTime
from sqlalchemy.orm import relationship

from smartstore.core.database import Base
from smartstore.models.base import TimestampMixin, utcnow


class Conversation(TimestampMixin, Base):
    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    channel = Column(String(20), nullable=False)
    status = Column(String(20), default="active", nullable=False, index=True)
    priority = Column(String(20), default="medium", nullable=False)
    assigned_agent_id = Column(Integer, ForeignKey("users.id"))
    tags = Column(JSON, default=list)

    customer = relationship("Customer")
    messages = relationship(
        "ChannelMessage",
        back_populates="conversation",
        order_by="ChannelMessage.id",
        cascade="all, delete-orphan",
    )


class ChannelMessage(Base):
    __tablename__ = "channel_messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True)
    channel = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    is_incoming = Column(Boolean, nullable=False)
    status = Column(String(20), nullable=False)
    external_id = Column(String(255))
    extra_data = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    conversation = relationship("Conversation", back_populates="messages")
