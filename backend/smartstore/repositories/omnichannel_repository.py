"""
Conversation repository
"""
from typing import Dict, List, Optional

from sqlalchemy import func

from smartstore.models import ChannelMessage, Conversation
from smartstore.repositories.base import OrganizationScopedRepository

OPEN_STATUSES = ("active", "pending")


class ConversationRepository(OrganizationScopedRepository[Conversation]):
    model = Conversation
    entity_name = "Conversation"

    def _inbox_query(self, status: Optional[str] = None, channel: Optional[str] = None):
        query = self._query()
        if status:
            query = query.filter(Conversation.status == status)
        if channel:
            query = query.filter(Conversation.channel == channel)
        return query

    def find_inbox(self, status: Optional[str] = None, channel: Optional[str] = None, limit: int = 50) -> List[Conversation]:
        query = self._inbox_query(status, channel)
        return query.order_by(Conversation.updated_at.desc(), Conversation.id.desc()).limit(limit).all()

    def inbox_counts(self, status: Optional[str] = None, channel: Optional[str] = None) -> Dict[str, int]:
        """Counters over every matching conversation, not just one inbox page"""
        query = self._inbox_query(status, channel)

        latest = (
            self.db.query(
                ChannelMessage.conversation_id.label("conversation_id"),
                func.max(ChannelMessage.id).label("message_id"),
            )
            .group_by(ChannelMessage.conversation_id)
            .subquery()
        )
        unread = (
            query.join(latest, latest.c.conversation_id == Conversation.id)
            .join(ChannelMessage, ChannelMessage.id == latest.c.message_id)
            .filter(ChannelMessage.is_incoming.is_(True))
            .count()
        )

        return {
            "total": query.count(),
            "unread": unread,
            "pending": query.filter(Conversation.status == "pending").count(),
            "urgent": query.filter(Conversation.priority == "urgent").count(),
        }

    def find_open(self, customer_id: int, channel: str) -> Optional[Conversation]:
        return (
            self._query()
            .filter(
                Conversation.customer_id == customer_id,
                Conversation.channel == channel,
                Conversation.status.in_(OPEN_STATUSES),
            )
            .order_by(Conversation.updated_at.desc())
            .first()
        )

    def find_for_customer(self, customer_id: int) -> List[Conversation]:
        return (
            self._query()
            .filter(Conversation.customer_id == customer_id)
            .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
            .all()
        )
