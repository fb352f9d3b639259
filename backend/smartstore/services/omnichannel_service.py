"""
Omnichannel Service
Unified inbox over email, SMS and social channels

Outbound email goes through SendGrid and SMS through Twilio. Social channels
have no outbound provider here: their replies are stored as failed.

Author: SmartStore
Date: 2025-11-09
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from smartstore.core.exceptions import IntegrationError, NotFoundError, ValidationError
from smartstore.domain.omnichannel import Channel, ConversationStatus, Priority
from smartstore.models import ChannelMessage, Conversation
from smartstore.models.base import utcnow
from smartstore.repositories import ConversationRepository, CustomerRepository, UserRepository
from smartstore.services.integration_service import IntegrationService

logger = logging.getLogger(__name__)

OUTBOUND_PROVIDERS = {
    Channel.EMAIL.value: "sendgrid",
    Channel.SMS.value: "twilio",
}


class OmnichannelService:
    """
    Service for customer conversations of one organization

    Handles:
    - Unified inbox with unread / pending / urgent counters
    - Outbound replies through the organization's integrations
    - Incoming messages (threaded into the open conversation)
    - Assignment, status and tags
    """

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.conversations = ConversationRepository(db, organization_id)
        self.customers = CustomerRepository(db, organization_id)

    @staticmethod
    def _last_message(conversation: Conversation) -> Optional[ChannelMessage]:
        return conversation.messages[-1] if conversation.messages else None

    def get_unified_inbox(self, status: Optional[str] = None, channel: Optional[str] = None, limit: int = 50) -> Dict[str, Any]:
        """Newest `limit` conversations; counters cover every conversation matching the filters"""
        conversations = self.conversations.find_inbox(status, channel, limit)
        counts = self.conversations.inbox_counts(status, channel)

        items = []
        for conversation in conversations:
            last = self._last_message(conversation)
            items.append({
                "conversation": conversation,
                "customer_name": conversation.customer.name if conversation.customer else None,
                "last_message": last,
                "unread": bool(last and last.is_incoming),
                "message_count": len(conversation.messages),
            })

        return {
            "conversations": items,
            "total": counts["total"],
            "unread_count": counts["unread"],
            "pending_count": counts["pending"],
            "urgent_count": counts["urgent"],
        }

    def get_conversation(self, conversation_id: int) -> Conversation:
        return self.conversations.get(conversation_id)

    def create_conversation(
        self,
        customer_id: int,
        channel: str,
        initial_message: Optional[str] = None,
        priority: str = Priority.MEDIUM.value,
    ) -> Conversation:
        customer = self.customers.get(customer_id)
        conversation = self.conversations.add(Conversation(
            customer_id=customer.id,
            channel=Channel(channel).value,
            status=ConversationStatus.ACTIVE.value,
            priority=Priority(priority).value,
            tags=[],
        ))
        if initial_message:
            self.db.add(ChannelMessage(
                conversation_id=conversation.id,
                channel=conversation.channel,
                content=initial_message,
                is_incoming=True,
                status="received",
            ))
        self.db.commit()
        self.db.refresh(conversation)
        return conversation

    def _deliver(self, conversation: Conversation, content: str, subject: Optional[str]) -> Dict[str, Any]:
        """Returns {status, external_id, metadata}; never raises for delivery problems"""
        provider = OUTBOUND_PROVIDERS.get(conversation.channel)
        if provider is None:
            return {
                "status": "failed",
                "external_id": None,
                "metadata": {"reason": f"No outbound provider for {conversation.channel}"},
            }

        customer = conversation.customer
        recipient = customer.email if provider == "sendgrid" else customer.phone
        if not recipient:
            return {
                "status": "failed",
                "external_id": None,
                "metadata": {"reason": f"Customer has no {'email' if provider == 'sendgrid' else 'phone'}"},
            }

        try:
            connector = IntegrationService(self.db, self.organization_id).get_connector(provider)
            if provider == "sendgrid":
                result = connector.send_email(recipient, subject or "Message from our team", content)
                external_id = result.get("message_id")
            else:
                result = connector.send_sms(recipient, content)
                external_id = result.get("sid")
        except IntegrationError as e:
            logger.warning(f"Conversation {conversation.id}: {provider} delivery failed: {e.message}")
            return {"status": "failed", "external_id": None, "metadata": {"reason": e.message}}

        return {"status": "sent", "external_id": external_id, "metadata": {"provider": provider}}

    def send_message(
        self,
        conversation_id: int,
        content: str,
        subject: Optional[str] = None,
        agent_id: Optional[int] = None,
    ) -> ChannelMessage:
        conversation = self.conversations.get(conversation_id)
        if conversation.status == ConversationStatus.CLOSED.value:
            raise ValidationError("Conversation is closed")

        outcome = self._deliver(conversation, content, subject)
        metadata = dict(outcome["metadata"])
        if agent_id is not None:
            metadata["agent_id"] = agent_id

        message = ChannelMessage(
            conversation_id=conversation.id,
            channel=conversation.channel,
            content=content,
            is_incoming=False,
            status=outcome["status"],
            external_id=outcome["external_id"],
            extra_data=metadata,
        )
        self.db.add(message)
        conversation.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(message)
        return message

    def receive_message(
        self,
        customer_id: int,
        channel: str,
        content: str,
        external_id: Optional[str] = None,
    ) -> ChannelMessage:
        """Thread an incoming message into the customer's open conversation (created if needed)"""
        customer = self.customers.get(customer_id)
        channel = Channel(channel).value

        conversation = self.conversations.find_open(customer.id, channel)
        if conversation is None:
            conversation = self.conversations.add(Conversation(
                customer_id=customer.id,
                channel=channel,
                status=ConversationStatus.ACTIVE.value,
                priority=Priority.MEDIUM.value,
                tags=[],
            ))

        message = ChannelMessage(
            conversation_id=conversation.id,
            channel=channel,
            content=content,
            is_incoming=True,
            status="received",
            external_id=external_id,
        )
        self.db.add(message)
        conversation.status = ConversationStatus.ACTIVE.value
        conversation.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(message)
        return message

    def assign_agent(self, conversation_id: int, agent_id: int) -> Conversation:
        conversation = self.conversations.get(conversation_id)
        agent = UserRepository(self.db, self.organization_id).find_active_in_org(agent_id)
        if agent is None:
            raise NotFoundError("Agent", agent_id)

        conversation.assigned_agent_id = agent.id
        self.db.commit()
        self.db.refresh(conversation)
        return conversation

    def update_status(self, conversation_id: int, status: str) -> Conversation:
        conversation = self.conversations.get(conversation_id)
        conversation.status = ConversationStatus(status).value
        self.db.commit()
        self.db.refresh(conversation)
        return conversation

    def add_tags(self, conversation_id: int, tags: List[str]) -> Conversation:
        conversation = self.conversations.get(conversation_id)
        merged = list(conversation.tags or [])
        for tag in tags:
            if tag not in merged:
                merged.append(tag)
        conversation.tags = merged
        self.db.commit()
        self.db.refresh(conversation)
        return conversation

    def get_customer_history(self, customer_id: int) -> List[Conversation]:
        customer = self.customers.get(customer_id)
        return self.conversations.find_for_customer(customer.id)
