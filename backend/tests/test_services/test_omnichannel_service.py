"""
Tests for OmnichannelService (unified inbox)
"""
from unittest.mock import MagicMock, patch

import pytest

from smartstore.core.exceptions import NotFoundError, ValidationError
from smartstore.models import User
from smartstore.services.integration_service import IntegrationService
from smartstore.services.omnichannel_service import OmnichannelService


@pytest.fixture
def inbox(db, demo_org):
    return OmnichannelService(db, demo_org.id)


@pytest.fixture
def ana(customer):
    return customer("ana@example.com")


class TestConversations:
    """Test opening conversations and the unified inbox"""

    def test_initial_message_is_unread(self, inbox, ana):
        conversation = inbox.create_conversation(ana.id, "whatsapp", initial_message="Where is my order?")

        assert len(conversation.messages) == 1
        assert conversation.messages[0].is_incoming is True

        result = inbox.get_unified_inbox()
        assert result["total"] == 1
        assert result["unread_count"] == 1
        assert result["conversations"][0]["customer_name"] == "Ana Torres"

    def test_counters(self, inbox, ana, customer):
        inbox.create_conversation(ana.id, "email", priority="urgent")
        pending = inbox.create_conversation(customer("bruno@example.com").id, "sms")
        inbox.update_status(pending.id, "pending")

        result = inbox.get_unified_inbox()

        assert result["urgent_count"] == 1
        assert result["pending_count"] == 1
        assert result["unread_count"] == 0

    def test_counters_cover_more_than_one_page(self, inbox, ana):
        conversations = [
            inbox.create_conversation(ana.id, "email", initial_message=f"Question {n}", priority="urgent")
            for n in range(60)
        ]
        inbox.send_message(conversations[0].id, "Looking into it", agent_id=7)

        result = inbox.get_unified_inbox(limit=10)

        assert len(result["conversations"]) == 10
        assert result["total"] == 60
        assert result["urgent_count"] == 60
        assert result["unread_count"] == 59

    def test_inbox_filters_by_channel(self, inbox, ana):
        inbox.create_conversation(ana.id, "email")
        inbox.create_conversation(ana.id, "instagram")

        result = inbox.get_unified_inbox(channel="instagram")

        assert [item["conversation"].channel for item in result["conversations"]] == ["instagram"]

    def test_unknown_customer(self, inbox):
        with pytest.raises(NotFoundError):
            inbox.create_conversation(99999, "email")


class TestOutbound:
    """Test agent replies"""

    def test_missing_integration_is_stored_as_failed(self, inbox, ana):
        conversation = inbox.create_conversation(ana.id, "email")

        message = inbox.send_message(conversation.id, "Your order shipped", agent_id=7)

        assert message.status == "failed"
        assert message.is_incoming is False
        assert "not configured" in message.extra_data["reason"]
        assert message.extra_data["agent_id"] == 7

    def test_social_channel_has_no_provider(self, inbox, ana):
        conversation = inbox.create_conversation(ana.id, "facebook")

        message = inbox.send_message(conversation.id, "Hi!")

        assert message.status == "failed"
        assert message.extra_data["reason"] == "No outbound provider for facebook"

    def test_email_sent_through_sendgrid(self, inbox, ana, db, demo_org):
        IntegrationService(db, demo_org.id).save("sendgrid", {"api_key": "SG.key", "from_email": "help@demo.store"})
        conversation = inbox.create_conversation(ana.id, "email", initial_message="Hello?")
        response = MagicMock(status_code=202)
        response.headers = {"X-Message-Id": "msg-123"}

        with patch("smartstore.connectors.sendgrid_connector.requests.post", return_value=response) as mock_post:
            message = inbox.send_message(conversation.id, "We are on it", subject="Re: your order")

        assert message.status == "sent"
        assert message.external_id == "msg-123"
        assert mock_post.call_args.kwargs["json"]["subject"] == "Re: your order"
        # Last message is ours now
        assert inbox.get_unified_inbox()["unread_count"] == 0

    def test_closed_conversation_rejects_replies(self, inbox, ana):
        conversation = inbox.create_conversation(ana.id, "sms")
        inbox.update_status(conversation.id, "closed")

        with pytest.raises(ValidationError):
            inbox.send_message(conversation.id, "Anyone there?")


class TestIncoming:
    """Test threading of incoming messages"""

    def test_incoming_threads_into_open_conversation(self, inbox, ana):
        conversation = inbox.create_conversation(ana.id, "sms")
        inbox.update_status(conversation.id, "pending")

        message = inbox.receive_message(ana.id, "sms", "Still waiting", external_id="SM42")

        assert message.conversation_id == conversation.id
        assert inbox.get_conversation(conversation.id).status == "active"

    def test_resolved_conversation_starts_new_thread(self, inbox, ana):
        conversation = inbox.create_conversation(ana.id, "sms")
        inbox.update_status(conversation.id, "resolved")

        message = inbox.receive_message(ana.id, "sms", "One more question")

        assert message.conversation_id != conversation.id
        assert len(inbox.get_customer_history(ana.id)) == 2

    def test_other_channel_starts_new_thread(self, inbox, ana):
        conversation = inbox.create_conversation(ana.id, "sms")

        message = inbox.receive_message(ana.id, "whatsapp", "Hola")

        assert message.conversation_id != conversation.id


class TestAssignmentAndTags:
    """Test agents and tags"""

    def test_assign_agent_from_organization(self, inbox, ana, seeded):
        conversation = inbox.create_conversation(ana.id, "email")
        agent = seeded.query(User).filter(User.email == "support@demo.store").one()

        assigned = inbox.assign_agent(conversation.id, agent.id)

        assert assigned.assigned_agent_id == agent.id

    def test_assign_agent_outside_organization(self, inbox, ana, seeded):
        conversation = inbox.create_conversation(ana.id, "email")
        outsider = seeded.query(User).filter(User.email == "superadmin@smartstore.dev").one()

        with pytest.raises(NotFoundError):
            inbox.assign_agent(conversation.id, outsider.id)

    def test_tags_are_merged_without_duplicates(self, inbox, ana):
        conversation = inbox.create_conversation(ana.id, "email")
        inbox.add_tags(conversation.id, ["refund", "vip"])

        tagged = inbox.add_tags(conversation.id, ["vip", "shipping"])

        assert tagged.tags == ["refund", "vip", "shipping"]


class TestOmnichannelApi:
    """Test /api/v1/omnichannel"""

    def test_inbox_endpoint(self, client, auth_headers, customer):
        headers = auth_headers("support@demo.store")
        client.post(
            "/api/v1/omnichannel/incoming",
            headers=headers,
            json={"customer_id": customer("bruno@example.com").id, "channel": "whatsapp", "content": "Hi there"},
        )

        response = client.get("/api/v1/omnichannel/inbox", headers=headers)

        data = response.json()
        assert response.status_code == 200
        assert data["unread_count"] == 1
        assert data["data"][0]["customer_name"] == "Bruno Diaz"
        assert data["data"][0]["last_message"]["content"] == "Hi there"

    def test_inventory_cannot_read_inbox(self, client, auth_headers):
        response = client.get("/api/v1/omnichannel/inbox", headers=auth_headers("inventory@demo.store"))

        assert response.status_code == 403
