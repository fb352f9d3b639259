"""
Omnichannel API Endpoints
Unified inbox across email, SMS, chat and social channels
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smartstore.core.auth import TokenUser, get_organization_scope, require_permission
from smartstore.core.database import get_db
from smartstore.core.rbac import Permission
from smartstore.domain.omnichannel import (
    AgentAssign,
    Channel,
    ChannelMessage,
    Conversation,
    ConversationCreate,
    ConversationStatus,
    IncomingMessage,
    MessageCreate,
    StatusUpdate,
    TagsUpdate,
)
from smartstore.services.omnichannel_service import OmnichannelService

router = APIRouter()


def _conversation_dict(conversation, with_messages: bool = False) -> dict:
    data = Conversation.model_validate(conversation).to_dict()
    if with_messages:
        data["messages"] = [ChannelMessage.model_validate(m).to_dict() for m in conversation.messages]
    return data


@router.get("/inbox")
async def unified_inbox(
    status_filter: Optional[ConversationStatus] = Query(None, alias="status"),
    channel: Optional[Channel] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_READ)),
    db: Session = Depends(get_db),
):
    """
    Most recently updated conversations first

    A conversation counts as unread when its last message came from the customer.
    """
    service = OmnichannelService(db, get_organization_scope(user, organization_id))
    inbox = service.get_unified_inbox(
        status_filter.value if status_filter else None,
        channel.value if channel else None,
        limit,
    )

    items = []
    for entry in inbox["conversations"]:
        last = entry["last_message"]
        items.append({
            **_conversation_dict(entry["conversation"]),
            "customer_name": entry["customer_name"],
            "last_message": ChannelMessage.model_validate(last).to_dict() if last else None,
            "unread": entry["unread"],
            "message_count": entry["message_count"],
        })

    return {
        "status": "success",
        "total": inbox["total"],
        "unread_count": inbox["unread_count"],
        "pending_count": inbox["pending_count"],
        "urgent_count": inbox["urgent_count"],
        "data": items,
    }


@router.post("/conversations", status_code=status.HTTP_201_CREATED)
async def create_conversation(
    data: ConversationCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    service = OmnichannelService(db, get_organization_scope(user, organization_id))
    conversation = service.create_conversation(
        data.customer_id, data.channel.value, data.initial_message, data.priority.value,
    )
    return {"status": "success", "data": _conversation_dict(conversation, with_messages=True)}


@router.post("/incoming", status_code=status.HTTP_201_CREATED)
async def receive_message(
    data: IncomingMessage,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    """Inbound message from a channel webhook; threaded into the customer's open conversation"""
    service = OmnichannelService(db, get_organization_scope(user, organization_id))
    message = service.receive_message(data.customer_id, data.channel.value, data.content, data.external_id)
    return {"status": "success", "data": ChannelMessage.model_validate(message).to_dict()}


@router.get("/customers/{customer_id}/history")
async def customer_history(
    customer_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_READ)),
    db: Session = Depends(get_db),
):
    conversations = OmnichannelService(db, get_organization_scope(user, organization_id)).get_customer_history(customer_id)
    return {
        "status": "success",
        "count": len(conversations),
        "data": [_conversation_dict(c, with_messages=True) for c in conversations],
    }


# =============================================================================
# Single conversation
# =============================================================================

@router.get("/conversations/{conversation_id}")
async def get_conversation(
    conversation_id: int,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_READ)),
    db: Session = Depends(get_db),
):
    conversation = OmnichannelService(db, get_organization_scope(user, organization_id)).get_conversation(conversation_id)
    return {"status": "success", "data": _conversation_dict(conversation, with_messages=True)}


@router.post("/conversations/{conversation_id}/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: int,
    data: MessageCreate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    """
    Reply to the customer over the conversation's channel

    Delivery failures are stored on the message (status "failed") rather than
    returned as errors, so the agent keeps the reply in the thread.
    """
    service = OmnichannelService(db, get_organization_scope(user, organization_id))
    message = service.send_message(conversation_id, data.content, data.subject, agent_id=user.id)
    return {"status": "success", "data": ChannelMessage.model_validate(message).to_dict()}


@router.post("/conversations/{conversation_id}/assign")
async def assign_agent(
    conversation_id: int,
    data: AgentAssign,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    conversation = OmnichannelService(db, get_organization_scope(user, organization_id)).assign_agent(conversation_id, data.agent_id)
    return {"status": "success", "data": _conversation_dict(conversation)}


@router.patch("/conversations/{conversation_id}/status")
async def update_status(
    conversation_id: int,
    data: StatusUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    service = OmnichannelService(db, get_organization_scope(user, organization_id))
    conversation = service.update_status(conversation_id, data.status.value)
    return {"status": "success", "data": _conversation_dict(conversation)}


@router.post("/conversations/{conversation_id}/tags")
async def add_tags(
    conversation_id: int,
    data: TagsUpdate,
    organization_id: Optional[int] = Query(None, description="Super admins only"),
    user: TokenUser = Depends(require_permission(Permission.CUSTOMER_UPDATE)),
    db: Session = Depends(get_db),
):
    conversation = OmnichannelService(db, get_organization_scope(user, organization_id)).add_tags(conversation_id, data.tags)
    return {"status": "success", "data": _conversation_dict(conversation)}
