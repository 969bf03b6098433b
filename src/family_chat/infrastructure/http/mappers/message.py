from __future__ import annotations

from typing import Any

from family_chat.domain.entities.message import ConfirmedMessage
from family_chat.domain.value_objects.ids import (
    ASSISTANT_AUTHOR,
    ConversationId,
    IdentityId,
    MessageId,
)
from family_chat.infrastructure.http.schemas.message import MessagePayload


def payload_to_entity(
    payload: MessagePayload,
    conversation_id: str | None = None,
) -> ConfirmedMessage:
    """``conversation_id`` fills in for payloads that omit their owner."""
    owner = payload.conversation_id or conversation_id
    if owner is None:
        raise ValueError(f"Message {payload.id} has no conversation id")
    return ConfirmedMessage(
        id=MessageId(payload.id),
        conversation_id=ConversationId(owner),
        author_id=ASSISTANT_AUTHOR if payload.is_assistant else IdentityId(payload.sender_id),
        body=payload.body,
        created_at=payload.created_at,
        edited=payload.edited,
        display_name=payload.display_name,
    )


def entity_to_payload(message: ConfirmedMessage) -> dict[str, Any]:
    return MessagePayload(
        id=message.id,
        conversation_id=message.conversation_id,
        sender_id=message.author_id,
        body=message.body,
        is_assistant=message.is_assistant,
        edited=message.edited,
        display_name=message.display_name,
        created_at=message.created_at,
    ).model_dump(mode="json")
