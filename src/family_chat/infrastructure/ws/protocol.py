"""WebSocket message envelopes and event names."""
from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from family_chat.domain.events.membership_changed import MembershipChanged
from family_chat.domain.events.message_created import MessageCreated
from family_chat.domain.events.message_edited import MessageEdited
from family_chat.domain.events.typing_changed import TypingChanged
from family_chat.domain.value_objects.enums import EventKind, MembershipAction
from family_chat.domain.value_objects.ids import ConversationId, IdentityId
from family_chat.infrastructure.http.mappers import message as message_mapper
from family_chat.infrastructure.http.mappers.user import payload_to_member
from family_chat.infrastructure.http.schemas.message import MessagePayload
from family_chat.infrastructure.http.schemas.user import FamilyMemberPayload


class ClientEvent(StrEnum):
    SETUP = "setup"
    JOIN_ROOM = "join room"
    TYPING = "typing"
    STOP_TYPING = "stop typing"
    NEW_MESSAGE = "new message"
    EDIT_MESSAGE = "edit message"


class ServerEvent(StrEnum):
    CONNECTED = "connected"
    MESSAGE_RECEIVED = "message received"
    MESSAGE_EDITED = "message edited"
    TYPING = "typing"
    STOP_TYPING = "stop typing"
    MEMBER_ADDED = "family member added"
    MEMBER_DELETED = "family member deleted"


class WsInbound(BaseModel):
    """Server → Client."""

    type: str
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Client → Server."""

    type: str
    data: dict[str, Any] = {}


class TypingPayload(BaseModel):
    conversation_id: str


class MemberDeletedPayload(BaseModel):
    member_id: str


def decode_event(envelope: WsInbound) -> tuple[EventKind, object] | None:
    """Map a server envelope to a bus event; ``None`` for frames with no bus meaning.

    Raises ``ValueError`` (pydantic included) when the payload does not match
    the event type.
    """
    kind = envelope.type
    data = envelope.data

    if kind in (ServerEvent.MESSAGE_RECEIVED, ServerEvent.MESSAGE_EDITED):
        message = message_mapper.payload_to_entity(MessagePayload.model_validate(data))
        if kind == ServerEvent.MESSAGE_RECEIVED:
            return EventKind.MESSAGE_CREATED, MessageCreated(message)
        return EventKind.MESSAGE_EDITED, MessageEdited(message)

    elif kind in (ServerEvent.TYPING, ServerEvent.STOP_TYPING):
        typing = TypingPayload.model_validate(data)
        started = kind == ServerEvent.TYPING
        return (
            EventKind.TYPING_STARTED if started else EventKind.TYPING_STOPPED,
            TypingChanged(ConversationId(typing.conversation_id), started),
        )

    elif kind == ServerEvent.MEMBER_ADDED:
        member = payload_to_member(FamilyMemberPayload.model_validate(data))
        return EventKind.MEMBERSHIP_CHANGED, MembershipChanged(
            MembershipAction.ADDED, member.id, member,
        )

    elif kind == ServerEvent.MEMBER_DELETED:
        deleted = MemberDeletedPayload.model_validate(data)
        return EventKind.MEMBERSHIP_CHANGED, MembershipChanged(
            MembershipAction.DELETED, IdentityId(deleted.member_id),
        )

    return None
