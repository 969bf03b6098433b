"""Message variants held in a conversation sequence.

A message is either ``PendingMessage`` (shown locally before the server
acknowledged it, keyed by a temporary id) or ``ConfirmedMessage`` (keyed by
the server-assigned id). ``merge`` is the only way a pending message turns
into a confirmed one.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from family_chat.domain.value_objects.enums import MessageOrigin
from family_chat.domain.value_objects.ids import (
    ASSISTANT_AUTHOR,
    ConversationId,
    IdentityId,
    MessageId,
)


@dataclass(frozen=True, slots=True)
class PendingMessage:
    temp_id: MessageId
    conversation_id: ConversationId
    author_id: IdentityId
    body: str
    created_at: datetime
    display_name: str | None = None

    @property
    def id(self) -> MessageId:
        return self.temp_id

    @property
    def origin(self) -> MessageOrigin:
        return MessageOrigin.LOCAL_PENDING

    @property
    def edited(self) -> bool:
        return False

    @property
    def is_assistant(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class ConfirmedMessage:
    id: MessageId
    conversation_id: ConversationId
    author_id: IdentityId
    body: str
    created_at: datetime
    edited: bool = False
    display_name: str | None = None

    @property
    def origin(self) -> MessageOrigin:
        return MessageOrigin.SERVER_CONFIRMED

    @property
    def is_assistant(self) -> bool:
        return self.author_id == ASSISTANT_AUTHOR


Message = PendingMessage | ConfirmedMessage


def merge(pending: PendingMessage, confirmed: ConfirmedMessage) -> ConfirmedMessage:
    """Resolve a pending message into its server-confirmed counterpart.

    The server copy wins on every field; the display-name override chosen
    locally survives when the server did not echo one back.
    """
    if confirmed.display_name is None and pending.display_name is not None:
        return replace(confirmed, display_name=pending.display_name)
    return confirmed
