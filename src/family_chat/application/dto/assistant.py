from __future__ import annotations

from dataclasses import dataclass, field

from family_chat.domain.entities.conversation import Conversation
from family_chat.domain.entities.message import ConfirmedMessage


@dataclass(frozen=True, slots=True)
class AssistantReply:
    """Result of one assistant round trip: the (possibly retitled) conversation
    and every message the call created, in server order."""

    conversation: Conversation
    new_messages: list[ConfirmedMessage] = field(default_factory=list)
