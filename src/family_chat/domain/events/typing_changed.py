from __future__ import annotations

from dataclasses import dataclass

from family_chat.domain.value_objects.ids import ConversationId


@dataclass(frozen=True, slots=True)
class TypingChanged:
    conversation_id: ConversationId
    typing: bool
