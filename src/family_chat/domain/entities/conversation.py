from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from family_chat.domain.value_objects.enums import ConversationKind
from family_chat.domain.value_objects.ids import ConversationId, IdentityId


@dataclass(frozen=True, slots=True)
class Conversation:
    id: ConversationId
    kind: ConversationKind
    title: str | None = None
    participant_ids: frozenset[IdentityId] = field(default_factory=frozenset)
    created_at: datetime | None = None
    updated_at: datetime | None = None
