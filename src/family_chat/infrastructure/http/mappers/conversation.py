from __future__ import annotations

from family_chat.domain.entities.conversation import Conversation
from family_chat.domain.value_objects.enums import ConversationKind
from family_chat.domain.value_objects.ids import ConversationId, IdentityId
from family_chat.infrastructure.http.schemas.conversation import ConversationPayload


def payload_to_entity(
    payload: ConversationPayload,
    default_kind: ConversationKind,
) -> Conversation:
    return Conversation(
        id=ConversationId(payload.id),
        kind=payload.kind or default_kind,
        title=payload.title,
        participant_ids=frozenset(IdentityId(p) for p in payload.participant_ids),
        created_at=payload.created_at,
        updated_at=payload.updated_at,
    )
