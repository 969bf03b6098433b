from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from family_chat.domain.value_objects.enums import ConversationKind
from family_chat.infrastructure.http.schemas.message import MessagePayload


class ConversationPayload(BaseModel):
    id: str
    kind: ConversationKind | None = None
    title: str | None = None
    participant_ids: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"extra": "ignore"}


class AssistantReplyPayload(BaseModel):
    conversation: ConversationPayload
    new_messages: list[MessagePayload] = []


class RenameConversationRequest(BaseModel):
    title: str
