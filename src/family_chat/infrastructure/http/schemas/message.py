from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class MessagePayload(BaseModel):
    id: str
    conversation_id: str | None = None
    sender_id: str
    body: str
    is_assistant: bool = False
    edited: bool = False
    display_name: str | None = None
    created_at: datetime

    model_config = {"extra": "ignore"}


class SendMessageRequest(BaseModel):
    body: str
    sender_name: str | None = None


class EditMessageRequest(BaseModel):
    body: str
