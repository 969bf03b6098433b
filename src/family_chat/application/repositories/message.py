from __future__ import annotations

from typing import Protocol

from family_chat.domain.entities.message import ConfirmedMessage


class MessageReader(Protocol):
    async def fetch_messages(self, conversation_id: str) -> list[ConfirmedMessage]: ...


class MessageWriter(Protocol):
    async def update_message(
        self, conversation_id: str, message_id: str, body: str,
    ) -> ConfirmedMessage: ...


class MessageStore(MessageReader, MessageWriter, Protocol):
    """Request/response side of one chat surface, as seen by the synchronizer."""
