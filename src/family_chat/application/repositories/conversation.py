from __future__ import annotations

from typing import Protocol

from family_chat.application.dto.assistant import AssistantReply
from family_chat.application.repositories.message import MessageStore
from family_chat.domain.entities.conversation import Conversation
from family_chat.domain.entities.message import ConfirmedMessage


class GroupChatRepository(MessageStore, Protocol):
    async def get_group_conversation(self) -> Conversation: ...
    async def send_message(self, conversation_id: str, body: str) -> ConfirmedMessage: ...


class AssistantChatRepository(MessageStore, Protocol):
    async def list_conversations(self) -> list[Conversation]: ...
    async def create_conversation(self) -> Conversation: ...
    async def delete_conversation(self, conversation_id: str) -> None: ...
    async def rename_conversation(self, conversation_id: str, title: str) -> Conversation: ...

    async def send_message(
        self, conversation_id: str, body: str, sender_name: str | None = None,
    ) -> AssistantReply: ...
