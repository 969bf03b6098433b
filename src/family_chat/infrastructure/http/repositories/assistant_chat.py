from __future__ import annotations

from family_chat.application.dto.assistant import AssistantReply
from family_chat.application.exceptions import ValidationError
from family_chat.domain.entities.conversation import Conversation
from family_chat.domain.entities.message import ConfirmedMessage
from family_chat.domain.value_objects.enums import ConversationKind
from family_chat.infrastructure.http.client import ApiClient, decoding
from family_chat.infrastructure.http.mappers import conversation as conversation_mapper
from family_chat.infrastructure.http.mappers import message as message_mapper
from family_chat.infrastructure.http.schemas.conversation import (
    AssistantReplyPayload,
    ConversationPayload,
    RenameConversationRequest,
)
from family_chat.infrastructure.http.schemas.message import MessagePayload, SendMessageRequest


def _conversation(data: object) -> Conversation:
    return conversation_mapper.payload_to_entity(
        ConversationPayload.model_validate(data), ConversationKind.ASSISTANT,
    )


class HttpAssistantChatRepository:
    """Implements application.repositories.conversation.AssistantChatRepository."""

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def list_conversations(self) -> list[Conversation]:
        data = await self._api.get("/ai-conversations")
        with decoding("assistant conversation list"):
            return [_conversation(item) for item in data or []]

    async def create_conversation(self) -> Conversation:
        data = await self._api.post("/ai-conversations", json={})
        with decoding("assistant conversation"):
            return _conversation(data)

    async def delete_conversation(self, conversation_id: str) -> None:
        await self._api.delete(f"/ai-conversations/{conversation_id}")

    async def rename_conversation(self, conversation_id: str, title: str) -> Conversation:
        data = await self._api.put(
            f"/ai-conversations/{conversation_id}/title",
            json=RenameConversationRequest(title=title).model_dump(),
        )
        with decoding("assistant conversation"):
            return _conversation(data)

    async def fetch_messages(self, conversation_id: str) -> list[ConfirmedMessage]:
        data = await self._api.get(f"/ai-conversations/{conversation_id}/messages")
        with decoding("message list"):
            return [
                message_mapper.payload_to_entity(MessagePayload.model_validate(item), conversation_id)
                for item in data or []
            ]

    async def update_message(
        self, conversation_id: str, message_id: str, body: str,
    ) -> ConfirmedMessage:
        raise ValidationError("Assistant conversation messages cannot be edited")

    async def send_message(
        self, conversation_id: str, body: str, sender_name: str | None = None,
    ) -> AssistantReply:
        data = await self._api.post(
            f"/ai-conversations/{conversation_id}/message",
            json=SendMessageRequest(body=body, sender_name=sender_name).model_dump(exclude_none=True),
        )
        with decoding("assistant reply"):
            payload = AssistantReplyPayload.model_validate(data)
            return AssistantReply(
                conversation=conversation_mapper.payload_to_entity(
                    payload.conversation, ConversationKind.ASSISTANT,
                ),
                new_messages=[
                    message_mapper.payload_to_entity(m, conversation_id)
                    for m in payload.new_messages
                ],
            )
