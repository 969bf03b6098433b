from __future__ import annotations

from family_chat.domain.entities.conversation import Conversation
from family_chat.domain.entities.message import ConfirmedMessage
from family_chat.domain.value_objects.enums import ConversationKind
from family_chat.infrastructure.http.client import ApiClient, decoding
from family_chat.infrastructure.http.mappers import conversation as conversation_mapper
from family_chat.infrastructure.http.mappers import message as message_mapper
from family_chat.infrastructure.http.schemas.conversation import ConversationPayload
from family_chat.infrastructure.http.schemas.message import (
    EditMessageRequest,
    MessagePayload,
    SendMessageRequest,
)


class HttpGroupChatRepository:
    """Implements application.repositories.conversation.GroupChatRepository."""

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def get_group_conversation(self) -> Conversation:
        data = await self._api.get("/conversations/group")
        with decoding("group conversation"):
            return conversation_mapper.payload_to_entity(
                ConversationPayload.model_validate(data), ConversationKind.GROUP,
            )

    async def fetch_messages(self, conversation_id: str) -> list[ConfirmedMessage]:
        data = await self._api.get(f"/conversations/{conversation_id}/messages")
        with decoding("message list"):
            return [
                message_mapper.payload_to_entity(MessagePayload.model_validate(item), conversation_id)
                for item in data or []
            ]

    async def send_message(self, conversation_id: str, body: str) -> ConfirmedMessage:
        data = await self._api.post(
            f"/conversations/{conversation_id}/message",
            json=SendMessageRequest(body=body).model_dump(exclude_none=True),
        )
        with decoding("message"):
            return message_mapper.payload_to_entity(MessagePayload.model_validate(data), conversation_id)

    async def update_message(
        self, conversation_id: str, message_id: str, body: str,
    ) -> ConfirmedMessage:
        data = await self._api.put(
            f"/conversations/{conversation_id}/messages/{message_id}",
            json=EditMessageRequest(body=body).model_dump(),
        )
        with decoding("message"):
            return message_mapper.payload_to_entity(MessagePayload.model_validate(data), conversation_id)
