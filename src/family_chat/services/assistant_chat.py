from __future__ import annotations

import logging

from family_chat.application.exceptions import AppError
from family_chat.application.listeners import Subscription
from family_chat.application.ports.clock import Clock
from family_chat.application.repositories.conversation import AssistantChatRepository
from family_chat.application.repositories.family import FamilyRepository
from family_chat.domain.entities.conversation import Conversation
from family_chat.domain.entities.family_member import FamilyMember
from family_chat.domain.entities.message import Message
from family_chat.services.errors import describe_failure
from family_chat.services.session import SessionStore
from family_chat.services.synchronizer import ConversationSynchronizer, SequenceListener

logger = logging.getLogger(__name__)

# Sent right after creating a conversation so the assistant opens with a greeting.
GREETING_PROMPT = "start"


class AssistantChatAdapter:
    """Assistant conversations: request/response only, no realtime events.

    Each send returns a batch of new messages. The first non-assistant message
    in the batch is the server echo of our own send and confirms the pending
    entry; the rest are appended by id.
    """

    def __init__(
        self,
        repository: AssistantChatRepository,
        session: SessionStore,
        *,
        family: FamilyRepository | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._repository = repository
        self._session = session
        self._family = family
        self.speakers: list[FamilyMember] = []
        self._sync = ConversationSynchronizer(repository, session.require(), clock=clock)
        self.conversations: list[Conversation] = []
        self.current: Conversation | None = None
        self.error: str | None = None

    @property
    def synchronizer(self) -> ConversationSynchronizer:
        return self._sync

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._sync.messages

    def subscribe(self, listener: SequenceListener) -> Subscription:
        return self._sync.subscribe(listener)

    async def load_conversations(self) -> list[Conversation]:
        """Fetch the list; the newest conversation is opened when none is active."""
        try:
            self.conversations = await self._repository.list_conversations()
        except AppError as exc:
            self.error = describe_failure(exc, "Failed to fetch chats", self._session)
            return self.conversations
        self.error = None
        if self.current is None and self.conversations:
            await self.select(self.conversations[0].id)
        return self.conversations

    async def load_speakers(self) -> list[FamilyMember]:
        """Who a message can be sent on behalf of: the signed-in user first, then family.

        When the family list cannot be fetched the user is the only speaker.
        """
        identity = self._session.require()
        me = FamilyMember(id=identity.id, full_name=identity.display_name, avatar_url=identity.avatar_url)
        members: list[FamilyMember] = []
        if self._family is not None:
            try:
                members = await self._family.list_members()
            except AppError as exc:
                describe_failure(exc, "Failed to fetch family members", self._session)
        self.speakers = [me, *(m for m in members if m.id != me.id)]
        return self.speakers

    async def select(self, conversation_id: str) -> bool:
        """Open ``conversation_id``; a superseded load changes nothing, not even ``error``."""
        self.current = self._find(conversation_id)
        # load_snapshot claims the next epoch before its first await
        epoch = self._sync.epoch + 1
        try:
            await self._sync.load_snapshot(conversation_id)
        except AppError as exc:
            if self._sync.epoch != epoch:
                logger.debug("Ignoring failed load of superseded conversation %s", conversation_id)
                return False
            self.error = describe_failure(exc, "Failed to fetch messages", self._session)
            return False
        if self._sync.epoch != epoch:
            return False
        self.error = None
        return True

    async def create_conversation(self, speaker: str | None = None) -> Conversation | None:
        try:
            conversation = await self._repository.create_conversation()
        except AppError as exc:
            self.error = describe_failure(exc, "Failed to create new chat", self._session)
            return None
        self.error = None
        self.conversations.insert(0, conversation)
        self.current = conversation
        self._sync.open_empty(conversation.id)
        await self.send(GREETING_PROMPT, speaker=speaker or self._session.require().display_name)
        return self.current

    async def rename(self, conversation_id: str, title: str) -> Conversation | None:
        title = title.strip()
        if not title:
            return None
        try:
            conversation = await self._repository.rename_conversation(conversation_id, title)
        except AppError as exc:
            self.error = describe_failure(exc, "Failed to update chat title", self._session)
            return None
        self.error = None
        self._store(conversation)
        return conversation

    async def delete_conversation(self, conversation_id: str) -> bool:
        try:
            await self._repository.delete_conversation(conversation_id)
        except AppError as exc:
            self.error = describe_failure(exc, "Failed to delete chat", self._session)
            return False
        self.error = None
        self.conversations = [c for c in self.conversations if c.id != conversation_id]
        if self.current is not None and self.current.id == conversation_id:
            self.current = None
        if self._sync.is_active(conversation_id):
            self._sync.reset()
        return True

    async def send(self, body: str, speaker: str | None = None) -> list[Message]:
        """Send ``body`` (optionally on behalf of family member ``speaker``).

        Returns the messages added by this round trip. On failure the pending
        message stays in the sequence and ``error`` is set.
        """
        text = body.strip()
        if not text or self._sync.conversation_id is None:
            return []

        pending = self._sync.send_local(text, display_name=speaker)
        conversation_id = pending.conversation_id
        try:
            reply = await self._repository.send_message(conversation_id, text, speaker)
        except AppError as exc:
            if not self._sync.is_active(conversation_id):
                logger.debug("Ignoring failed send to inactive conversation %s", conversation_id)
                return []
            self.error = describe_failure(exc, "Failed to send message", self._session)
            return [pending]
        self.error = None

        self._store(reply.conversation)
        if not self._sync.is_active(conversation_id):
            logger.debug("Assistant reply for inactive conversation %s dropped", conversation_id)
            return []

        added: list[Message] = []
        echo_seen = False
        for message in reply.new_messages:
            if not echo_seen and not message.is_assistant:
                echo_seen = True
                resolved = self._sync.confirm_send(pending.temp_id, message)
                added.append(resolved or message)
            elif self._sync.apply_remote_create(message):
                added.append(message)
        return added

    def close(self) -> None:
        self._sync.close()

    def _find(self, conversation_id: str) -> Conversation | None:
        return next((c for c in self.conversations if c.id == conversation_id), None)

    def _store(self, conversation: Conversation) -> None:
        """Record a server copy of ``conversation`` (e.g. a recomputed title)."""
        self.conversations = [
            conversation if c.id == conversation.id else c for c in self.conversations
        ]
        if self.current is not None and self.current.id == conversation.id:
            if self.current.title != conversation.title:
                logger.debug("Conversation %s retitled to %r", conversation.id, conversation.title)
            self.current = conversation
