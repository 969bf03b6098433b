from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine

from family_chat.application.exceptions import AppError
from family_chat.application.listeners import Subscription
from family_chat.application.ports.clock import AsyncioScheduler, Clock, Scheduler
from family_chat.application.ports.realtime import RealtimeBus
from family_chat.application.repositories.conversation import GroupChatRepository
from family_chat.domain.entities.conversation import Conversation
from family_chat.domain.entities.message import ConfirmedMessage, Message, PendingMessage
from family_chat.domain.events.message_created import MessageCreated
from family_chat.domain.events.message_edited import MessageEdited
from family_chat.domain.events.typing_changed import TypingChanged
from family_chat.domain.value_objects.enums import EventKind
from family_chat.services.errors import describe_failure
from family_chat.services.session import SessionStore
from family_chat.services.synchronizer import ConversationSynchronizer, SequenceListener
from family_chat.services.typing import TypingIndicator

logger = logging.getLogger(__name__)

DEFAULT_TYPING_TIMEOUT = 3.0


class GroupChatAdapter:
    """The family group conversation, fed by REST and the realtime bus.

    Sends are persisted over REST, then re-broadcast by this client over the
    bus: fan-out to the other participants is the sender's job, not the
    server's.
    """

    def __init__(
        self,
        repository: GroupChatRepository,
        bus: RealtimeBus,
        session: SessionStore,
        *,
        scheduler: Scheduler | None = None,
        clock: Clock | None = None,
        typing_timeout: float = DEFAULT_TYPING_TIMEOUT,
    ) -> None:
        self._repository = repository
        self._bus = bus
        self._session = session
        self._sync = ConversationSynchronizer(repository, session.require(), clock=clock)
        self._typing = TypingIndicator(
            scheduler or AsyncioScheduler(),
            typing_timeout,
            on_started=lambda: self._notify_typing(True),
            on_stopped=lambda: self._notify_typing(False),
        )
        self._subscriptions: list[Subscription] = []
        self._tasks: set[asyncio.Task[Any]] = set()
        self.conversation: Conversation | None = None
        self.error: str | None = None

    @property
    def synchronizer(self) -> ConversationSynchronizer:
        return self._sync

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._sync.messages

    @property
    def someone_typing(self) -> bool:
        return self._sync.remote_typing

    @property
    def is_typing(self) -> bool:
        return self._typing.is_typing

    def subscribe(self, listener: SequenceListener) -> Subscription:
        return self._sync.subscribe(listener)

    async def mount(self) -> bool:
        """Resolve the group conversation, join its room and load history."""
        try:
            conversation = await self._repository.get_group_conversation()
        except AppError as exc:
            self.error = describe_failure(exc, "Failed to load family chat", self._session)
            return False

        self.conversation = conversation
        if not self._subscriptions:
            self._subscriptions = [
                self._bus.on(EventKind.MESSAGE_CREATED, self._on_message_created),
                self._bus.on(EventKind.MESSAGE_EDITED, self._on_message_edited),
                self._bus.on(EventKind.TYPING_STARTED, self._on_typing),
                self._bus.on(EventKind.TYPING_STOPPED, self._on_typing),
                self._bus.on(EventKind.CONNECTED, self._on_connected),
            ]
        await self._bus.join_room(conversation.id)
        return await self.reload()

    async def reload(self) -> bool:
        if self.conversation is None:
            return False
        try:
            await self._sync.load_snapshot(self.conversation.id)
        except AppError as exc:
            self.error = describe_failure(exc, "Failed to fetch messages", self._session)
            return False
        self.error = None
        return True

    def unmount(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        self._typing.cancel()
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        self._sync.close()

    def keystroke(self) -> None:
        if self.conversation is not None and self._bus.is_connected:
            self._typing.keystroke()

    async def send(self, body: str) -> Message | None:
        """Optimistically show ``body``, persist it, then fan it out.

        On failure the pending message stays visible and ``error`` is set.
        """
        text = body.strip()
        if not text or self.conversation is None:
            return None

        self._typing.stop()
        return await self._deliver(self._sync.send_local(text))

    async def retry(self, temp_id: str) -> Message | None:
        """Re-send a pending message that failed, keeping its position."""
        pending = self._sync.pending_message(temp_id)
        if pending is None:
            return None
        return await self._deliver(pending)

    def discard(self, temp_id: str) -> bool:
        return self._sync.discard_pending(temp_id)

    async def _deliver(self, pending: PendingMessage) -> Message:
        try:
            sent = await self._repository.send_message(pending.conversation_id, pending.body)
        except AppError as exc:
            self.error = describe_failure(exc, "Failed to send message", self._session)
            return pending

        self.error = None
        confirmed = self._sync.confirm_send(pending.temp_id, sent)
        await self._bus.publish_message(sent)
        return confirmed or sent

    async def edit(self, message_id: str, body: str) -> ConfirmedMessage | None:
        text = body.strip()
        if not text:
            return None
        try:
            updated = await self._sync.edit_local(message_id, text)
        except AppError as exc:
            self.error = describe_failure(exc, "Failed to edit message", self._session)
            return None

        self.error = None
        await self._bus.publish_edit(updated)
        return updated

    def _notify_typing(self, typing: bool) -> None:
        if self.conversation is not None:
            self._bus.notify_typing(self.conversation.id, typing)

    def _on_message_created(self, event: MessageCreated) -> None:
        self._sync.apply_remote_create(event.message)

    def _on_message_edited(self, event: MessageEdited) -> None:
        self._sync.apply_remote_edit(event.message)

    def _on_typing(self, event: TypingChanged) -> None:
        self._sync.set_remote_typing(event.conversation_id, event.typing)

    def _on_connected(self, _event: object) -> None:
        if self.conversation is None:
            return
        logger.debug("Re-joining room %s after connect", self.conversation.id)
        self._spawn(self._bus.join_room(self.conversation.id))

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
