"""Single source of truth for the active conversation's message sequence."""
from __future__ import annotations

import logging
import uuid
from typing import Callable

from family_chat.application.dto.identity import Identity
from family_chat.application.exceptions import NotFoundError, ValidationError
from family_chat.application.listeners import Listeners, Subscription
from family_chat.application.ports.clock import Clock, SystemClock
from family_chat.application.repositories.message import MessageStore
from family_chat.domain.entities.message import ConfirmedMessage, Message, PendingMessage
from family_chat.domain.value_objects.ids import (
    TEMP_ID_PREFIX,
    ConversationId,
    MessageId,
)
from family_chat.services.sequence import MessageSequence

logger = logging.getLogger(__name__)

SequenceListener = Callable[[tuple[Message, ...]], None]
TypingListener = Callable[[bool], None]


def new_temp_id() -> MessageId:
    return MessageId(f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}")


class ConversationSynchronizer:
    """Merges snapshots, optimistic sends and realtime events for one surface.

    All mutators are synchronous; the async operations (:meth:`load_snapshot`,
    :meth:`edit_local`) only mutate after their round trip resolves, and drop
    results that belong to a conversation that is no longer active.
    """

    def __init__(
        self,
        store: MessageStore,
        identity: Identity,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._identity = identity
        self._clock = clock or SystemClock()
        self._sequence = MessageSequence()
        self._conversation_id: ConversationId | None = None
        self._epoch = 0
        self._remote_typing = False
        self._listeners: Listeners[SequenceListener] = Listeners()
        self._typing_listeners: Listeners[TypingListener] = Listeners()

    @property
    def conversation_id(self) -> ConversationId | None:
        return self._conversation_id

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._sequence.snapshot()

    @property
    def remote_typing(self) -> bool:
        return self._remote_typing

    def subscribe(self, listener: SequenceListener) -> Subscription:
        return self._listeners.add(listener)

    def subscribe_typing(self, listener: TypingListener) -> Subscription:
        return self._typing_listeners.add(listener)

    def is_active(self, conversation_id: str) -> bool:
        return conversation_id == self._conversation_id

    async def load_snapshot(self, conversation_id: str) -> tuple[Message, ...]:
        """Replace the sequence with the server history of ``conversation_id``.

        Unconfirmed pending messages are discarded. A snapshot that resolves
        after a newer ``load_snapshot`` call is ignored.
        """
        self._epoch += 1
        epoch = self._epoch
        if conversation_id != self._conversation_id:
            self._conversation_id = ConversationId(conversation_id)
            self._sequence.clear()
            self._set_remote_typing(False)
            self._changed()

        history = await self._store.fetch_messages(conversation_id)

        if epoch != self._epoch:
            logger.debug(
                "Discarding stale snapshot for %s (epoch %d, current %d)",
                conversation_id, epoch, self._epoch,
            )
            return self.messages

        dropped = len(self._sequence.pending())
        if dropped:
            logger.info("Snapshot for %s discarded %d pending message(s)", conversation_id, dropped)
        self._sequence.replace_all(
            m for m in history if m.conversation_id == conversation_id
        )
        self._changed()
        return self.messages

    def open_empty(self, conversation_id: str) -> None:
        """Activate a conversation known to have no history yet (just created)."""
        self._epoch += 1
        self._conversation_id = ConversationId(conversation_id)
        self._sequence.clear()
        self._set_remote_typing(False)
        self._changed()

    def reset(self) -> None:
        """Forget the active conversation, e.g. after it was deleted."""
        self._epoch += 1
        self._conversation_id = None
        self._sequence.clear()
        self._set_remote_typing(False)
        self._changed()

    def send_local(self, body: str, display_name: str | None = None) -> PendingMessage:
        if self._conversation_id is None:
            raise ValidationError("No active conversation")
        message = PendingMessage(
            temp_id=new_temp_id(),
            conversation_id=self._conversation_id,
            author_id=self._identity.id,
            body=body,
            created_at=self._clock.now(),
            display_name=display_name,
        )
        self._sequence.append_pending(message)
        self._changed()
        return message

    def pending_message(self, temp_id: str) -> PendingMessage | None:
        message = self._sequence.get(temp_id)
        return message if isinstance(message, PendingMessage) else None

    def discard_pending(self, temp_id: str) -> bool:
        """Drop an unconfirmed message the user gave up on."""
        if self.pending_message(temp_id) is None:
            return False
        self._sequence.remove(temp_id)
        self._changed()
        return True

    def confirm_send(self, temp_id: str, message: ConfirmedMessage) -> ConfirmedMessage | None:
        """Resolve ``temp_id`` into ``message``; returns the entry now in the sequence."""
        if not self.is_active(message.conversation_id):
            logger.debug("Dropping confirmation for inactive conversation %s", message.conversation_id)
            return None
        if self._sequence.confirm(temp_id, message):
            self._changed()
        resolved = self._sequence.get(message.id)
        return resolved if isinstance(resolved, ConfirmedMessage) else None

    def apply_remote_create(self, message: ConfirmedMessage) -> bool:
        if not self.is_active(message.conversation_id):
            return False
        if self._sequence.add(message):
            self._changed()
            return True
        return False

    def apply_remote_edit(self, message: ConfirmedMessage) -> bool:
        if not self.is_active(message.conversation_id):
            return False
        if self._sequence.edit(message):
            self._changed()
            return True
        if message.id not in self._sequence:
            logger.debug("Edit for unknown message %s dropped", message.id)
        return False

    async def edit_local(self, message_id: str, new_body: str) -> ConfirmedMessage:
        """Edit a confirmed message; the sequence changes only after the server answers."""
        conversation_id = self._conversation_id
        current = self._sequence.get(message_id)
        if conversation_id is None or current is None:
            raise NotFoundError("Message not found")
        if isinstance(current, PendingMessage):
            raise ValidationError("Message is not confirmed yet")

        updated = await self._store.update_message(conversation_id, message_id, new_body)
        if not self.apply_remote_edit(updated):
            return updated
        stored = self._sequence.get(updated.id)
        return stored if isinstance(stored, ConfirmedMessage) else updated

    def set_remote_typing(self, conversation_id: str, typing: bool) -> None:
        if self.is_active(conversation_id):
            self._set_remote_typing(typing)

    def close(self) -> None:
        self._listeners.clear()
        self._typing_listeners.clear()

    def _set_remote_typing(self, typing: bool) -> None:
        if typing != self._remote_typing:
            self._remote_typing = typing
            self._typing_listeners.notify(typing)

    def _changed(self) -> None:
        self._listeners.notify(self.messages)
