from __future__ import annotations

from typing import Any, Callable, Protocol

from family_chat.application.listeners import Subscription
from family_chat.domain.entities.message import ConfirmedMessage
from family_chat.domain.value_objects.enums import ConnectionState, EventKind

EventHandler = Callable[[Any], None]


class RealtimeBus(Protocol):
    """What the chat surfaces need from the realtime connection."""

    @property
    def state(self) -> ConnectionState: ...

    @property
    def is_connected(self) -> bool: ...

    def on(self, kind: EventKind, handler: EventHandler) -> Subscription: ...
    def off(self, kind: EventKind, handler: EventHandler) -> None: ...
    async def join_room(self, conversation_id: str) -> None: ...

    async def publish_message(self, message: ConfirmedMessage) -> None:
        """Fan a confirmed message out to the other room participants."""
        ...

    async def publish_edit(self, message: ConfirmedMessage) -> None: ...
    def notify_typing(self, conversation_id: str, typing: bool) -> None: ...
