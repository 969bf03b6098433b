"""Ordered, duplicate-free message list for one conversation.

Positions are fixed at first insertion and never re-sorted by timestamp.
Every mutator returns ``True`` only when the visible sequence changed, and is
defined for every input: unknown ids, repeated events and out-of-order
deliveries are no-ops rather than errors.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Iterator

from family_chat.domain.entities.message import (
    ConfirmedMessage,
    Message,
    PendingMessage,
    merge,
)


class MessageSequence:
    def __init__(self, messages: Iterable[Message] = ()) -> None:
        self._items: list[Message] = []
        self._positions: dict[str, int] = {}
        self.replace_all(messages)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._items)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._positions

    def get(self, message_id: str) -> Message | None:
        pos = self._positions.get(message_id)
        return None if pos is None else self._items[pos]

    def snapshot(self) -> tuple[Message, ...]:
        return tuple(self._items)

    def pending(self) -> list[PendingMessage]:
        return [m for m in self._items if isinstance(m, PendingMessage)]

    def replace_all(self, messages: Iterable[Message]) -> None:
        """Drop everything and load ``messages``; the first copy of an id wins."""
        self._items = []
        self._positions = {}
        for message in messages:
            if message.id not in self._positions:
                self._append(message)

    def clear(self) -> None:
        self.replace_all(())

    def append_pending(self, message: PendingMessage) -> bool:
        if message.temp_id in self._positions:
            return False
        self._append(message)
        return True

    def add(self, message: ConfirmedMessage) -> bool:
        """Append a server message unless its id is already present."""
        if message.id in self._positions:
            return False
        self._append(message)
        return True

    def confirm(self, temp_id: str, message: ConfirmedMessage) -> bool:
        """Resolve the pending entry ``temp_id`` into ``message`` in place.

        If the realtime echo already inserted ``message.id`` the echo is
        removed so the message keeps the optimistic position. If the pending
        entry is gone (a snapshot reload discarded it) this behaves like
        :meth:`add`.
        """
        pending_pos = self._positions.get(temp_id)
        current = self._items[pending_pos] if pending_pos is not None else None
        if not isinstance(current, PendingMessage):
            return self.add(message)

        resolved = merge(current, message)
        echo_pos = self._positions.get(message.id)
        if echo_pos is not None:
            echo = self._items[echo_pos]
            # An edit may already have landed on the echo; keep the newer body.
            if isinstance(echo, ConfirmedMessage) and echo.edited and not resolved.edited:
                resolved = merge(current, echo)
            del self._items[echo_pos]
            self._reindex()
            pending_pos = self._positions[temp_id]

        self._items[pending_pos] = resolved
        del self._positions[temp_id]
        self._positions[resolved.id] = pending_pos
        return True

    def edit(self, message: ConfirmedMessage) -> bool:
        """Replace the entry with ``message.id`` and mark it edited.

        Unknown ids are ignored: an edit that overtakes its create is dropped,
        not queued.
        """
        pos = self._positions.get(message.id)
        if pos is None:
            return False
        edited = message if message.edited else replace(message, edited=True)
        if self._items[pos] == edited:
            return False
        self._items[pos] = edited
        return True

    def remove(self, message_id: str) -> bool:
        pos = self._positions.get(message_id)
        if pos is None:
            return False
        del self._items[pos]
        self._reindex()
        return True

    def _append(self, message: Message) -> None:
        self._positions[message.id] = len(self._items)
        self._items.append(message)

    def _reindex(self) -> None:
        self._positions = {m.id: i for i, m in enumerate(self._items)}
