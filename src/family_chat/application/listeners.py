"""Explicit subscribe/unsubscribe plumbing shared by every observable component."""
from __future__ import annotations

import logging
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class Subscription:
    """Handle returned by every ``subscribe``/``on`` call.

    The owner must call :meth:`unsubscribe` on teardown; calling it more than
    once is harmless.
    """

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel: Callable[[], None] | None = cancel

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def unsubscribe(self) -> None:
        cancel, self._cancel = self._cancel, None
        if cancel is not None:
            cancel()


class Listeners(Generic[F]):
    """Ordered set of synchronous callbacks.

    A failing listener is logged and skipped so one bad subscriber never
    prevents the others from observing the change.
    """

    def __init__(self) -> None:
        self._callbacks: list[F] = []

    def __len__(self) -> int:
        return len(self._callbacks)

    def add(self, callback: F) -> Subscription:
        self._callbacks.append(callback)
        return Subscription(lambda: self.discard(callback))

    def discard(self, callback: F) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def clear(self) -> None:
        self._callbacks.clear()

    def notify(self, *args: Any) -> None:
        for callback in list(self._callbacks):
            try:
                callback(*args)
            except Exception:
                logger.exception("Listener %r failed", callback)
