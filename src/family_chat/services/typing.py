from __future__ import annotations

import logging
from typing import Callable

from family_chat.application.ports.clock import Scheduler, TimerHandle
from family_chat.domain.value_objects.enums import TypingState

logger = logging.getLogger(__name__)


class TypingIndicator:
    """Debounced local typing state for one conversation.

    ``on_started`` fires once per idle -> typing transition; every keystroke
    re-arms the inactivity timer and ``on_stopped`` fires when it expires or
    when :meth:`stop` is called while typing.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        timeout: float,
        on_started: Callable[[], None],
        on_stopped: Callable[[], None],
    ) -> None:
        self._scheduler = scheduler
        self._timeout = timeout
        self._on_started = on_started
        self._on_stopped = on_stopped
        self._state = TypingState.IDLE
        self._timer: TimerHandle | None = None

    @property
    def state(self) -> TypingState:
        return self._state

    @property
    def is_typing(self) -> bool:
        return self._state == TypingState.TYPING

    def keystroke(self) -> None:
        if self._state == TypingState.IDLE:
            self._state = TypingState.TYPING
            self._on_started()
        self._arm()

    def stop(self) -> None:
        """Leave the typing state now, e.g. because the message was sent."""
        self._disarm()
        if self._state == TypingState.TYPING:
            self._state = TypingState.IDLE
            self._on_stopped()

    def cancel(self) -> None:
        """Teardown: drop the timer without emitting anything."""
        self._disarm()
        self._state = TypingState.IDLE

    def _arm(self) -> None:
        self._disarm()
        self._timer = self._scheduler.call_later(self._timeout, self._expire)

    def _disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _expire(self) -> None:
        self._timer = None
        if self._state == TypingState.TYPING:
            logger.debug("Typing timer expired after %.1fs", self._timeout)
            self._state = TypingState.IDLE
            self._on_stopped()
