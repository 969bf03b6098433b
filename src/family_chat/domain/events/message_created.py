from __future__ import annotations

from dataclasses import dataclass

from family_chat.domain.entities.message import ConfirmedMessage


@dataclass(frozen=True, slots=True)
class MessageCreated:
    message: ConfirmedMessage
