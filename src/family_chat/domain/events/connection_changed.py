from __future__ import annotations

from dataclasses import dataclass

from family_chat.domain.value_objects.enums import ConnectionState


@dataclass(frozen=True, slots=True)
class ConnectionChanged:
    state: ConnectionState
    reason: str = ""
