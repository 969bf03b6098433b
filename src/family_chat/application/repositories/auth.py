from __future__ import annotations

from typing import Any, Protocol

from family_chat.application.dto.identity import Identity


class AuthGateway(Protocol):
    async def login(self, email: str, password: str) -> Identity: ...

    async def register(
        self, email: str, password: str, confirm_password: str,
    ) -> dict[str, Any]: ...
