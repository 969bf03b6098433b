from __future__ import annotations

from typing import Any

from family_chat.application.dto.identity import Identity
from family_chat.infrastructure.http.client import ApiClient, decoding
from family_chat.infrastructure.http.mappers.user import login_to_identity
from family_chat.infrastructure.http.schemas.user import (
    LoginPayload,
    LoginRequest,
    RegisterRequest,
)


class HttpAuthGateway:
    """Implements application.repositories.auth.AuthGateway."""

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def login(self, email: str, password: str) -> Identity:
        data = await self._api.post(
            "/login",
            json=LoginRequest(email=email, password=password).model_dump(),
        )
        with decoding("login response"):
            return login_to_identity(LoginPayload.model_validate(data))

    async def register(
        self, email: str, password: str, confirm_password: str,
    ) -> dict[str, Any]:
        data = await self._api.post(
            "/register",
            json=RegisterRequest(
                email=email,
                password=password,
                confirm_password=confirm_password,
            ).model_dump(),
        )
        return data if isinstance(data, dict) else {}
