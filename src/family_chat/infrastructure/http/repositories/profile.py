from __future__ import annotations

from typing import Any

from family_chat.application.dto.profile import Profile
from family_chat.infrastructure.http.client import ApiClient, decoding
from family_chat.infrastructure.http.mappers.user import payload_to_profile
from family_chat.infrastructure.http.schemas.user import ProfilePayload


class HttpProfileRepository:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def get_profile(self, *, token: str | None = None) -> Profile:
        data = await self._api.get("/profile", token=token)
        with decoding("profile"):
            return payload_to_profile(ProfilePayload.model_validate(data))

    async def update_profile(self, data: dict[str, Any]) -> Profile:
        raw = await self._api.put("/profile", json=data)
        with decoding("profile"):
            return payload_to_profile(ProfilePayload.model_validate(raw))
