from __future__ import annotations

from typing import Any

from family_chat.domain.entities.family_member import FamilyMember
from family_chat.infrastructure.http.client import ApiClient, decoding
from family_chat.infrastructure.http.mappers.user import payload_to_member
from family_chat.infrastructure.http.schemas.user import FamilyMemberPayload


class HttpFamilyRepository:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def list_members(self) -> list[FamilyMember]:
        data = await self._api.get("/family-members")
        with decoding("family member list"):
            return [
                payload_to_member(FamilyMemberPayload.model_validate(item))
                for item in data or []
            ]

    async def add_member(self, data: dict[str, Any]) -> FamilyMember:
        raw = await self._api.post("/family-members", json=data)
        with decoding("family member"):
            return payload_to_member(FamilyMemberPayload.model_validate(raw))

    async def delete_member(self, member_id: str) -> None:
        await self._api.delete(f"/family-members/{member_id}")
