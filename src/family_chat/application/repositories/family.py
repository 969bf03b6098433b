from __future__ import annotations

from typing import Any, Protocol

from family_chat.domain.entities.family_member import FamilyMember


class FamilyRepository(Protocol):
    async def list_members(self) -> list[FamilyMember]: ...
    async def add_member(self, data: dict[str, Any]) -> FamilyMember: ...
    async def delete_member(self, member_id: str) -> None: ...
