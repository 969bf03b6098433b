from __future__ import annotations

from dataclasses import dataclass

from family_chat.domain.value_objects.ids import IdentityId


@dataclass(frozen=True, slots=True)
class FamilyMember:
    id: IdentityId
    full_name: str
    relation: str | None = None
    avatar_url: str | None = None
