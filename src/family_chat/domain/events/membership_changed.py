from __future__ import annotations

from dataclasses import dataclass

from family_chat.domain.entities.family_member import FamilyMember
from family_chat.domain.value_objects.enums import MembershipAction
from family_chat.domain.value_objects.ids import IdentityId


@dataclass(frozen=True, slots=True)
class MembershipChanged:
    action: MembershipAction
    member_id: IdentityId
    member: FamilyMember | None = None  # absent for deletions
