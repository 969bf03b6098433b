from __future__ import annotations

from dataclasses import dataclass, field, replace

from family_chat.application.dto.profile import Profile
from family_chat.domain.value_objects.ids import IdentityId


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated user plus the bearer credential issued at login."""

    id: IdentityId
    display_name: str
    token: str = field(repr=False)
    email: str | None = None
    avatar_url: str | None = None
    is_profile_complete: bool = False

    @property
    def authorization(self) -> str:
        return f"Bearer {self.token}"

    def with_profile(self, profile: Profile) -> Identity:
        return replace(
            self,
            display_name=profile.display_name or self.display_name,
            email=profile.email or self.email,
            avatar_url=profile.avatar_url or self.avatar_url,
            is_profile_complete=profile.is_profile_complete,
        )
