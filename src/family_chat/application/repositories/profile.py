from __future__ import annotations

from typing import Any, Protocol

from family_chat.application.dto.profile import Profile


class ProfileRepository(Protocol):
    async def get_profile(self, *, token: str | None = None) -> Profile:
        """Fetch the caller's profile. ``token`` overrides the session credential."""
        ...

    async def update_profile(self, data: dict[str, Any]) -> Profile: ...
