from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Profile:
    display_name: str
    email: str | None = None
    avatar_url: str | None = None
    is_profile_complete: bool = False
    extra: dict[str, Any] = field(default_factory=dict)
