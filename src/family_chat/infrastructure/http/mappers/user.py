from __future__ import annotations

import jwt

from family_chat.application.dto.identity import Identity
from family_chat.application.dto.profile import Profile
from family_chat.domain.entities.family_member import FamilyMember
from family_chat.domain.value_objects.ids import IdentityId
from family_chat.infrastructure.http.schemas.user import (
    FamilyMemberPayload,
    LoginPayload,
    ProfilePayload,
)


def subject_from_token(token: str) -> str | None:
    """Read ``sub`` without verifying: the server stays the only authority."""
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    sub = claims.get("sub")
    return str(sub) if sub is not None else None


def login_to_identity(payload: LoginPayload) -> Identity:
    identity_id = payload.id or subject_from_token(payload.token)
    if not identity_id:
        raise ValueError("Login response carries no user id")
    return Identity(
        id=IdentityId(identity_id),
        display_name=payload.display_name,
        token=payload.token,
        email=payload.email,
        avatar_url=payload.avatar_url,
        is_profile_complete=payload.is_profile_complete,
    )


def payload_to_profile(payload: ProfilePayload) -> Profile:
    return Profile(
        display_name=payload.display_name,
        email=payload.email,
        avatar_url=payload.avatar_url,
        is_profile_complete=payload.is_profile_complete,
        extra=dict(payload.model_extra or {}),
    )


def payload_to_member(payload: FamilyMemberPayload) -> FamilyMember:
    return FamilyMember(
        id=IdentityId(payload.id),
        full_name=payload.full_name,
        relation=payload.relation,
        avatar_url=payload.avatar_url,
    )
