from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    email: str
    password: str
    confirm_password: str


class LoginPayload(BaseModel):
    token: str
    id: str | None = None
    display_name: str = ""
    email: str | None = None
    avatar_url: str | None = None
    is_profile_complete: bool = False

    model_config = {"extra": "ignore"}


class ProfilePayload(BaseModel):
    display_name: str = ""
    email: str | None = None
    avatar_url: str | None = None
    is_profile_complete: bool = False

    model_config = {"extra": "allow"}


class FamilyMemberPayload(BaseModel):
    id: str
    full_name: str
    relation: str | None = None
    avatar_url: str | None = None

    model_config = {"extra": "ignore"}


class ErrorPayload(BaseModel):
    message: str | None = None
    detail: Any = None

    model_config = {"extra": "ignore"}
