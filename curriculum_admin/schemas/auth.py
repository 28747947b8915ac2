"""Pydantic v2 schemas for sign-up, sign-in and the session gate."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from curriculum_admin.models.enums import Role

Email = Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=3, max_length=255)]


class SignUpRequest(BaseModel):
    email: Email
    password: str = Field(..., min_length=6)
    full_name: str = ""


class SignInRequest(BaseModel):
    email: Email
    password: str = Field(..., min_length=1)


class ProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    full_name: str | None = None
    avatar_url: str | None = None
    role: str
    school_id: uuid.UUID | None = None
    is_active: bool = True
    last_login: datetime | None = None


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(strict=False, populate_by_name=True)

    full_name: str | None = None
    avatar_url: str | None = None
    role: Role | None = None


class TokenResponse(BaseModel):
    """Returned by sign-up and sign-in.

    Attributes:
        access_token: Signed bearer token.
        token_type: Always ``bearer``.
        expires_in: Token lifetime in seconds.
        profile: The caller's profile, provisioned if it was missing.
    """

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    profile: ProfileRead


class SessionResponse(BaseModel):
    """The gate decision for the current caller (GET /auth/me)."""

    decision: str
    phase: str
    profile: ProfileRead | None = None
    is_admin: bool = False
    current_role: str | None = None
    required_roles: list[str] = Field(default_factory=list)
