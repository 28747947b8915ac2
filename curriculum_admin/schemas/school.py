"""Pydantic v2 schemas for schools and enrollments."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from curriculum_admin.schemas.hierarchy import Title


class SchoolCreate(BaseModel):
    model_config = ConfigDict(strict=False, populate_by_name=True)

    name: Title
    address: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    principal_name: str | None = None


class SchoolUpdate(BaseModel):
    model_config = ConfigDict(strict=False, populate_by_name=True)

    name: Title | None = None
    address: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    principal_name: str | None = None
    is_active: bool | None = None


class SchoolRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    address: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    principal_name: str | None = None
    is_active: bool = True


class EnrollmentCreate(BaseModel):
    user_id: uuid.UUID
    subject_id: uuid.UUID


class EnrollmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    subject_id: uuid.UUID
    is_active: bool = True
    enrolled_at: datetime | None = None
