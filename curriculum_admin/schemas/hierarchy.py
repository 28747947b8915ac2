"""Pydantic v2 schemas for subjects and the Term/Week/Chapter tree."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from curriculum_admin.models.enums import ExamBoard, Level

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


class TeacherIn(BaseModel):
    """Teacher captured in the add-subject form."""

    model_config = ConfigDict(strict=False, populate_by_name=True)

    name: Title
    email: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3)]
    phone: str | None = None
    qualification: str | None = None


class SubjectCreate(BaseModel):
    """Request body for POST /subjects.

    One subject row is created per selected exam board; all share the same
    name and level.

    Attributes:
        name: Subject name.
        description: Optional description.
        level: Education level.
        exam_boards: One or more exam boards.
        school_id: Optional owning school.
        teachers: Teachers to attach to every created subject.
    """

    model_config = ConfigDict(strict=False, populate_by_name=True)

    name: Title
    description: str | None = None
    level: Level
    exam_boards: list[ExamBoard] = Field(..., min_length=1)
    school_id: uuid.UUID | None = None
    teachers: list[TeacherIn] = Field(default_factory=list)


class SubjectUpdate(BaseModel):
    """Inline subject edit: rename and optionally change level / exam board."""

    model_config = ConfigDict(strict=False, populate_by_name=True)

    name: Title | None = None
    description: str | None = None
    level: Level | None = None
    exam_board: ExamBoard | None = None
    school_id: uuid.UUID | None = None
    is_active: bool | None = None


class TitleUpdate(BaseModel):
    """Inline rename for terms and weeks."""

    title: Title


class ChapterCreate(BaseModel):
    """Request body for POST /chapters.

    ``order_number`` is optional; when omitted the next free position in the
    week is assigned.
    """

    model_config = ConfigDict(strict=False, populate_by_name=True)

    week_id: uuid.UUID
    title: Title
    description: str | None = None
    order_number: int | None = Field(default=None, ge=1)


class ChapterUpdate(BaseModel):
    model_config = ConfigDict(strict=False, populate_by_name=True)

    title: Title | None = None
    description: str | None = None


class ContentRead(BaseModel):
    """A topic as returned inside the subject tree."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    chapter_id: uuid.UUID
    title: str
    type: str
    description: str | None = None
    file_url: str | None = None
    file_size: int | None = None
    duration: str | None = None
    estimated_study_time: str | None = None
    order_number: int
    status: str
    tags: list[str] = Field(default_factory=list)
    view_count: int = 0
    quiz_data: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ChapterRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    week_id: uuid.UUID
    title: str
    description: str | None = None
    order_number: int
    is_continuation: bool = False
    original_chapter_id: uuid.UUID | None = None
    content: list[ContentRead] = Field(default_factory=list)


class WeekRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    term_id: uuid.UUID
    title: str
    order_number: int
    chapters: list[ChapterRead] = Field(default_factory=list)


class TermRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    subject_id: uuid.UUID
    title: str
    order_number: int
    weeks: list[WeekRead] = Field(default_factory=list)


class TeacherRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    phone: str | None = None
    qualification: str | None = None


class SubjectRead(BaseModel):
    """A subject with its full nested tree and teacher list."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None = None
    level: str
    exam_board: str
    school_id: uuid.UUID | None = None
    icon: str | None = None
    is_active: bool = True
    enrolled_students: int = 0
    content_items: int = 0
    completion_rate: float = 0.0
    created_at: datetime | None = None
    terms: list[TermRead] = Field(default_factory=list)
    teachers: list[TeacherRead] = Field(default_factory=list)


class SubjectListResponse(BaseModel):
    subjects: list[SubjectRead]
    total: int


class TreeNodeRead(BaseModel):
    """One node of the projected hierarchy tree."""

    model_config = ConfigDict(from_attributes=True)

    key: str
    kind: str
    id: uuid.UUID
    title: str
    order_number: int
    expanded: bool
    editing: bool = False
    data: dict[str, Any] = Field(default_factory=dict)
    can_move_up: bool = False
    can_move_down: bool = False
    child_count: int = 0
    children: list[TreeNodeRead] = Field(default_factory=list)
