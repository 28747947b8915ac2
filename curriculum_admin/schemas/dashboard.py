"""Pydantic v2 schemas for the dashboard list screens."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ContentRow(BaseModel):
    """A topic flattened out of the tree, labelled with its subject.

    Attributes:
        id: Content id.
        title: Topic title.
        type: Content kind.
        status: Lifecycle status.
        view_count: Student views.
        subject: Name of the owning subject.
        level: Level of the owning subject.
        exam_board: Exam board of the owning subject.
        chapter: Title of the owning chapter.
        week: Title of the owning week.
        term: Title of the owning term.
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    type: str
    status: str
    view_count: int = 0
    duration: str | None = None
    estimated_study_time: str | None = None
    subject: str
    level: str
    exam_board: str
    chapter: str = ""
    week: str = ""
    term: str = ""
    updated_at: datetime | None = None


class ContentStats(BaseModel):
    total: int = 0
    published: int = 0
    review: int = 0
    draft: int = 0


class ContentDashboardResponse(BaseModel):
    items: list[ContentRow] = Field(default_factory=list)
    stats: ContentStats


class SubjectRow(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    level: str
    exam_board: str
    term_count: int = 0
    week_count: int = 0
    content_count: int = 0
    teacher_count: int = 0
    enrolled_students: int = 0


class SubjectStats(BaseModel):
    total_subjects: int = 0
    total_content_items: int = 0
    total_teachers: int = 0
    total_enrollments: int = 0
    avg_completion_rate: float = 0.0


class SubjectDashboardResponse(BaseModel):
    items: list[SubjectRow] = Field(default_factory=list)
    stats: SubjectStats
