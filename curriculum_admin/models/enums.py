"""Enumerated column values shared by models, schemas and services."""

from __future__ import annotations

from enum import Enum


class Level(str, Enum):
    JC = "JC"
    O_LEVEL = "O-Level"
    A_LEVEL = "A-Level"


class ExamBoard(str, Enum):
    ZIMSEC = "ZIMSEC"
    CAMBRIDGE = "Cambridge"


class ContentType(str, Enum):
    VIDEO = "video"
    PDF = "pdf"
    QUIZ = "quiz"
    NOTES = "notes"


class ContentStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    REVIEW = "review"
    ARCHIVED = "archived"


class Role(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


ADMIN_ROLES: frozenset[str] = frozenset({Role.ADMIN.value, Role.SUPER_ADMIN.value})


class AnswerLabel(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class QuizMethod(str, Enum):
    """How a quiz topic's questions are authored."""

    AI = "ai"
    UPLOAD = "upload"
    MANUAL = "manual"
