"""Pydantic v2 schemas for content (topics), quiz questions and attempts."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from curriculum_admin.models.enums import AnswerLabel, ContentStatus, ContentType, QuizMethod
from curriculum_admin.schemas.hierarchy import ContentRead, Title

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class ContentUpdate(BaseModel):
    """Partial update for PATCH /content/{id}."""

    model_config = ConfigDict(strict=False, populate_by_name=True)

    title: Title | None = None
    type: ContentType | None = None
    description: str | None = None
    file_url: str | None = None
    file_size: int | None = Field(default=None, ge=0)
    duration: str | None = None
    estimated_study_time: str | None = None
    status: ContentStatus | None = None
    tags: list[str] | None = None


class MoveRequest(BaseModel):
    direction: Literal["up", "down"]


class AnswerDraftIn(BaseModel):
    """One answer slot of a manual quiz draft.

    Attributes:
        text: Answer text; may be blank for C and D.
        image: Filename of an uploaded ``images`` part, if any.
    """

    text: str = ""
    image: str | None = None


class QuestionDraftIn(BaseModel):
    """A manual quiz question as submitted with the add-content form."""

    model_config = ConfigDict(strict=False, populate_by_name=True)

    text: str
    image: str | None = None
    answers: dict[AnswerLabel, AnswerDraftIn]
    correct_answer: AnswerLabel = AnswerLabel.A
    explanation: str | None = None
    points: int = Field(default=1, ge=0)


class AddContentPayload(BaseModel):
    """The ``payload`` part of the multipart POST /content request.

    Attributes:
        chapter_id: Parent chapter.
        title: Topic title.
        type: Content kind.
        order_number: Explicit position; next free slot when omitted.
        quiz_method: Authoring method for quiz topics.
        ai_prompt: Prompt stored for later generation (``ai`` method).
        questions: Question drafts (``manual`` method).
    """

    model_config = ConfigDict(strict=False, populate_by_name=True)

    chapter_id: uuid.UUID | None = None
    title: str = ""
    type: ContentType = ContentType.VIDEO
    description: str | None = None
    duration: str | None = None
    estimated_study_time: str | None = None
    tags: list[str] = Field(default_factory=list)
    order_number: int | None = Field(default=None, ge=1)
    quiz_method: QuizMethod = QuizMethod.AI
    ai_prompt: str | None = None
    questions: list[QuestionDraftIn] = Field(default_factory=list)


class QuizQuestionCreate(BaseModel):
    """A stored quiz question as created through the question editor."""

    model_config = ConfigDict(strict=False, populate_by_name=True)

    question_text: NonBlank
    question_image_url: str | None = None
    answer_a: NonBlank
    answer_b: NonBlank
    answer_c: str | None = None
    answer_d: str | None = None
    answer_a_image_url: str | None = None
    answer_b_image_url: str | None = None
    answer_c_image_url: str | None = None
    answer_d_image_url: str | None = None
    correct_answer: AnswerLabel
    order_number: int | None = Field(default=None, ge=1)
    explanation: str | None = None
    points: int = Field(default=1, ge=0)


class QuizQuestionUpdate(BaseModel):
    model_config = ConfigDict(strict=False, populate_by_name=True)

    question_text: NonBlank | None = None
    question_image_url: str | None = None
    answer_a: NonBlank | None = None
    answer_b: NonBlank | None = None
    answer_c: str | None = None
    answer_d: str | None = None
    answer_a_image_url: str | None = None
    answer_b_image_url: str | None = None
    answer_c_image_url: str | None = None
    answer_d_image_url: str | None = None
    correct_answer: AnswerLabel | None = None
    explanation: str | None = None
    points: int | None = Field(default=None, ge=0)


class QuizQuestionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    content_id: uuid.UUID
    question_text: str
    question_image_url: str | None = None
    answer_a: str
    answer_b: str
    answer_c: str | None = None
    answer_d: str | None = None
    answer_a_image_url: str | None = None
    answer_b_image_url: str | None = None
    answer_c_image_url: str | None = None
    answer_d_image_url: str | None = None
    correct_answer: str
    order_number: int
    explanation: str | None = None
    points: int = 1


class QuestionImportRequest(BaseModel):
    """Loose question records, e.g. parsed from an uploaded JSON file."""

    questions: list[dict[str, Any]] = Field(..., min_length=1)


class AttemptCreate(BaseModel):
    """A finished attempt; the score is computed by the student client."""

    user_id: uuid.UUID
    score: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0, le=100)
    time_taken: int | None = Field(default=None, ge=0)
    answers: dict[str, str] = Field(default_factory=dict)


class AttemptRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    content_id: uuid.UUID
    user_id: uuid.UUID
    score: int
    total_questions: int
    percentage: float
    time_taken: int | None = None
    answers: dict[str, Any] = Field(default_factory=dict)
    completed_at: datetime | None = None


class QuizStatistics(BaseModel):
    total_questions: int = 0
    has_images: bool = False
    total_points: int = 0
    avg_completion_time: float = 0.0


class LeaderboardEntry(BaseModel):
    user_name: str
    score: int
    percentage: float
    completed_at: datetime | None = None


class AddContentResponse(BaseModel):
    """Result of the add-content flow.

    ``warnings`` lists steps that failed without aborting the submission,
    such as a quiz image that could not be uploaded.
    """

    content: ContentRead
    questions_created: int = 0
    warnings: list[str] = Field(default_factory=list)

