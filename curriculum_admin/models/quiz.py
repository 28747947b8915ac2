"""SQLAlchemy ORM models for quiz questions and quiz attempts."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from curriculum_admin.models.base import Base

if TYPE_CHECKING:
    from curriculum_admin.models.content import Content


class QuizQuestion(Base):
    """Multiple-choice question belonging to a quiz topic.

    Answers A and B are required; C and D are optional.  Every answer and the
    question itself may carry an image URL.
    """

    __tablename__ = "quiz_questions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    content_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("content.id", ondelete="CASCADE"), nullable=False
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    answer_a: Mapped[str] = mapped_column(Text, nullable=False)
    answer_b: Mapped[str] = mapped_column(Text, nullable=False)
    answer_c: Mapped[str | None] = mapped_column(Text, nullable=True)
    answer_d: Mapped[str | None] = mapped_column(Text, nullable=True)
    answer_a_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    answer_b_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    answer_c_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    answer_d_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    correct_answer: Mapped[str] = mapped_column(String(1), nullable=False)
    order_number: Mapped[int] = mapped_column(Integer, nullable=False)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False, server_default=func.now(), onupdate=func.now()
    )

    content: Mapped[Content] = relationship("Content", back_populates="questions")

    def image_urls(self) -> list[str]:
        """Return every image URL attached to this question."""
        urls = [
            self.question_image_url,
            self.answer_a_image_url,
            self.answer_b_image_url,
            self.answer_c_image_url,
            self.answer_d_image_url,
        ]
        return [u for u in urls if u]

    def __repr__(self) -> str:
        return f"<QuizQuestion(id={self.id}, order={self.order_number})>"


class QuizAttempt(Base):
    """A student's submitted attempt at a quiz. Scores are stored as supplied."""

    __tablename__ = "quiz_attempts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    content_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("content.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    percentage: Mapped[float] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=False)
    time_taken: Mapped[int | None] = mapped_column(Integer, nullable=True)
    answers: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    completed_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<QuizAttempt(id={self.id}, score={self.score}/{self.total_questions})>"
