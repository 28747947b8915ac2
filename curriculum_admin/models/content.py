"""SQLAlchemy ORM model for the content table (topics)."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, List

from sqlalchemy import BigInteger, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from curriculum_admin.models.base import Base

if TYPE_CHECKING:
    from curriculum_admin.models.chapter import Chapter
    from curriculum_admin.models.quiz import QuizQuestion


class Content(Base):
    """A leaf learning unit within a chapter. Called a topic in the console.

    Attributes:
        id: UUID primary key.
        chapter_id: Foreign key to chapters table.
        title: Topic title.
        type: One of video, pdf, quiz, notes.
        description: Optional description text.
        file_url: Public URL of the attached file, if any.
        file_size: Size of the attached file in bytes.
        duration: Human-readable duration (e.g. '12 min').
        estimated_study_time: Human-readable study time estimate.
        order_number: Ordering within chapter, 1-based.
        status: One of draft, published, review, archived.
        tags: Unordered list of tag strings.
        view_count: Number of student views.
        quiz_data: Quiz authoring metadata for quiz topics.
        created_by: Profile id of the author.
        questions: Quiz questions (quiz topics only).
    """

    __tablename__ = "content"
    __table_args__ = (
        UniqueConstraint("chapter_id", "order_number", name="uq_content_chapter_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    chapter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    duration: Mapped[str | None] = mapped_column(String(50), nullable=True)
    estimated_study_time: Mapped[str | None] = mapped_column(String(50), nullable=True)
    order_number: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="published", index=True
    )
    tags: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quiz_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False, server_default=func.now(), onupdate=func.now()
    )

    chapter: Mapped[Chapter] = relationship("Chapter", back_populates="content")
    questions: Mapped[List[QuizQuestion]] = relationship(
        "QuizQuestion",
        back_populates="content",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QuizQuestion.order_number",
    )

    def __repr__(self) -> str:
        return f"<Content(id={self.id}, title='{self.title}', type='{self.type}')>"
