"""SQLAlchemy ORM model for the chapters table."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from curriculum_admin.models.base import Base

if TYPE_CHECKING:
    from curriculum_admin.models.content import Content
    from curriculum_admin.models.week import Week


class Chapter(Base):
    """Chapters within a week (e.g. 'Cell Biology').

    A chapter whose material runs past one week is continued into the next
    week as a copy flagged ``is_continuation`` that points back at the
    original through ``original_chapter_id``.

    Attributes:
        id: UUID primary key.
        week_id: Foreign key to weeks table.
        title: Human-readable chapter title.
        description: Optional description text.
        order_number: Ordering within week, 1-based.
        is_continuation: Whether this row continues an earlier chapter.
        original_chapter_id: The chapter this row continues.
        week: Relationship to parent week.
        content: Topics in this chapter, ordered.
    """

    __tablename__ = "chapters"
    __table_args__ = (
        UniqueConstraint("week_id", "order_number", name="uq_chapters_week_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    week_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("weeks.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_number: Mapped[int] = mapped_column(Integer, nullable=False)
    is_continuation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    original_chapter_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("chapters.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())

    week: Mapped[Week] = relationship("Week", back_populates="chapters")
    content: Mapped[List[Content]] = relationship(
        "Content",
        back_populates="chapter",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="Content.order_number",
    )

    def __repr__(self) -> str:
        return f"<Chapter(id={self.id}, title='{self.title}')>"
