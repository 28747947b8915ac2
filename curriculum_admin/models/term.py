"""SQLAlchemy ORM model for the terms table."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from curriculum_admin.models.base import Base

if TYPE_CHECKING:
    from curriculum_admin.models.subject import Subject
    from curriculum_admin.models.week import Week


class Term(Base):
    """One of the three terms of a subject.

    Attributes:
        id: UUID primary key.
        subject_id: Foreign key to subjects table.
        title: Display title (e.g. 'Term 1').
        order_number: Position within the subject, 1-based.
        weeks: The thirteen weeks of the term, ordered.
    """

    __tablename__ = "terms"
    __table_args__ = (
        UniqueConstraint("subject_id", "order_number", name="uq_terms_subject_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    subject_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    order_number: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())

    subject: Mapped[Subject] = relationship("Subject", back_populates="terms")
    weeks: Mapped[List[Week]] = relationship(
        "Week",
        back_populates="term",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="Week.order_number",
    )

    def __repr__(self) -> str:
        return f"<Term(id={self.id}, order={self.order_number})>"
