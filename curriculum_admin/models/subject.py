"""SQLAlchemy ORM models for the subjects and subject_teachers tables."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from curriculum_admin.models.base import Base

if TYPE_CHECKING:
    from curriculum_admin.models.school import School
    from curriculum_admin.models.term import Term


class Subject(Base):
    """A subject offered at one level for one exam board. Root of the hierarchy.

    Attributes:
        id: UUID primary key.
        name: Subject name (e.g. 'Biology').
        description: Optional description text.
        level: One of JC, O-Level, A-Level.
        exam_board: One of ZIMSEC, Cambridge.
        school_id: Optional owning school.
        icon: Optional icon name for the console.
        is_active: Soft-delete marker.
        enrolled_students: Denormalised enrollment count.
        content_items: Denormalised content count.
        completion_rate: Denormalised completion percentage.
        terms: The three terms of the subject, ordered.
        teachers: Teachers assigned to the subject.
    """

    __tablename__ = "subjects"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    level: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    exam_board: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    school_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("schools.id", ondelete="SET NULL"), nullable=True
    )
    icon: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    enrolled_students: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    content_items: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completion_rate: Mapped[float] = mapped_column(
        Numeric(5, 2, asdecimal=False), nullable=False, default=0.0
    )
    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False, server_default=func.now(), onupdate=func.now()
    )

    school: Mapped[School | None] = relationship("School", back_populates="subjects")
    terms: Mapped[List[Term]] = relationship(
        "Term",
        back_populates="subject",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="Term.order_number",
    )
    teachers: Mapped[List[SubjectTeacher]] = relationship(
        "SubjectTeacher",
        back_populates="subject",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, name='{self.name}', board='{self.exam_board}')>"


class SubjectTeacher(Base):
    """A teacher assigned to a subject."""

    __tablename__ = "subject_teachers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    subject_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    qualification: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())

    subject: Mapped[Subject] = relationship("Subject", back_populates="teachers")

    def __repr__(self) -> str:
        return f"<SubjectTeacher(id={self.id}, email='{self.email}')>"
