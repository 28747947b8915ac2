"""SQLAlchemy ORM model for the weeks table."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from curriculum_admin.models.base import Base

if TYPE_CHECKING:
    from curriculum_admin.models.chapter import Chapter
    from curriculum_admin.models.term import Term


class Week(Base):
    """A teaching week within a term."""

    __tablename__ = "weeks"
    __table_args__ = (
        UniqueConstraint("term_id", "order_number", name="uq_weeks_term_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    term_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("terms.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    order_number: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())

    term: Mapped[Term] = relationship("Term", back_populates="weeks")
    chapters: Mapped[List[Chapter]] = relationship(
        "Chapter",
        back_populates="week",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="Chapter.order_number",
    )

    def __repr__(self) -> str:
        return f"<Week(id={self.id}, order={self.order_number})>"
