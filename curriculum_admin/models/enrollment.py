"""SQLAlchemy ORM model for the user_enrollments table."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from curriculum_admin.models.base import Base
from curriculum_admin.models.profile import Profile
from curriculum_admin.models.subject import Subject


class UserEnrollment(Base):
    """Enrollment of a profile in a subject."""

    __tablename__ = "user_enrollments"
    __table_args__ = (UniqueConstraint("user_id", "subject_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    subject_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    enrolled_at: Mapped[datetime] = mapped_column(nullable=False, server_default=func.now())

    subject: Mapped[Subject] = relationship("Subject")
    profile: Mapped[Profile] = relationship("Profile")

    def __repr__(self) -> str:
        return f"<UserEnrollment(user={self.user_id}, subject={self.subject_id})>"
