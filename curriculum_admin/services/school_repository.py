"""Persistence of schools and subject enrollments."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import select

from curriculum_admin.models import Profile, School, Subject, UserEnrollment
from curriculum_admin.services.store import get_or_raise, store_errors

logger = logging.getLogger(__name__)

_SCHOOL_FIELDS = {"name", "address", "contact_email", "contact_phone", "principal_name", "is_active"}


class SchoolRepository:
    """CRUD for schools (soft-deleted) and enrollment bookkeeping."""

    def __init__(self, session) -> None:
        self.session = session

    async def get_schools(self) -> Sequence[School]:
        with store_errors("fetch schools", read=True):
            result = await self.session.scalars(
                select(School).where(School.is_active.is_(True)).order_by(School.name)
            )
            return result.all()

    async def create_school(self, fields: dict[str, Any]) -> School:
        school = School(**{k: v for k, v in fields.items() if k in _SCHOOL_FIELDS})
        with store_errors("create school"):
            self.session.add(school)
            await self.session.flush()
        logger.info("Created school %s", school.id)
        return school

    async def update_school(self, school_id: uuid.UUID, fields: dict[str, Any]) -> School:
        school = await get_or_raise(self.session, School, school_id, "school")
        with store_errors("update school"):
            for key, value in fields.items():
                if key in _SCHOOL_FIELDS:
                    setattr(school, key, value)
            await self.session.flush()
            await self.session.refresh(school)
        return school

    async def delete_school(self, school_id: uuid.UUID) -> None:
        school = await get_or_raise(self.session, School, school_id, "school")
        with store_errors("delete school"):
            school.is_active = False
            await self.session.flush()

    # ------------------------------------------------------------------
    # Enrollments
    # ------------------------------------------------------------------

    async def enroll(self, user_id: uuid.UUID, subject_id: uuid.UUID) -> UserEnrollment:
        """Enroll a profile in a subject; re-enrolling reactivates the row."""
        await get_or_raise(self.session, Profile, user_id, "profile")
        await get_or_raise(self.session, Subject, subject_id, "subject")
        with store_errors("enroll user"):
            existing = await self.session.scalar(
                select(UserEnrollment).where(
                    UserEnrollment.user_id == user_id,
                    UserEnrollment.subject_id == subject_id,
                )
            )
            if existing is not None:
                existing.is_active = True
                await self.session.flush()
                return existing
            enrollment = UserEnrollment(user_id=user_id, subject_id=subject_id, is_active=True)
            self.session.add(enrollment)
            await self.session.flush()
        logger.info("Enrolled %s in subject %s", user_id, subject_id)
        return enrollment

    async def get_user_enrollments(self, user_id: uuid.UUID) -> Sequence[UserEnrollment]:
        with store_errors("fetch enrollments", read=True):
            result = await self.session.scalars(
                select(UserEnrollment)
                .where(UserEnrollment.user_id == user_id, UserEnrollment.is_active.is_(True))
                .order_by(UserEnrollment.enrolled_at.desc())
            )
            return result.all()

    async def get_subject_enrollments(self, subject_id: uuid.UUID) -> Sequence[UserEnrollment]:
        with store_errors("fetch enrollments", read=True):
            result = await self.session.scalars(
                select(UserEnrollment)
                .where(UserEnrollment.subject_id == subject_id, UserEnrollment.is_active.is_(True))
                .order_by(UserEnrollment.enrolled_at.desc())
            )
            return result.all()
