"""Persistence of quiz questions and student attempts."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from curriculum_admin.exceptions import FormValidationError, StorageError
from curriculum_admin.models import Content, Profile, QuizAttempt, QuizQuestion
from curriculum_admin.models.enums import ContentType
from curriculum_admin.services.quiz_authoring import questions_from_data
from curriculum_admin.services.store import (
    compact_order,
    get_or_raise,
    next_order,
    store_errors,
)

logger = logging.getLogger(__name__)

_QUESTION_FIELDS = {
    "question_text",
    "question_image_url",
    "answer_a",
    "answer_b",
    "answer_c",
    "answer_d",
    "answer_a_image_url",
    "answer_b_image_url",
    "answer_c_image_url",
    "answer_d_image_url",
    "correct_answer",
    "order_number",
    "explanation",
    "points",
}
# Position changes only through delete-and-compact, never through an edit.
_EDITABLE_QUESTION_FIELDS = _QUESTION_FIELDS - {"order_number"}

_IMAGE_COLUMNS = (
    QuizQuestion.question_image_url,
    QuizQuestion.answer_a_image_url,
    QuizQuestion.answer_b_image_url,
    QuizQuestion.answer_c_image_url,
    QuizQuestion.answer_d_image_url,
)


def _plain(value: Any) -> Any:
    return getattr(value, "value", value)


class QuizRepository:
    """CRUD for quiz questions plus attempt recording and reporting.

    Args:
        session: Request-scoped async session.
        uploader: Optional :class:`AssetUploader` for best-effort removal of
            question images.
    """

    def __init__(self, session: AsyncSession, uploader=None) -> None:
        self.session = session
        self.uploader = uploader

    async def _quiz_content(self, content_id: uuid.UUID) -> Content:
        content = await get_or_raise(self.session, Content, content_id, "content")
        if content.type != ContentType.QUIZ.value:
            raise FormValidationError("Only quiz content can have questions", field="type")
        return content

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    async def get_questions(self, content_id: uuid.UUID) -> Sequence[QuizQuestion]:
        with store_errors("fetch quiz questions", read=True):
            result = await self.session.scalars(
                select(QuizQuestion)
                .where(QuizQuestion.content_id == content_id)
                .order_by(QuizQuestion.order_number)
            )
            return result.all()

    async def create_question(self, content_id: uuid.UUID, fields: dict[str, Any]) -> QuizQuestion:
        """Append one question to a quiz topic.

        Raises:
            EntityNotFoundError: If the topic does not exist.
            FormValidationError: If the topic is not a quiz.
        """
        await self._quiz_content(content_id)
        with store_errors("create quiz question"):
            values = {k: _plain(v) for k, v in fields.items() if k in _QUESTION_FIELDS}
            if values.get("order_number") is None:
                values["order_number"] = await next_order(
                    self.session, QuizQuestion, QuizQuestion.content_id, content_id
                )
            question = QuizQuestion(content_id=content_id, **values)
            self.session.add(question)
            await self.session.flush()
        return question

    async def create_questions(self, records: list[dict[str, Any]]) -> list[QuizQuestion]:
        """Insert prepared question rows in one flush (no parent checks)."""
        questions = [QuizQuestion(**record) for record in records]
        with store_errors("create questions"):
            self.session.add_all(questions)
            await self.session.flush()
        logger.info("Created %d quiz questions", len(questions))
        return questions

    async def import_questions(
        self, content_id: uuid.UUID, raw: list[dict[str, Any]]
    ) -> list[QuizQuestion]:
        """Append loosely structured questions after any existing ones."""
        await self._quiz_content(content_id)
        records = questions_from_data(content_id, raw)
        offset = await next_order(self.session, QuizQuestion, QuizQuestion.content_id, content_id) - 1
        for record in records:
            record["order_number"] += offset
        return await self.create_questions(records)

    async def update_question(self, question_id: uuid.UUID, fields: dict[str, Any]) -> QuizQuestion:
        question = await get_or_raise(self.session, QuizQuestion, question_id, "question")
        with store_errors("update quiz question"):
            for key, value in fields.items():
                if key in _EDITABLE_QUESTION_FIELDS:
                    setattr(question, key, _plain(value))
            await self.session.flush()
            await self.session.refresh(question)
        return question

    async def delete_question(self, question_id: uuid.UUID) -> None:
        """Delete a question, renumber the rest, then drop its images."""
        question = await get_or_raise(self.session, QuizQuestion, question_id, "question")
        content_id, position, images = question.content_id, question.order_number, question.image_urls()
        with store_errors("delete quiz question"):
            await self.session.delete(question)
            await self.session.flush()
            await compact_order(
                self.session, QuizQuestion, QuizQuestion.content_id, content_id, position
            )
        if self.uploader is None:
            return
        for url in images:
            try:
                await self.uploader.delete_by_url(url, "quiz_images")
            except StorageError as exc:
                logger.warning("Could not delete quiz image %s: %s", url, exc)

    # ------------------------------------------------------------------
    # Attempts and reporting
    # ------------------------------------------------------------------

    async def submit_attempt(self, content_id: uuid.UUID, fields: dict[str, Any]) -> QuizAttempt:
        """Record a finished attempt; the score is stored as supplied."""
        await self._quiz_content(content_id)
        attempt = QuizAttempt(content_id=content_id, **fields)
        with store_errors("submit quiz attempt"):
            self.session.add(attempt)
            await self.session.flush()
            await self.session.refresh(attempt)
        return attempt

    async def get_user_attempts(
        self, content_id: uuid.UUID, user_id: uuid.UUID
    ) -> Sequence[QuizAttempt]:
        with store_errors("fetch quiz attempts", read=True):
            result = await self.session.scalars(
                select(QuizAttempt)
                .where(QuizAttempt.content_id == content_id, QuizAttempt.user_id == user_id)
                .order_by(QuizAttempt.completed_at.desc())
            )
            return result.all()

    async def get_statistics(self, content_id: uuid.UUID) -> dict[str, Any]:
        """Question count, total points, image presence and mean completion time."""
        with store_errors("fetch quiz statistics", read=True):
            row = (
                await self.session.execute(
                    select(
                        func.count(QuizQuestion.id),
                        func.coalesce(func.sum(QuizQuestion.points), 0),
                        func.count(QuizQuestion.id).filter(
                            or_(*(col.is_not(None) for col in _IMAGE_COLUMNS))
                        ),
                    ).where(QuizQuestion.content_id == content_id)
                )
            ).one()
            avg_time = await self.session.scalar(
                select(func.avg(QuizAttempt.time_taken)).where(
                    QuizAttempt.content_id == content_id
                )
            )
        total, points, with_images = row
        return {
            "total_questions": total or 0,
            "total_points": int(points or 0),
            "has_images": bool(with_images),
            "avg_completion_time": float(avg_time or 0),
        }

    async def get_leaderboard(self, content_id: uuid.UUID, limit: int = 10) -> list[dict[str, Any]]:
        """Best attempts first; ties go to the earlier finisher."""
        stmt = (
            select(
                Profile.full_name,
                Profile.email,
                QuizAttempt.score,
                QuizAttempt.percentage,
                QuizAttempt.completed_at,
            )
            .join(Profile, Profile.id == QuizAttempt.user_id)
            .where(QuizAttempt.content_id == content_id)
            .order_by(QuizAttempt.percentage.desc(), QuizAttempt.completed_at.asc())
            .limit(limit)
        )
        with store_errors("fetch quiz leaderboard", read=True):
            rows = (await self.session.execute(stmt)).all()
        return [
            {
                "user_name": full_name or email,
                "score": score,
                "percentage": float(percentage),
                "completed_at": completed_at,
            }
            for full_name, email, score, percentage, completed_at in rows
        ]
