"""Persistence of the Subject → Term → Week → Chapter → Topic hierarchy.

Every write runs on the request-scoped :class:`AsyncSession`; nothing here
commits.  The session dependency commits once the request succeeds and rolls
back on any exception, so a subject cascade or a content insert followed by
its questions lands atomically.

Store failures are logged and re-raised as
:class:`~curriculum_admin.exceptions.StoreError` with a message naming the
operation (``"Failed to create chapter: ..."``).  Nothing is retried.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from curriculum_admin.exceptions import (
    EntityNotFoundError,
    FormValidationError,
    StorageError,
)
from curriculum_admin.models import (
    Chapter,
    Content,
    QuizQuestion,
    Subject,
    SubjectTeacher,
    Term,
    UserEnrollment,
    Week,
)
from curriculum_admin.models.enums import ContentStatus, ContentType
from curriculum_admin.services.store import (
    compact_order,
    get_or_raise,
    next_order,
    store_errors,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TERMS_PER_SUBJECT = 3
WEEKS_PER_TERM = 13

_SUBJECT_FIELDS = {"name", "description", "level", "exam_board", "school_id", "is_active", "icon"}
_CHAPTER_FIELDS = {"title", "description"}
_CONTENT_FIELDS = {
    "title",
    "type",
    "description",
    "file_url",
    "file_size",
    "duration",
    "estimated_study_time",
    "status",
    "tags",
    "quiz_data",
}


def _tree_options() -> list[Any]:
    """Eager-load options for a subject and its full tree."""
    return [
        selectinload(Subject.terms)
        .selectinload(Term.weeks)
        .selectinload(Week.chapters)
        .selectinload(Chapter.content),
        selectinload(Subject.teachers),
    ]


def _plain(value: Any) -> Any:
    """Unwrap enum members so they are stored as their string value."""
    return getattr(value, "value", value)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class HierarchyRepository:
    """CRUD over the content hierarchy.

    Args:
        session: Request-scoped async session.
        uploader: Optional :class:`AssetUploader` used for best-effort blob
            deletion when topics or chapters are removed.
    """

    def __init__(self, session: AsyncSession, uploader=None) -> None:
        self.session = session
        self.uploader = uploader

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _discard_blob(self, file_url: str | None, category: str = "content") -> None:
        if not file_url or self.uploader is None:
            return
        try:
            await self.uploader.delete_by_url(file_url, category)
        except StorageError as exc:
            logger.warning("Could not delete stored file %s: %s", file_url, exc)

    @staticmethod
    def _require_title(title: str | None, field: str = "title") -> str:
        cleaned = (title or "").strip()
        if not cleaned:
            raise FormValidationError("Title is required", field=field)
        return cleaned

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------

    async def get_subjects(self) -> list[Subject]:
        """Return all active subjects, newest first, with their full tree.

        Raises:
            FetchError: If the query fails.
        """
        stmt = (
            select(Subject)
            .where(Subject.is_active.is_(True))
            .options(*_tree_options())
            .order_by(Subject.created_at.desc())
        )
        with store_errors("fetch subjects", read=True):
            result = await self.session.execute(stmt)
            return list(result.scalars().unique().all())

    async def get_subject(self, subject_id: uuid.UUID) -> Subject:
        """Return one active subject with its full tree.

        Raises:
            EntityNotFoundError: If no active subject has this id.
            FetchError: If the query fails.
        """
        stmt = (
            select(Subject)
            .where(Subject.id == subject_id, Subject.is_active.is_(True))
            .options(*_tree_options())
            .execution_options(populate_existing=True)
        )
        with store_errors("fetch subject", read=True):
            result = await self.session.execute(stmt)
            subject = result.scalars().unique().one_or_none()
        if subject is None:
            raise EntityNotFoundError("subject", subject_id)
        return subject

    async def create_subject(
        self,
        *,
        name: str,
        level: Any,
        exam_board: Any,
        description: str | None = None,
        school_id: uuid.UUID | None = None,
        teachers: Iterable[Any] = (),
    ) -> Subject:
        """Create a subject together with its 3 terms, 39 weeks and teachers.

        The whole cascade is added as one object graph and flushed once, so a
        failure anywhere leaves no partial subject behind once the request
        transaction rolls back.

        Returns:
            The subject re-read with its complete tree.

        Raises:
            FormValidationError: If the name is blank.
            StoreError: If the insert fails.
        """
        subject = Subject(
            name=self._require_title(name, "name"),
            description=description,
            level=_plain(level),
            exam_board=_plain(exam_board),
            school_id=school_id,
            terms=[
                Term(
                    title=f"Term {t}",
                    order_number=t,
                    weeks=[
                        Week(title=f"Week {w}", order_number=w)
                        for w in range(1, WEEKS_PER_TERM + 1)
                    ],
                )
                for t in range(1, TERMS_PER_SUBJECT + 1)
            ],
            teachers=[
                SubjectTeacher(
                    name=t.name,
                    email=t.email,
                    phone=t.phone,
                    qualification=t.qualification,
                )
                for t in teachers
            ],
        )
        with store_errors("create subject"):
            self.session.add(subject)
            await self.session.flush()
        logger.info(
            "Created subject %s (%s, %s) with %d terms",
            subject.id,
            subject.level,
            subject.exam_board,
            TERMS_PER_SUBJECT,
        )
        return await self.get_subject(subject.id)

    async def create_subjects_for_boards(self, data: Any) -> list[Subject]:
        """Create one independent subject per selected exam board.

        Args:
            data: A :class:`~curriculum_admin.schemas.hierarchy.SubjectCreate`.
        """
        created = []
        for board in data.exam_boards:
            created.append(
                await self.create_subject(
                    name=data.name,
                    level=data.level,
                    exam_board=board,
                    description=data.description,
                    school_id=data.school_id,
                    teachers=data.teachers,
                )
            )
        return created

    async def update_subject(self, subject_id: uuid.UUID, fields: dict[str, Any]) -> Subject:
        subject = await get_or_raise(self.session, Subject, subject_id, "subject")
        if "name" in fields:
            fields["name"] = self._require_title(fields["name"], "name")
        with store_errors("update subject"):
            for key, value in fields.items():
                if key in _SUBJECT_FIELDS:
                    setattr(subject, key, _plain(value))
            await self.session.flush()
        return await self.get_subject(subject_id)

    async def delete_subject(self, subject_id: uuid.UUID) -> None:
        """Soft-delete a subject; its tree stays in place but is hidden."""
        subject = await get_or_raise(self.session, Subject, subject_id, "subject")
        with store_errors("delete subject"):
            subject.is_active = False
            await self.session.flush()
        logger.info("Deactivated subject %s", subject_id)

    async def update_subject_statistics(self, subject_id: uuid.UUID) -> Subject:
        """Recompute the denormalised content and enrollment counters."""
        subject = await get_or_raise(self.session, Subject, subject_id, "subject")
        with store_errors("update subject statistics"):
            content_count = await self.session.scalar(
                select(func.count(Content.id))
                .join(Chapter, Content.chapter_id == Chapter.id)
                .join(Week, Chapter.week_id == Week.id)
                .join(Term, Week.term_id == Term.id)
                .where(Term.subject_id == subject_id)
            )
            enrolled = await self.session.scalar(
                select(func.count(UserEnrollment.id)).where(
                    UserEnrollment.subject_id == subject_id,
                    UserEnrollment.is_active.is_(True),
                )
            )
            subject.content_items = content_count or 0
            subject.enrolled_students = enrolled or 0
            await self.session.flush()
        return subject

    # ------------------------------------------------------------------
    # Terms and weeks
    # ------------------------------------------------------------------

    async def rename_term(self, term_id: uuid.UUID, title: str) -> Term:
        term = await get_or_raise(self.session, Term, term_id, "term")
        with store_errors("update term"):
            term.title = self._require_title(title)
            await self.session.flush()
        return term

    async def rename_week(self, week_id: uuid.UUID, title: str) -> Week:
        week = await get_or_raise(self.session, Week, week_id, "week")
        with store_errors("update week"):
            week.title = self._require_title(title)
            await self.session.flush()
        return week

    async def get_weeks_by_term(self, term_id: uuid.UUID) -> Sequence[Week]:
        with store_errors("fetch weeks", read=True):
            result = await self.session.scalars(
                select(Week).where(Week.term_id == term_id).order_by(Week.order_number)
            )
            return result.all()

    async def get_chapters_by_week(self, week_id: uuid.UUID) -> Sequence[Chapter]:
        with store_errors("fetch chapters", read=True):
            result = await self.session.scalars(
                select(Chapter).where(Chapter.week_id == week_id).order_by(Chapter.order_number)
            )
            return result.all()

    # ------------------------------------------------------------------
    # Chapters
    # ------------------------------------------------------------------

    async def create_chapter(
        self,
        week_id: uuid.UUID,
        title: str,
        description: str | None = None,
        order_number: int | None = None,
        *,
        is_continuation: bool = False,
        original_chapter_id: uuid.UUID | None = None,
    ) -> Chapter:
        """Append a chapter to a week.

        Raises:
            EntityNotFoundError: If the week does not exist.
            OrderConflictError: If ``order_number`` is already taken.
        """
        title = self._require_title(title)
        await get_or_raise(self.session, Week, week_id, "week")
        with store_errors("create chapter"):
            if order_number is None:
                order_number = await next_order(self.session, Chapter, Chapter.week_id, week_id)
            chapter = Chapter(
                week_id=week_id,
                title=title,
                description=description,
                order_number=order_number,
                is_continuation=is_continuation,
                original_chapter_id=original_chapter_id,
                content=[],
            )
            self.session.add(chapter)
            await self.session.flush()
        logger.info("Created chapter %s at position %d", chapter.id, order_number)
        return chapter

    async def update_chapter(self, chapter_id: uuid.UUID, fields: dict[str, Any]) -> Chapter:
        chapter = await get_or_raise(self.session, Chapter, chapter_id, "chapter")
        if "title" in fields:
            fields["title"] = self._require_title(fields["title"])
        with store_errors("update chapter"):
            for key, value in fields.items():
                if key in _CHAPTER_FIELDS:
                    setattr(chapter, key, value)
            await self.session.flush()
        return chapter

    async def delete_chapter(self, chapter_id: uuid.UUID) -> None:
        """Delete a chapter and its topics, then compact the week's order."""
        chapter = await get_or_raise(self.session, Chapter, chapter_id, "chapter")
        week_id, position = chapter.week_id, chapter.order_number
        file_urls = [c.file_url for c in chapter.content if c.file_url]
        with store_errors("delete chapter"):
            await self.session.delete(chapter)
            await self.session.flush()
            await compact_order(self.session, Chapter, Chapter.week_id, week_id, position)
        for url in file_urls:
            await self._discard_blob(url)
        logger.info("Deleted chapter %s", chapter_id)

    async def continue_chapter(self, chapter_id: uuid.UUID) -> Chapter:
        """Copy a chapter into the following week of the same term.

        The copy is appended after the next week's existing chapters and
        points back at the source through ``original_chapter_id``.

        Raises:
            FormValidationError: If the chapter sits in the term's last week.
        """
        chapter = await get_or_raise(self.session, Chapter, chapter_id, "chapter")
        week = await get_or_raise(self.session, Week, chapter.week_id, "week")
        with store_errors("continue chapter", read=True):
            next_week = await self.session.scalar(
                select(Week).where(
                    Week.term_id == week.term_id,
                    Week.order_number == week.order_number + 1,
                )
            )
        if next_week is None:
            raise FormValidationError(
                "There is no following week in this term", field="week_id"
            )
        return await self.create_chapter(
            next_week.id,
            chapter.title,
            chapter.description,
            is_continuation=True,
            original_chapter_id=chapter.id,
        )

    # ------------------------------------------------------------------
    # Content (topics)
    # ------------------------------------------------------------------

    async def get_content_by_chapter(self, chapter_id: uuid.UUID) -> Sequence[Content]:
        with store_errors("fetch content", read=True):
            result = await self.session.scalars(
                select(Content)
                .where(Content.chapter_id == chapter_id)
                .order_by(Content.order_number)
            )
            return result.all()

    async def create_content(
        self,
        chapter_id: uuid.UUID,
        title: str,
        type: Any,
        *,
        content_id: uuid.UUID | None = None,
        description: str | None = None,
        file_url: str | None = None,
        file_size: int | None = None,
        duration: str | None = None,
        estimated_study_time: str | None = None,
        order_number: int | None = None,
        tags: Iterable[str] | None = None,
        quiz_data: dict[str, Any] | None = None,
        created_by: uuid.UUID | None = None,
        status: Any = ContentStatus.PUBLISHED,
    ) -> Content:
        """Insert a topic into a chapter.

        New topics are published with no views.  Tags are de-duplicated
        preserving first occurrence.

        Raises:
            EntityNotFoundError: If the chapter does not exist.
            OrderConflictError: If ``order_number`` is already taken.
            StoreError: If the insert fails.
        """
        title = self._require_title(title)
        await get_or_raise(self.session, Chapter, chapter_id, "chapter")
        with store_errors("create content"):
            if order_number is None:
                order_number = await next_order(self.session, Content, Content.chapter_id, chapter_id)
            content = Content(
                id=content_id or uuid.uuid4(),
                chapter_id=chapter_id,
                title=title,
                type=_plain(type),
                description=description,
                file_url=file_url,
                file_size=file_size,
                duration=duration,
                estimated_study_time=estimated_study_time,
                order_number=order_number,
                status=_plain(status),
                tags=list(dict.fromkeys(tags or [])),
                view_count=0,
                quiz_data=quiz_data,
                created_by=created_by,
                questions=[],
            )
            self.session.add(content)
            await self.session.flush()
        logger.info("Created %s content %s at position %d", content.type, content.id, order_number)
        return content

    async def update_content(self, content_id: uuid.UUID, fields: dict[str, Any]) -> Content:
        """Apply editable fields to a topic.

        Position is not editable here; use :meth:`move_content`.  Retyping a
        quiz to any other type deletes its questions and clears ``quiz_data``,
        then drops the question images best-effort.
        """
        content = await get_or_raise(self.session, Content, content_id, "content")
        if "title" in fields:
            fields["title"] = self._require_title(fields["title"])
        new_type = _plain(fields.get("type"))
        leaves_quiz = content.type == ContentType.QUIZ.value and new_type not in (
            None,
            ContentType.QUIZ.value,
        )
        image_urls: list[str] = []
        with store_errors("update content"):
            for key, value in fields.items():
                if key not in _CONTENT_FIELDS:
                    continue
                if key == "tags" and value is not None:
                    value = list(dict.fromkeys(value))
                setattr(content, key, _plain(value))
            if leaves_quiz:
                result = await self.session.scalars(
                    select(QuizQuestion).where(QuizQuestion.content_id == content.id)
                )
                for question in result.all():
                    image_urls.extend(question.image_urls())
                    await self.session.delete(question)
                content.quiz_data = None
            await self.session.flush()
            await self.session.refresh(content)
        if leaves_quiz:
            logger.info("Content %s is no longer a quiz; removed its questions", content_id)
        for url in image_urls:
            await self._discard_blob(url, "quiz_images")
        return content

    async def delete_content(self, content_id: uuid.UUID) -> None:
        """Delete a topic, compact its siblings, then drop its stored file.

        The file is removed best-effort after the row: a storage failure is
        logged and never undoes the record deletion.
        """
        content = await get_or_raise(self.session, Content, content_id, "content")
        chapter_id, position, file_url = content.chapter_id, content.order_number, content.file_url
        with store_errors("delete content"):
            await self.session.delete(content)
            await self.session.flush()
            await compact_order(self.session, Content, Content.chapter_id, chapter_id, position)
        logger.info("Deleted content %s", content_id)
        await self._discard_blob(file_url)

    async def move_content(self, content_id: uuid.UUID, direction: str) -> Content:
        """Swap a topic with its neighbour above (``up``) or below (``down``).

        Moving the first topic up or the last topic down changes nothing.
        """
        content = await get_or_raise(self.session, Content, content_id, "content")
        siblings = list(await self.get_content_by_chapter(content.chapter_id))
        index = next(i for i, c in enumerate(siblings) if c.id == content.id)
        target = index - 1 if direction == "up" else index + 1
        if target < 0 or target >= len(siblings):
            return content

        other = siblings[target]
        mine, theirs = content.order_number, other.order_number
        with store_errors("move content"):
            # Park at 0 so the unique (chapter_id, order_number) pair never collides.
            content.order_number = 0
            await self.session.flush()
            other.order_number = mine
            await self.session.flush()
            content.order_number = theirs
            await self.session.flush()
            await self.session.refresh(content)
        logger.info("Moved content %s %s to position %d", content_id, direction, theirs)
        return content
