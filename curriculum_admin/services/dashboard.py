"""Aggregations behind the content and subject list screens.

Everything here is a pure function over already-loaded subject trees, so the
screens cost one :meth:`HierarchyRepository.get_subjects` call.
"""

from __future__ import annotations

from typing import Any, Iterable

from curriculum_admin.schemas.dashboard import ContentRow, ContentStats, SubjectRow, SubjectStats

ALL = "all"


def _matches(value: str | None, wanted: str | None) -> bool:
    return not wanted or wanted == ALL or value == wanted


def _contains(haystack: str | None, needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


# ---------------------------------------------------------------------------
# Content screen
# ---------------------------------------------------------------------------


def flatten_content(subjects: Iterable[Any]) -> list[ContentRow]:
    """Walk every subject tree and label each topic with where it lives."""
    rows = []
    for subject in subjects:
        for term in subject.terms:
            for week in term.weeks:
                for chapter in week.chapters:
                    for item in chapter.content:
                        rows.append(
                            ContentRow(
                                id=item.id,
                                title=item.title,
                                type=item.type,
                                status=item.status,
                                view_count=item.view_count or 0,
                                duration=item.duration,
                                estimated_study_time=item.estimated_study_time,
                                subject=subject.name,
                                level=subject.level,
                                exam_board=subject.exam_board,
                                chapter=chapter.title,
                                week=week.title,
                                term=term.title,
                                updated_at=getattr(item, "updated_at", None),
                            )
                        )
    return rows


def filter_content(
    rows: Iterable[ContentRow],
    search: str = "",
    content_type: str | None = ALL,
    status: str | None = ALL,
) -> list[ContentRow]:
    """Keep rows whose title or subject contains ``search`` (case-insensitive)
    and whose type and status match; ``"all"`` disables a filter."""
    needle = (search or "").strip().lower()
    return [
        row
        for row in rows
        if (not needle or _contains(row.title, needle) or _contains(row.subject, needle))
        and _matches(row.type, content_type)
        and _matches(row.status, status)
    ]


def content_stats(rows: Iterable[ContentRow]) -> ContentStats:
    rows = list(rows)
    return ContentStats(
        total=len(rows),
        published=sum(1 for r in rows if r.status == "published"),
        review=sum(1 for r in rows if r.status == "review"),
        draft=sum(1 for r in rows if r.status == "draft"),
    )


# ---------------------------------------------------------------------------
# Subject screen
# ---------------------------------------------------------------------------


def subject_row(subject: Any) -> SubjectRow:
    weeks = [week for term in subject.terms for week in term.weeks]
    content_count = sum(len(ch.content) for week in weeks for ch in week.chapters)
    return SubjectRow(
        id=subject.id,
        name=subject.name,
        description=subject.description,
        level=subject.level,
        exam_board=subject.exam_board,
        term_count=len(subject.terms),
        week_count=len(weeks),
        content_count=content_count,
        teacher_count=len(subject.teachers),
        enrolled_students=subject.enrolled_students or 0,
    )


def filter_subjects(
    subjects: Iterable[Any],
    search: str = "",
    level: str | None = ALL,
    exam_board: str | None = ALL,
) -> list[Any]:
    """Keep subjects whose name or description contains ``search``."""
    needle = (search or "").strip().lower()
    return [
        s
        for s in subjects
        if (not needle or _contains(s.name, needle) or _contains(s.description, needle))
        and _matches(s.level, level)
        and _matches(s.exam_board, exam_board)
    ]


def subject_stats(rows: Iterable[SubjectRow], completion_rates: Iterable[float] = ()) -> SubjectStats:
    """Totals over the subject rows, computed from stored data."""
    rows = list(rows)
    rates = [float(r) for r in completion_rates]
    return SubjectStats(
        total_subjects=len(rows),
        total_content_items=sum(r.content_count for r in rows),
        total_teachers=sum(r.teacher_count for r in rows),
        total_enrollments=sum(r.enrolled_students for r in rows),
        avg_completion_rate=round(sum(rates) / len(rates), 1) if rates else 0.0,
    )
