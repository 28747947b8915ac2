"""Unit tests for the dashboard aggregation helpers."""

from __future__ import annotations

from curriculum_admin.services.dashboard import (
    ALL,
    content_stats,
    filter_content,
    filter_subjects,
    flatten_content,
    subject_row,
    subject_stats,
)
from tests.fixtures.sample_hierarchy import add_chapter, add_content, add_teacher, make_subject


def test_flatten_content_labels_each_topic_with_its_location(sample_subject):
    rows = flatten_content([sample_subject])

    assert [r.title for r in rows] == ["Introduction to Cells", "Cell Organelles Notes", "Cells Quiz"]
    first = rows[0]
    assert first.subject == "Biology"
    assert first.level == "O-Level"
    assert first.term == "Term 1"
    assert first.week == "Week 1"
    assert first.chapter == "Cell Structure"


def test_filter_content_search_matches_title_or_subject_case_insensitively(sample_subject):
    rows = flatten_content([sample_subject])

    assert len(filter_content(rows, search="BIOLOGY")) == 3
    assert [r.title for r in filter_content(rows, search="quiz")] == ["Cells Quiz"]
    assert filter_content(rows, search="chemistry") == []


def test_filter_content_by_type_and_status(sample_subject):
    rows = flatten_content([sample_subject])

    assert [r.type for r in filter_content(rows, content_type="pdf")] == ["pdf"]
    assert [r.status for r in filter_content(rows, status="review")] == ["review"]
    assert filter_content(rows, content_type="video", status="draft") == []
    assert len(filter_content(rows, content_type=ALL, status=ALL)) == 3


def test_content_stats_counts_statuses(sample_subject):
    stats = content_stats(flatten_content([sample_subject]))

    assert (stats.total, stats.published, stats.review, stats.draft) == (3, 1, 1, 1)


def test_subject_row_counts_tree(sample_subject):
    add_teacher(sample_subject)

    row = subject_row(sample_subject)

    assert row.term_count == 3
    assert row.week_count == 39
    assert row.content_count == 3
    assert row.teacher_count == 1


def test_filter_subjects_by_level_board_and_description():
    physics = make_subject("Physics", "A-Level", "Cambridge", description="Forces and motion")
    biology = make_subject("Biology", "O-Level", "ZIMSEC")

    assert filter_subjects([physics, biology], level="A-Level") == [physics]
    assert filter_subjects([physics, biology], exam_board="ZIMSEC") == [biology]
    assert filter_subjects([physics, biology], search="motion") == [physics]
    assert filter_subjects([physics, biology]) == [physics, biology]


def test_subject_stats_totals_and_average_completion():
    maths = make_subject("Mathematics", enrolled_students=40)
    chapter = add_chapter(maths.terms[0].weeks[0])
    add_content(chapter)
    add_content(chapter, "Fractions Quiz", "quiz")
    add_teacher(maths)
    english = make_subject("English", enrolled_students=10)

    stats = subject_stats([subject_row(maths), subject_row(english)], [80.0, 65.0])

    assert stats.total_subjects == 2
    assert stats.total_content_items == 2
    assert stats.total_teachers == 1
    assert stats.total_enrollments == 50
    assert stats.avg_completion_rate == 72.5


def test_subject_stats_with_no_subjects():
    stats = subject_stats([])

    assert stats.total_subjects == 0
    assert stats.avg_completion_rate == 0.0
