"""Unit tests for in-memory quiz authoring and question import."""

from __future__ import annotations

import uuid

import pytest

from curriculum_admin.exceptions import DraftValidationError, FileValidationError
from curriculum_admin.models.enums import QuizMethod
from curriculum_admin.services.asset_uploader import IncomingFile
from curriculum_admin.services.quiz_authoring import (
    INCOMPLETE_DRAFT_MESSAGE,
    AnswerDraft,
    QuestionDraft,
    QuizAuthoringSession,
    questions_from_data,
)


def _draft(text: str = "Which organelle makes ATP?", points: int = 1, **answers: str) -> QuestionDraft:
    texts = {"A": "Nucleus", "B": "Mitochondrion", "C": "", "D": ""}
    texts.update(answers)
    return QuestionDraft(
        text=text,
        answers={k: AnswerDraft(v) for k, v in texts.items()},
        correct_answer="B",
        points=points,
    )


def _png(name: str = "cell.png") -> IncomingFile:
    return IncomingFile.from_bytes(name, b"\x89PNG", "image/png")


# ---------------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------------


def test_complete_draft_needs_text_and_first_two_answers():
    assert _draft().is_complete()
    assert not _draft(text="   ").is_complete()
    assert not _draft(B="  ").is_complete()


def test_images_yields_question_image_then_answers_in_order():
    draft = _draft()
    draft.image = _png("q.png")
    draft.answers["C"].image = _png("c.png")
    draft.answers["A"].image = _png("a.png")

    assert [key for key, _ in draft.images()] == [None, "A", "C"]
    assert draft.has_images()


# ---------------------------------------------------------------------------
# Session editing
# ---------------------------------------------------------------------------


def test_add_question_rejects_incomplete_draft_and_keeps_list():
    session = QuizAuthoringSession(QuizMethod.MANUAL)
    session.current = _draft(A="")

    assert session.add_question() is False
    assert session.error == INCOMPLETE_DRAFT_MESSAGE
    assert session.questions == []


def test_add_question_appends_and_starts_fresh_draft():
    session = QuizAuthoringSession("manual")
    draft = _draft()
    session.current = draft

    assert session.add_question() is True
    assert session.questions == [draft]
    assert session.current is not draft
    assert session.current.text == ""
    assert session.error is None


def test_add_draft_raises_on_incomplete_draft():
    session = QuizAuthoringSession(QuizMethod.MANUAL)

    with pytest.raises(DraftValidationError) as exc_info:
        session.add_draft(_draft(text=""))

    assert exc_info.value.field == "questions"


def test_remove_question_by_draft_id():
    session = QuizAuthoringSession(QuizMethod.MANUAL)
    first, second = session.add_draft(_draft()), session.add_draft(_draft("Second?"))

    session.remove_question(first.id)

    assert session.questions == [second]


def test_set_answer_image_rejects_unknown_answer():
    session = QuizAuthoringSession(QuizMethod.MANUAL)

    with pytest.raises(DraftValidationError):
        session.set_answer_image("E", _png())


def test_set_question_image_validates_image_type():
    session = QuizAuthoringSession(QuizMethod.MANUAL)

    with pytest.raises(FileValidationError):
        session.set_question_image(IncomingFile.from_bytes("cell.bmp", b"BM", "image/bmp"))

    assert session.current.image is None


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def test_build_quiz_data_per_method():
    ai = QuizAuthoringSession(QuizMethod.AI, ai_prompt="Ten questions on cells")
    upload = QuizAuthoringSession(QuizMethod.UPLOAD)

    assert ai.build_quiz_data() == {"method": "ai", "prompt": "Ten questions on cells", "generated": False}
    assert upload.build_quiz_data("http://storage.test/content-files/quiz/q.json") == {
        "method": "upload",
        "fileUrl": "http://storage.test/content-files/quiz/q.json",
    }


def test_build_quiz_data_for_manual_quiz_sums_points():
    session = QuizAuthoringSession(QuizMethod.MANUAL)
    session.add_draft(_draft(points=2))
    with_image = _draft(points=3)
    with_image.image = _png()
    session.add_draft(with_image)

    assert session.build_quiz_data() == {
        "method": "manual",
        "totalQuestions": 2,
        "totalPoints": 5,
        "hasImages": True,
    }


def test_to_question_records_numbers_from_one_and_blanks_optional_answers():
    session = QuizAuthoringSession(QuizMethod.MANUAL)
    session.add_draft(_draft())
    session.add_draft(_draft("What stores DNA?", C=" Ribosome "))
    content_id = uuid.uuid4()

    records = session.to_question_records(content_id)

    assert [r["order_number"] for r in records] == [1, 2]
    assert records[0]["content_id"] == content_id
    assert records[0]["answer_c"] is None
    assert records[1]["answer_c"] == "Ribosome"
    assert records[1]["correct_answer"] == "B"


# ---------------------------------------------------------------------------
# questions_from_data
# ---------------------------------------------------------------------------


def test_questions_from_data_accepts_options_lists_and_answer_maps():
    content_id = uuid.uuid4()
    raw = [
        {"question": "2 + 2?", "options": ["3", "4", "5"], "correct": "b"},
        {"text": "Capital of Zimbabwe?", "answers": {"A": "Harare", "B": "Bulawayo"}, "points": 2},
    ]

    records = questions_from_data(content_id, raw)

    assert records[0]["question_text"] == "2 + 2?"
    assert records[0]["answer_c"] == "5"
    assert records[0]["answer_d"] is None
    assert records[0]["correct_answer"] == "B"
    assert records[1]["correct_answer"] == "A"
    assert records[1]["points"] == 2
    assert [r["order_number"] for r in records] == [1, 2]


def test_questions_from_data_requires_two_answers():
    with pytest.raises(DraftValidationError, match="Question 1"):
        questions_from_data(uuid.uuid4(), [{"text": "Lonely?", "options": ["yes"]}])


def test_questions_from_data_rejects_unknown_correct_answer():
    with pytest.raises(DraftValidationError, match="correct answer"):
        questions_from_data(uuid.uuid4(), [{"text": "Q", "options": ["a", "b"], "correct": "E"}])


@pytest.mark.parametrize(
    "options",
    [{"A": "yes", "B": "no"}, "yes,no", 42],
    ids=["mapping", "string", "number"],
)
def test_questions_from_data_ignores_options_that_are_not_a_list(options):
    with pytest.raises(DraftValidationError, match="Question 1"):
        questions_from_data(uuid.uuid4(), [{"text": "Q", "options": options}])


def test_questions_from_data_falls_back_to_answers_when_options_malformed():
    raw = [{"text": "Q", "options": {"x": 1}, "answers": {"A": "yes", "B": "no"}}]

    records = questions_from_data(uuid.uuid4(), raw)

    assert (records[0]["answer_a"], records[0]["answer_b"]) == ("yes", "no")


@pytest.mark.parametrize("points", ["two", [1], {"n": 1}, -3])
def test_questions_from_data_rejects_invalid_points(points):
    raw = [{"text": "Q", "options": ["a", "b"]}, {"text": "R", "options": ["a", "b"], "points": points}]

    with pytest.raises(DraftValidationError, match="Question 2: points") as exc_info:
        questions_from_data(uuid.uuid4(), raw)

    assert exc_info.value.field == "questions"


def test_questions_from_data_accepts_numeric_string_points():
    records = questions_from_data(uuid.uuid4(), [{"text": "Q", "options": ["a", "b"], "points": "3"}])

    assert records[0]["points"] == 3
