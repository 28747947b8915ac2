"""Unit tests for QuizRepository against a mocked AsyncSession."""

from __future__ import annotations

import uuid
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from curriculum_admin.exceptions import FormValidationError, StorageError
from curriculum_admin.models import QuizQuestion
from curriculum_admin.models.enums import AnswerLabel
from curriculum_admin.services.quiz_repository import QuizRepository
from tests.fixtures.sample_hierarchy import add_chapter, add_content, make_subject


@pytest.fixture
def quiz():
    chapter = add_chapter(make_subject().terms[0].weeks[0])
    add_content(chapter, "Warm-up video", "video")
    return add_content(chapter, "Cells Quiz", "quiz")


def _question(content_id, order_number: int, **images: str) -> QuizQuestion:
    return QuizQuestion(
        id=uuid.uuid4(),
        content_id=content_id,
        question_text=f"Question {order_number}",
        answer_a="Yes",
        answer_b="No",
        correct_answer="A",
        order_number=order_number,
        points=1,
        **images,
    )


async def test_questions_only_attach_to_quiz_content(mock_db_session, quiz):
    video = quiz.chapter.content[0]
    mock_db_session.get.return_value = video

    with pytest.raises(FormValidationError, match="Only quiz content"):
        await QuizRepository(mock_db_session).create_question(video.id, {"question_text": "Q"})

    mock_db_session.add.assert_not_called()


async def test_create_question_takes_next_position(mock_db_session, quiz):
    mock_db_session.get.return_value = quiz
    mock_db_session.scalar.return_value = 2

    question = await QuizRepository(mock_db_session).create_question(
        quiz.id,
        {
            "question_text": "Which organelle makes ATP?",
            "answer_a": "Nucleus",
            "answer_b": "Mitochondrion",
            "correct_answer": AnswerLabel.B,
            "order_number": None,
            "unknown": "dropped",
        },
    )

    assert question.order_number == 3
    assert question.correct_answer == "B"
    assert question.content_id == quiz.id
    assert not hasattr(question, "unknown")


async def test_import_questions_appends_after_existing(mock_db_session, quiz):
    mock_db_session.get.return_value = quiz
    mock_db_session.scalar.return_value = 3
    raw = [
        {"text": "A?", "options": ["x", "y"]},
        {"text": "B?", "options": ["x", "y"], "correct": "B"},
    ]

    questions = await QuizRepository(mock_db_session).import_questions(quiz.id, raw)

    assert [q.order_number for q in questions] == [4, 5]
    mock_db_session.add_all.assert_called_once_with(questions)


async def test_update_question_keeps_position(mock_db_session, quiz):
    question = _question(quiz.id, 2)
    mock_db_session.get.return_value = question

    updated = await QuizRepository(mock_db_session).update_question(
        question.id, {"question_text": "Reworded?", "order_number": 1, "correct_answer": AnswerLabel.B}
    )

    assert updated.question_text == "Reworded?"
    assert updated.correct_answer == "B"
    assert updated.order_number == 2


async def test_delete_question_compacts_and_ignores_image_failures(mock_db_session, quiz):
    doomed = _question(quiz.id, 1, question_image_url="http://storage.test/quiz-images/quiz-images/q1.png")
    later = _question(quiz.id, 2)
    uploader = MagicMock()
    uploader.delete_by_url = AsyncMock(side_effect=StorageError("Failed to delete file: 500"))
    mock_db_session.get.return_value = doomed
    mock_db_session.scalars.return_value.all.return_value = [later]

    await QuizRepository(mock_db_session, uploader).delete_question(doomed.id)

    mock_db_session.delete.assert_awaited_once_with(doomed)
    assert later.order_number == 1
    uploader.delete_by_url.assert_awaited_once_with(
        "http://storage.test/quiz-images/quiz-images/q1.png", "quiz_images"
    )


async def test_get_statistics(mock_db_session):
    result = MagicMock()
    result.one.return_value = (3, 5, 1)
    mock_db_session.execute.return_value = result
    mock_db_session.scalar.return_value = 42.5

    stats = await QuizRepository(mock_db_session).get_statistics(uuid.uuid4())

    assert stats == {
        "total_questions": 3,
        "total_points": 5,
        "has_images": True,
        "avg_completion_time": 42.5,
    }


async def test_get_leaderboard_falls_back_to_email(mock_db_session):
    finished = datetime(2024, 10, 1, 9, 0)
    result = MagicMock()
    result.all.return_value = [
        ("Rudo Ncube", "rudo@school.test", 9, 90.0, finished),
        (None, "anon@school.test", 8, 80.0, finished),
    ]
    mock_db_session.execute.return_value = result

    board = await QuizRepository(mock_db_session).get_leaderboard(uuid.uuid4(), limit=2)

    assert [e["user_name"] for e in board] == ["Rudo Ncube", "anon@school.test"]
    assert board[0]["percentage"] == 90.0
