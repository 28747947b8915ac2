"""Quiz question and attempt routes.

Provides:
    GET    /content/{content_id}/questions        — Questions of a quiz topic.
    POST   /content/{content_id}/questions        — Add a question.
    POST   /content/{content_id}/questions/import — Bulk import loose question JSON.
    PATCH  /questions/{question_id}               — Edit a question.
    DELETE /questions/{question_id}               — Delete a question and its images.
    POST   /content/{content_id}/attempts         — Record a finished attempt.
    GET    /content/{content_id}/attempts         — A user's attempts (``user_id`` query).
    GET    /content/{content_id}/statistics       — Question / attempt statistics.
    GET    /content/{content_id}/leaderboard      — Best attempts.
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Query, status

from curriculum_admin.api.dependencies import AdminDep, QuizDep
from curriculum_admin.schemas.content import (
    AttemptCreate,
    AttemptRead,
    LeaderboardEntry,
    QuestionImportRequest,
    QuizQuestionCreate,
    QuizQuestionRead,
    QuizQuestionUpdate,
    QuizStatistics,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["quizzes"])


@router.get(
    "/content/{content_id}/questions",
    response_model=list[QuizQuestionRead],
    summary="List quiz questions",
)
async def list_questions(content_id: uuid.UUID, quizzes: QuizDep, _: AdminDep) -> list[QuizQuestionRead]:
    return [QuizQuestionRead.model_validate(q) for q in await quizzes.get_questions(content_id)]


@router.post(
    "/content/{content_id}/questions",
    response_model=QuizQuestionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a quiz question",
)
async def create_question(
    content_id: uuid.UUID, body: QuizQuestionCreate, quizzes: QuizDep, _: AdminDep
) -> QuizQuestionRead:
    question = await quizzes.create_question(content_id, body.model_dump())
    return QuizQuestionRead.model_validate(question)


@router.post(
    "/content/{content_id}/questions/import",
    response_model=list[QuizQuestionRead],
    status_code=status.HTTP_201_CREATED,
    summary="Import questions from loosely structured JSON",
)
async def import_questions(
    content_id: uuid.UUID, body: QuestionImportRequest, quizzes: QuizDep, _: AdminDep
) -> list[QuizQuestionRead]:
    questions = await quizzes.import_questions(content_id, body.questions)
    logger.info("Imported %d questions into %s", len(questions), content_id)
    return [QuizQuestionRead.model_validate(q) for q in questions]


@router.patch(
    "/questions/{question_id}", response_model=QuizQuestionRead, summary="Edit a quiz question"
)
async def update_question(
    question_id: uuid.UUID, body: QuizQuestionUpdate, quizzes: QuizDep, _: AdminDep
) -> QuizQuestionRead:
    question = await quizzes.update_question(question_id, body.model_dump(exclude_unset=True))
    return QuizQuestionRead.model_validate(question)


@router.delete(
    "/questions/{question_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a quiz question",
)
async def delete_question(question_id: uuid.UUID, quizzes: QuizDep, _: AdminDep) -> None:
    await quizzes.delete_question(question_id)


# ---------------------------------------------------------------------------
# Attempts and reporting
# ---------------------------------------------------------------------------


@router.post(
    "/content/{content_id}/attempts",
    response_model=AttemptRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record a quiz attempt",
)
async def submit_attempt(
    content_id: uuid.UUID, body: AttemptCreate, quizzes: QuizDep, _: AdminDep
) -> AttemptRead:
    attempt = await quizzes.submit_attempt(content_id, body.model_dump())
    return AttemptRead.model_validate(attempt)


@router.get(
    "/content/{content_id}/attempts",
    response_model=list[AttemptRead],
    summary="A user's attempts, newest first",
)
async def list_attempts(
    content_id: uuid.UUID,
    user_id: Annotated[uuid.UUID, Query()],
    quizzes: QuizDep,
    _: AdminDep,
) -> list[AttemptRead]:
    attempts = await quizzes.get_user_attempts(content_id, user_id)
    return [AttemptRead.model_validate(a) for a in attempts]


@router.get(
    "/content/{content_id}/statistics", response_model=QuizStatistics, summary="Quiz statistics"
)
async def quiz_statistics(content_id: uuid.UUID, quizzes: QuizDep, _: AdminDep) -> QuizStatistics:
    return QuizStatistics(**await quizzes.get_statistics(content_id))


@router.get(
    "/content/{content_id}/leaderboard",
    response_model=list[LeaderboardEntry],
    summary="Quiz leaderboard",
)
async def leaderboard(
    content_id: uuid.UUID,
    quizzes: QuizDep,
    _: AdminDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> list[LeaderboardEntry]:
    return [LeaderboardEntry(**row) for row in await quizzes.get_leaderboard(content_id, limit)]
