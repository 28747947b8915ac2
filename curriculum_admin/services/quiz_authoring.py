"""In-memory authoring of multiple-choice quizzes.

A :class:`QuizAuthoringSession` collects question drafts while a quiz topic
is being created.  Nothing here touches the database or object storage; the
add-content flow turns the finished drafts into rows with
:meth:`QuizAuthoringSession.to_question_records` and uploads the attached
images itself.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterator

from curriculum_admin.exceptions import DraftValidationError, FileValidationError
from curriculum_admin.models.enums import AnswerLabel, QuizMethod
from curriculum_admin.services.asset_uploader import IncomingFile, validate_for_kind

logger = logging.getLogger(__name__)

ANSWER_KEYS: tuple[str, ...] = tuple(label.value for label in AnswerLabel)
REQUIRED_ANSWERS: tuple[str, ...] = ("A", "B")
INCOMPLETE_DRAFT_MESSAGE = "Please fill in the question text and at least two answers"


# ---------------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------------


@dataclass
class AnswerDraft:
    text: str = ""
    image: IncomingFile | None = None


def _blank_answers() -> dict[str, AnswerDraft]:
    return {key: AnswerDraft() for key in ANSWER_KEYS}


@dataclass
class QuestionDraft:
    """A question being written, before it is stored.

    Attributes:
        text: Question text.
        image: Optional image shown with the question.
        answers: Answer slots keyed ``A``..``D``; A and B are required.
        correct_answer: Key of the correct answer.
        explanation: Optional explanation shown after answering.
        points: Marks awarded for a correct answer.
        id: Draft identifier used to remove it from the list.
    """

    text: str = ""
    image: IncomingFile | None = None
    answers: dict[str, AnswerDraft] = field(default_factory=_blank_answers)
    correct_answer: str = "A"
    explanation: str | None = None
    points: int = 1
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def is_complete(self) -> bool:
        """True iff the text and answers A and B are non-empty after trimming."""
        if not self.text.strip():
            return False
        return all(self.answers.get(k, AnswerDraft()).text.strip() for k in REQUIRED_ANSWERS)

    def has_images(self) -> bool:
        return self.image is not None or any(a.image is not None for a in self.answers.values())

    def images(self) -> Iterator[tuple[str | None, IncomingFile]]:
        """Yield ``(answer_key, file)`` pairs, question image first then A..D."""
        if self.image is not None:
            yield None, self.image
        for key in ANSWER_KEYS:
            answer = self.answers.get(key)
            if answer is not None and answer.image is not None:
                yield key, answer.image


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class QuizAuthoringSession:
    """Collects question drafts for one quiz topic.

    Args:
        method: How the quiz is authored (``ai``, ``upload`` or ``manual``).
        ai_prompt: Prompt kept for later generation when ``method`` is ``ai``.
    """

    def __init__(self, method: QuizMethod | str = QuizMethod.AI, ai_prompt: str | None = None) -> None:
        self.method = QuizMethod(method)
        self.ai_prompt = ai_prompt or ""
        self.current = QuestionDraft()
        self.questions: list[QuestionDraft] = []
        self.error: str | None = None

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def add_question(self) -> bool:
        """Append the current draft to the list and start a fresh one.

        An incomplete draft is not appended; ``error`` is set instead and the
        list is left unchanged.

        Returns:
            True when the draft was appended.
        """
        if not self.current.is_complete():
            self.error = INCOMPLETE_DRAFT_MESSAGE
            return False
        self.questions.append(self.current)
        self.current = QuestionDraft()
        self.error = None
        return True

    def add_draft(self, draft: QuestionDraft) -> QuestionDraft:
        """Load ``draft`` as the current draft and append it.

        Raises:
            DraftValidationError: If the draft is incomplete.
        """
        self.current = draft
        if not self.add_question():
            raise DraftValidationError(self.error or INCOMPLETE_DRAFT_MESSAGE, field="questions")
        return draft

    def remove_question(self, draft_id: str) -> None:
        self.questions = [q for q in self.questions if q.id != draft_id]

    def set_question_image(self, file: IncomingFile | None) -> None:
        if file is not None:
            _check_image(file)
        self.current.image = file

    def set_answer_image(self, key: str, file: IncomingFile | None) -> None:
        if key not in ANSWER_KEYS:
            raise DraftValidationError(f"Unknown answer {key}", field="answers")
        if file is not None:
            _check_image(file)
        self.current.answers[key].image = file

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)

    @property
    def has_images(self) -> bool:
        return any(q.has_images() for q in self.questions)

    def build_quiz_data(self, file_url: str | None = None) -> dict[str, Any]:
        """Return the ``quiz_data`` payload stored on the quiz topic."""
        if self.method is QuizMethod.AI:
            return {"method": "ai", "prompt": self.ai_prompt, "generated": False}
        if self.method is QuizMethod.UPLOAD:
            return {"method": "upload", "fileUrl": file_url}
        return {
            "method": "manual",
            "totalQuestions": len(self.questions),
            "totalPoints": self.total_points,
            "hasImages": self.has_images,
        }

    def to_question_records(self, content_id: uuid.UUID) -> list[dict[str, Any]]:
        """Convert the drafts to ``quiz_questions`` rows numbered 1..N.

        Image URL columns are left empty; they are filled in after upload.
        """
        records = []
        for position, draft in enumerate(self.questions, start=1):
            answers = draft.answers
            records.append(
                {
                    "content_id": content_id,
                    "question_text": draft.text.strip(),
                    "answer_a": answers["A"].text.strip(),
                    "answer_b": answers["B"].text.strip(),
                    "answer_c": answers["C"].text.strip() or None,
                    "answer_d": answers["D"].text.strip() or None,
                    "correct_answer": draft.correct_answer,
                    "order_number": position,
                    "explanation": draft.explanation or None,
                    "points": draft.points,
                }
            )
        return records


def _check_image(file: IncomingFile) -> None:
    result = validate_for_kind(file, "image")
    if not result.valid:
        raise FileValidationError(result.error or "Invalid image", field="image")


# ---------------------------------------------------------------------------
# Import of loosely structured question lists
# ---------------------------------------------------------------------------


def questions_from_data(content_id: uuid.UUID, raw: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Normalise imported question dicts into ``quiz_questions`` rows.

    Accepts either ``text`` or ``question`` for the prompt, either an
    ``answers`` mapping (``A``..``D``) or an ``options`` list, and either
    ``correctAnswer`` or ``correct`` for the key (default ``A``).

    Raises:
        DraftValidationError: If an entry lacks its text or first two answers,
            names an unknown correct answer, or has invalid points.
    """
    records = []
    for index, item in enumerate(raw):
        answers = item.get("answers") or {}
        options = item.get("options")
        if not isinstance(options, list):
            options = []

        def pick(key: str, position: int) -> str | None:
            value = answers.get(key) if isinstance(answers, dict) else None
            if not value and position < len(options):
                value = options[position]
            return str(value).strip() if value else None

        text = str(item.get("text") or item.get("question") or "").strip()
        answer_a, answer_b = pick("A", 0), pick("B", 1)
        if not (text and answer_a and answer_b):
            raise DraftValidationError(
                f"Question {index + 1}: {INCOMPLETE_DRAFT_MESSAGE}", field="questions"
            )

        correct = str(item.get("correctAnswer") or item.get("correct") or "A").upper()
        if correct not in ANSWER_KEYS:
            raise DraftValidationError(
                f"Question {index + 1}: correct answer must be one of A, B, C, D",
                field="questions",
            )

        try:
            points = int(item.get("points") or 1)
        except (TypeError, ValueError):
            points = -1
        if points < 0:
            raise DraftValidationError(
                f"Question {index + 1}: points must be a whole number of zero or more",
                field="questions",
            )

        records.append(
            {
                "content_id": content_id,
                "question_text": text,
                "answer_a": answer_a,
                "answer_b": answer_b,
                "answer_c": pick("C", 2),
                "answer_d": pick("D", 3),
                "correct_answer": correct,
                "order_number": index + 1,
                "explanation": item.get("explanation") or None,
                "points": points,
            }
        )
    logger.debug("Normalised %d imported questions", len(records))
    return records
