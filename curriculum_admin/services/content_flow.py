"""The add-content form flow shared by every topic kind.

One :class:`ContentFormMode` describes which variant of the form is open
(video, pdf, notes, or a quiz with its authoring method, optionally pinned to
a chapter).  :meth:`ContentFormFlow.submit` runs the same pipeline for all of
them:

    1. validate the form (no I/O when this fails)
    2. allocate the topic id and upload the attached file
    3. insert the topic
    4. for manual quizzes, insert the questions, then upload their images one
       at a time and patch the question rows and ``quiz_data``

Uploads made before a later step fails are deleted again.  Image uploads in
step 4 are the exception: each failure is logged, reported as a warning and
skipped.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from curriculum_admin.exceptions import (
    FileValidationError,
    FormValidationError,
    StorageError,
    SubmissionCancelled,
)
from curriculum_admin.models import Content, QuizQuestion
from curriculum_admin.models.enums import ContentType, QuizMethod
from curriculum_admin.services.asset_uploader import (
    AssetUploader,
    IncomingFile,
    UploadResult,
    validate_for_kind,
)
from curriculum_admin.services.hierarchy_repository import HierarchyRepository
from curriculum_admin.services.quiz_authoring import QuizAuthoringSession
from curriculum_admin.services.quiz_repository import QuizRepository

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Form description
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContentFormMode:
    """Which variant of the add-content form is open.

    Attributes:
        kind: Content kind being created.
        context: Chapter the form was opened from; None when the user picks
            the chapter in the form itself.
        quiz_method: Authoring method, used only when ``kind`` is quiz.
    """

    kind: ContentType
    context: uuid.UUID | None = None
    quiz_method: QuizMethod = QuizMethod.AI

    @property
    def is_quiz(self) -> bool:
        return self.kind is ContentType.QUIZ

    @property
    def requires_file(self) -> bool:
        return self.is_quiz and self.quiz_method is QuizMethod.UPLOAD


@dataclass
class ContentForm:
    """Values entered in the add-content form."""

    title: str = ""
    chapter_id: uuid.UUID | None = None
    description: str | None = None
    duration: str | None = None
    estimated_study_time: str | None = None
    tags: list[str] = field(default_factory=list)
    order_number: int | None = None
    file: IncomingFile | None = None
    quiz: QuizAuthoringSession | None = None


@dataclass
class SubmissionResult:
    content: Content
    questions: list[QuizQuestion] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class CancelToken:
    """Marks the end of a form's lifetime.

    The flow checks the token between steps; once cancelled, the submission
    stops before starting its next step.
    """

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def check(self, step: str) -> None:
        if self._cancelled:
            raise SubmissionCancelled(f"Submission cancelled before {step}")


def _image_column(answer_key: str | None) -> str:
    if answer_key is None:
        return "question_image_url"
    return f"answer_{answer_key.lower()}_image_url"


# ---------------------------------------------------------------------------
# Flow
# ---------------------------------------------------------------------------


class ContentFormFlow:
    """Run an add-content submission end to end.

    Args:
        repository: Hierarchy repository bound to the request session.
        quizzes: Quiz repository bound to the same session.
        uploader: Asset uploader for files and quiz images.
    """

    def __init__(
        self,
        repository: HierarchyRepository,
        quizzes: QuizRepository,
        uploader: AssetUploader,
    ) -> None:
        self.repository = repository
        self.quizzes = quizzes
        self.uploader = uploader

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, mode: ContentFormMode, form: ContentForm) -> uuid.UUID:
        """Check the form without touching the store or object storage.

        Returns:
            The chapter the topic will be created in.

        Raises:
            FormValidationError: If a required field is missing.
            FileValidationError: If the attached file is not acceptable.
        """
        if not form.title.strip():
            raise FormValidationError("Title is required", field="title")

        chapter_id = form.chapter_id or mode.context
        if chapter_id is None:
            raise FormValidationError("Please select a chapter", field="chapter_id")

        if form.file is not None:
            result = validate_for_kind(form.file, mode.kind.value)
            if not result.valid:
                raise FileValidationError(result.error or "Invalid file")
        elif mode.requires_file:
            raise FormValidationError("Please choose a quiz file to upload", field="file")

        if mode.is_quiz and mode.quiz_method is QuizMethod.MANUAL:
            if form.quiz is None or not form.quiz.questions:
                raise FormValidationError("Please add at least one question", field="questions")
        return chapter_id

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(
        self,
        mode: ContentFormMode,
        form: ContentForm,
        *,
        created_by: uuid.UUID | None = None,
        cancel: CancelToken | None = None,
    ) -> SubmissionResult:
        """Validate, upload and persist one topic.

        Raises:
            FormValidationError: Before any I/O, if the form is invalid.
            SubmissionCancelled: If ``cancel`` fires between steps.
            StorageError: If the main file upload fails.
            StoreError: If a row cannot be written.
        """
        cancel = cancel or CancelToken()
        chapter_id = self.validate(mode, form)
        quiz = form.quiz if mode.is_quiz else None
        if quiz is not None:
            quiz.method = mode.quiz_method

        cancel.check("upload")
        content_id = uuid.uuid4()
        uploads: list[UploadResult] = []
        if form.file is not None:
            uploads.append(
                await self.uploader.upload_content_file(form.file, str(content_id), mode.kind.value)
            )
        file_upload = uploads[0] if uploads else None

        try:
            cancel.check("saving the topic")
            quiz_data = quiz.build_quiz_data(file_upload.url if file_upload else None) if quiz else None
            content = await self.repository.create_content(
                chapter_id,
                form.title,
                mode.kind,
                content_id=content_id,
                description=form.description,
                file_url=file_upload.url if file_upload else None,
                file_size=file_upload.size if file_upload else None,
                duration=form.duration,
                estimated_study_time=form.estimated_study_time,
                order_number=form.order_number,
                tags=form.tags,
                quiz_data=quiz_data,
                created_by=created_by,
            )
            result = SubmissionResult(content=content)

            if quiz is not None and mode.quiz_method is QuizMethod.MANUAL:
                await self._save_questions(content, quiz, quiz_data or {}, result, uploads, cancel)
        except Exception:
            for upload in uploads:
                await self.uploader.discard(upload)
            raise

        logger.info(
            "Added %s topic %s to chapter %s (%d questions, %d warnings)",
            mode.kind.value,
            content.id,
            chapter_id,
            len(result.questions),
            len(result.warnings),
        )
        return result

    async def _save_questions(
        self,
        content: Content,
        quiz: QuizAuthoringSession,
        quiz_data: dict[str, Any],
        result: SubmissionResult,
        uploads: list[UploadResult],
        cancel: CancelToken,
    ) -> None:
        cancel.check("saving questions")
        result.questions = await self.quizzes.create_questions(
            quiz.to_question_records(content.id)
        )

        uploaded_images = 0
        for draft, question in zip(quiz.questions, result.questions):
            urls: dict[str, str] = {}
            for answer_key, image in draft.images():
                cancel.check("uploading quiz images")
                try:
                    upload = await self.uploader.upload_quiz_image(
                        image, str(content.id), question.order_number, answer_key
                    )
                except (FileValidationError, StorageError) as exc:
                    label = f"answer {answer_key}" if answer_key else "question"
                    message = f"Question {question.order_number} {label} image was not saved: {exc}"
                    logger.warning(message)
                    result.warnings.append(message)
                    continue
                uploads.append(upload)
                urls[_image_column(answer_key)] = upload.url
            if urls:
                await self.quizzes.update_question(question.id, urls)
                uploaded_images += len(urls)

        quiz_data = {**quiz_data, "hasImages": uploaded_images > 0}
        result.content = await self.repository.update_content(content.id, {"quiz_data": quiz_data})
