"""Content (topic) API routes.

Provides:
    POST   /content                       — Add a topic (multipart form).
    PATCH  /content/{content_id}          — Edit a topic.
    DELETE /content/{content_id}          — Delete a topic and its stored file.
    POST   /content/{content_id}/move     — Swap with the neighbour above / below.

``POST /content`` takes a multipart body: a ``payload`` part holding the
:class:`AddContentPayload` JSON, an optional ``file`` part, and any number of
``images`` parts.  Question drafts refer to images by their filename.
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile, status
from pydantic import ValidationError

from curriculum_admin.api.dependencies import AdminDep, ContentFlowDep, HierarchyDep
from curriculum_admin.exceptions import FormValidationError
from curriculum_admin.models.enums import ContentType, QuizMethod
from curriculum_admin.schemas.content import (
    AddContentPayload,
    AddContentResponse,
    ContentUpdate,
    MoveRequest,
    QuestionDraftIn,
)
from curriculum_admin.schemas.hierarchy import ContentRead
from curriculum_admin.services.asset_uploader import IncomingFile
from curriculum_admin.services.content_flow import ContentForm, ContentFormMode
from curriculum_admin.services.quiz_authoring import (
    AnswerDraft,
    QuestionDraft,
    QuizAuthoringSession,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/content", tags=["content"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _incoming(upload: UploadFile) -> IncomingFile:
    return IncomingFile(
        filename=upload.filename or "",
        size=upload.size or 0,
        stream=upload.file,
        content_type=upload.content_type or "application/octet-stream",
    )


def _image(name: str | None, images: dict[str, IncomingFile]) -> IncomingFile | None:
    if not name:
        return None
    try:
        return images[name]
    except KeyError:
        raise FormValidationError(f"No uploaded image named {name!r}", field="images") from None


def _draft(item: QuestionDraftIn, images: dict[str, IncomingFile]) -> QuestionDraft:
    draft = QuestionDraft(
        text=item.text,
        image=_image(item.image, images),
        correct_answer=item.correct_answer.value,
        explanation=item.explanation,
        points=item.points,
    )
    for label, answer in item.answers.items():
        draft.answers[label.value] = AnswerDraft(answer.text, _image(answer.image, images))
    return draft


def _parse_payload(raw: str) -> AddContentPayload:
    try:
        return AddContentPayload.model_validate_json(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise FormValidationError(first.get("msg", "Invalid payload"), field=field) from exc


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=AddContentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a topic, uploading its file and quiz images",
)
async def add_content(
    flow: ContentFlowDep,
    admin: AdminDep,
    payload: Annotated[str, Form()],
    file: Annotated[UploadFile | None, File()] = None,
    images: Annotated[list[UploadFile] | None, File()] = None,
) -> AddContentResponse:
    body = _parse_payload(payload)
    image_files = {img.filename: _incoming(img) for img in images or [] if img.filename}

    quiz = None
    if body.type is ContentType.QUIZ:
        quiz = QuizAuthoringSession(body.quiz_method, body.ai_prompt)
        for item in body.questions if body.quiz_method is QuizMethod.MANUAL else []:
            quiz.add_draft(_draft(item, image_files))

    form = ContentForm(
        title=body.title,
        chapter_id=body.chapter_id,
        description=body.description,
        duration=body.duration,
        estimated_study_time=body.estimated_study_time,
        tags=body.tags,
        order_number=body.order_number,
        file=_incoming(file) if file is not None and file.filename else None,
        quiz=quiz,
    )
    mode = ContentFormMode(kind=body.type, quiz_method=body.quiz_method)
    result = await flow.submit(mode, form, created_by=admin.id)
    return AddContentResponse(
        content=ContentRead.model_validate(result.content),
        questions_created=len(result.questions),
        warnings=result.warnings,
    )


@router.patch("/{content_id}", response_model=ContentRead, summary="Edit a topic")
async def update_content(
    content_id: uuid.UUID, body: ContentUpdate, repo: HierarchyDep, _: AdminDep
) -> ContentRead:
    content = await repo.update_content(content_id, body.model_dump(exclude_unset=True))
    return ContentRead.model_validate(content)


@router.delete(
    "/{content_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a topic"
)
async def delete_content(content_id: uuid.UUID, repo: HierarchyDep, _: AdminDep) -> None:
    await repo.delete_content(content_id)


@router.post("/{content_id}/move", response_model=ContentRead, summary="Reorder a topic")
async def move_content(
    content_id: uuid.UUID, body: MoveRequest, repo: HierarchyDep, _: AdminDep
) -> ContentRead:
    return ContentRead.model_validate(await repo.move_content(content_id, body.direction))
