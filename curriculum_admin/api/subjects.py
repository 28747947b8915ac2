"""Subject API routes.

Provides:
    GET    /subjects                     — Active subjects with their full tree.
    POST   /subjects                     — Create one subject per exam board.
    GET    /subjects/{subject_id}        — One subject with its full tree.
    PATCH  /subjects/{subject_id}        — Rename / change level or exam board.
    DELETE /subjects/{subject_id}        — Soft delete.
    POST   /subjects/{subject_id}/statistics — Recompute denormalised counters.

Creating a subject also creates its three terms of thirteen weeks each.
"""

import logging
import uuid

from fastapi import APIRouter, status

from curriculum_admin.api.dependencies import AdminDep, HierarchyDep
from curriculum_admin.schemas.hierarchy import (
    SubjectCreate,
    SubjectListResponse,
    SubjectRead,
    SubjectUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subjects", tags=["subjects"])


@router.get("", response_model=SubjectListResponse, summary="List active subjects")
async def list_subjects(repo: HierarchyDep, _: AdminDep) -> SubjectListResponse:
    subjects = await repo.get_subjects()
    return SubjectListResponse(
        subjects=[SubjectRead.model_validate(s) for s in subjects],
        total=len(subjects),
    )


@router.post(
    "",
    response_model=list[SubjectRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create a subject for each selected exam board",
)
async def create_subjects(body: SubjectCreate, repo: HierarchyDep, _: AdminDep) -> list[SubjectRead]:
    subjects = await repo.create_subjects_for_boards(body)
    logger.info("Created %d subject(s) named %r", len(subjects), body.name)
    return [SubjectRead.model_validate(s) for s in subjects]


@router.get("/{subject_id}", response_model=SubjectRead, summary="Get one subject")
async def get_subject(subject_id: uuid.UUID, repo: HierarchyDep, _: AdminDep) -> SubjectRead:
    return SubjectRead.model_validate(await repo.get_subject(subject_id))


@router.patch("/{subject_id}", response_model=SubjectRead, summary="Update a subject")
async def update_subject(
    subject_id: uuid.UUID, body: SubjectUpdate, repo: HierarchyDep, _: AdminDep
) -> SubjectRead:
    subject = await repo.update_subject(subject_id, body.model_dump(exclude_unset=True))
    return SubjectRead.model_validate(subject)


@router.delete(
    "/{subject_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Deactivate a subject"
)
async def delete_subject(subject_id: uuid.UUID, repo: HierarchyDep, _: AdminDep) -> None:
    await repo.delete_subject(subject_id)


@router.post(
    "/{subject_id}/statistics",
    response_model=SubjectRead,
    summary="Recompute content and enrollment counters",
)
async def refresh_statistics(subject_id: uuid.UUID, repo: HierarchyDep, _: AdminDep) -> SubjectRead:
    await repo.update_subject_statistics(subject_id)
    return SubjectRead.model_validate(await repo.get_subject(subject_id))
