"""School and enrollment routes.

Provides:
    GET    /schools                           — Active schools.
    POST   /schools                           — Create a school.
    PATCH  /schools/{school_id}               — Edit a school.
    DELETE /schools/{school_id}               — Soft delete.
    POST   /enrollments                       — Enroll a user in a subject.
    GET    /users/{user_id}/enrollments       — A user's active enrollments.
    GET    /subjects/{subject_id}/enrollments — A subject's active enrollments.
"""

import logging
import uuid

from fastapi import APIRouter, status

from curriculum_admin.api.dependencies import AdminDep, SchoolDep
from curriculum_admin.schemas.school import (
    EnrollmentCreate,
    EnrollmentRead,
    SchoolCreate,
    SchoolRead,
    SchoolUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["schools"])


@router.get("/schools", response_model=list[SchoolRead], summary="List schools")
async def list_schools(schools: SchoolDep, _: AdminDep) -> list[SchoolRead]:
    return [SchoolRead.model_validate(s) for s in await schools.get_schools()]


@router.post(
    "/schools",
    response_model=SchoolRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a school",
)
async def create_school(body: SchoolCreate, schools: SchoolDep, _: AdminDep) -> SchoolRead:
    return SchoolRead.model_validate(await schools.create_school(body.model_dump()))


@router.patch("/schools/{school_id}", response_model=SchoolRead, summary="Edit a school")
async def update_school(
    school_id: uuid.UUID, body: SchoolUpdate, schools: SchoolDep, _: AdminDep
) -> SchoolRead:
    school = await schools.update_school(school_id, body.model_dump(exclude_unset=True))
    return SchoolRead.model_validate(school)


@router.delete(
    "/schools/{school_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Deactivate a school"
)
async def delete_school(school_id: uuid.UUID, schools: SchoolDep, _: AdminDep) -> None:
    await schools.delete_school(school_id)


@router.post(
    "/enrollments",
    response_model=EnrollmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll a user in a subject",
)
async def enroll(body: EnrollmentCreate, schools: SchoolDep, _: AdminDep) -> EnrollmentRead:
    enrollment = await schools.enroll(body.user_id, body.subject_id)
    return EnrollmentRead.model_validate(enrollment)


@router.get(
    "/users/{user_id}/enrollments",
    response_model=list[EnrollmentRead],
    summary="A user's enrollments",
)
async def user_enrollments(user_id: uuid.UUID, schools: SchoolDep, _: AdminDep) -> list[EnrollmentRead]:
    return [EnrollmentRead.model_validate(e) for e in await schools.get_user_enrollments(user_id)]


@router.get(
    "/subjects/{subject_id}/enrollments",
    response_model=list[EnrollmentRead],
    summary="A subject's enrollments",
)
async def subject_enrollments(
    subject_id: uuid.UUID, schools: SchoolDep, _: AdminDep
) -> list[EnrollmentRead]:
    return [
        EnrollmentRead.model_validate(e) for e in await schools.get_subject_enrollments(subject_id)
    ]
