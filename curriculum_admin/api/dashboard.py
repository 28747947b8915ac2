"""Dashboard list-screen routes.

Provides:
    GET /dashboard/content   — Every topic, filterable, with status counts.
    GET /dashboard/subjects  — Subjects with counts, filterable, with totals.

``all`` (the default) disables a filter.
"""

import logging

from fastapi import APIRouter

from curriculum_admin.api.dependencies import AdminDep, HierarchyDep
from curriculum_admin.schemas.dashboard import ContentDashboardResponse, SubjectDashboardResponse
from curriculum_admin.services import dashboard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/content", response_model=ContentDashboardResponse, summary="Content screen")
async def content_screen(
    repo: HierarchyDep,
    _: AdminDep,
    search: str = "",
    type: str = dashboard.ALL,
    status: str = dashboard.ALL,
) -> ContentDashboardResponse:
    rows = dashboard.flatten_content(await repo.get_subjects())
    return ContentDashboardResponse(
        items=dashboard.filter_content(rows, search, type, status),
        stats=dashboard.content_stats(rows),
    )


@router.get("/subjects", response_model=SubjectDashboardResponse, summary="Subjects screen")
async def subjects_screen(
    repo: HierarchyDep,
    _: AdminDep,
    search: str = "",
    level: str = dashboard.ALL,
    exam_board: str = dashboard.ALL,
) -> SubjectDashboardResponse:
    subjects = await repo.get_subjects()
    rows = [dashboard.subject_row(s) for s in subjects]
    visible = dashboard.filter_subjects(subjects, search, level, exam_board)
    return SubjectDashboardResponse(
        items=[dashboard.subject_row(s) for s in visible],
        stats=dashboard.subject_stats(rows, [s.completion_rate or 0.0 for s in subjects]),
    )
