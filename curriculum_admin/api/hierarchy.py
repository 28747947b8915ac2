"""Term, week, chapter and tree-view routes.

Provides:
    PATCH  /terms/{term_id}               — Rename a term.
    GET    /terms/{term_id}/weeks         — Weeks of a term.
    PATCH  /weeks/{week_id}               — Rename a week.
    GET    /weeks/{week_id}/chapters      — Chapters of a week.
    POST   /chapters                      — Create a chapter.
    PATCH  /chapters/{chapter_id}         — Edit a chapter.
    DELETE /chapters/{chapter_id}         — Delete a chapter and its topics.
    POST   /chapters/{chapter_id}/continue — Continue into the next week.
    GET    /chapters/{chapter_id}/content — Topics of a chapter.
    GET    /hierarchy/tree                — Projected tree view.

Terms and weeks are created with their subject and cannot be added or
removed individually.
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Query, status

from curriculum_admin.api.dependencies import AdminDep, HierarchyDep
from curriculum_admin.schemas.hierarchy import (
    ChapterCreate,
    ChapterRead,
    ChapterUpdate,
    ContentRead,
    TermRead,
    TitleUpdate,
    TreeNodeRead,
    WeekRead,
)
from curriculum_admin.services.hierarchy_tree import HierarchyTree, NodeKey

logger = logging.getLogger(__name__)

router = APIRouter(tags=["hierarchy"])


# ---------------------------------------------------------------------------
# Terms and weeks
# ---------------------------------------------------------------------------


@router.patch("/terms/{term_id}", response_model=TermRead, summary="Rename a term")
async def rename_term(
    term_id: uuid.UUID, body: TitleUpdate, repo: HierarchyDep, _: AdminDep
) -> TermRead:
    return TermRead.model_validate(await repo.rename_term(term_id, body.title))


@router.get("/terms/{term_id}/weeks", response_model=list[WeekRead], summary="Weeks of a term")
async def list_weeks(term_id: uuid.UUID, repo: HierarchyDep, _: AdminDep) -> list[WeekRead]:
    return [WeekRead.model_validate(w) for w in await repo.get_weeks_by_term(term_id)]


@router.patch("/weeks/{week_id}", response_model=WeekRead, summary="Rename a week")
async def rename_week(
    week_id: uuid.UUID, body: TitleUpdate, repo: HierarchyDep, _: AdminDep
) -> WeekRead:
    return WeekRead.model_validate(await repo.rename_week(week_id, body.title))


@router.get(
    "/weeks/{week_id}/chapters", response_model=list[ChapterRead], summary="Chapters of a week"
)
async def list_chapters(week_id: uuid.UUID, repo: HierarchyDep, _: AdminDep) -> list[ChapterRead]:
    return [ChapterRead.model_validate(c) for c in await repo.get_chapters_by_week(week_id)]


# ---------------------------------------------------------------------------
# Chapters
# ---------------------------------------------------------------------------


@router.post(
    "/chapters",
    response_model=ChapterRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a chapter",
)
async def create_chapter(body: ChapterCreate, repo: HierarchyDep, _: AdminDep) -> ChapterRead:
    chapter = await repo.create_chapter(
        body.week_id, body.title, body.description, body.order_number
    )
    return ChapterRead.model_validate(chapter)


@router.patch("/chapters/{chapter_id}", response_model=ChapterRead, summary="Edit a chapter")
async def update_chapter(
    chapter_id: uuid.UUID, body: ChapterUpdate, repo: HierarchyDep, _: AdminDep
) -> ChapterRead:
    chapter = await repo.update_chapter(chapter_id, body.model_dump(exclude_unset=True))
    return ChapterRead.model_validate(chapter)


@router.delete(
    "/chapters/{chapter_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a chapter"
)
async def delete_chapter(chapter_id: uuid.UUID, repo: HierarchyDep, _: AdminDep) -> None:
    await repo.delete_chapter(chapter_id)


@router.post(
    "/chapters/{chapter_id}/continue",
    response_model=ChapterRead,
    status_code=status.HTTP_201_CREATED,
    summary="Continue a chapter into the next week",
)
async def continue_chapter(chapter_id: uuid.UUID, repo: HierarchyDep, _: AdminDep) -> ChapterRead:
    return ChapterRead.model_validate(await repo.continue_chapter(chapter_id))


@router.get(
    "/chapters/{chapter_id}/content",
    response_model=list[ContentRead],
    summary="Topics of a chapter",
)
async def list_content(chapter_id: uuid.UUID, repo: HierarchyDep, _: AdminDep) -> list[ContentRead]:
    return [ContentRead.model_validate(c) for c in await repo.get_content_by_chapter(chapter_id)]


# ---------------------------------------------------------------------------
# Tree view
# ---------------------------------------------------------------------------


@router.get(
    "/hierarchy/tree",
    response_model=list[TreeNodeRead],
    summary="Projected hierarchy tree",
    description=(
        "Subjects are always expanded. Pass ``expanded=kind:id`` once per"
        " additional node to expand, e.g. ``expanded=term:<uuid>``."
    ),
)
async def get_tree(
    repo: HierarchyDep,
    _: AdminDep,
    expanded: Annotated[list[str] | None, Query()] = None,
) -> list[TreeNodeRead]:
    tree = HierarchyTree.from_subjects(await repo.get_subjects(), repo)
    for raw in expanded or []:
        key = NodeKey.parse(raw)
        if key in tree.nodes:
            tree.expand(key)
    return [TreeNodeRead.model_validate(view) for view in tree.project()]
