"""Helpers shared by the repositories: error translation and sibling ordering."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curriculum_admin.exceptions import (
    EntityNotFoundError,
    FetchError,
    OrderConflictError,
    StoreError,
)

logger = logging.getLogger(__name__)

# Unique (parent, order_number) constraints, named in the models and migration.
ORDER_CONSTRAINTS = frozenset(
    {
        "uq_terms_subject_order",
        "uq_weeks_term_order",
        "uq_chapters_week_order",
        "uq_content_chapter_order",
    }
)


def violated_constraint(exc: IntegrityError) -> str | None:
    """Return the name of the constraint behind ``exc``, if it can be found.

    asyncpg errors carry ``constraint_name`` on the driver exception that the
    DBAPI adapter chains as ``__cause__``; otherwise the name is looked up in
    the server message.
    """
    for candidate in (exc.orig, getattr(exc.orig, "__cause__", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name
    message = str(exc.orig or exc)
    return next((name for name in ORDER_CONSTRAINTS if name in message), None)


@contextmanager
def store_errors(operation: str, *, read: bool = False) -> Iterator[None]:
    """Translate SQLAlchemy errors raised inside the block.

    Args:
        operation: Verb phrase used in the message, e.g. ``"create chapter"``.
        read: Raise :class:`FetchError` instead of :class:`StoreError`.

    Raises:
        OrderConflictError: When a sibling position is already taken.
        FetchError: On any other store error when ``read`` is set.
        StoreError: On any other store error, including other integrity
            violations (foreign keys, NOT NULL, other unique keys).
    """
    try:
        yield
    except IntegrityError as exc:
        logger.error("Failed to %s: %s", operation, exc.orig or exc)
        if violated_constraint(exc) in ORDER_CONSTRAINTS:
            raise OrderConflictError(
                f"Failed to {operation}: that position is already taken"
            ) from exc
        error_cls = FetchError if read else StoreError
        raise error_cls(f"Failed to {operation}: {exc.orig or exc}") from exc
    except SQLAlchemyError as exc:
        logger.error("Failed to %s: %s", operation, exc)
        error_cls = FetchError if read else StoreError
        raise error_cls(f"Failed to {operation}: {exc}") from exc


async def get_or_raise(session: AsyncSession, model: type, entity_id: uuid.UUID, kind: str) -> Any:
    """Load a row by primary key.

    Raises:
        EntityNotFoundError: If no row has this id.
        FetchError: If the lookup fails.
    """
    with store_errors(f"fetch {kind}", read=True):
        obj = await session.get(model, entity_id)
    if obj is None:
        raise EntityNotFoundError(kind, entity_id)
    return obj


async def next_order(
    session: AsyncSession, model: type, parent_column: Any, parent_id: uuid.UUID
) -> int:
    """Return the next free 1-based position in a sibling group."""
    count = await session.scalar(
        select(func.count()).select_from(model).where(parent_column == parent_id)
    )
    return (count or 0) + 1


async def compact_order(
    session: AsyncSession, model: type, parent_column: Any, parent_id: uuid.UUID, removed: int
) -> None:
    """Close the gap left at position ``removed`` in a sibling group.

    Rows are shifted down one at a time in ascending order so a unique
    (parent, order_number) constraint holds after every flush.
    """
    result = await session.scalars(
        select(model)
        .where(parent_column == parent_id, model.order_number > removed)
        .order_by(model.order_number)
    )
    for row in result.all():
        row.order_number -= 1
        await session.flush()
