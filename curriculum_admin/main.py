"""Curriculum Admin API — FastAPI application entry point.

Features:
- Lifespan context manager: builds the object storage client on startup,
  disposes the DB engine on shutdown
- Structured exception handlers for all domain exceptions
- Request/response logging middleware with request-ID tracing
- /health endpoint: checks DB connectivity
- OpenAPI tags and descriptions for all routers
"""

from __future__ import annotations

import datetime
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from curriculum_admin.config import get_settings
from curriculum_admin.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    EntityNotFoundError,
    FormValidationError,
    OrderConflictError,
    StorageError,
    StoreError,
    SubmissionCancelled,
)

# ---------------------------------------------------------------------------
# Logging setup  (must happen before routers are imported)
# ---------------------------------------------------------------------------

_settings = get_settings()
logging.basicConfig(
    level=getattr(logging, _settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Router and service imports
# ---------------------------------------------------------------------------

from curriculum_admin.api import auth as _auth_module  # noqa: E402
from curriculum_admin.api import content as _content_module  # noqa: E402
from curriculum_admin.api import dashboard as _dashboard_module  # noqa: E402
from curriculum_admin.api import hierarchy as _hierarchy_module  # noqa: E402
from curriculum_admin.api import quizzes as _quizzes_module  # noqa: E402
from curriculum_admin.api import schools as _schools_module  # noqa: E402
from curriculum_admin.api import subjects as _subjects_module  # noqa: E402
from curriculum_admin.database import check_db_connection, dispose_engine  # noqa: E402
from curriculum_admin.services.storage import ObjectStorage  # noqa: E402

# Register all ORM models with the declarative base (required for metadata)
import curriculum_admin.models  # noqa: F401, E402

# ---------------------------------------------------------------------------
# Lifespan context manager
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle.

    Startup sequence:
    1. Build the S3 client and store it on ``app.state.storage`` for DI.
    2. Probe DB connectivity and log the result (non-fatal at startup).

    Shutdown:
    1. Dispose the SQLAlchemy connection pool gracefully.
    """
    # --- Startup -----------------------------------------------------------
    logger.info("Curriculum Admin API — starting up (v%s)", _settings.app_version)

    if getattr(app.state, "storage", None) is None:
        app.state.storage = ObjectStorage(_settings)
    logger.info(
        "Object storage: %s (%d buckets)",
        _settings.storage_endpoint_url or "AWS S3",
        len(_settings.storage_buckets),
    )

    db_health = await check_db_connection()
    if db_health["status"] == "ok":
        logger.info("Database: OK")
    else:
        logger.warning("Database: DEGRADED — %s", db_health.get("detail", "unknown"))

    logger.info("Startup complete — serving requests")
    yield

    # --- Shutdown ----------------------------------------------------------
    logger.info("Curriculum Admin API — shutting down")
    try:
        await dispose_engine()
    except Exception as exc:
        logger.warning("Error during engine disposal: %s", exc)
    logger.info("Shutdown complete")


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Curriculum Admin API",
    description=(
        "Administrative backend for an educational content platform. Staff"
        " manage the Subject → Term → Week → Chapter → Topic hierarchy, upload"
        " learning materials and author multiple-choice quizzes."
    ),
    version=_settings.app_version,
    debug=_settings.debug,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "health", "description": "System health and readiness checks."},
        {"name": "auth", "description": "Sign-up, sign-in and the admin access gate."},
        {
            "name": "subjects",
            "description": "Subjects and their automatically created terms and weeks.",
        },
        {
            "name": "hierarchy",
            "description": "Terms, weeks, chapters and the projected tree view.",
        },
        {
            "name": "content",
            "description": "Topics: add with file upload, edit, delete and reorder.",
        },
        {"name": "quizzes", "description": "Quiz questions, attempts and leaderboards."},
        {"name": "dashboard", "description": "Filtered list screens with totals."},
        {"name": "schools", "description": "Schools and subject enrollments."},
    ],
)

# ---------------------------------------------------------------------------
# CORS middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next: Any) -> Response:
    """Log every HTTP request with method, path, status, and duration.

    A short UUID-derived ``request_id`` is attached to each log line and
    returned as the ``X-Request-ID`` response header.
    """
    request_id = str(uuid.uuid4())[:8]
    t0 = time.monotonic()
    logger.info("[%s] → %s %s", request_id, request.method, request.url.path)

    try:
        response: Response = await call_next(request)
    except Exception as exc:
        elapsed = (time.monotonic() - t0) * 1000
        logger.error(
            "[%s] ✗ %s %s — unhandled after %.1f ms: %s",
            request_id,
            request.method,
            request.url.path,
            elapsed,
            exc,
        )
        raise

    elapsed = (time.monotonic() - t0) * 1000
    logger.info(
        "[%s] ← %s %s — %d (%.1f ms)",
        request_id,
        request.method,
        request.url.path,
        response.status_code,
        elapsed,
    )
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Structured exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(FormValidationError)
async def form_validation_error_handler(
    request: Request, exc: FormValidationError
) -> JSONResponse:
    """422 for form, file and quiz-draft validation failures."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "validation_failed", "message": str(exc), "field": exc.field},
    )


@app.exception_handler(EntityNotFoundError)
async def entity_not_found_handler(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    """404 for missing hierarchy rows."""
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": f"{exc.kind}_not_found",
            "message": str(exc),
            "id": exc.entity_id,
        },
    )


@app.exception_handler(OrderConflictError)
async def order_conflict_handler(request: Request, exc: OrderConflictError) -> JSONResponse:
    """409 when a sibling position is already taken."""
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "error": "order_conflict",
            "message": str(exc),
            "order_number": exc.order_number,
        },
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """502 for relational store failures; the message names the operation."""
    logger.error("StoreError: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": "store_error", "message": str(exc)},
    )


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """502 for object storage failures."""
    logger.error("StorageError: %s  bucket=%s path=%s", exc, exc.bucket, exc.path)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"error": "storage_error", "message": str(exc)},
    )


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(
    request: Request, exc: AuthenticationError
) -> JSONResponse:
    """401 for missing or invalid credentials."""
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"error": "authentication_failed", "message": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(AccessDeniedError)
async def access_denied_handler(request: Request, exc: AccessDeniedError) -> JSONResponse:
    """403 when the caller's role is not allowed."""
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={
            "error": "access_denied",
            "message": str(exc),
            "current_role": exc.current_role,
            "required_roles": exc.required_roles,
        },
    )


@app.exception_handler(SubmissionCancelled)
async def submission_cancelled_handler(
    request: Request, exc: SubmissionCancelled
) -> JSONResponse:
    """409 when a form submission was cancelled part-way."""
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"error": "submission_cancelled", "message": str(exc)},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render FastAPI HTTPExceptions as structured JSON."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "http_error",
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )


# ---------------------------------------------------------------------------
# Core routes
# ---------------------------------------------------------------------------


@app.get("/", tags=["health"], summary="API root / service info")
async def root() -> dict[str, str]:
    """Return basic service metadata and navigation links."""
    return {
        "service": "Curriculum Admin API",
        "version": _settings.app_version,
        "documentation": "/docs",
        "health": "/health",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["health"], summary="System health check")
async def health_check() -> dict[str, Any]:
    """Return current system health including DB status."""
    db_health = await check_db_connection()
    return {
        "status": "ok" if db_health["status"] == "ok" else "degraded",
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "version": _settings.app_version,
        "database": db_health,
    }


# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------

app.include_router(_auth_module.router)
app.include_router(_subjects_module.router)
app.include_router(_hierarchy_module.router)
app.include_router(_content_module.router)
app.include_router(_quizzes_module.router)
app.include_router(_dashboard_module.router)
app.include_router(_schools_module.router)


# ---------------------------------------------------------------------------
# Development entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "curriculum_admin.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=_settings.log_level.lower(),
    )
