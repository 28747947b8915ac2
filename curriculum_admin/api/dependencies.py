"""FastAPI dependency injection helpers.

Provides reusable ``Depends``-compatible callables for:
- ``get_db()``             → async database session
- ``get_settings()``       → application settings
- ``get_storage()``        → object storage client (stored on app.state)
- ``get_session_store()``  → resolved :class:`SessionStore` for the caller
- ``require_admin()``      → the caller's profile, or 401/403
- repository / service factories bound to the request session
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from curriculum_admin.config import Settings
from curriculum_admin.config import get_settings as _get_settings_impl
from curriculum_admin.database import get_async_db
from curriculum_admin.exceptions import AccessDeniedError, AuthenticationError
from curriculum_admin.models import Profile
from curriculum_admin.services.asset_uploader import AssetUploader
from curriculum_admin.services.auth import AuthService, decode_access_token
from curriculum_admin.services.content_flow import ContentFormFlow
from curriculum_admin.services.hierarchy_repository import HierarchyRepository
from curriculum_admin.services.quiz_repository import QuizRepository
from curriculum_admin.services.school_repository import SchoolRepository
from curriculum_admin.services.session import AccessDecision, SessionStore, resolve_access
from curriculum_admin.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Database session
# ---------------------------------------------------------------------------


async def get_db(
    db: AsyncSession = Depends(get_async_db),
) -> AsyncSession:
    """Provide an async database session to route handlers.

    Thin wrapper around :func:`curriculum_admin.database.get_async_db` so
    handlers can use ``Annotated[AsyncSession, Depends(get_db)]``.
    """
    return db


DBDep = Annotated[AsyncSession, Depends(get_db)]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def get_settings() -> Settings:
    """Return the cached application settings."""
    return _get_settings_impl()


SettingsDep = Annotated[Settings, Depends(get_settings)]


# ---------------------------------------------------------------------------
# Object storage (stored on app.state during lifespan startup)
# ---------------------------------------------------------------------------


def get_storage(request: Request) -> ObjectStorage:
    """Return the application-wide :class:`ObjectStorage` from ``app.state``.

    Raises:
        HTTPException: 503 if storage was not initialised at startup.
    """
    storage: ObjectStorage | None = getattr(request.app.state, "storage", None)
    if storage is None:
        logger.error("Object storage not initialised — app.state.storage is None")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Object storage is not configured. Check server logs for startup errors.",
        )
    return storage


StorageDep = Annotated[ObjectStorage, Depends(get_storage)]


def get_uploader(storage: StorageDep) -> AssetUploader:
    return AssetUploader(storage)


UploaderDep = Annotated[AssetUploader, Depends(get_uploader)]


# ---------------------------------------------------------------------------
# Repositories and services
# ---------------------------------------------------------------------------


def get_hierarchy_repository(db: DBDep, uploader: UploaderDep) -> HierarchyRepository:
    return HierarchyRepository(db, uploader)


def get_quiz_repository(db: DBDep, uploader: UploaderDep) -> QuizRepository:
    return QuizRepository(db, uploader)


def get_school_repository(db: DBDep) -> SchoolRepository:
    return SchoolRepository(db)


def get_auth_service(db: DBDep, settings: SettingsDep) -> AuthService:
    return AuthService(db, settings)


HierarchyDep = Annotated[HierarchyRepository, Depends(get_hierarchy_repository)]
QuizDep = Annotated[QuizRepository, Depends(get_quiz_repository)]
SchoolDep = Annotated[SchoolRepository, Depends(get_school_repository)]
AuthDep = Annotated[AuthService, Depends(get_auth_service)]


def get_content_flow(
    repository: HierarchyDep, quizzes: QuizDep, uploader: UploaderDep
) -> ContentFormFlow:
    return ContentFormFlow(repository, quizzes, uploader)


ContentFlowDep = Annotated[ContentFormFlow, Depends(get_content_flow)]


# ---------------------------------------------------------------------------
# Session and access gate
# ---------------------------------------------------------------------------


async def get_session_store(
    auth: AuthDep,
    settings: SettingsDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)] = None,
) -> SessionStore:
    """Resolve the caller's session from the ``Authorization`` header.

    Anonymous callers get a ``ready`` store without a user.

    Raises:
        AuthenticationError: If a token is supplied but invalid.
    """
    user_id = None
    if credentials is not None:
        user_id = decode_access_token(credentials.credentials, settings)
    return await SessionStore().load(auth, user_id)


SessionDep = Annotated[SessionStore, Depends(get_session_store)]


async def require_admin(store: SessionDep) -> Profile:
    """Return the caller's profile if it holds an admin role.

    Raises:
        AuthenticationError: 401 when the caller is not signed in.
        AccessDeniedError: 403 when the role is not allowed.
    """
    access = resolve_access(store)
    if access.decision is AccessDecision.SIGN_IN:
        raise AuthenticationError("Please sign in to continue.")
    if not access.granted:
        raise AccessDeniedError(access.current_role, access.required_roles)
    return store.profile


AdminDep = Annotated[Profile, Depends(require_admin)]
