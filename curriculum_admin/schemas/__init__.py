"""Pydantic v2 request/response schemas for the curriculum admin API."""

from curriculum_admin.schemas.auth import (
    ProfileRead,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    TokenResponse,
)
from curriculum_admin.schemas.content import (
    AddContentPayload,
    AddContentResponse,
    ContentUpdate,
    QuizQuestionCreate,
    QuizQuestionRead,
)
from curriculum_admin.schemas.dashboard import (
    ContentDashboardResponse,
    ContentRow,
    SubjectDashboardResponse,
)
from curriculum_admin.schemas.hierarchy import (
    ChapterCreate,
    ChapterRead,
    ContentRead,
    SubjectCreate,
    SubjectRead,
)

__all__ = [
    "SignUpRequest",
    "SignInRequest",
    "TokenResponse",
    "ProfileRead",
    "SessionResponse",
    "SubjectCreate",
    "SubjectRead",
    "ChapterCreate",
    "ChapterRead",
    "ContentRead",
    "ContentUpdate",
    "AddContentPayload",
    "AddContentResponse",
    "QuizQuestionCreate",
    "QuizQuestionRead",
    "ContentRow",
    "ContentDashboardResponse",
    "SubjectDashboardResponse",
]
