"""Per-request session state and the admin access gate.

A :class:`SessionStore` is created for each request by the API dependency
layer and moves through ``init → resolving → ready | error``.  The profile is
provisioned by an awaited, idempotent
:meth:`~curriculum_admin.services.auth.AuthService.ensure_profile` call before
the store reports ``ready``; there is no polling.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Collection
from dataclasses import dataclass, field
from enum import Enum

from curriculum_admin.models import Profile
from curriculum_admin.models.enums import ADMIN_ROLES

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    INIT = "init"
    RESOLVING = "resolving"
    READY = "ready"
    ERROR = "error"


class AccessDecision(str, Enum):
    """What the console should render, in priority order."""

    LOADING = "loading"
    SIGN_IN = "sign_in"
    PROFILE_PENDING = "profile_pending"
    ACCESS_DENIED = "access_denied"
    GRANTED = "granted"


@dataclass
class AccessResult:
    decision: AccessDecision
    current_role: str | None = None
    required_roles: list[str] = field(default_factory=list)

    @property
    def granted(self) -> bool:
        return self.decision is AccessDecision.GRANTED


class SessionStore:
    """State of one caller's session.

    Attributes:
        phase: Current lifecycle phase.
        user_id: Authenticated account id, or None when signed out.
        profile: Resolved profile; only meaningful in the ``ready`` phase.
        error: Failure detail when ``phase`` is ``error``.
    """

    def __init__(self) -> None:
        self.phase = SessionPhase.INIT
        self.user_id: uuid.UUID | None = None
        self.profile: Profile | None = None
        self.error: str | None = None

    def begin(self, user_id: uuid.UUID | None) -> None:
        """Start resolving the profile of ``user_id``."""
        self.phase = SessionPhase.RESOLVING
        self.user_id = user_id
        self.profile = None
        self.error = None

    def resolve(self, profile: Profile | None) -> None:
        """Finish resolution; ``profile`` may be None (``ready(none)``)."""
        if self.phase is not SessionPhase.RESOLVING:
            raise ValueError(f"Cannot resolve a session in phase {self.phase.value}")
        self.profile = profile
        self.phase = SessionPhase.READY

    def fail(self, error: str) -> None:
        logger.warning("Session for %s failed to resolve: %s", self.user_id, error)
        self.error = error
        self.profile = None
        self.phase = SessionPhase.ERROR

    def sign_out(self) -> None:
        self.user_id = None
        self.profile = None
        self.error = None
        self.phase = SessionPhase.READY

    async def load(self, auth, user_id: uuid.UUID | None) -> "SessionStore":
        """Resolve the session through an :class:`AuthService`.

        Anonymous callers resolve straight to ``ready(none)``.
        """
        self.begin(user_id)
        if user_id is None:
            self.resolve(None)
            return self
        try:
            profile = await auth.ensure_profile_for(user_id)
        except Exception as exc:
            self.fail(str(exc))
            raise
        self.resolve(profile)
        return self

    @property
    def role(self) -> str | None:
        return self.profile.role if self.profile is not None else None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


def resolve_access(
    store: SessionStore, required_roles: Collection[str] = ADMIN_ROLES
) -> AccessResult:
    """Decide what to render for ``store``.

    The first matching rule wins: still loading, not signed in, profile not
    yet available, role not allowed, granted.
    """
    required = sorted(required_roles)
    if store.phase in (SessionPhase.INIT, SessionPhase.RESOLVING):
        return AccessResult(AccessDecision.LOADING, required_roles=required)
    if store.user_id is None:
        return AccessResult(AccessDecision.SIGN_IN, required_roles=required)
    if store.profile is None:
        return AccessResult(AccessDecision.PROFILE_PENDING, required_roles=required)
    if store.profile.role not in required_roles:
        return AccessResult(
            AccessDecision.ACCESS_DENIED,
            current_role=store.profile.role,
            required_roles=required,
        )
    return AccessResult(AccessDecision.GRANTED, current_role=store.profile.role, required_roles=required)
