"""Unit tests for the session store and the admin access gate."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest

from curriculum_admin.exceptions import AuthenticationError
from curriculum_admin.services.session import (
    AccessDecision,
    SessionPhase,
    SessionStore,
    resolve_access,
)
from tests.fixtures.sample_hierarchy import make_profile


def _ready(profile=None, user_id=None) -> SessionStore:
    store = SessionStore()
    store.begin(user_id or (profile.id if profile else None))
    store.resolve(profile)
    return store


# ---------------------------------------------------------------------------
# resolve_access priority
# ---------------------------------------------------------------------------


def test_new_and_resolving_sessions_are_loading():
    store = SessionStore()
    assert resolve_access(store).decision is AccessDecision.LOADING

    store.begin(uuid.uuid4())
    assert resolve_access(store).decision is AccessDecision.LOADING


def test_anonymous_session_must_sign_in():
    assert resolve_access(_ready()).decision is AccessDecision.SIGN_IN


def test_signed_in_user_without_profile_is_pending():
    store = _ready(profile=None, user_id=uuid.uuid4())

    assert resolve_access(store).decision is AccessDecision.PROFILE_PENDING


def test_student_is_denied_with_role_details():
    access = resolve_access(_ready(make_profile("student")))

    assert access.decision is AccessDecision.ACCESS_DENIED
    assert not access.granted
    assert access.current_role == "student"
    assert access.required_roles == ["admin", "super_admin"]


@pytest.mark.parametrize("role", ["admin", "super_admin"])
def test_admin_roles_are_granted(role):
    access = resolve_access(_ready(make_profile(role)))

    assert access.granted
    assert access.current_role == role


def test_custom_required_roles():
    access = resolve_access(_ready(make_profile("teacher")), required_roles={"teacher"})

    assert access.granted


# ---------------------------------------------------------------------------
# SessionStore lifecycle
# ---------------------------------------------------------------------------


def test_resolve_outside_resolving_phase_raises():
    with pytest.raises(ValueError):
        SessionStore().resolve(None)


def test_sign_out_clears_user():
    store = _ready(make_profile())
    store.sign_out()

    assert store.phase is SessionPhase.READY
    assert store.user_id is None
    assert resolve_access(store).decision is AccessDecision.SIGN_IN


async def test_load_awaits_profile_provisioning():
    profile = make_profile("admin")
    auth = AsyncMock()
    auth.ensure_profile_for.return_value = profile

    store = await SessionStore().load(auth, profile.id)

    auth.ensure_profile_for.assert_awaited_once_with(profile.id)
    assert store.phase is SessionPhase.READY
    assert store.profile is profile
    assert store.is_admin


async def test_load_for_anonymous_caller_skips_lookup():
    auth = AsyncMock()

    store = await SessionStore().load(auth, None)

    auth.ensure_profile_for.assert_not_awaited()
    assert store.phase is SessionPhase.READY
    assert store.role is None


async def test_load_failure_moves_to_error_phase():
    auth = AsyncMock()
    auth.ensure_profile_for.side_effect = AuthenticationError("Account no longer exists")
    store = SessionStore()

    with pytest.raises(AuthenticationError):
        await store.load(auth, uuid.uuid4())

    assert store.phase is SessionPhase.ERROR
    assert store.error == "Account no longer exists"
