"""Authentication routes.

Provides:
    POST /auth/sign-up   — Register an account; returns a bearer token.
    POST /auth/sign-in   — Exchange credentials for a bearer token.
    POST /auth/sign-out  — Stateless; the client discards its token.
    GET  /auth/me        — The access decision and profile for the caller.
    PATCH /auth/me       — Update the caller's own profile.
"""

import logging

from fastapi import APIRouter, status

from curriculum_admin.api.dependencies import AuthDep, SessionDep
from curriculum_admin.exceptions import AuthenticationError
from curriculum_admin.schemas.auth import (
    ProfileRead,
    ProfileUpdate,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    TokenResponse,
)
from curriculum_admin.services.session import resolve_access

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(auth, profile) -> TokenResponse:
    token = auth.issue_token(profile)
    token["profile"] = ProfileRead.model_validate(profile)
    return TokenResponse(**token)


@router.post(
    "/sign-up",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a console account",
)
async def sign_up(body: SignUpRequest, auth: AuthDep) -> TokenResponse:
    profile = await auth.sign_up(body.email, body.password, body.full_name)
    return _token_response(auth, profile)


@router.post("/sign-in", response_model=TokenResponse, summary="Sign in with email and password")
async def sign_in(body: SignInRequest, auth: AuthDep) -> TokenResponse:
    profile = await auth.sign_in(body.email, body.password)
    logger.info("Signed in %s (%s)", profile.id, profile.role)
    return _token_response(auth, profile)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT, summary="Sign out")
async def sign_out(store: SessionDep) -> None:
    store.sign_out()


@router.get("/me", response_model=SessionResponse, summary="Current session and access decision")
async def me(store: SessionDep) -> SessionResponse:
    access = resolve_access(store)
    return SessionResponse(
        decision=access.decision.value,
        phase=store.phase.value,
        profile=ProfileRead.model_validate(store.profile) if store.profile else None,
        is_admin=store.is_admin,
        current_role=access.current_role,
        required_roles=access.required_roles,
    )


@router.patch("/me", response_model=ProfileRead, summary="Update own profile")
async def update_me(body: ProfileUpdate, store: SessionDep, auth: AuthDep) -> ProfileRead:
    if store.profile is None:
        raise AuthenticationError("Please sign in to continue.")
    fields = body.model_dump(exclude_unset=True)
    if not store.is_admin:
        fields.pop("role", None)
    profile = await auth.update_profile(store.profile.id, fields)
    return ProfileRead.model_validate(profile)
