"""Local identity provider: accounts, password hashing and bearer tokens.

Passwords are hashed with bcrypt through passlib. Access tokens are
HS256 JWTs carrying the account id in ``sub`` and the profile role.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from curriculum_admin.config import Settings, get_settings
from curriculum_admin.exceptions import AuthenticationError, FormValidationError
from curriculum_admin.models import Profile, UserAccount
from curriculum_admin.services.store import get_or_raise, store_errors

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password. Please check your credentials."
ACCOUNT_INACTIVE = "Account not activated. Please contact your administrator."

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, encoded: str) -> bool:
    """Check ``password`` against a stored hash; unrecognised hashes never match."""
    try:
        return pwd_context.verify(password, encoded)
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


def create_access_token(profile: Profile, settings: Settings | None = None) -> str:
    s = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(profile.id),
        "role": profile.role,
        "iat": now,
        "exp": now + timedelta(minutes=s.access_token_ttl_minutes),
    }
    return jwt.encode(payload, s.jwt_secret, algorithm=s.jwt_algorithm)


def decode_access_token(token: str, settings: Settings | None = None) -> uuid.UUID:
    """Return the account id carried by a bearer token.

    Raises:
        AuthenticationError: If the token is expired, tampered with or malformed.
    """
    s = settings or get_settings()
    try:
        payload = jwt.decode(token, s.jwt_secret, algorithms=[s.jwt_algorithm])
        return uuid.UUID(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError) as exc:
        raise AuthenticationError("Invalid or expired token") from exc


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class AuthService:
    """Sign-up, sign-in and profile management.

    Args:
        session: Request-scoped async session.
        settings: Application settings; defaults to :func:`get_settings`.
    """

    def __init__(self, session: AsyncSession, settings: Settings | None = None) -> None:
        self.session = session
        self.settings = settings or get_settings()

    async def _account_by_email(self, email: str) -> UserAccount | None:
        with store_errors("fetch account", read=True):
            return await self.session.scalar(
                select(UserAccount).where(UserAccount.email == email.strip().lower())
            )

    async def sign_up(self, email: str, password: str, full_name: str = "") -> Profile:
        """Register an account and provision its profile.

        Raises:
            FormValidationError: If the email is already registered.
        """
        email = email.strip().lower()
        if await self._account_by_email(email) is not None:
            raise FormValidationError("An account with this email already exists", field="email")
        account = UserAccount(
            email=email,
            password_hash=hash_password(password),
            full_name=full_name or None,
        )
        with store_errors("create account"):
            self.session.add(account)
            await self.session.flush()
        logger.info("Registered account %s", account.id)
        return await self.ensure_profile(account)

    async def sign_in(self, email: str, password: str) -> Profile:
        """Check credentials and return the caller's profile.

        Raises:
            AuthenticationError: On unknown email, wrong password or an
                inactive profile.
        """
        account = await self._account_by_email(email)
        if account is None or not verify_password(password, account.password_hash):
            logger.info("Rejected sign-in for %s", email)
            raise AuthenticationError(INVALID_CREDENTIALS)

        profile = await self.ensure_profile(account)
        if not profile.is_active:
            raise AuthenticationError(ACCOUNT_INACTIVE)
        with store_errors("update last login"):
            profile.last_login = datetime.now(timezone.utc).replace(tzinfo=None)
            await self.session.flush()
        return profile

    async def ensure_profile(self, account: UserAccount) -> Profile:
        """Return the account's profile, creating it with the default role.

        Idempotent: calling it for an account that already has a profile
        returns that profile unchanged.
        """
        with store_errors("fetch profile", read=True):
            profile = await self.session.get(Profile, account.id)
        if profile is not None:
            return profile
        profile = Profile(
            id=account.id,
            email=account.email,
            full_name=account.full_name,
            role=self.settings.default_profile_role,
            is_active=True,
        )
        with store_errors("create profile"):
            self.session.add(profile)
            await self.session.flush()
        logger.info("Provisioned %s profile for account %s", profile.role, account.id)
        return profile

    async def ensure_profile_for(self, user_id: uuid.UUID) -> Profile:
        """Resolve a token subject to its (possibly new) profile.

        Raises:
            AuthenticationError: If the account no longer exists.
        """
        with store_errors("fetch account", read=True):
            account = await self.session.get(UserAccount, user_id)
        if account is None:
            raise AuthenticationError("Account no longer exists")
        return await self.ensure_profile(account)

    async def get_profile(self, user_id: uuid.UUID) -> Profile | None:
        with store_errors("fetch profile", read=True):
            return await self.session.get(Profile, user_id)

    async def update_profile(self, user_id: uuid.UUID, fields: dict[str, Any]) -> Profile:
        profile = await get_or_raise(self.session, Profile, user_id, "profile")
        with store_errors("update profile"):
            for key in ("full_name", "avatar_url", "role"):
                if key in fields and fields[key] is not None:
                    setattr(profile, key, getattr(fields[key], "value", fields[key]))
            await self.session.flush()
        return profile

    def issue_token(self, profile: Profile) -> dict[str, Any]:
        return {
            "access_token": create_access_token(profile, self.settings),
            "token_type": "bearer",
            "expires_in": self.settings.access_token_ttl_minutes * 60,
            "profile": profile,
        }
