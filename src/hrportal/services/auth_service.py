"""Auth service — the session lifecycle flows.

Learn: Each flow is one short read-then-write against a single user row.
There is no session table: the user row holds the one live refresh token
(as a digest), so logging in or refreshing revokes whatever came before,
and logging out clears it. Concurrent logins for one user race at the
database and the last write wins.

Flows raise errors from hrportal.errors; the API layer maps nothing by
hand.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import structlog

from hrportal.auth.jwt import (
    TokenError,
    create_access_token,
    create_refresh_token,
    hash_token,
    refresh_token_expiry,
    verify_refresh_token,
)
from hrportal.auth.password import hash_password_async, verify_password_async
from hrportal.auth.reset import create_password_reset_token, verify_password_reset_token
from hrportal.config import settings
from hrportal.db.models import Role, User, UserStatus, initials
from hrportal.errors import (
    InvalidCredentialsError,
    InvalidInputError,
    UnauthenticatedError,
)
from hrportal.repositories.user_repository import UserRepository
from hrportal.services.mailer import ResetMailer

logger = structlog.get_logger()


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    """Business logic for registration, login, token refresh and passwords."""

    def __init__(self, users: UserRepository, mailer: Optional[ResetMailer] = None):
        self.users = users
        self.mailer = mailer

    # ─── Register / login ───────────────────────────────

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: Role = Role.EMPLOYEE,
        status: UserStatus = UserStatus.ACTIVE,
    ) -> User:
        """Validate and store a new account without signing it in."""
        name = name.strip()
        email = email.strip().lower()
        if not name or not email or not password:
            raise InvalidInputError("Please provide name, email, and password")
        self._check_password_length(password, "Password")

        if await self.users.find_by_email(email):
            raise InvalidInputError("User already exists with this email")

        user = User(
            name=name,
            email=email,
            password_hash=await hash_password_async(password),
            role=Role(role).value,
            status=UserStatus(status).value,
            avatar=initials(name),
        )
        user = await self.users.add(user)
        logger.info("auth.user_created", user_id=str(user.id), role=user.role)
        return user

    async def register(self, name: str, email: str, password: str) -> tuple[User, TokenPair]:
        """Create a new Employee account and sign it in."""
        user = await self.create_user(name, email, password)
        tokens = await self._issue_tokens(user)
        logger.info("auth.user_registered", user_id=str(user.id))
        return user, tokens

    async def login(self, email: str, password: str) -> tuple[User, TokenPair]:
        """Check credentials and start a new session.

        The password is checked before the status, so a wrong password
        never reveals whether the account is disabled.
        """
        if not email or not password:
            raise InvalidInputError("Please provide email and password")

        user = await self.users.find_by_email(email, with_password=True)
        if user is None:
            logger.info("auth.login_failed", email=email, reason="unknown_email")
            raise InvalidCredentialsError("Invalid email or password")

        if not await verify_password_async(password, user.password_hash):
            logger.info("auth.login_failed", user_id=str(user.id), reason="bad_password")
            raise InvalidCredentialsError("Invalid email or password")

        if not user.is_active:
            logger.info("auth.login_failed", user_id=str(user.id), reason="inactive")
            raise UnauthenticatedError(
                "Account is not active. Please contact administrator.",
                reason="account_inactive",
            )

        await self.users.save(user, last_sign_in=_now())
        tokens = await self._issue_tokens(user)

        logger.info("auth.login_succeeded", user_id=str(user.id))
        return user, tokens

    # ─── Refresh / logout ───────────────────────────────

    async def refresh(self, refresh_token: str) -> tuple[User, TokenPair]:
        """Exchange a refresh token for a new pair, rotating the stored one.

        A token that verifies but is not the one on record was superseded
        by a later login/refresh (or cleared by logout) and is rejected.
        """
        if not refresh_token:
            raise InvalidInputError("Refresh token is required")

        try:
            claims = verify_refresh_token(refresh_token)
        except TokenError as e:
            logger.info("auth.refresh_rejected", reason="token_invalid", error=str(e))
            raise UnauthenticatedError("Invalid refresh token", reason="token_invalid")

        user = await self.users.find_by_id(claims.user_id)
        if user is None:
            raise UnauthenticatedError("User not found", reason="user_not_found")

        if not user.refresh_token_hash or not secrets.compare_digest(
            user.refresh_token_hash, hash_token(refresh_token)
        ):
            logger.info("auth.refresh_rejected", user_id=str(user.id), reason="superseded")
            raise UnauthenticatedError("Invalid refresh token", reason="token_revoked")

        if user.refresh_token_expires_at is None or user.refresh_token_expires_at <= _now():
            raise UnauthenticatedError("Refresh token expired", reason="token_expired")

        if user.changed_password_after(claims.issued_at):
            raise UnauthenticatedError(
                "User recently changed password. Please log in again.",
                reason="password_changed",
            )

        if not user.is_active:
            raise UnauthenticatedError("User account is inactive", reason="account_inactive")

        tokens = await self._issue_tokens(user)
        logger.info("auth.token_refreshed", user_id=str(user.id))
        return user, tokens

    async def logout(self, user: User) -> None:
        await self.users.save(user, refresh_token_hash=None, refresh_token_expires_at=None)
        logger.info("auth.logged_out", user_id=str(user.id))

    # ─── Passwords ──────────────────────────────────────

    async def forgot_password(self, email: str) -> Optional[str]:
        """Start a password reset.

        Returns the plaintext reset token, or None when no such user exists.
        Callers must not let that difference reach the client. The API
        answers both cases identically so accounts cannot be enumerated.
        """
        if not email:
            raise InvalidInputError("Please provide email address")

        user = await self.users.find_by_email(email)
        if user is None:
            logger.info("auth.password_reset_requested", known=False)
            return None

        reset = create_password_reset_token()
        await self.users.save(
            user,
            password_reset_token_hash=reset.token_hash,
            password_reset_expires_at=reset.expires_at,
        )
        if self.mailer is not None:
            await self.mailer.send_password_reset(user, reset.plaintext)
        logger.info("auth.password_reset_requested", known=True, user_id=str(user.id))
        return reset.plaintext

    async def reset_password(self, token: str, new_password: str) -> User:
        """Set a new password with a reset token. The token is single-use."""
        if not token or not new_password:
            raise InvalidInputError("Please provide reset token and new password")
        self._check_password_length(new_password, "Password")

        user = await self.users.find_by_reset_token_hash(hash_token(token))
        if (
            user is None
            or not verify_password_reset_token(token, user.password_reset_token_hash)
            or user.password_reset_expires_at is None
            or user.password_reset_expires_at <= _now()
        ):
            logger.info("auth.password_reset_rejected")
            raise UnauthenticatedError(
                "Invalid or expired reset token", reason="reset_token_invalid"
            )

        await self.users.save(
            user,
            password_hash=await hash_password_async(new_password),
            password_changed_at=_now(),
            password_reset_token_hash=None,
            password_reset_expires_at=None,
        )
        logger.info("auth.password_reset", user_id=str(user.id))
        return user

    async def change_password(
        self, user: User, current_password: str, new_password: str
    ) -> None:
        """Change the password of a signed-in user.

        Every token issued before this moment becomes stale, including the
        one that authorized this request.
        """
        if not current_password or not new_password:
            raise InvalidInputError("Please provide current and new password")
        self._check_password_length(new_password, "New password")

        account = await self.users.find_by_id(user.id, with_password=True)
        if account is None:
            raise UnauthenticatedError(
                "Token is valid but user no longer exists", reason="user_not_found"
            )

        if not await verify_password_async(current_password, account.password_hash):
            raise InvalidCredentialsError("Current password is incorrect")

        await self.users.save(
            account,
            password_hash=await hash_password_async(new_password),
            password_changed_at=_now(),
        )
        logger.info("auth.password_changed", user_id=str(account.id))

    # ─── Helpers ────────────────────────────────────────

    async def _issue_tokens(self, user: User) -> TokenPair:
        """Issue an access/refresh pair and record the refresh token as the live one."""
        user_id = str(user.id)
        access_token = create_access_token(user_id, email=user.email, role=user.role)
        refresh_token = create_refresh_token(user_id)
        await self.users.save(
            user,
            refresh_token_hash=hash_token(refresh_token),
            refresh_token_expires_at=refresh_token_expiry(),
        )
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    @staticmethod
    def _check_password_length(password: str, label: str) -> None:
        minimum = settings.password_min_length
        if len(password) < minimum:
            raise InvalidInputError(
                f"{label} must be at least {minimum} characters long"
            )
