"""FastAPI auth dependencies — the request guard and the role gate.

Learn: These are used as Depends() in route handlers to extract and
validate the current user from the `Authorization: Bearer <token>` header.

The guard rejects, in order:
1. no bearer header                         → missing_token
2. token fails verification                 → token_expired / token_invalid
3. the token's user no longer exists        → user_not_found
4. the user is not Active                   → account_inactive
5. the password changed after token issue   → password_changed

All five are 401 Unauthenticated; the reason lets clients tell
"log in again" (expired/stale) from "your token is garbage".
"""

from typing import Callable, Optional, Union

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.exc import SQLAlchemyError

from hrportal.auth.jwt import TokenError, TokenExpiredError, verify_access_token
from hrportal.db.models import Role, User
from hrportal.errors import ForbiddenError, UnauthenticatedError
from hrportal.repositories.user_repository import UserRepository, get_user_repo

logger = structlog.get_logger()


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthenticatedError(
            "Access denied. No token provided.", reason="missing_token"
        )
    token = authorization[7:].strip()
    if not token:
        raise UnauthenticatedError(
            "Access denied. No token provided.", reason="missing_token"
        )
    return token


async def authenticate(authorization: Optional[str], users: UserRepository) -> User:
    """Resolve a bearer header to an active, non-stale User or raise."""
    token = _bearer_token(authorization)

    try:
        claims = verify_access_token(token)
    except TokenExpiredError:
        raise UnauthenticatedError(
            "Token expired. Please log in again.", reason="token_expired"
        )
    except TokenError:
        raise UnauthenticatedError("Invalid token", reason="token_invalid")

    user = await users.find_by_id(claims.user_id)
    if user is None:
        raise UnauthenticatedError(
            "Token is valid but user no longer exists", reason="user_not_found"
        )

    if not user.is_active:
        raise UnauthenticatedError("User account is inactive", reason="account_inactive")

    if user.changed_password_after(claims.issued_at):
        raise UnauthenticatedError(
            "User recently changed password. Please log in again.",
            reason="password_changed",
        )

    return user


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    users: UserRepository = Depends(get_user_repo),
) -> User:
    """Current user (required — 401 if the token does not check out)."""
    try:
        user = await authenticate(authorization, users)
    except UnauthenticatedError as e:
        logger.info("auth.guard_rejected", reason=e.reason, path=request.url.path)
        raise
    request.state.user = user
    return user


async def get_current_user_optional(
    request: Request,
    authorization: Optional[str] = Header(None),
    users: UserRepository = Depends(get_user_repo),
) -> Optional[User]:
    """Current user (optional — None instead of 401).

    Learn: This is the "soft" auth dependency for endpoints that behave
    differently for anonymous and signed-in callers. Any failure, including
    an expired or stale token or an unreachable database, simply means
    "anonymous".
    """
    try:
        user = await authenticate(authorization, users)
    except UnauthenticatedError:
        request.state.user = None
        return None
    except SQLAlchemyError as e:
        logger.warning(
            "auth.optional_guard_failed", path=request.url.path, error=str(e)
        )
        request.state.user = None
        return None
    request.state.user = user
    return user


def check_roles(user: Optional[User], roles: tuple[str, ...]) -> User:
    if user is None:
        raise UnauthenticatedError("Authentication required")
    if user.role not in roles:
        raise ForbiddenError(f"Access denied. Required roles: {', '.join(roles)}")
    return user


def require_roles(*roles: Union[Role, str]) -> Callable:
    """Dependency factory: the current user must hold one of `roles`.

    Usage:
        @router.get("/users", dependencies=[Depends(require_roles(Role.ADMINISTRATOR))])
    """
    allowed = tuple(r.value if isinstance(r, Role) else r for r in roles)

    async def role_gate(user: User = Depends(get_current_user)) -> User:
        return check_roles(user, allowed)

    return role_gate
