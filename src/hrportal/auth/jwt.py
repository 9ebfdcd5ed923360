"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
- Access token: short-lived (60min), signed with HRPORTAL_JWT_SECRET
- Refresh token: long-lived (30 days), signed with HRPORTAL_JWT_REFRESH_SECRET

Each token carries a "type" claim so one can never stand in for the other,
even if both secrets were configured to the same value.

`iat` is written as a float (sub-second precision). Staleness checks
compare it against password_changed_at, and a token issued in the same
second as a password change must still be ordered correctly.
"""

import hashlib
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from hrportal.config import settings

ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    """Raised when token verification fails."""


class TokenExpiredError(TokenError):
    """Raised when a token verified but its exp has passed."""


@dataclass(frozen=True)
class AccessClaims:
    user_id: str
    issued_at: float
    email: Optional[str] = None
    role: Optional[str] = None


@dataclass(frozen=True)
class RefreshClaims:
    user_id: str
    issued_at: float


def create_access_token(
    user_id: str,
    email: Optional[str] = None,
    role: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a JWT access token."""
    now = datetime.now(timezone.utc)
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes
    payload = {
        "sub": user_id,
        "type": ACCESS,
        "exp": now + timedelta(minutes=expires_minutes),
        "iat": now.timestamp(),
    }
    if email:
        payload["email"] = email
    if role:
        payload["role"] = role
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_refresh_token(
    user_id: str,
    expires_days: Optional[int] = None,
) -> str:
    """Create a JWT refresh token.

    The random jti makes every refresh token unique, so a rotation always
    yields a different token even within the same clock tick.
    """
    now = datetime.now(timezone.utc)
    if expires_days is None:
        expires_days = settings.refresh_token_expire_days
    payload = {
        "sub": user_id,
        "type": REFRESH,
        "jti": uuid.uuid4().hex,
        "exp": now + timedelta(days=expires_days),
        "iat": now.timestamp(),
    }
    return jwt.encode(
        payload, settings.jwt_refresh_secret, algorithm=settings.jwt_algorithm
    )


def refresh_token_expiry(expires_days: Optional[int] = None) -> datetime:
    """When a refresh token issued now stops being accepted by the store."""
    if expires_days is None:
        expires_days = settings.refresh_token_expire_days
    return datetime.now(timezone.utc) + timedelta(days=expires_days)


def _decode(token: str, secret: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if payload.get("type") != expected_type:
        raise TokenError(f"Not an {expected_type} token")
    return payload


def verify_access_token(token: str) -> AccessClaims:
    """Verify and decode an access token.

    Raises TokenExpiredError if expired, TokenError for anything else.
    """
    payload = _decode(token, settings.jwt_secret, ACCESS)
    return AccessClaims(
        user_id=str(payload["sub"]),
        issued_at=float(payload["iat"]),
        email=payload.get("email"),
        role=payload.get("role"),
    )


def verify_refresh_token(token: str) -> RefreshClaims:
    """Verify and decode a refresh token.

    This only proves the token was signed by us and has not expired. The
    caller must still compare it with the digest stored on the user;
    a rotated-out token verifies fine here.
    """
    payload = _decode(token, settings.jwt_refresh_secret, REFRESH)
    return RefreshClaims(user_id=str(payload["sub"]), issued_at=float(payload["iat"]))


def hash_token(token: str) -> str:
    """SHA-256 hex digest used to store refresh and reset tokens."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
