"""Password reset tokens.

Learn: A reset token is a random URL-safe string handed to the user once
(by email, in production). Only its SHA-256 digest is stored, together
with a short expiry, so a database leak does not leak usable reset links.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional

from hrportal.auth.jwt import hash_token
from hrportal.config import settings


class ResetToken(NamedTuple):
    plaintext: str
    token_hash: str
    expires_at: datetime


def create_password_reset_token(expires_minutes: Optional[int] = None) -> ResetToken:
    if expires_minutes is None:
        expires_minutes = settings.password_reset_expire_minutes
    plaintext = secrets.token_urlsafe(32)
    return ResetToken(
        plaintext=plaintext,
        token_hash=hash_token(plaintext),
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
    )


def verify_password_reset_token(plaintext: str, stored_hash: Optional[str]) -> bool:
    """Constant-time check of a plaintext reset token against its stored digest."""
    if not plaintext or not stored_hash:
        return False
    return secrets.compare_digest(hash_token(plaintext), stored_hash)
