"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor (HRPORTAL_BCRYPT_ROUNDS, default 12) takes ~100ms per
hash on modern hardware, long enough that calling it directly from a
request handler would stall every other request on the event loop. The
async variants run the hashing in a worker thread.
"""

import asyncio
from typing import Optional

import bcrypt

from hrportal.config import settings


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    hashes starting with "$2b$". Passwords are truncated to 72 bytes
    (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Verify a password against its hash. Malformed hashes never match."""
    if not password_hash:
        return False
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False


async def hash_password_async(password: str) -> str:
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, password_hash: Optional[str]) -> bool:
    return await asyncio.to_thread(verify_password, password, password_hash)
