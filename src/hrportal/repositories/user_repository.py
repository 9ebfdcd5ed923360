"""Credential store — persistence for User accounts.

Learn: The session flows never touch SQL directly. They go through this
small interface (find by email / id / reset-token digest, add, partial
save), which keeps them testable against an in-memory fake and keeps the
password hash out of every query that does not ask for it.
"""

import uuid
from typing import Any, Optional, Union

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from hrportal.db.engine import get_db
from hrportal.db.models import User
from hrportal.errors import InvalidInputError


def _as_uuid(value: Union[str, uuid.UUID]) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class UserRepository:
    """SQLAlchemy-backed credential store."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(
        self, email: str, with_password: bool = False
    ) -> Optional[User]:
        q = select(User).where(User.email == email.strip().lower())
        return await self._first(q, with_password)

    async def find_by_id(
        self, user_id: Union[str, uuid.UUID], with_password: bool = False
    ) -> Optional[User]:
        uid = _as_uuid(user_id)
        if uid is None:
            return None
        q = select(User).where(User.id == uid)
        return await self._first(q, with_password)

    async def find_by_reset_token_hash(self, token_hash: str) -> Optional[User]:
        q = select(User).where(User.password_reset_token_hash == token_hash)
        return await self._first(q, with_password=False)

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.name))
        return list(result.scalars().all())

    async def add(self, user: User) -> User:
        """Insert a new user. A duplicate email becomes InvalidInputError."""
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise InvalidInputError("User already exists with this email")
        await self.db.refresh(user, attribute_names=["created_at", "updated_at"])
        return user

    async def save(self, user: User, **changes: Any) -> User:
        """Apply a partial field update and commit it."""
        for field, value in changes.items():
            setattr(user, field, value)
        await self.db.commit()
        return user

    async def _first(self, q, with_password: bool) -> Optional[User]:
        if with_password:
            # populate_existing: the guard may already have loaded this
            # user without the hash earlier in the same request.
            q = q.options(undefer(User.password_hash)).execution_options(
                populate_existing=True
            )
        result = await self.db.execute(q)
        return result.scalars().first()


def get_user_repo(db: AsyncSession = Depends(get_db)) -> UserRepository:
    """FastAPI dependency — one repository per request session."""
    return UserRepository(db)
