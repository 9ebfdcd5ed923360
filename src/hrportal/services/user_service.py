"""User service — account administration."""

import uuid
from typing import Union

import structlog

from hrportal.db.models import User, UserStatus
from hrportal.errors import NotFoundError
from hrportal.repositories.user_repository import UserRepository

logger = structlog.get_logger()


class UserService:
    """Business logic for administering accounts."""

    def __init__(self, users: UserRepository):
        self.users = users

    async def list_users(self) -> list[User]:
        return await self.users.list_users()

    async def set_status(
        self, user_id: Union[str, uuid.UUID], status: UserStatus, actor: User
    ) -> User:
        """Change an account's status.

        Leaving Active also drops the live refresh token; access tokens are
        already refused by the guard for any non-active account.
        """
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")

        changes = {"status": UserStatus(status).value}
        if changes["status"] != UserStatus.ACTIVE.value:
            changes["refresh_token_hash"] = None
            changes["refresh_token_expires_at"] = None
        await self.users.save(user, **changes)

        logger.info(
            "users.status_changed",
            user_id=str(user.id),
            status=user.status,
            actor_id=str(actor.id),
        )
        return user
