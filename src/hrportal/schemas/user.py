"""Pydantic schemas for account administration."""

from pydantic import BaseModel

from hrportal.db.models import UserStatus
from hrportal.schemas.auth import MessageResponse, UserSummary


class UserStatusUpdate(BaseModel):
    status: UserStatus


class UserListResponse(MessageResponse):
    users: list[UserSummary]


class UserResponse(MessageResponse):
    user: UserSummary
