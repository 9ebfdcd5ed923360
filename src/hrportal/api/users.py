"""Account administration API.

Learn: The whole router sits behind get_current_user (see api/__init__.py);
each route then narrows access with a role gate.
- GET   /users              → list accounts  (Administrator, HR Manager)
- PATCH /users/:id/status   → change status  (Administrator)
"""

import uuid

from fastapi import APIRouter, Depends

from hrportal.auth.dependencies import require_roles
from hrportal.db.models import Role, User
from hrportal.repositories.user_repository import UserRepository, get_user_repo
from hrportal.schemas.auth import UserSummary
from hrportal.schemas.user import UserListResponse, UserResponse, UserStatusUpdate
from hrportal.services.user_service import UserService

router = APIRouter(prefix="/users")


def _svc(users: UserRepository = Depends(get_user_repo)) -> UserService:
    return UserService(users)


@router.get(
    "",
    response_model=UserListResponse,
    dependencies=[Depends(require_roles(Role.ADMINISTRATOR, Role.HR_MANAGER))],
)
async def list_users(svc: UserService = Depends(_svc)):
    users = await svc.list_users()
    return UserListResponse(
        message=f"{len(users)} users",
        users=[UserSummary.model_validate(u) for u in users],
    )


@router.patch("/{user_id}/status", response_model=UserResponse)
async def update_status(
    user_id: uuid.UUID,
    body: UserStatusUpdate,
    actor: User = Depends(require_roles(Role.ADMINISTRATOR)),
    svc: UserService = Depends(_svc),
):
    user = await svc.set_status(user_id, body.status, actor=actor)
    return UserResponse(
        message=f"User status set to {user.status}",
        user=UserSummary.model_validate(user),
    )
