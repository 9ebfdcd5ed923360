"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: The auth router mixes open routes (register, login, refresh,
password reset) with protected ones (me, change-password, logout), so it
applies the guard per route. The users router is protected as a whole at
the include_router level, and each route adds its role gate on top.
"""

from fastapi import APIRouter, Depends

from hrportal.api.auth import router as auth_router
from hrportal.api.health import router as health_router
from hrportal.api.users import router as users_router
from hrportal.auth.dependencies import get_current_user

_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api/v1")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a valid access token
api_router.include_router(users_router, tags=["users"], dependencies=_auth)
