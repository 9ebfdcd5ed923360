"""Auth API — registration, login, token refresh, passwords, logout.

Learn: Routes for the session lifecycle:
- POST /auth/register         → create account, returns tokens (201)
- POST /auth/login            → email/password → tokens
- POST /auth/refresh          → refresh token → rotated token pair
- POST /auth/forgot-password  → start a password reset (same answer for any email)
- POST /auth/reset-password   → reset token + new password
- GET  /auth/me               → current user              (bearer token)
- GET  /auth/session          → current user if any       (optional token)
- PUT  /auth/change-password  → current + new password    (bearer token)
- POST /auth/logout           → revoke the refresh token  (bearer token)
"""

from typing import Optional

from fastapi import APIRouter, Depends

from hrportal.auth.dependencies import get_current_user, get_current_user_optional
from hrportal.db.models import User
from hrportal.repositories.user_repository import UserRepository, get_user_repo
from hrportal.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SessionResponse,
    TokenResponse,
    UserSummary,
)
from hrportal.services.auth_service import AuthService
from hrportal.services.mailer import ResetMailer, get_mailer

router = APIRouter(prefix="/auth")

FORGOT_PASSWORD_MESSAGE = (
    "If a user with that email exists, password reset instructions have been sent."
)


def _svc(
    users: UserRepository = Depends(get_user_repo),
    mailer: ResetMailer = Depends(get_mailer),
) -> AuthService:
    return AuthService(users, mailer)


# ─── Register / login ───────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(body: RegisterRequest, svc: AuthService = Depends(_svc)):
    """Create a new account (role Employee) and sign it in."""
    user, tokens = await svc.register(
        name=body.name, email=body.email, password=body.password
    )
    return AuthResponse(
        message="User registered successfully",
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        user=UserSummary.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, svc: AuthService = Depends(_svc)):
    user, tokens = await svc.login(email=body.email, password=body.password)
    return AuthResponse(
        message="Login successful",
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        user=UserSummary.model_validate(user),
    )


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, svc: AuthService = Depends(_svc)):
    """Exchange a refresh token for a new pair. The old refresh token dies."""
    _, tokens = await svc.refresh(body.refresh_token)
    return TokenResponse(
        message="Token refreshed successfully",
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )


# ─── Password reset ─────────────────────────────────────


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(body: ForgotPasswordRequest, svc: AuthService = Depends(_svc)):
    """Start a password reset.

    Learn: The response never depends on whether the email is registered;
    otherwise this endpoint would tell anyone which accounts exist.
    """
    await svc.forgot_password(body.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest, svc: AuthService = Depends(_svc)):
    await svc.reset_password(body.token, body.new_password)
    return MessageResponse(message="Password reset successful")


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=MeResponse)
async def get_me(user: User = Depends(get_current_user)):
    """Get the current authenticated user's info."""
    return MeResponse(message="Current user", user=UserSummary.model_validate(user))


@router.get("/session", response_model=SessionResponse)
async def get_session(user: Optional[User] = Depends(get_current_user_optional)):
    """Report whether the caller is signed in. Never 401s."""
    if user is None:
        return SessionResponse(message="Anonymous", authenticated=False)
    return SessionResponse(
        message="Authenticated",
        authenticated=True,
        user=UserSummary.model_validate(user),
    )


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    await svc.change_password(user, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/logout", response_model=MessageResponse)
async def logout(
    user: User = Depends(get_current_user),
    svc: AuthService = Depends(_svc),
):
    await svc.logout(user)
    return MessageResponse(message="Logout successful")
