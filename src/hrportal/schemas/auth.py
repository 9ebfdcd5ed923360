"""Pydantic schemas for the auth endpoints.

Learn: Pydantic v2 models validate request/response data. Validation
failures surface as 400 InvalidInput (see errors.py). Password length is
not checked here: the minimum is configurable and enforced by the service,
so the same rule applies to the CLI as to the API.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


def normalize_email(value):
    """Strip and lower-case the whole address; EmailStr only folds the domain."""
    if isinstance(value, str):
        return value.strip().lower()
    return value


# ─── Requests ───────────────────────────────────────────


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please provide a name")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def _email(cls, v):
        return normalize_email(v)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return v.strip().lower()


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return v.strip().lower()


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


# ─── Responses ──────────────────────────────────────────


class UserSummary(BaseModel):
    """Public view of a user — never includes the password hash or token digests."""

    id: uuid.UUID
    name: str
    email: str
    role: str
    status: str
    avatar: Optional[str] = None
    last_sign_in: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class TokenResponse(MessageResponse):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(TokenResponse):
    user: UserSummary


class MeResponse(MessageResponse):
    user: UserSummary


class SessionResponse(MessageResponse):
    authenticated: bool
    user: Optional[UserSummary] = None
