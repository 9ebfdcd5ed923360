"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
The users table is the credential store: identity, password hash, role,
status and the token bookkeeping columns the session flows rely on.

Key concepts:
- UUID primary keys
- password_hash is a deferred column: plain queries never load it, the
  repository undefers it only when a flow needs to check a password
- refresh and reset tokens are stored as SHA-256 digests, never plaintext
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, String, func
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class Role(str, enum.Enum):
    ADMINISTRATOR = "Administrator"
    HR_MANAGER = "HR Manager"
    MANAGER = "Manager"
    EMPLOYEE = "Employee"


class UserStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    SUSPENDED = "Suspended"
    PENDING = "Pending"


def initials(name: str) -> str:
    """Avatar initials: "Jane van Doe" → "JVD"."""
    return "".join(part[0] for part in name.split() if part).upper()


class User(Base):
    """An account that can sign in to the HR portal.

    Learn: Only ACTIVE users may authenticate. Tokens issued before
    password_changed_at are stale; refresh_token_hash holds the single
    live refresh token (logging in elsewhere revokes the previous one).
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_password_reset_token_hash", "password_reset_token_hash"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=new_uuid
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(
        String(255), nullable=False, deferred=True
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=Role.EMPLOYEE.value
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserStatus.ACTIVE.value
    )
    avatar: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    last_sign_in: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    password_changed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    refresh_token_hash: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True
    )
    refresh_token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    password_reset_token_hash: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True
    )
    password_reset_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=utcnow
    )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    def changed_password_after(self, issued_at: float) -> bool:
        """True if the password changed after a token issued at `issued_at` (epoch seconds)."""
        if self.password_changed_at is None:
            return False
        return issued_at < self.password_changed_at.timestamp()

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role}, {self.status})>"
