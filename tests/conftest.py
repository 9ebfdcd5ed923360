"""Test fixtures — an in-memory credential store behind the real app.

Learn: The session flows only talk to the database through
UserRepository, so tests swap it for FakeUserRepository via FastAPI's
dependency_overrides. JWTs, bcrypt, the guard, the exception handlers
and the middleware all run for real.

bcrypt is run at its minimum work factor here; 12 rounds per hash would
make the suite crawl.
"""

import os

os.environ.setdefault("HRPORTAL_BCRYPT_ROUNDS", "4")

import uuid
from datetime import datetime, timezone
from typing import Optional, Union

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from hrportal.db.models import Role, User, UserStatus
from hrportal.errors import InvalidInputError
from hrportal.main import app
from hrportal.repositories.user_repository import get_user_repo
from hrportal.services.auth_service import AuthService
from hrportal.services.mailer import ResetMailer, get_mailer

DEFAULT_PASSWORD = "secret1"


class FakeUserRepository:
    """In-memory stand-in for UserRepository with the same interface."""

    def __init__(self) -> None:
        self.rows: dict[uuid.UUID, User] = {}
        self.fail_with: Optional[Exception] = None

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def find_by_email(self, email: str, with_password: bool = False):
        self._check()
        email = email.strip().lower()
        return next((u for u in self.rows.values() if u.email == email), None)

    async def find_by_id(self, user_id: Union[str, uuid.UUID], with_password: bool = False):
        self._check()
        try:
            uid = user_id if isinstance(user_id, uuid.UUID) else uuid.UUID(str(user_id))
        except ValueError:
            return None
        return self.rows.get(uid)

    async def find_by_reset_token_hash(self, token_hash: str):
        self._check()
        return next(
            (u for u in self.rows.values() if u.password_reset_token_hash == token_hash),
            None,
        )

    async def list_users(self):
        self._check()
        return sorted(self.rows.values(), key=lambda u: u.name)

    async def add(self, user: User) -> User:
        self._check()
        if any(u.email == user.email for u in self.rows.values()):
            raise InvalidInputError("User already exists with this email")
        now = datetime.now(timezone.utc)
        user.id = user.id or uuid.uuid4()
        user.created_at = now
        user.updated_at = now
        self.rows[user.id] = user
        return user

    async def save(self, user: User, **changes) -> User:
        self._check()
        for field, value in changes.items():
            setattr(user, field, value)
        return user


class CapturingMailer(ResetMailer):
    """Records reset tokens instead of delivering them."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def send_password_reset(self, user: User, token: str) -> None:
        self.sent.append((user.email, token))

    @property
    def last_token(self) -> str:
        return self.sent[-1][1]


@pytest.fixture()
def users():
    return FakeUserRepository()


@pytest.fixture()
def mailer():
    return CapturingMailer()


@pytest.fixture()
def svc(users, mailer):
    return AuthService(users, mailer)


@pytest.fixture()
def make_user(svc):
    """Create an account directly through the service (any role/status)."""

    async def _make(
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        name: str = "Test User",
        role: Role = Role.EMPLOYEE,
        status: UserStatus = UserStatus.ACTIVE,
    ) -> User:
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        return await svc.create_user(name, email, password, role=role, status=status)

    return _make


@pytest_asyncio.fixture()
async def client(users, mailer):
    """HTTP client with the credential store and mailer overridden."""
    app.dependency_overrides[get_user_repo] = lambda: users
    app.dependency_overrides[get_mailer] = lambda: mailer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def login(client):
    """Log in over HTTP and return the JSON body."""

    async def _login(email: str, password: str = DEFAULT_PASSWORD) -> dict:
        r = await client.post(
            "/api/v1/auth/login", json={"email": email, "password": password}
        )
        assert r.status_code == 200, r.text
        return r.json()

    return _login


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
