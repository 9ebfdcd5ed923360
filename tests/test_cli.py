"""CLI tests — argument handling and account provisioning through the service."""

import uuid
from types import SimpleNamespace

from click.testing import CliRunner

import hrportal.cli.main as cli
from hrportal.auth.password import verify_password
from hrportal.errors import InvalidInputError


def test_create_user(monkeypatch):
    calls = []

    async def fake_impl(name, email, password, role, status):
        calls.append((name, email, password, role, status))
        return SimpleNamespace(id=uuid.uuid4(), email=email, role=role, status=status)

    monkeypatch.setattr(cli, "_create_user_impl", fake_impl)

    result = CliRunner().invoke(
        cli.main,
        ["create-user", "-n", "Ada Admin", "-e", "ada@x.com", "-r", "Administrator"],
        input="secret1\nsecret1\n",
    )
    assert result.exit_code == 0, result.output
    assert "Created ada@x.com (Administrator, Active)" in result.output
    assert calls == [("Ada Admin", "ada@x.com", "secret1", "Administrator", "Active")]


def test_create_user_reports_errors(monkeypatch):
    async def fake_impl(*args):
        raise InvalidInputError("User already exists with this email")

    monkeypatch.setattr(cli, "_create_user_impl", fake_impl)

    result = CliRunner().invoke(
        cli.main,
        ["create-user", "-n", "Ada", "-e", "ada@x.com", "--password", "secret1"],
    )
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_create_user_rejects_unknown_role():
    result = CliRunner().invoke(
        cli.main,
        ["create-user", "-n", "A", "-e", "a@x.com", "--password", "x", "-r", "CEO"],
    )
    assert result.exit_code == 2


class _FakeSession:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class _FakeEngine:
    def __init__(self):
        self.disposed = False

    async def dispose(self):
        self.disposed = True


def _wire_store(monkeypatch, users):
    """Route _create_user_impl's session and repository to in-memory fakes."""
    import hrportal.db.engine as db_engine
    import hrportal.repositories.user_repository as user_repository

    sessions = []
    fake_engine = _FakeEngine()

    def session_factory():
        sessions.append(_FakeSession())
        return sessions[-1]

    def repo_for(session):
        assert session is sessions[-1]
        return users

    monkeypatch.setattr(db_engine, "async_session_factory", session_factory)
    monkeypatch.setattr(db_engine, "engine", fake_engine)
    monkeypatch.setattr(user_repository, "UserRepository", repo_for)
    return fake_engine


def test_create_user_stores_account(monkeypatch, users):
    fake_engine = _wire_store(monkeypatch, users)

    result = CliRunner().invoke(
        cli.main,
        [
            "create-user", "-n", " Ada Admin ", "-e", "Ada@X.com",
            "--password", "secret1", "-r", "Administrator",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Created ada@x.com (Administrator, Active)" in result.output

    (stored,) = users.rows.values()
    assert stored.name == "Ada Admin"
    assert stored.email == "ada@x.com"
    assert stored.role == "Administrator"
    assert stored.avatar == "AA"
    assert verify_password("secret1", stored.password_hash)
    assert fake_engine.disposed


def test_create_user_duplicate_email_through_store(monkeypatch, users):
    _wire_store(monkeypatch, users)
    args = ["create-user", "-n", "Ada", "-e", "ada@x.com", "--password", "secret1"]

    assert CliRunner().invoke(cli.main, args).exit_code == 0
    result = CliRunner().invoke(cli.main, args)
    assert result.exit_code == 1
    assert "already exists" in result.output
    assert len(users.rows) == 1


def test_create_user_short_password_through_store(monkeypatch, users):
    _wire_store(monkeypatch, users)

    result = CliRunner().invoke(
        cli.main,
        ["create-user", "-n", "Ada", "-e", "ada@x.com", "--password", "abc"],
    )
    assert result.exit_code == 1
    assert "at least" in result.output
    assert users.rows == {}
