"""HR Portal CLI — provision accounts and run the API server.

Usage:
    hrportal create-user --name "Ada Admin" --email ada@example.com --role Administrator
    hrportal serve --reload

Registration through the API always creates Employee accounts, so the
first Administrator has to be created here.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys

import click

from hrportal import __version__
from hrportal.db.models import Role, UserStatus
from hrportal.errors import AppError


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


@click.group()
@click.version_option(version=__version__, prog_name="hrportal")
def main():
    """HR Portal administration."""


@main.command("create-user")
@click.option("--name", "-n", required=True, help="Display name")
@click.option("--email", "-e", required=True, help="Login email")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Password (prompted if omitted)",
)
@click.option(
    "--role",
    "-r",
    type=click.Choice([r.value for r in Role]),
    default=Role.EMPLOYEE.value,
    show_default=True,
)
@click.option(
    "--status",
    "-s",
    type=click.Choice([s.value for s in UserStatus]),
    default=UserStatus.ACTIVE.value,
    show_default=True,
)
def create_user(name: str, email: str, password: str, role: str, status: str):
    """Create an account with an explicit role and status."""
    try:
        user = _run(_create_user_impl(name, email, password, role, status))
    except AppError as e:
        click.secho(f"Error: {e.message}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Created {user.email} ({user.role}, {user.status}) id={user.id}", fg="green")


async def _create_user_impl(name: str, email: str, password: str, role: str, status: str):
    from hrportal.db.engine import async_session_factory, engine
    from hrportal.repositories.user_repository import UserRepository
    from hrportal.services.auth_service import AuthService

    try:
        async with async_session_factory() as session:
            svc = AuthService(UserRepository(session))
            return await svc.create_user(
                name=name,
                email=email,
                password=password,
                role=Role(role),
                status=UserStatus(status),
            )
    finally:
        await engine.dispose()


@main.command()
@click.option("--host", default=None, help="Bind address (default: HRPORTAL_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: HRPORTAL_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the API server with uvicorn."""
    import uvicorn

    from hrportal.config import settings

    uvicorn.run(
        "hrportal.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


if __name__ == "__main__":
    main()
