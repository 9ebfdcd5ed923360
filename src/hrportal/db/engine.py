"""Async SQLAlchemy engine and session factory for the credential store.

Learn: FastAPI caches Depends(get_db) per request, so the auth guard and
the route handler share one AsyncSession (and one identity map). The CLI
opens its own session from async_session_factory.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from hrportal.config import settings

# Every auth request is a short single-row read or write, so a small pool
# is enough: 5 held connections plus 15 burst. HRPORTAL_DEBUG echoes SQL.
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=5,
    max_overflow=15,
)

# Rows stay readable after commit(); the services return the user they saved.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """Yield one session per request."""
    async with async_session_factory() as session:
        yield session
