"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and dependencies (Postgres, Redis) are reachable. It is unauthenticated,
so failures are reported as a bare "error" and the cause goes to the log.
"""

import structlog
from fastapi import APIRouter
from sqlalchemy import text

from hrportal import __version__
from hrportal.db.engine import engine

router = APIRouter()
logger = structlog.get_logger()


@router.get("/health")
async def health_check():
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    # Check Postgres
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["postgres"] = "ok"
    except Exception as e:
        logger.warning("health.postgres_unreachable", error=str(e))
        checks["postgres"] = "error"

    # Check Redis (only rate limiting depends on it)
    try:
        from hrportal.redis_client import get_redis

        await get_redis().ping()
        checks["redis"] = "ok"
    except Exception as e:
        logger.warning("health.redis_unreachable", error=str(e))
        checks["redis"] = "error"

    status = "healthy" if all(
        v == "ok" for k, v in checks.items() if k != "version"
    ) else "degraded"

    return {"status": status, **checks}
