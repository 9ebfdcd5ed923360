"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis, database engine).
Middleware, CORS, exception handlers and routers all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hrportal import __version__
from hrportal.api import api_router
from hrportal.config import settings
from hrportal.errors import register_exception_handlers

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "hrportal.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from hrportal.redis_client import close_redis, init_redis
    try:
        await init_redis()
        logger.info("hrportal.redis_connected", url=settings.redis_url)
    except Exception as e:
        # Redis is optional — only rate limiting is lost
        logger.warning("hrportal.redis_unavailable", error=str(e))

    yield

    logger.info("hrportal.shutdown")
    await close_redis()

    from hrportal.db.engine import engine
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="HR Portal",
        description="HR management backend — authentication and session lifecycle",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from hrportal.middleware.rate_limit import RateLimitMiddleware
    from hrportal.middleware.request_id import RequestIdMiddleware
    from hrportal.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: hrportal.main:app)
app = create_app()
