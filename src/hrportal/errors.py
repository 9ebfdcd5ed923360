"""Error taxonomy and the FastAPI handlers that render it.

Learn: Services raise these domain errors; they never build HTTP
responses themselves. The handlers registered in main.py turn every
error into the same envelope the success responses use:

    {"success": false, "message": "...", "error": "InvalidInput", "reason": ...}

Nothing here is retried. Internal errors are logged server-side and
reported to the caller with a generic message.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = structlog.get_logger()


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    error = "InternalError"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, reason: Optional[str] = None):
        self.message = message or self.default_message
        self.reason = reason
        super().__init__(self.message)


class InvalidInputError(AppError):
    """Missing or malformed request fields."""

    status_code = 400
    error = "InvalidInput"
    default_message = "Invalid input"


class InvalidCredentialsError(AppError):
    """Wrong password or no such identity."""

    status_code = 401
    error = "InvalidCredentials"
    default_message = "Invalid email or password"


class UnauthenticatedError(AppError):
    """Missing, expired, invalid, stale or superseded token; inactive account."""

    status_code = 401
    error = "Unauthenticated"
    default_message = "Authentication required"


class ForbiddenError(AppError):
    status_code = 403
    error = "Forbidden"
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    error = "NotFound"
    default_message = "Not found"


class InternalError(AppError):
    pass


def error_body(message: str, error: str, reason: Optional[str] = None, **extra) -> dict:
    body = {"success": False, "message": message, "error": error}
    if reason:
        body["reason"] = reason
    body.update(extra)
    return body


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError into the response envelope."""
    headers = None
    if isinstance(exc, UnauthenticatedError):
        headers = {"WWW-Authenticate": "Bearer"}
    if exc.status_code >= 500:
        logger.error("request.failed", path=request.url.path, error=exc.error)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.error, exc.reason),
        headers=headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Missing/malformed request fields → 400 InvalidInput."""
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        errors.append(f"{field}: {err.get('msg')}" if field else err.get("msg"))
    return JSONResponse(
        status_code=InvalidInputError.status_code,
        content=error_body(
            "Validation Error", InvalidInputError.error, errors=errors
        ),
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Persistence failures → 500 InternalError, details logged only."""
    logger.exception("request.database_error", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body(InternalError.default_message, InternalError.error),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request.unhandled_error", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body(InternalError.default_message, InternalError.error),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
