"""Password-reset delivery.

Learn: There is no email integration. The default mailer only logs that
a reset was requested; in development it also logs the token so the flow
can be exercised by hand. Tests swap in a capturing mailer through
FastAPI's dependency_overrides.
"""

import structlog

from hrportal.config import settings
from hrportal.db.models import User

logger = structlog.get_logger()


class ResetMailer:
    """Delivers password reset tokens to users (stub: logs only)."""

    async def send_password_reset(self, user: User, token: str) -> None:
        if settings.environment == "development":
            logger.info("mail.password_reset", to=user.email, reset_token=token)
        else:
            logger.info("mail.password_reset", to=user.email)


def get_mailer() -> ResetMailer:
    """FastAPI dependency for the reset mailer."""
    return ResetMailer()
