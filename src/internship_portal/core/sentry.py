"""
Error Tracking

Sentry reporting for unhandled exceptions and ``logger.exception`` calls.
Only active when SENTRY_DSN is set; the FastAPI and Starlette integrations
are enabled automatically by sentry-sdk.
"""

import logging
from typing import Any

import sentry_sdk

from internship_portal.core.config import settings

logger = logging.getLogger(__name__)


def _drop_in_development(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
    """Keep development errors local instead of sending them."""
    if settings.is_development:
        logger.debug(f"Sentry event not sent in development: {hint.get('exc_info')}")
        return None
    return event


def init_sentry() -> bool:
    """
    Initialize Sentry if a DSN is configured.

    Returns:
        True if reporting was enabled
    """
    if not settings.sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.python_env,
        release=settings.sentry_release,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        before_send=_drop_in_development,
    )
    logger.info(f"Sentry initialized for environment {settings.python_env}")
    return True
