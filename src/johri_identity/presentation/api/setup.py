"""Application wiring helpers for hosts embedding the identity layer."""

import logging
import sys

from fastapi import FastAPI

from johri_config.settings import Settings, get_settings
from johri_identity.presentation.api.dependencies import (
    get_notification_dispatcher,
)
from johri_identity.presentation.api.exception_handlers import (
    setup_exception_handlers,
)

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings | None = None) -> None:
    """Configure application logging.

    Sets up logging with:
    - Console output with timestamps and module names
    - Configurable log level for johri modules (from settings)
    - WARNING level for noisy third-party libraries
    """
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )

    logging.getLogger("johri_identity").setLevel(log_level)
    logging.getLogger("johri_config").setLevel(log_level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def configure_identity(app: FastAPI, settings: Settings | None = None) -> None:
    """Install logging and exception handling on a host application."""
    configure_logging(settings)
    setup_exception_handlers(app)
    logger.info("Identity layer configured")


async def close_notification_senders() -> None:
    """Release pooled gateway connections; call from the host's shutdown."""
    await get_notification_dispatcher().aclose()
