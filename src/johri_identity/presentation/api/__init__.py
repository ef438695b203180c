"""FastAPI glue: dependencies, exception handlers and request schemas."""

from johri_identity.presentation.api.exception_handlers import (
    setup_exception_handlers,
)
from johri_identity.presentation.api.setup import (
    close_notification_senders,
    configure_identity,
    configure_logging,
)

__all__ = [
    "close_notification_senders",
    "configure_identity",
    "configure_logging",
    "setup_exception_handlers",
]
