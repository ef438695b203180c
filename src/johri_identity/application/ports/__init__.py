from johri_identity.application.ports.notifications import (
    NotificationDispatcher,
    NotificationSender,
)

__all__ = [
    "NotificationDispatcher",
    "NotificationSender",
]
