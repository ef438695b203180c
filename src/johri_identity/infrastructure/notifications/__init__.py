from johri_identity.infrastructure.notifications.email_sender import (
    EmailNotificationSender,
)
from johri_identity.infrastructure.notifications.sms_sender import (
    SmsNotificationSender,
)

__all__ = [
    "EmailNotificationSender",
    "SmsNotificationSender",
]
