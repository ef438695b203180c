"""Value objects for the user domain."""

from johri_identity.domain.user.value_objects.contact import (
    ContactChannel,
    ContactIdentifier,
    classify_identifier,
    reset_channel_for,
)
from johri_identity.domain.user.value_objects.email import Email
from johri_identity.domain.user.value_objects.phone_number import PhoneNumber
from johri_identity.domain.user.value_objects.user_role import UserRole

__all__ = [
    "ContactChannel",
    "ContactIdentifier",
    "Email",
    "PhoneNumber",
    "UserRole",
    "classify_identifier",
    "reset_channel_for",
]
