"""User domain: identity, contact identifiers, credentials and lock state."""

from johri_identity.domain.user.aggregates import User
from johri_identity.domain.user.exceptions import (
    InvalidEmailError,
    InvalidPhoneNumberError,
    UserAlreadyExistsError,
)
from johri_identity.domain.user.repositories import UserRepository
from johri_identity.domain.user.value_objects import (
    ContactChannel,
    ContactIdentifier,
    Email,
    PhoneNumber,
    UserRole,
    classify_identifier,
    reset_channel_for,
)

__all__ = [
    "ContactChannel",
    "ContactIdentifier",
    "Email",
    "InvalidEmailError",
    "InvalidPhoneNumberError",
    "PhoneNumber",
    "User",
    "UserAlreadyExistsError",
    "UserRepository",
    "UserRole",
    "classify_identifier",
    "reset_channel_for",
]
