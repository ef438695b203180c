"""Contact channels and identifier classification.

Users identify themselves with either an email address or a mobile number.
The shape of the identifier decides which one it is.
"""

import re
from dataclasses import dataclass
from enum import Enum

from johri_identity.domain.user.value_objects.email import Email
from johri_identity.domain.user.value_objects.phone_number import PhoneNumber
from johri_identity.domain.user.value_objects.user_role import UserRole

EMAIL_SHAPE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ContactChannel(str, Enum):
    """Delivery channel for verification codes."""

    EMAIL = "email"
    SMS = "sms"


# Every role must map to exactly one reset channel.
RESET_CHANNEL_BY_ROLE: dict[UserRole, ContactChannel] = {
    UserRole.OWNER: ContactChannel.EMAIL,
    UserRole.ADMIN: ContactChannel.SMS,
    UserRole.JEWELER: ContactChannel.SMS,
    UserRole.VIEWER: ContactChannel.SMS,
}

_missing = set(UserRole) - set(RESET_CHANNEL_BY_ROLE)
if _missing:
    msg = f"Reset channel not defined for roles: {sorted(r.value for r in _missing)}"
    raise RuntimeError(msg)


def reset_channel_for(role: UserRole) -> ContactChannel:
    """Return the channel a password reset for ``role`` is delivered on."""
    return RESET_CHANNEL_BY_ROLE[role]


@dataclass(frozen=True)
class ContactIdentifier:
    """A normalized identifier together with the channel it addresses."""

    channel: ContactChannel
    value: str

    @property
    def is_email(self) -> bool:
        return self.channel == ContactChannel.EMAIL


def classify_identifier(identifier: str) -> ContactIdentifier:
    """Classify a raw identifier as an email address or a phone number.

    Parameters
    ----------
    identifier
        The user-supplied email address or mobile number

    Returns
    -------
    The normalized identifier with its channel

    Raises
    ------
    InvalidEmailError
        If the identifier looks like an email but is malformed
    InvalidPhoneNumberError
        If the identifier is not an email and not 10-15 digits
    """
    raw = (identifier or "").strip()
    if EMAIL_SHAPE.match(raw):
        return ContactIdentifier(ContactChannel.EMAIL, Email(raw).value)
    return ContactIdentifier(ContactChannel.SMS, PhoneNumber(raw).value)
