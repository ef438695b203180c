"""Mobile number value object."""

import re
from dataclasses import dataclass

from johri_identity.domain.user.exceptions import InvalidPhoneNumberError

PHONE_PATTERN = re.compile(r"^[0-9]{10,15}$")


@dataclass(frozen=True)
class PhoneNumber:
    """Digits-only mobile number, 10 to 15 digits long."""

    value: str

    def __post_init__(self) -> None:
        normalized = (self.value or "").strip()
        if not PHONE_PATTERN.match(normalized):
            msg = "Phone number must be 10-15 digits."
            raise InvalidPhoneNumberError(msg)
        object.__setattr__(self, "value", normalized)

    @property
    def masked(self) -> str:
        """Number safe for log lines: only the last four digits are shown."""
        return "*" * (len(self.value) - 4) + self.value[-4:]

    def __str__(self) -> str:
        return self.value
