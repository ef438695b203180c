"""E-mail address value object.

Owners sign in and reset their password by e-mail, so the address is the
lookup key for them and is stored lower-cased.
"""

import re
from dataclasses import dataclass

from johri_identity.domain.user.exceptions import InvalidEmailError

EMAIL_PATTERN = re.compile(r"^[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}$")
MAX_EMAIL_LENGTH = 255


@dataclass(frozen=True)
class Email:
    """A syntactically valid, lower-cased e-mail address."""

    value: str

    def __post_init__(self) -> None:
        normalized = (self.value or "").strip().lower()
        if not normalized:
            msg = "Email is required."
            raise InvalidEmailError(msg)
        if len(normalized) > MAX_EMAIL_LENGTH or not EMAIL_PATTERN.match(normalized):
            msg = "Please provide a valid email address."
            raise InvalidEmailError(msg)
        object.__setattr__(self, "value", normalized)

    @property
    def masked(self) -> str:
        """Address safe for log lines, e.g. ``a***@example.com``."""
        local, domain = self.value.rsplit("@", 1)
        return f"{local[0]}***@{domain}"

    def __str__(self) -> str:
        return self.value
