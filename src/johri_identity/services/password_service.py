"""bcrypt password hashing for staff and jeweler accounts.

End users sign in by OTP or Google and usually have no password hash at
all, so verification treats a missing hash as a non-match.
"""

import re

import bcrypt

from johri_identity.domain.security.password_policy import password_violations
from johri_identity.exceptions import WeakPasswordError

_BCRYPT_COST = re.compile(r"^\$2[abxy]?\$(\d{2})\$")


class PasswordHashingService:
    """Hash and check passwords with a fixed bcrypt cost.

    Examples
    --------
    >>> service = PasswordHashingService(rounds=4)
    >>> stored = service.hash("Secure#Pass1")
    >>> service.verify("Secure#Pass1", stored)
    True
    >>> service.verify("Secure#Pass2", stored)
    False
    """

    def __init__(self, rounds: int = 12):
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        """Check the password rules, then hash.

        Raises
        ------
        WeakPasswordError
            Listing every rule the password breaks
        """
        self.validate_strength(password)
        return self.rehash(password)

    def rehash(self, password: str) -> str:
        """Hash an already accepted password at the current cost."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str | None) -> bool:
        if not password or not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            # Malformed stored hash or a password bcrypt refuses
            return False

    def validate_strength(self, password: str) -> None:
        errors = password_violations(password)
        if errors:
            raise WeakPasswordError(errors)

    def needs_rehash(self, password_hash: str | None) -> bool:
        """Whether a stored hash was made with a different cost."""
        match = _BCRYPT_COST.match(password_hash or "")
        if match is None:
            return True
        return int(match.group(1)) != self._rounds
