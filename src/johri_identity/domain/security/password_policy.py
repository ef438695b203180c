"""Password strength rules.

Validation reports every violated rule at once so clients can show the
complete list to the user.
"""

import re

MIN_LENGTH = 8
# bcrypt only considers the first 72 bytes of a password
MAX_BYTES = 72
SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

_SPECIAL_PATTERN = re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]")

LENGTH_RULE = f"Password must be at least {MIN_LENGTH} characters long."
MAX_LENGTH_RULE = f"Password cannot exceed {MAX_BYTES} bytes."
LOWERCASE_RULE = "Password must contain at least one lowercase letter."
UPPERCASE_RULE = "Password must contain at least one uppercase letter."
DIGIT_RULE = "Password must contain at least one number."
SPECIAL_RULE = "Password must contain at least one special character."


def password_violations(password: str) -> list[str]:
    """Return the rules ``password`` violates, in a stable order.

    Examples
    --------
    >>> len(password_violations("abc"))
    4
    >>> password_violations("Abcdefg1!")
    []
    """
    password = password or ""
    errors: list[str] = []

    if len(password) < MIN_LENGTH:
        errors.append(LENGTH_RULE)
    if len(password.encode("utf-8")) > MAX_BYTES:
        errors.append(MAX_LENGTH_RULE)
    if not re.search(r"[a-z]", password):
        errors.append(LOWERCASE_RULE)
    if not re.search(r"[A-Z]", password):
        errors.append(UPPERCASE_RULE)
    if not re.search(r"[0-9]", password):
        errors.append(DIGIT_RULE)
    if not _SPECIAL_PATTERN.search(password):
        errors.append(SPECIAL_RULE)

    return errors


def is_strong_password(password: str) -> bool:
    return not password_violations(password)
