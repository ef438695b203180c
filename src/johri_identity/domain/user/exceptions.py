"""User domain exceptions.

Raised for malformed identifiers and uniqueness violations. They extend the
package exception hierarchy so the API layer renders them like any other
account error.
"""

from johri_identity.exceptions import AuthError, ErrorCode, ValidationFailureError


class InvalidEmailError(ValidationFailureError):
    """Raised when email format is invalid."""

    def __init__(self, message: str) -> None:
        super().__init__([message], message)


class InvalidPhoneNumberError(ValidationFailureError):
    """Raised when a phone number is not 10-15 digits."""

    def __init__(self, message: str) -> None:
        super().__init__([message], message)


class UserAlreadyExistsError(AuthError):
    """Username, email, phone number or Google account already registered."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(
            f"An account already exists for {identifier}.",
            ErrorCode.ACCOUNT_EXISTS,
        )
