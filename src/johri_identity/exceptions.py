"""Identity and account-security exceptions.

These exceptions are raised by the johri_identity package and are mapped to
HTTP responses by ``johri_identity.presentation.api.exception_handlers``.
"""

from datetime import datetime
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes for API clients.

    These codes are part of the public API contract. Should not be changed.
    """

    # 400
    VALIDATION_ERROR = "VALIDATION_ERROR"
    WEAK_PASSWORD = "WEAK_PASSWORD"
    INVALID_OTP = "INVALID_OTP"
    OTP_EXPIRED = "OTP_EXPIRED"

    # 401
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_RESET_TOKEN = "INVALID_RESET_TOKEN"
    INVALID_SESSION = "INVALID_SESSION"

    # 403
    INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"

    # 404
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"

    # 409
    ACCOUNT_EXISTS = "ACCOUNT_EXISTS"

    # 423
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"

    # 429
    RATE_LIMITED = "RATE_LIMITED"

    # 500
    NOTIFICATION_FAILED = "NOTIFICATION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AuthError(Exception):
    """Base exception for all authentication and account-security errors.

    Attributes
    ----------
    message
        Human-readable error message (safe for end users)
    code
        Stable error code for programmatic handling
    details
        Optional additional context, rendered next to the message
    """

    def __init__(
        self,
        message: str = "Authentication error",
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code.value!r}, "
            f"details={self.details!r})"
        )


class AccountNotFoundError(AuthError):
    """Raised when no account matches the supplied identifier."""

    def __init__(self, message: str = "No account found with the provided contact."):
        super().__init__(message, ErrorCode.ACCOUNT_NOT_FOUND)


class AccountLockedError(AuthError):
    """Raised when an operation targets a currently locked account."""

    def __init__(
        self,
        locked_until: datetime | None = None,
        message: str | None = None,
    ):
        self.locked_until = locked_until
        if message is None:
            if locked_until is not None:
                message = (
                    "Account is temporarily locked until "
                    f"{locked_until.isoformat()}."
                )
            else:
                message = "Account is temporarily locked. Please try again later."
        details = {"locked_until": locked_until.isoformat()} if locked_until else {}
        super().__init__(message, ErrorCode.ACCOUNT_LOCKED, details)


class InvalidCredentialsError(AuthError):
    """Raised when username or password is incorrect during login."""

    def __init__(
        self,
        message: str = "Incorrect username or password.",
        code: ErrorCode = ErrorCode.INVALID_CREDENTIALS,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)


class InvalidOtpError(InvalidCredentialsError):
    """Raised when a submitted OTP does not match the active one."""

    def __init__(self, remaining_attempts: int, message: str | None = None):
        self.remaining_attempts = remaining_attempts
        if message is None:
            message = f"Incorrect OTP. You have {remaining_attempts} attempts left."
        super().__init__(
            message,
            ErrorCode.INVALID_OTP,
            {"remaining_attempts": remaining_attempts},
        )


class OtpExpiredError(InvalidCredentialsError):
    """Raised when no live OTP exists for the account."""

    def __init__(self, message: str = "The OTP has expired. Please request a new one."):
        super().__init__(message, ErrorCode.OTP_EXPIRED)


class InvalidResetTokenError(InvalidCredentialsError):
    """Raised when a password reset verification token is invalid or expired."""

    def __init__(self, message: str = "Invalid or expired verification token."):
        super().__init__(message, ErrorCode.INVALID_RESET_TOKEN)


class InvalidSessionError(AuthError):
    """Raised when a session token is invalid, expired, or malformed."""

    def __init__(self, message: str = "Invalid or expired session."):
        super().__init__(message, ErrorCode.INVALID_SESSION)


class InsufficientRoleError(AuthError):
    """Raised when a signed-in user's role may not use an operation."""

    def __init__(
        self,
        message: str = "Forbidden: You do not have the required permissions.",
    ):
        super().__init__(message, ErrorCode.INSUFFICIENT_ROLE)


class OtpRateLimitError(AuthError):
    """Raised when an OTP is requested again inside the resend window."""

    def __init__(self, retry_after_seconds: int, message: str | None = None):
        self.retry_after_seconds = retry_after_seconds
        if message is None:
            message = (
                "Please wait before requesting another OTP. "
                f"Try again in {retry_after_seconds} seconds."
            )
        super().__init__(
            message,
            ErrorCode.RATE_LIMITED,
            {"retry_after_seconds": retry_after_seconds},
        )


class ValidationFailureError(AuthError):
    """Raised when request input fails one or more validation rules."""

    def __init__(
        self,
        errors: list[str],
        message: str = "Validation failed.",
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        self.errors = list(errors)
        super().__init__(message, code, {"errors": self.errors})


class WeakPasswordError(ValidationFailureError):
    """Raised when a password doesn't meet strength requirements."""

    def __init__(
        self,
        errors: list[str],
        message: str = "Password does not meet requirements.",
    ):
        super().__init__(errors, message, ErrorCode.WEAK_PASSWORD)


class NotificationDeliveryError(AuthError):
    """Raised when a code could not be delivered to the user."""

    def __init__(self, message: str = "Failed to send verification code."):
        super().__init__(message, ErrorCode.NOTIFICATION_FAILED)
