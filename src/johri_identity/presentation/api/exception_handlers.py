"""Centralized exception handlers for account-security errors.

Every ``AuthError`` is mapped to an HTTP response with a consistent body.
Anything else becomes a generic 500 whose cause is only logged.

Error Response Format:
    {
        "detail": "Human-readable error message",
        "code": "MACHINE_READABLE_ERROR_CODE",
        ...extra fields such as "errors" or "remaining_attempts"
    }

Usage:
    from johri_identity.presentation.api.exception_handlers import (
        setup_exception_handlers,
    )

    app = FastAPI()
    setup_exception_handlers(app)
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from johri_identity.exceptions import (
    AuthError,
    ErrorCode,
    NotificationDeliveryError,
    OtpRateLimitError,
)

logger = logging.getLogger(__name__)

HTTP_423_LOCKED = 423

ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.WEAK_PASSWORD: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_OTP: status.HTTP_400_BAD_REQUEST,
    ErrorCode.OTP_EXPIRED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_RESET_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_SESSION: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INSUFFICIENT_ROLE: status.HTTP_403_FORBIDDEN,
    ErrorCode.ACCOUNT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ACCOUNT_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.ACCOUNT_LOCKED: HTTP_423_LOCKED,
    ErrorCode.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.NOTIFICATION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

_missing = set(ErrorCode) - set(ERROR_CODE_TO_STATUS)
if _missing:
    msg = f"HTTP status not defined for error codes: {sorted(c.value for c in _missing)}"
    raise RuntimeError(msg)

GENERIC_ERROR_MESSAGE = "An internal error occurred"


def status_for_error(exc: AuthError) -> int:
    return ERROR_CODE_TO_STATUS[exc.code]


def _create_error_response(
    status_code: int,
    message: str,
    code: str,
    extra: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    content: dict[str, Any] = {"detail": message, "code": code}
    if extra:
        content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the account-security exception handlers on an application.

    Parameters
    ----------
    app
        The FastAPI application instance
    """

    @app.exception_handler(AuthError)
    async def auth_exception_handler(
        request: Request,
        exc: AuthError,
    ) -> JSONResponse:
        """Render account errors with their stable code and extra fields."""
        status_code = status_for_error(exc)

        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(
                "Account error on %s %s: %s (code=%s)",
                request.method,
                request.url.path,
                exc.message,
                exc.code.value,
                exc_info=exc.__cause__ or exc,
            )
            message = (
                exc.message
                if isinstance(exc, NotificationDeliveryError)
                else GENERIC_ERROR_MESSAGE
            )
            return _create_error_response(status_code, message, exc.code.value)

        logger.warning(
            "Account error on %s %s: %s (code=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
        )

        headers = None
        if isinstance(exc, OtpRateLimitError):
            headers = {"Retry-After": str(exc.retry_after_seconds)}

        return _create_error_response(
            status_code=status_code,
            message=exc.message,
            code=exc.code.value,
            extra=exc.details,
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Hide unexpected failures behind a generic 500."""
        logger.exception(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            exc,
        )
        return _create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=GENERIC_ERROR_MESSAGE,
            code=ErrorCode.INTERNAL_ERROR.value,
        )
