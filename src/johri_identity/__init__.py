"""Johri Identity - account security for the marketplace backend.

This package handles:
- Sign-in with username/password, phone or email OTP, and Google
- Progressive lockout after repeated wrong OTPs, with lazy auto-unlock
- OTP-based password reset with single-use verification tokens
- A best-effort security audit trail

Route handlers live in the host application; they call the services
exposed here and install ``setup_exception_handlers`` for error mapping.
"""

from johri_identity.application.context import RequestContext
from johri_identity.application.ports import NotificationDispatcher, NotificationSender
from johri_identity.application.services import (
    AuthenticationService,
    PasswordResetService,
)
from johri_identity.domain.security import (
    AttemptOutcome,
    AuditEventType,
    LockoutPolicy,
    password_violations,
)
from johri_identity.domain.user import (
    ContactChannel,
    User,
    UserAlreadyExistsError,
    UserRepository,
    UserRole,
)
from johri_identity.exceptions import (
    AccountLockedError,
    AccountNotFoundError,
    AuthError,
    ErrorCode,
    InsufficientRoleError,
    InvalidCredentialsError,
    InvalidOtpError,
    InvalidResetTokenError,
    InvalidSessionError,
    NotificationDeliveryError,
    OtpExpiredError,
    OtpRateLimitError,
    ValidationFailureError,
    WeakPasswordError,
)
from johri_identity.schemas import (
    AuthenticatedSession,
    OAuthProfile,
    OtpDispatch,
    PublicUser,
    VerificationGrant,
)
from johri_identity.services import (
    OtpLedger,
    PasswordHashingService,
    SessionTokenService,
    VerificationTokenService,
)

__all__ = [
    # Domain
    "AttemptOutcome",
    "AuditEventType",
    "ContactChannel",
    "LockoutPolicy",
    "User",
    "UserAlreadyExistsError",
    "UserRepository",
    "UserRole",
    "password_violations",
    # Exceptions
    "AccountLockedError",
    "AccountNotFoundError",
    "AuthError",
    "ErrorCode",
    "InsufficientRoleError",
    "InvalidCredentialsError",
    "InvalidOtpError",
    "InvalidResetTokenError",
    "InvalidSessionError",
    "NotificationDeliveryError",
    "OtpExpiredError",
    "OtpRateLimitError",
    "ValidationFailureError",
    "WeakPasswordError",
    # Schemas
    "AuthenticatedSession",
    "OAuthProfile",
    "OtpDispatch",
    "PublicUser",
    "VerificationGrant",
    # Services
    "OtpLedger",
    "PasswordHashingService",
    "SessionTokenService",
    "VerificationTokenService",
    # Application
    "AuthenticationService",
    "NotificationDispatcher",
    "NotificationSender",
    "PasswordResetService",
    "RequestContext",
]
