"""Application services for account security."""

from johri_identity.application.services.account_lock_guard import AccountLockGuard
from johri_identity.application.services.audit_trail import AuditTrail
from johri_identity.application.services.authentication_service import (
    AuthenticationService,
)
from johri_identity.application.services.otp_challenge import OtpChallenge
from johri_identity.application.services.password_reset_service import (
    PasswordResetService,
)

__all__ = [
    "AccountLockGuard",
    "AuditTrail",
    "AuthenticationService",
    "OtpChallenge",
    "PasswordResetService",
]
