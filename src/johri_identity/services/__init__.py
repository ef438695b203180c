"""Stateless building-block services used by the application layer."""

from johri_identity.services.otp_ledger import OtpLedger, generate_code
from johri_identity.services.password_service import PasswordHashingService
from johri_identity.services.session_token_service import SessionTokenService
from johri_identity.services.verification_token_service import (
    VerificationTokenService,
)

__all__ = [
    "OtpLedger",
    "PasswordHashingService",
    "SessionTokenService",
    "VerificationTokenService",
    "generate_code",
]
