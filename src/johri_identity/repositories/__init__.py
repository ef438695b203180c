"""Abstract repository interfaces for OTPs, audit events and reset tokens."""

from johri_identity.repositories.audit_event_repository import (
    AuditEventData,
    AuditEventRepository,
)
from johri_identity.repositories.otp_record_repository import (
    OtpRecordData,
    OtpRecordRepository,
)
from johri_identity.repositories.verification_token_repository import (
    VerificationTokenData,
    VerificationTokenRepository,
)

__all__ = [
    "AuditEventData",
    "AuditEventRepository",
    "OtpRecordData",
    "OtpRecordRepository",
    "VerificationTokenData",
    "VerificationTokenRepository",
]
