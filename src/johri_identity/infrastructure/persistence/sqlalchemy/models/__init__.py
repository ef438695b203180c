# ruff: noqa: E501 - Long import paths in __init__.py re-exports
"""SQLAlchemy models for identity management."""

from johri_identity.infrastructure.persistence.sqlalchemy.models.audit_event_model import (
    AuditEventModel,
)
from johri_identity.infrastructure.persistence.sqlalchemy.models.otp_record_model import (
    OtpRecordModel,
)
from johri_identity.infrastructure.persistence.sqlalchemy.models.user_model import (
    UserModel,
)
from johri_identity.infrastructure.persistence.sqlalchemy.models.verification_token_model import (
    VerificationTokenModel,
)

__all__ = [
    "AuditEventModel",
    "OtpRecordModel",
    "UserModel",
    "VerificationTokenModel",
]
