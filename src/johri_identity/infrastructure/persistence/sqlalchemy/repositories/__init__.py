# ruff: noqa: E501 - Long import paths in __init__.py re-exports
"""SQLAlchemy repository implementations for identity management."""

from johri_identity.infrastructure.persistence.sqlalchemy.repositories.audit_event_repository import (
    AuditEventRepositorySQLAlchemy,
)
from johri_identity.infrastructure.persistence.sqlalchemy.repositories.otp_record_repository import (
    OtpRecordRepositorySQLAlchemy,
)
from johri_identity.infrastructure.persistence.sqlalchemy.repositories.user_repository import (
    UserRepositorySQLAlchemy,
)
from johri_identity.infrastructure.persistence.sqlalchemy.repositories.verification_token_repository import (
    VerificationTokenRepositorySQLAlchemy,
)

__all__ = [
    "AuditEventRepositorySQLAlchemy",
    "OtpRecordRepositorySQLAlchemy",
    "UserRepositorySQLAlchemy",
    "VerificationTokenRepositorySQLAlchemy",
]
