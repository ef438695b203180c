"""SQLAlchemy implementation for johri_identity persistence.

Provides:
- IdentityBase: Declarative base for identity models
- create_identity_engine / create_tables: Engine setup and schema creation
- Models for users, OTP records, audit events and verification tokens
- Repository implementations for each of them
"""

from johri_identity.infrastructure.persistence.sqlalchemy.base import (
    IdentityBase,
    TimestampMixin,
)
from johri_identity.infrastructure.persistence.sqlalchemy.models import (
    AuditEventModel,
    OtpRecordModel,
    UserModel,
    VerificationTokenModel,
)
from johri_identity.infrastructure.persistence.sqlalchemy.repositories import (
    AuditEventRepositorySQLAlchemy,
    OtpRecordRepositorySQLAlchemy,
    UserRepositorySQLAlchemy,
    VerificationTokenRepositorySQLAlchemy,
)
from johri_identity.infrastructure.persistence.sqlalchemy.engine import (
    create_identity_engine,
    create_tables,
    drop_tables,
)

__all__ = [
    "AuditEventModel",
    "AuditEventRepositorySQLAlchemy",
    "IdentityBase",
    "OtpRecordModel",
    "OtpRecordRepositorySQLAlchemy",
    "TimestampMixin",
    "UserModel",
    "UserRepositorySQLAlchemy",
    "VerificationTokenModel",
    "VerificationTokenRepositorySQLAlchemy",
    "create_identity_engine",
    "create_tables",
    "drop_tables",
]
