"""Security rules: lockout ladder, password strength and audit vocabulary."""

from johri_identity.domain.security.audit_event import AuditEventType
from johri_identity.domain.security.lockout_policy import AttemptOutcome, LockoutPolicy
from johri_identity.domain.security.password_policy import (
    is_strong_password,
    password_violations,
)

__all__ = [
    "AttemptOutcome",
    "AuditEventType",
    "LockoutPolicy",
    "is_strong_password",
    "password_violations",
]
