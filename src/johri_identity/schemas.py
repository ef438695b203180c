"""Result objects returned by the identity services.

None of these carry a password hash, so they are safe to hand to route
handlers and serialize as-is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from johri_identity.domain.user.value_objects import ContactChannel, UserRole


@dataclass(frozen=True)
class PublicUser:
    """Sanitized view of a user account."""

    id: UUID
    role: UserRole
    username: str | None
    email: str | None
    phone_number: str | None
    display_name: str | None
    has_google_account: bool
    created_at: datetime


@dataclass(frozen=True)
class AuthenticatedSession:
    """A signed-in user and the session token bound to them."""

    user: PublicUser
    session_token: str
    expires_at: datetime


@dataclass(frozen=True)
class SessionPayload:
    """Claims decoded from a verified session token."""

    user_id: UUID
    role: UserRole
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class OtpDispatch:
    """Where a freshly issued OTP was sent and until when it is valid."""

    channel: ContactChannel
    destination: str
    expires_at: datetime


@dataclass(frozen=True)
class VerificationGrant:
    """Single-use proof that a reset OTP was verified."""

    token: str
    expires_at: datetime


@dataclass(frozen=True)
class OAuthProfile:
    """Identity asserted by an external OAuth provider (Google)."""

    provider_user_id: str
    email: str | None
    display_name: str | None = None
