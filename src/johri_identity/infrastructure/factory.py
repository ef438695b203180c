"""Wires the identity services for one database session."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from johri_identity.application.ports import NotificationDispatcher
from johri_identity.application.services import (
    AccountLockGuard,
    AuditTrail,
    AuthenticationService,
    OtpChallenge,
    PasswordResetService,
)
from johri_identity.domain.security import LockoutPolicy
from johri_identity.domain.shared.time import Clock, utc_now
from johri_identity.domain.user import ContactChannel
from johri_identity.infrastructure.notifications import (
    EmailNotificationSender,
    SmsNotificationSender,
)
from johri_identity.infrastructure.persistence.sqlalchemy.repositories import (
    AuditEventRepositorySQLAlchemy,
    OtpRecordRepositorySQLAlchemy,
    UserRepositorySQLAlchemy,
    VerificationTokenRepositorySQLAlchemy,
)
from johri_identity.services import (
    OtpLedger,
    PasswordHashingService,
    SessionTokenService,
    VerificationTokenService,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from johri_config.settings import Settings

logger = logging.getLogger(__name__)


def build_notification_dispatcher(settings: Settings) -> NotificationDispatcher:
    """Dispatcher with the SMTP sender for email and the gateway sender for SMS."""
    return NotificationDispatcher(
        {
            ContactChannel.EMAIL: EmailNotificationSender(settings),
            ContactChannel.SMS: SmsNotificationSender(settings),
        },
    )


class IdentityServiceFactory:
    """Builds the orchestrators and their collaborators for one session.

    All services created by one factory share the session, so a request's
    reads and writes happen in a single transaction.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        notifications: NotificationDispatcher | None = None,
        clock: Clock = utc_now,
    ):
        self._session = session
        self._settings = settings
        self._notifications = notifications or build_notification_dispatcher(settings)
        self._clock = clock

        self._users = UserRepositorySQLAlchemy(session)
        self._policy = LockoutPolicy(
            max_otp_attempts=settings.max_otp_attempts,
            lockout_duration_minutes=settings.lockout_duration_minutes,
            otp_ttl_minutes=settings.otp_expiry_minutes,
        )
        self._audit_trail = AuditTrail(AuditEventRepositorySQLAlchemy(session), clock)
        self._ledger = OtpLedger(
            OtpRecordRepositorySQLAlchemy(session),
            self._policy,
            clock,
        )
        self._lock_guard = AccountLockGuard(
            self._users,
            self._policy,
            self._audit_trail,
            clock,
        )
        self._challenge = OtpChallenge(
            self._users,
            self._ledger,
            self._policy,
            self._audit_trail,
            clock,
        )
        self._passwords = PasswordHashingService(rounds=settings.password_hash_rounds)

    @property
    def session(self) -> AsyncSession:
        return self._session

    @property
    def user_repository(self) -> UserRepositorySQLAlchemy:
        return self._users

    @property
    def lockout_policy(self) -> LockoutPolicy:
        return self._policy

    def session_token_service(self) -> SessionTokenService:
        return SessionTokenService(
            secret_key=self._settings.session_secret_key.get_secret_value(),
            expire_hours=self._settings.session_expire_hours,
            clock=self._clock,
        )

    def verification_token_service(self) -> VerificationTokenService:
        return VerificationTokenService(
            VerificationTokenRepositorySQLAlchemy(self._session),
            secret=self._settings.verification_token_secret.get_secret_value(),
            ttl_minutes=self._settings.verification_token_ttl_minutes,
            clock=self._clock,
        )

    def authentication_service(self) -> AuthenticationService:
        return AuthenticationService(
            user_repository=self._users,
            password_service=self._passwords,
            session_token_service=self.session_token_service(),
            otp_ledger=self._ledger,
            otp_challenge=self._challenge,
            lock_guard=self._lock_guard,
            audit_trail=self._audit_trail,
            notifications=self._notifications,
        )

    def password_reset_service(self) -> PasswordResetService:
        return PasswordResetService(
            user_repository=self._users,
            password_service=self._passwords,
            verification_tokens=self.verification_token_service(),
            otp_ledger=self._ledger,
            otp_challenge=self._challenge,
            lock_guard=self._lock_guard,
            audit_trail=self._audit_trail,
            notifications=self._notifications,
        )
