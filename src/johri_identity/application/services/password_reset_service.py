"""Password reset via OTP: initiate, verify the code, set the new password."""

import logging

from johri_identity.application.context import RequestContext
from johri_identity.application.ports import NotificationDispatcher
from johri_identity.application.services.account_lock_guard import AccountLockGuard
from johri_identity.application.services.audit_trail import AuditTrail
from johri_identity.application.services.otp_challenge import OtpChallenge
from johri_identity.domain.security import AuditEventType, password_violations
from johri_identity.domain.user import (
    ContactChannel,
    ContactIdentifier,
    User,
    UserRepository,
    classify_identifier,
    reset_channel_for,
)
from johri_identity.exceptions import (
    AccountNotFoundError,
    InvalidResetTokenError,
    NotificationDeliveryError,
    ValidationFailureError,
    WeakPasswordError,
)
from johri_identity.schemas import OtpDispatch, VerificationGrant
from johri_identity.services import (
    OtpLedger,
    PasswordHashingService,
    VerificationTokenService,
)

logger = logging.getLogger(__name__)

NOT_FOUND_BY_CHANNEL: dict[ContactChannel, str] = {
    ContactChannel.EMAIL: "No Super Admin account found with the provided email.",
    ContactChannel.SMS: "No Jeweler account found with the provided mobile number.",
}
PASSWORD_MISMATCH_MESSAGE = "Passwords do not match."


class PasswordResetService:
    """Service for OTP-based password resets.

    Owners reset by email, every other role by SMS. A successful reset also
    releases any lock on the account.
    """

    def __init__(  # noqa: PLR0913
        self,
        user_repository: UserRepository,
        password_service: PasswordHashingService,
        verification_tokens: VerificationTokenService,
        otp_ledger: OtpLedger,
        otp_challenge: OtpChallenge,
        lock_guard: AccountLockGuard,
        audit_trail: AuditTrail,
        notifications: NotificationDispatcher,
    ):
        self._users = user_repository
        self._passwords = password_service
        self._tokens = verification_tokens
        self._ledger = otp_ledger
        self._challenge = otp_challenge
        self._lock_guard = lock_guard
        self._audit = audit_trail
        self._notifications = notifications

    async def initiate_reset(
        self,
        identifier: str,
        context: RequestContext | None = None,
    ) -> OtpDispatch:
        """Send a reset code on the channel the account's role resets through.

        Raises
        ------
        AccountNotFoundError
            If no account of a matching role uses the identifier
        AccountLockedError
            If the account is locked
        OtpRateLimitError
            If a code was sent less than a minute ago
        NotificationDeliveryError
            If the code could not be delivered
        """
        contact = classify_identifier(identifier)
        user = await self._find_by_contact(contact)
        if user is None or reset_channel_for(user.role) != contact.channel:
            logger.debug("Reset requested for unknown %s", contact.channel.value)
            raise AccountNotFoundError(NOT_FOUND_BY_CHANNEL[contact.channel])

        user = await self._lock_guard.ensure_unlocked(user, context, "reset")

        record = await self._ledger.issue(user.id)
        try:
            await self._notifications.send_code(
                contact.channel,
                contact.value,
                record.code,
                user.display_name or user.username,
            )
        except NotificationDeliveryError:
            await self._ledger.clear(user.id)
            raise
        await self._audit.record(
            AuditEventType.OTP_SENT,
            user.id,
            context,
            channel=contact.channel.value,
            purpose="reset",
        )
        logger.info("Password reset code sent to user %s", user.id)
        return OtpDispatch(
            channel=contact.channel,
            destination=contact.value,
            expires_at=record.expires_at,
        )

    async def verify_reset_otp(
        self,
        identifier: str,
        code: str,
        context: RequestContext | None = None,
    ) -> VerificationGrant:
        """Exchange a correct reset code for a single-use verification token.

        Raises
        ------
        AccountNotFoundError
            If no account uses the identifier
        AccountLockedError
            If the account is locked, or this attempt exhausted the ladder
        OtpExpiredError
            If no live code exists
        InvalidOtpError
            If the code is wrong
        """
        user = await self._require_user(identifier)
        user = await self._lock_guard.ensure_unlocked(user, context, "reset")
        await self._challenge.verify(user, (code or "").strip(), context, "reset")

        await self._ledger.clear(user.id)
        grant = await self._tokens.issue(user.id)
        await self._audit.record(
            AuditEventType.OTP_VERIFIED,
            user.id,
            context,
            purpose="reset",
        )
        return grant

    async def reset_password(  # noqa: PLR0913
        self,
        identifier: str,
        token: str,
        new_password: str,
        confirm_password: str,
        context: RequestContext | None = None,
    ) -> None:
        """Set a new password using a verification token.

        Raises
        ------
        InvalidResetTokenError
            If the token is malformed, unknown, expired, already used, or
            issued to another account
        AccountNotFoundError
            If no account uses the identifier
        ValidationFailureError
            If the confirmation does not match
        WeakPasswordError
            If the new password violates any strength rule
        """
        if not self._tokens.has_valid_shape(token):
            raise InvalidResetTokenError()

        contact = classify_identifier(identifier)
        user = await self._find_by_contact(contact)
        if user is None:
            raise AccountNotFoundError()

        token_data = await self._tokens.verify(token, user.id)

        if new_password != confirm_password:
            raise ValidationFailureError(
                [PASSWORD_MISMATCH_MESSAGE],
                PASSWORD_MISMATCH_MESSAGE,
            )
        violations = password_violations(new_password)
        if violations:
            raise WeakPasswordError(violations)

        await self._tokens.consume(token_data)

        await self._users.update_password_hash(
            user.id,
            self._passwords.hash(new_password),
        )
        await self._ledger.clear(user.id)

        was_locked = user.is_locked
        await self._users.unlock(user.id)
        logger.info("Password reset completed for user %s", user.id)

        await self._audit.record(AuditEventType.RESET_SUCCESS, user.id, context)
        if was_locked:
            await self._audit.record(
                AuditEventType.ACCOUNT_UNLOCKED,
                user.id,
                context,
                reason="password_reset",
            )

        try:
            await self._notifications.send_confirmation(
                contact.channel,
                contact.value,
                user.display_name or user.username,
            )
        except NotificationDeliveryError as e:
            # The password is already changed
            logger.error("Failed to send reset confirmation to user %s: %s", user.id, e)

    async def _require_user(self, identifier: str) -> User:
        user = await self._find_by_contact(classify_identifier(identifier))
        if user is None:
            raise AccountNotFoundError()
        return user

    async def _find_by_contact(self, contact: ContactIdentifier) -> User | None:
        if contact.is_email:
            return await self._users.find_by_email(contact.value)
        return await self._users.find_by_phone_number(contact.value)
