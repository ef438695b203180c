"""OTP verification with the progressive lockout ladder."""

import logging

from johri_identity.application.context import RequestContext
from johri_identity.application.services.audit_trail import AuditTrail
from johri_identity.domain.security import AuditEventType, LockoutPolicy
from johri_identity.domain.shared.time import Clock, utc_now
from johri_identity.domain.user import User, UserRepository
from johri_identity.exceptions import (
    AccountLockedError,
    InvalidOtpError,
    OtpExpiredError,
)
from johri_identity.services import OtpLedger

logger = logging.getLogger(__name__)

LOCKED_AFTER_FAILURES_MESSAGE = (
    "Too many failed attempts. Your account is temporarily locked."
)


class OtpChallenge:
    """Verifies a submitted OTP against the user's live record.

    The caller is expected to have passed the lock check already. Wrong codes
    are counted with an atomic increment and the lock decision is taken on
    the count returned by the store, so concurrent wrong submissions can
    never undercount.
    """

    def __init__(
        self,
        user_repository: UserRepository,
        otp_ledger: OtpLedger,
        lockout_policy: LockoutPolicy,
        audit_trail: AuditTrail,
        clock: Clock = utc_now,
    ):
        self._users = user_repository
        self._ledger = otp_ledger
        self._policy = lockout_policy
        self._audit = audit_trail
        self._clock = clock

    async def verify(
        self,
        user: User,
        submitted_code: str,
        context: RequestContext | None = None,
        purpose: str = "login",
    ) -> None:
        """Accept the code or raise.

        Parameters
        ----------
        user
            The account the code was issued to
        submitted_code
            The code entered by the user
        context
            Request metadata for the audit log
        purpose
            "login" or "reset", recorded with audit events

        Raises
        ------
        OtpExpiredError
            If no live code exists (never issued, superseded or expired)
        InvalidOtpError
            If the code is wrong and attempts remain
        AccountLockedError
            If this wrong submission exhausted the attempts
        """
        now = self._clock()
        record = await self._ledger.latest(user.id)
        if record is None:
            raise OtpExpiredError()

        outcome = self._policy.next_attempt_outcome(record, submitted_code, now)
        if outcome.expired:
            raise OtpExpiredError()
        if outcome.accepted:
            return

        attempts = await self._ledger.record_failed_attempt(record.id)
        if attempts is None:
            # Superseded by a newer code between read and increment.
            raise OtpExpiredError()

        outcome = self._policy.outcome_after_failures(attempts)
        if outcome.should_lock:
            locked_until = self._policy.lockout_expiry(now)
            await self._users.lock(user.id, locked_until)
            user.lock(locked_until)
            logger.warning(
                "User %s locked until %s after %d failed OTP attempts",
                user.id,
                locked_until.isoformat(),
                attempts,
            )
            await self._audit.record(
                AuditEventType.ACCOUNT_LOCKED,
                user.id,
                context,
                attempts=attempts,
                locked_until=locked_until.isoformat(),
                purpose=purpose,
            )
            raise AccountLockedError(locked_until, LOCKED_AFTER_FAILURES_MESSAGE)

        await self._audit.record(
            AuditEventType.OTP_FAILED,
            user.id,
            context,
            remaining_attempts=outcome.remaining_attempts,
            purpose=purpose,
        )
        raise InvalidOtpError(outcome.remaining_attempts)
