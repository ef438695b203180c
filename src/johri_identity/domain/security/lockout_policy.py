"""Lockout decisions for OTP verification.

Pure logic, no I/O: the policy never reads or writes the store and never
mutates the objects handed to it. Orchestrators persist whatever it decides.
"""

import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta

from johri_identity.domain.shared.time import ensure_tz_aware
from johri_identity.domain.user.aggregates.user import User
from johri_identity.repositories.otp_record_repository import OtpRecordData

DEFAULT_MAX_OTP_ATTEMPTS = 5
DEFAULT_LOCKOUT_DURATION_MINUTES = 15
DEFAULT_OTP_TTL_MINUTES = 5


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of evaluating one OTP submission.

    Attributes
    ----------
    accepted
        The code matched and the record was still live
    expired
        The record expired before the submission
    remaining_attempts
        Attempts left after this submission (only meaningful on a mismatch)
    should_lock
        The account must be locked as a consequence of this submission
    """

    accepted: bool
    expired: bool
    remaining_attempts: int
    should_lock: bool


class LockoutPolicy:
    """Progressive lockout rules for OTP verification.

    Examples
    --------
    >>> policy = LockoutPolicy(max_otp_attempts=5)
    >>> policy.outcome_after_failures(4).remaining_attempts
    1
    >>> policy.outcome_after_failures(5).should_lock
    True
    """

    def __init__(
        self,
        max_otp_attempts: int = DEFAULT_MAX_OTP_ATTEMPTS,
        lockout_duration_minutes: int = DEFAULT_LOCKOUT_DURATION_MINUTES,
        otp_ttl_minutes: int = DEFAULT_OTP_TTL_MINUTES,
    ):
        if max_otp_attempts < 1:
            msg = "max_otp_attempts must be at least 1"
            raise ValueError(msg)
        self._max_otp_attempts = max_otp_attempts
        self._lockout_duration_minutes = lockout_duration_minutes
        self._otp_ttl_minutes = otp_ttl_minutes

    @property
    def max_otp_attempts(self) -> int:
        return self._max_otp_attempts

    def is_locked(self, user: User, now: datetime) -> bool:
        """Whether a lock is currently in force.

        A lock without expiry is indefinite. A lock whose expiry has passed
        counts as released, even though the stored flag may still be set.
        """
        if not user.is_locked:
            return False
        if user.lockout_expires_at is None:
            return True
        return ensure_tz_aware(user.lockout_expires_at) > now

    def has_expired_lock(self, user: User, now: datetime) -> bool:
        """Whether the stored lock flag is stale and must be cleared."""
        return user.is_locked and not self.is_locked(user, now)

    def next_attempt_outcome(
        self,
        record: OtpRecordData,
        submitted_code: str,
        now: datetime,
        max_attempts: int | None = None,
    ) -> AttemptOutcome:
        """Evaluate a submission against the live OTP record.

        Parameters
        ----------
        record
            The user's most recent OTP record, as read before the submission
        submitted_code
            The code entered by the user
        now
            Current time
        max_attempts
            Override for the configured attempt limit

        Returns
        -------
        The outcome, with ``remaining_attempts`` counting this submission
        """
        limit = max_attempts if max_attempts is not None else self._max_otp_attempts

        if now > ensure_tz_aware(record.expires_at):
            return AttemptOutcome(
                accepted=False,
                expired=True,
                remaining_attempts=max(limit - record.attempts, 0),
                should_lock=False,
            )

        if hmac.compare_digest(record.code.encode(), (submitted_code or "").encode()):
            return AttemptOutcome(
                accepted=True,
                expired=False,
                remaining_attempts=max(limit - record.attempts, 0),
                should_lock=False,
            )

        return self._mismatch(record.attempts + 1, limit)

    def outcome_after_failures(
        self,
        attempts: int,
        max_attempts: int | None = None,
    ) -> AttemptOutcome:
        """Evaluate a mismatch given the already incremented attempt count."""
        limit = max_attempts if max_attempts is not None else self._max_otp_attempts
        return self._mismatch(attempts, limit)

    @staticmethod
    def _mismatch(attempts: int, limit: int) -> AttemptOutcome:
        remaining = limit - attempts
        return AttemptOutcome(
            accepted=False,
            expired=False,
            remaining_attempts=max(remaining, 0),
            should_lock=remaining <= 0,
        )

    def lockout_expiry(
        self,
        now: datetime,
        duration_minutes: int | None = None,
    ) -> datetime:
        minutes = (
            duration_minutes
            if duration_minutes is not None
            else self._lockout_duration_minutes
        )
        return now + timedelta(minutes=minutes)

    def otp_expiry(self, now: datetime, ttl_minutes: int | None = None) -> datetime:
        minutes = ttl_minutes if ttl_minutes is not None else self._otp_ttl_minutes
        return now + timedelta(minutes=minutes)
