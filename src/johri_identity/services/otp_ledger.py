"""OTP ledger: issuance, lookup and invalidation of one-time passcodes."""

import logging
import math
import secrets
from uuid import UUID

from johri_identity.domain.security.lockout_policy import LockoutPolicy
from johri_identity.domain.shared.time import Clock, ensure_tz_aware, utc_now
from johri_identity.exceptions import OtpRateLimitError
from johri_identity.repositories import OtpRecordData, OtpRecordRepository

logger = logging.getLogger(__name__)

RESEND_INTERVAL_SECONDS = 60
OTP_MIN = 100000
OTP_MAX = 999999


def generate_code() -> str:
    """Return a uniformly random 6-digit code in the range 100000-999999."""
    return str(secrets.randbelow(OTP_MAX - OTP_MIN + 1) + OTP_MIN)


class OtpLedger:
    """Keeps at most one live OTP per user.

    Issuing purges every earlier record of the user, so a code that was
    superseded by a resend can no longer be verified.
    """

    def __init__(
        self,
        otp_repository: OtpRecordRepository,
        lockout_policy: LockoutPolicy,
        clock: Clock = utc_now,
    ):
        self._otps = otp_repository
        self._policy = lockout_policy
        self._clock = clock

    async def issue(
        self,
        user_id: UUID,
        ttl_minutes: int | None = None,
    ) -> OtpRecordData:
        """Issue a fresh OTP for a user.

        Parameters
        ----------
        user_id
            The user the code is issued to
        ttl_minutes
            Override for the configured OTP lifetime

        Returns
        -------
        The stored record (including the plaintext code for dispatch)

        Raises
        ------
        OtpRateLimitError
            If the previous code was issued less than a minute ago
        """
        now = self._clock()
        previous = await self._otps.find_latest_for_user(user_id)
        if previous is not None:
            elapsed = (now - ensure_tz_aware(previous.created_at)).total_seconds()
            if elapsed < RESEND_INTERVAL_SECONDS:
                retry_after = math.ceil(RESEND_INTERVAL_SECONDS - elapsed)
                logger.info(
                    "OTP resend throttled for user %s (retry in %ss)",
                    user_id,
                    retry_after,
                )
                raise OtpRateLimitError(retry_after)

        await self._otps.delete_all_for_user(user_id)
        record = await self._otps.create(
            user_id=user_id,
            code=generate_code(),
            created_at=now,
            expires_at=self._policy.otp_expiry(now, ttl_minutes),
        )
        logger.debug("Issued OTP %s for user %s", record.id, user_id)
        return record

    async def latest(self, user_id: UUID) -> OtpRecordData | None:
        return await self._otps.find_latest_for_user(user_id)

    async def record_failed_attempt(self, record_id: UUID) -> int | None:
        """Atomically count a failed attempt; None if the record is gone."""
        return await self._otps.increment_attempts(record_id)

    async def clear(self, user_id: UUID) -> None:
        deleted = await self._otps.delete_all_for_user(user_id)
        if deleted:
            logger.debug("Cleared %d OTP record(s) for user %s", deleted, user_id)
