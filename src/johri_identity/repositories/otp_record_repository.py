"""Abstract repository interface for one-time passcodes."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class OtpRecordData:
    """Immutable OTP record data."""

    id: UUID
    user_id: UUID
    code: str
    attempts: int
    created_at: datetime
    expires_at: datetime


class OtpRecordRepository(ABC):
    """Abstract repository for OTP records.

    Only the most recently created record of a user is ever considered live.
    """

    @abstractmethod
    async def create(
        self,
        user_id: UUID,
        code: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> OtpRecordData:
        """Persist a new OTP record with zero attempts.

        Parameters
        ----------
        user_id
            The owning user's identifier
        code
            The 6-digit code
        created_at
            Issue time, used for the resend throttle
        expires_at
            When the code stops being accepted

        Returns
        -------
        The stored record
        """

    @abstractmethod
    async def find_latest_for_user(self, user_id: UUID) -> OtpRecordData | None:
        """Return the most recently created record for a user, if any."""

    @abstractmethod
    async def increment_attempts(self, record_id: UUID) -> int | None:
        """Atomically add one failed attempt and return the new count.

        Parameters
        ----------
        record_id
            The record to update

        Returns
        -------
        The incremented attempt count, or None if the record no longer exists
        """

    @abstractmethod
    async def delete_all_for_user(self, user_id: UUID) -> int:
        """Delete every OTP record of a user.

        Returns
        -------
        Number of records deleted
        """
