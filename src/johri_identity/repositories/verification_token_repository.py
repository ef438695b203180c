"""Abstract repository interface for password reset verification tokens."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class VerificationTokenData:
    """Immutable verification token data."""

    id: UUID
    user_id: UUID
    token_hash: str
    expires_at: datetime
    used_at: datetime | None
    created_at: datetime


class VerificationTokenRepository(ABC):
    """Abstract repository for verification tokens."""

    @abstractmethod
    async def create(
        self,
        user_id: UUID,
        token_hash: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> UUID:
        """Store the digest of a newly issued token.

        Parameters
        ----------
        user_id
            The user the token was issued to
        token_hash
            HMAC-SHA256 digest of the raw token
        created_at
            Issue time
        expires_at
            When the token expires

        Returns
        -------
        The token's unique identifier
        """

    @abstractmethod
    async def find_unused_by_hash(self, token_hash: str) -> VerificationTokenData | None:
        """Find a token that has not been used yet by its digest.

        Expiry is not filtered here; callers compare against their own clock.
        """

    @abstractmethod
    async def mark_used(self, token_id: UUID, used_at: datetime) -> bool:
        """Mark a token as used if it is still unused.

        Returns
        -------
        True if this call consumed the token, False if it was already used
        """

    @abstractmethod
    async def invalidate_all_for_user(self, user_id: UUID, now: datetime) -> None:
        """Mark every outstanding token of a user as used.

        Parameters
        ----------
        user_id
            The user's unique identifier
        now
            Timestamp recorded as the usage time
        """
