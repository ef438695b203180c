"""User repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from johri_identity.domain.user.aggregates.user import User


class UserRepository(ABC):
    """Repository interface for User aggregates.

    Lock state changes are exposed as targeted updates so concurrent
    requests never overwrite each other's view of the whole row.
    """

    @abstractmethod
    async def find_by_id(self, user_id: UUID) -> User | None:
        """Find a user by their ID."""

    @abstractmethod
    async def find_by_username(self, username: str) -> User | None:
        """Find a user by username."""

    @abstractmethod
    async def find_by_email(self, email: str) -> User | None:
        """Find a user by their (normalized) email address."""

    @abstractmethod
    async def find_by_phone_number(self, phone_number: str) -> User | None:
        """Find a user by mobile number."""

    @abstractmethod
    async def find_by_google_id(self, google_id: str) -> User | None:
        """Find a user by linked Google account id."""

    @abstractmethod
    async def save(self, user: User) -> None:
        """Insert or update a user.

        Raises
        ------
        UserAlreadyExistsError
            If a unique identifier is already taken
        """

    @abstractmethod
    async def lock(self, user_id: UUID, until: datetime | None) -> None:
        """Mark the user locked until ``until`` (``None`` locks indefinitely)."""

    @abstractmethod
    async def unlock(self, user_id: UUID) -> None:
        """Clear the lock flag and expiry."""

    @abstractmethod
    async def unlock_if_expired(self, user_id: UUID, now: datetime) -> bool:
        """Clear the lock only if its expiry has passed.

        Returns
        -------
        True if this call performed the unlock
        """

    @abstractmethod
    async def update_password_hash(self, user_id: UUID, password_hash: str) -> None:
        """Replace the stored password hash."""
