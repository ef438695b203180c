"""User aggregate: identity, credentials and lock state."""

from datetime import datetime
from typing import Union
from uuid import UUID, uuid4

from johri_identity.domain.shared.time import utc_now
from johri_identity.domain.user.value_objects import Email, PhoneNumber, UserRole
from johri_identity.schemas import PublicUser


class User:
    """
    User aggregate root.

    A user is addressed by username, email, phone number or Google account
    depending on the role. Lock state lives on the aggregate; whether a lock
    is still in force is decided by ``LockoutPolicy``, never here.
    """

    def __init__(  # noqa: PLR0913
        self,
        role: Union[str, UserRole] = UserRole.VIEWER,
        username: str | None = None,
        email: Union[str, Email, None] = None,
        phone_number: Union[str, PhoneNumber, None] = None,
        google_id: str | None = None,
        display_name: str | None = None,
        password_hash: str | None = None,
        is_locked: bool = False,
        lockout_expires_at: datetime | None = None,
        id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self._id = id or uuid4()
        self._role = role if isinstance(role, UserRole) else UserRole(role)
        self._username = username
        self._email = self._coerce_email(email)
        self._phone_number = self._coerce_phone(phone_number)
        self._google_id = google_id
        self._display_name = display_name
        self._password_hash = password_hash
        self._is_locked = is_locked
        self._lockout_expires_at = lockout_expires_at
        self._created_at = created_at or utc_now()
        self._updated_at = updated_at or utc_now()

    @staticmethod
    def _coerce_email(email: Union[str, Email, None]) -> Email | None:
        if email is None or isinstance(email, Email):
            return email
        return Email(email)

    @staticmethod
    def _coerce_phone(phone: Union[str, PhoneNumber, None]) -> PhoneNumber | None:
        if phone is None or isinstance(phone, PhoneNumber):
            return phone
        return PhoneNumber(phone)

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def role(self) -> UserRole:
        return self._role

    @property
    def username(self) -> str | None:
        return self._username

    @property
    def email(self) -> str | None:
        return self._email.value if self._email else None

    @property
    def phone_number(self) -> str | None:
        return self._phone_number.value if self._phone_number else None

    @property
    def google_id(self) -> str | None:
        return self._google_id

    @property
    def display_name(self) -> str | None:
        return self._display_name

    @property
    def password_hash(self) -> str | None:
        return self._password_hash

    @property
    def is_locked(self) -> bool:
        """Raw lock flag. Use ``LockoutPolicy.is_locked`` for decisions."""
        return self._is_locked

    @property
    def lockout_expires_at(self) -> datetime | None:
        return self._lockout_expires_at

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    def lock(self, until: datetime | None) -> None:
        self._is_locked = True
        self._lockout_expires_at = until
        self._updated_at = utc_now()

    def unlock(self) -> None:
        self._is_locked = False
        self._lockout_expires_at = None
        self._updated_at = utc_now()

    def set_password_hash(self, password_hash: str) -> None:
        self._password_hash = password_hash
        self._updated_at = utc_now()

    def link_google_account(self, google_id: str) -> None:
        self._google_id = google_id
        self._updated_at = utc_now()

    def to_public(self) -> PublicUser:
        return PublicUser(
            id=self._id,
            role=self._role,
            username=self._username,
            email=self.email,
            phone_number=self.phone_number,
            display_name=self._display_name,
            has_google_account=self._google_id is not None,
            created_at=self._created_at,
        )

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        role: UserRole,
        username: str | None = None,
        email: Union[str, Email, None] = None,
        phone_number: Union[str, PhoneNumber, None] = None,
        google_id: str | None = None,
        display_name: str | None = None,
        password_hash: str | None = None,
    ) -> "User":
        return cls(
            role=role,
            username=username,
            email=email,
            phone_number=phone_number,
            google_id=google_id,
            display_name=display_name,
            password_hash=password_hash,
        )

    @classmethod
    def reconstitute(  # noqa: PLR0913
        cls,
        id: UUID,
        role: Union[str, UserRole],
        username: str | None,
        email: str | None,
        phone_number: str | None,
        google_id: str | None,
        display_name: str | None,
        password_hash: str | None,
        is_locked: bool,
        lockout_expires_at: datetime | None,
        created_at: datetime,
        updated_at: datetime,
    ) -> "User":
        return cls(
            id=id,
            role=role,
            username=username,
            email=email,
            phone_number=phone_number,
            google_id=google_id,
            display_name=display_name,
            password_hash=password_hash,
            is_locked=is_locked,
            lockout_expires_at=lockout_expires_at,
            created_at=created_at,
            updated_at=updated_at,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return f"User(id={self._id}, role={self._role.value})"
