"""SQLAlchemy implementation of UserRepository."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from johri_identity.domain.shared.time import ensure_tz_aware, utc_now
from johri_identity.domain.user import User, UserAlreadyExistsError, UserRepository
from johri_identity.infrastructure.persistence.sqlalchemy.models import UserModel

logger = logging.getLogger(__name__)


class UserRepositorySQLAlchemy(UserRepository):
    """SQLAlchemy implementation of the UserRepository interface.

    Reads always refresh from the database so lock decisions never run on
    a stale identity-map copy.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_id(self, user_id: UUID) -> User | None:
        return await self._find_one(UserModel.id == user_id)

    async def find_by_username(self, username: str) -> User | None:
        return await self._find_one(UserModel.username == username)

    async def find_by_email(self, email: str) -> User | None:
        return await self._find_one(UserModel.email == email.strip().lower())

    async def find_by_phone_number(self, phone_number: str) -> User | None:
        return await self._find_one(UserModel.phone_number == phone_number.strip())

    async def find_by_google_id(self, google_id: str) -> User | None:
        return await self._find_one(UserModel.google_id == google_id)

    async def save(self, user: User) -> None:
        try:
            async with self._session.begin_nested():
                existing = await self._find_model_by_id(user.id)
                if existing:
                    self._update_model(existing, user)
                    logger.debug("Updated user: %s", user.id)
                else:
                    self._session.add(self._map_to_model(user))
                    logger.info("Created user: %s (role: %s)", user.id, user.role.value)
                await self._session.flush()
        except IntegrityError as e:
            identifier = user.username or user.email or user.phone_number or str(user.id)
            raise UserAlreadyExistsError(identifier) from e

    async def lock(self, user_id: UUID, until: datetime | None) -> None:
        await self._update_lock(user_id, is_locked=True, expires_at=until)

    async def unlock(self, user_id: UUID) -> None:
        await self._update_lock(user_id, is_locked=False, expires_at=None)

    async def unlock_if_expired(self, user_id: UUID, now: datetime) -> bool:
        stmt = (
            update(UserModel)
            .where(
                UserModel.id == user_id,
                UserModel.is_locked.is_(True),
                UserModel.lockout_expires_at.is_not(None),
                UserModel.lockout_expires_at <= now,
            )
            .values(is_locked=False, lockout_expires_at=None, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def update_password_hash(self, user_id: UUID, password_hash: str) -> None:
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(password_hash=password_hash, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)
        await self._session.flush()

    async def _update_lock(
        self,
        user_id: UUID,
        is_locked: bool,
        expires_at: datetime | None,
    ) -> None:
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(
                is_locked=is_locked,
                lockout_expires_at=expires_at,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)
        await self._session.flush()

    async def _find_one(self, *criteria) -> User | None:
        stmt = (
            select(UserModel)
            .where(*criteria)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._map_to_domain(model)

    async def _find_model_by_id(self, user_id: UUID) -> UserModel | None:
        stmt = (
            select(UserModel)
            .where(UserModel.id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _map_to_domain(self, model: UserModel) -> User:
        return User.reconstitute(
            id=model.id,
            role=model.role,
            username=model.username,
            email=model.email,
            phone_number=model.phone_number,
            google_id=model.google_id,
            display_name=model.display_name,
            password_hash=model.password_hash,
            is_locked=model.is_locked,
            lockout_expires_at=(
                ensure_tz_aware(model.lockout_expires_at)
                if model.lockout_expires_at
                else None
            ),
            created_at=ensure_tz_aware(model.created_at),
            updated_at=ensure_tz_aware(model.updated_at),
        )

    def _map_to_model(self, user: User) -> UserModel:
        return UserModel(
            id=user.id,
            role=user.role.value,
            username=user.username,
            email=user.email,
            phone_number=user.phone_number,
            google_id=user.google_id,
            display_name=user.display_name,
            password_hash=user.password_hash,
            is_locked=user.is_locked,
            lockout_expires_at=user.lockout_expires_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    def _update_model(self, model: UserModel, user: User) -> None:
        model.role = user.role.value
        model.username = user.username
        model.email = user.email
        model.phone_number = user.phone_number
        model.google_id = user.google_id
        model.display_name = user.display_name
        model.password_hash = user.password_hash
        model.is_locked = user.is_locked
        model.lockout_expires_at = user.lockout_expires_at
        model.updated_at = user.updated_at
