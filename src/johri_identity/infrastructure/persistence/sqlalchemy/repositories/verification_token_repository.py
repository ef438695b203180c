"""SQLAlchemy implementation of VerificationTokenRepository."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from johri_identity.domain.shared.time import ensure_tz_aware
from johri_identity.infrastructure.persistence.sqlalchemy.models import (
    VerificationTokenModel,
)
from johri_identity.repositories import (
    VerificationTokenData,
    VerificationTokenRepository,
)


class VerificationTokenRepositorySQLAlchemy(VerificationTokenRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(
        self,
        user_id: UUID,
        token_hash: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> UUID:
        token_id = uuid4()
        model = VerificationTokenModel(
            id=token_id,
            user_id=user_id,
            token_hash=token_hash,
            created_at=created_at,
            expires_at=expires_at,
        )
        self._session.add(model)
        await self._session.flush()
        return token_id

    async def find_unused_by_hash(self, token_hash: str) -> VerificationTokenData | None:
        stmt = (
            select(VerificationTokenModel)
            .where(
                VerificationTokenModel.token_hash == token_hash,
                VerificationTokenModel.used_at.is_(None),
            )
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return VerificationTokenData(
            id=model.id,
            user_id=model.user_id,
            token_hash=model.token_hash,
            expires_at=ensure_tz_aware(model.expires_at),
            used_at=ensure_tz_aware(model.used_at) if model.used_at else None,
            created_at=ensure_tz_aware(model.created_at),
        )

    async def mark_used(self, token_id: UUID, used_at: datetime) -> bool:
        stmt = (
            update(VerificationTokenModel)
            .where(
                VerificationTokenModel.id == token_id,
                VerificationTokenModel.used_at.is_(None),
            )
            .values(used_at=used_at)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def invalidate_all_for_user(self, user_id: UUID, now: datetime) -> None:
        stmt = (
            update(VerificationTokenModel)
            .where(
                VerificationTokenModel.user_id == user_id,
                VerificationTokenModel.used_at.is_(None),
            )
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)
        await self._session.flush()
