"""SQLAlchemy implementation of OtpRecordRepository."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from johri_identity.domain.shared.time import ensure_tz_aware
from johri_identity.infrastructure.persistence.sqlalchemy.models import OtpRecordModel
from johri_identity.repositories import OtpRecordData, OtpRecordRepository


class OtpRecordRepositorySQLAlchemy(OtpRecordRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(
        self,
        user_id: UUID,
        code: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> OtpRecordData:
        model = OtpRecordModel(
            id=uuid4(),
            user_id=user_id,
            code=code,
            attempts=0,
            created_at=created_at,
            expires_at=expires_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_data(model)

    async def find_latest_for_user(self, user_id: UUID) -> OtpRecordData | None:
        stmt = (
            select(OtpRecordModel)
            .where(OtpRecordModel.user_id == user_id)
            .order_by(OtpRecordModel.created_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_data(model)

    async def increment_attempts(self, record_id: UUID) -> int | None:
        stmt = (
            update(OtpRecordModel)
            .where(OtpRecordModel.id == record_id)
            .values(attempts=OtpRecordModel.attempts + 1)
            .returning(OtpRecordModel.attempts)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        attempts = result.scalar_one_or_none()
        await self._session.flush()
        return attempts

    async def delete_all_for_user(self, user_id: UUID) -> int:
        stmt = (
            delete(OtpRecordModel)
            .where(OtpRecordModel.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined]

    @staticmethod
    def _to_data(model: OtpRecordModel) -> OtpRecordData:
        return OtpRecordData(
            id=model.id,
            user_id=model.user_id,
            code=model.code,
            attempts=model.attempts,
            created_at=ensure_tz_aware(model.created_at),
            expires_at=ensure_tz_aware(model.expires_at),
        )
