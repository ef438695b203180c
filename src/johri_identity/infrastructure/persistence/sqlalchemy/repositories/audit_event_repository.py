"""SQLAlchemy implementation of AuditEventRepository."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from johri_identity.domain.security import AuditEventType
from johri_identity.domain.shared.time import ensure_tz_aware
from johri_identity.infrastructure.persistence.sqlalchemy.models import AuditEventModel
from johri_identity.repositories import AuditEventData, AuditEventRepository


class AuditEventRepositorySQLAlchemy(AuditEventRepository):
    """Writes each event inside a SAVEPOINT.

    A failed insert rolls back only the savepoint and leaves the request's
    transaction usable.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def append(  # noqa: PLR0913
        self,
        event_type: AuditEventType,
        occurred_at: datetime,
        user_id: UUID | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditEventData:
        model = AuditEventModel(
            id=uuid4(),
            user_id=user_id,
            event_type=event_type.value,
            occurred_at=occurred_at,
            ip_address=ip_address,
            user_agent=user_agent[:512] if user_agent else None,
            details=dict(details or {}),
        )
        async with self._session.begin_nested():
            self._session.add(model)
            await self._session.flush()
        return self._to_data(model)

    async def list_for_user(
        self,
        user_id: UUID,
        limit: int = 100,
    ) -> list[AuditEventData]:
        stmt = (
            select(AuditEventModel)
            .where(AuditEventModel.user_id == user_id)
            .order_by(AuditEventModel.occurred_at, AuditEventModel.id)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_data(model) for model in result.scalars().all()]

    @staticmethod
    def _to_data(model: AuditEventModel) -> AuditEventData:
        return AuditEventData(
            id=model.id,
            user_id=model.user_id,
            event_type=AuditEventType(model.event_type),
            occurred_at=ensure_tz_aware(model.occurred_at),
            ip_address=model.ip_address,
            user_agent=model.user_agent,
            details=dict(model.details or {}),
        )
