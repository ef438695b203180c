"""Abstract repository interface for the security audit log."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from johri_identity.domain.security.audit_event import AuditEventType


@dataclass(frozen=True)
class AuditEventData:
    """Immutable audit event."""

    id: UUID
    user_id: UUID | None
    event_type: AuditEventType
    occurred_at: datetime
    ip_address: str | None = None
    user_agent: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


class AuditEventRepository(ABC):
    """Append-only store of security events."""

    @abstractmethod
    async def append(  # noqa: PLR0913
        self,
        event_type: AuditEventType,
        occurred_at: datetime,
        user_id: UUID | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditEventData:
        """Write one event. Events are never updated or deleted."""

    @abstractmethod
    async def list_for_user(
        self,
        user_id: UUID,
        limit: int = 100,
    ) -> list[AuditEventData]:
        """Return a user's events, oldest first."""
