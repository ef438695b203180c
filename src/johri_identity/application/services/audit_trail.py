"""Best-effort writer for the security audit log."""

import logging
from typing import Any
from uuid import UUID

from johri_identity.application.context import RequestContext
from johri_identity.domain.security.audit_event import AuditEventType
from johri_identity.domain.shared.time import Clock, utc_now
from johri_identity.repositories import AuditEventRepository

logger = logging.getLogger(__name__)


class AuditTrail:
    """Records security events without ever failing the caller.

    A failed write is logged with its traceback and otherwise ignored, so
    the outcome of a login or reset never depends on the audit store.
    """

    def __init__(
        self,
        audit_repository: AuditEventRepository,
        clock: Clock = utc_now,
    ):
        self._audit = audit_repository
        self._clock = clock

    async def record(
        self,
        event_type: AuditEventType,
        user_id: UUID | None,
        context: RequestContext | None = None,
        **details: Any,
    ) -> None:
        context = context or RequestContext.anonymous()
        try:
            await self._audit.append(
                event_type=event_type,
                occurred_at=self._clock(),
                user_id=user_id,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
                details=details,
            )
        except Exception:
            logger.exception(
                "Failed to write audit event %s for user %s",
                event_type.value,
                user_id,
            )
