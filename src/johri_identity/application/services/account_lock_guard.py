"""Lock check shared by every authentication path."""

import logging

from johri_identity.application.context import RequestContext
from johri_identity.application.services.audit_trail import AuditTrail
from johri_identity.domain.security import AuditEventType, LockoutPolicy
from johri_identity.domain.shared.time import Clock, utc_now
from johri_identity.domain.user import User, UserRepository
from johri_identity.exceptions import AccountLockedError

logger = logging.getLogger(__name__)


class AccountLockGuard:
    """Refuses locked accounts and releases locks whose window has passed."""

    def __init__(
        self,
        user_repository: UserRepository,
        lockout_policy: LockoutPolicy,
        audit_trail: AuditTrail,
        clock: Clock = utc_now,
    ):
        self._users = user_repository
        self._policy = lockout_policy
        self._audit = audit_trail
        self._clock = clock

    async def ensure_unlocked(
        self,
        user: User,
        context: RequestContext | None = None,
        operation: str = "login",
    ) -> User:
        """Return the user if no lock is in force.

        An expired lock is cleared in the store before returning. The
        returned user reflects that.

        Raises
        ------
        AccountLockedError
            If the lock is still in force
        """
        now = self._clock()

        if self._policy.has_expired_lock(user, now):
            if await self._users.unlock_if_expired(user.id, now):
                logger.info("Lock on user %s expired, unlocked", user.id)
                await self._audit.record(
                    AuditEventType.ACCOUNT_UNLOCKED,
                    user.id,
                    context,
                    reason="lock_expired",
                )
            user.unlock()
            return user

        if self._policy.is_locked(user, now):
            logger.info("Rejected %s for locked user %s", operation, user.id)
            await self._audit.record(
                AuditEventType.LOGIN_FAILED,
                user.id,
                context,
                reason="account_locked",
                operation=operation,
            )
            raise AccountLockedError(user.lockout_expires_at)

        return user
