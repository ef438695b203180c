"""Tests for AccountLockGuard."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from johri_identity import AccountLockedError, AuditEventType, LockoutPolicy, User
from johri_identity.application.services import AccountLockGuard, AuditTrail
from johri_identity.domain.user import UserRepository, UserRole


class TestAccountLockGuard:
    @pytest.fixture(autouse=True)
    def _guard(self, clock):
        self.clock = clock
        self.users = AsyncMock(spec=UserRepository)
        self.audit = AsyncMock(spec=AuditTrail)
        self.guard = AccountLockGuard(self.users, LockoutPolicy(), self.audit, clock)

    def _user(self, is_locked=False, expires_in=None):
        return User(
            role=UserRole.JEWELER,
            phone_number="5551234567",
            is_locked=is_locked,
            lockout_expires_at=(
                self.clock.now + expires_in if expires_in is not None else None
            ),
        )

    @pytest.mark.asyncio
    async def test_unlocked_user_passes(self):
        user = self._user()

        assert await self.guard.ensure_unlocked(user) is user
        self.users.unlock_if_expired.assert_not_called()
        self.audit.record.assert_not_called()

    @pytest.mark.asyncio
    async def test_live_lock_raises_with_expiry(self):
        user = self._user(is_locked=True, expires_in=timedelta(minutes=10))

        with pytest.raises(AccountLockedError) as exc_info:
            await self.guard.ensure_unlocked(user)

        assert exc_info.value.locked_until == user.lockout_expires_at
        assert user.lockout_expires_at.isoformat() in exc_info.value.message
        assert self.audit.record.call_args.args[0] == AuditEventType.LOGIN_FAILED

    @pytest.mark.asyncio
    async def test_indefinite_lock_says_try_later(self):
        user = self._user(is_locked=True)

        with pytest.raises(AccountLockedError) as exc_info:
            await self.guard.ensure_unlocked(user)

        assert "try again later" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_expired_lock_is_released_and_persisted(self):
        user = self._user(is_locked=True, expires_in=timedelta(minutes=-1))
        self.users.unlock_if_expired.return_value = True

        result = await self.guard.ensure_unlocked(user)

        assert result.is_locked is False
        self.users.unlock_if_expired.assert_awaited_once_with(user.id, self.clock.now)
        assert self.audit.record.call_args.args[0] == AuditEventType.ACCOUNT_UNLOCKED

    @pytest.mark.asyncio
    async def test_concurrent_release_audits_once(self):
        """If another request already cleared the lock, no second audit event."""
        user = self._user(is_locked=True, expires_in=timedelta(minutes=-1))
        self.users.unlock_if_expired.return_value = False

        result = await self.guard.ensure_unlocked(user)

        assert result.is_locked is False
        self.audit.record.assert_not_called()
