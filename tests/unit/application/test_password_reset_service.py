"""Tests for PasswordResetService with mocked collaborators."""

from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from johri_identity import (
    AccountLockedError,
    AccountNotFoundError,
    AuditEventType,
    ContactChannel,
    InvalidOtpError,
    InvalidResetTokenError,
    NotificationDeliveryError,
    NotificationDispatcher,
    OtpLedger,
    PasswordHashingService,
    User,
    UserRole,
    ValidationFailureError,
    VerificationGrant,
    VerificationTokenService,
    WeakPasswordError,
)
from johri_identity.application.services import (
    AccountLockGuard,
    AuditTrail,
    OtpChallenge,
    PasswordResetService,
)
from johri_identity.domain.user import UserRepository
from johri_identity.repositories import OtpRecordData, VerificationTokenData

NEW_PASSWORD = "Fresh#Start42"
TOKEN = "otpv.0123456789abcdef0123456789abcdef.1768467600.nonce"


class TestPasswordResetService:
    @pytest.fixture(autouse=True)
    def _service(self, clock, request_context):
        self.clock = clock
        self.context = request_context
        self.users = AsyncMock(spec=UserRepository)
        self.users.find_by_email.return_value = None
        self.users.find_by_phone_number.return_value = None
        self.passwords = PasswordHashingService(rounds=4)
        self.tokens = AsyncMock(spec=VerificationTokenService)
        self.tokens.has_valid_shape.return_value = True
        self.ledger = AsyncMock(spec=OtpLedger)
        self.challenge = AsyncMock(spec=OtpChallenge)
        self.guard = AsyncMock(spec=AccountLockGuard)
        self.guard.ensure_unlocked.side_effect = lambda user, *args, **kwargs: user
        self.audit = AsyncMock(spec=AuditTrail)
        self.notifications = AsyncMock(spec=NotificationDispatcher)
        self.service = PasswordResetService(
            user_repository=self.users,
            password_service=self.passwords,
            verification_tokens=self.tokens,
            otp_ledger=self.ledger,
            otp_challenge=self.challenge,
            lock_guard=self.guard,
            audit_trail=self.audit,
            notifications=self.notifications,
        )

    def _audited(self) -> list[AuditEventType]:
        return [c.args[0] for c in self.audit.record.call_args_list]

    def _jeweler(self, **kwargs) -> User:
        return User(
            role=UserRole.JEWELER,
            username="ravi",
            phone_number="5551234567",
            **kwargs,
        )

    def _token_data(self, user: User) -> VerificationTokenData:
        return VerificationTokenData(
            id=uuid4(),
            user_id=user.id,
            token_hash="digest",
            expires_at=self.clock.now + timedelta(minutes=10),
            used_at=None,
            created_at=self.clock.now,
        )

    # ------------------------------------------------------------------
    # initiate_reset
    # ------------------------------------------------------------------

    @pytest.mark.asyncio
    async def test_jeweler_reset_goes_by_sms(self):
        user = self._jeweler()
        self.users.find_by_phone_number.return_value = user
        self.ledger.issue.return_value = OtpRecordData(
            id=uuid4(),
            user_id=user.id,
            code="482913",
            attempts=0,
            created_at=self.clock.now,
            expires_at=self.clock.now + timedelta(minutes=5),
        )

        dispatch = await self.service.initiate_reset("5551234567", self.context)

        assert dispatch.channel == ContactChannel.SMS
        self.notifications.send_code.assert_awaited_once_with(
            ContactChannel.SMS,
            "5551234567",
            "482913",
            "ravi",
        )
        assert self._audited() == [AuditEventType.OTP_SENT]

    @pytest.mark.asyncio
    async def test_unknown_email_names_owner_role(self):
        with pytest.raises(AccountNotFoundError) as exc_info:
            await self.service.initiate_reset("owner@example.com")

        assert exc_info.value.message == (
            "No Super Admin account found with the provided email."
        )

    @pytest.mark.asyncio
    async def test_unknown_phone_names_jeweler_role(self):
        with pytest.raises(AccountNotFoundError) as exc_info:
            await self.service.initiate_reset("5551234567")

        assert exc_info.value.message == (
            "No Jeweler account found with the provided mobile number."
        )

    @pytest.mark.asyncio
    async def test_role_on_wrong_channel_is_not_found(self):
        """An end-user with an email address still resets by SMS only."""
        self.users.find_by_email.return_value = User(
            role=UserRole.VIEWER,
            email="viewer@example.com",
        )

        with pytest.raises(AccountNotFoundError):
            await self.service.initiate_reset("viewer@example.com")

        self.ledger.issue.assert_not_called()

    @pytest.mark.asyncio
    async def test_locked_account_cannot_initiate(self):
        self.users.find_by_phone_number.return_value = self._jeweler()
        self.guard.ensure_unlocked.side_effect = AccountLockedError()

        with pytest.raises(AccountLockedError):
            await self.service.initiate_reset("5551234567")

        self.ledger.issue.assert_not_called()

    @pytest.mark.asyncio
    async def test_delivery_failure_propagates(self):
        user = self._jeweler()
        self.users.find_by_phone_number.return_value = user
        self.notifications.send_code.side_effect = NotificationDeliveryError()

        with pytest.raises(NotificationDeliveryError):
            await self.service.initiate_reset("5551234567")

        self.ledger.clear.assert_awaited_once_with(user.id)
        assert AuditEventType.OTP_SENT not in self._audited()

    # ------------------------------------------------------------------
    # verify_reset_otp
    # ------------------------------------------------------------------

    @pytest.mark.asyncio
    async def test_correct_code_returns_grant(self):
        user = self._jeweler()
        self.users.find_by_phone_number.return_value = user
        grant = VerificationGrant(token=TOKEN, expires_at=self.clock.now)
        self.tokens.issue.return_value = grant

        result = await self.service.verify_reset_otp("5551234567", "482913")

        assert result is grant
        self.challenge.verify.assert_awaited_once_with(user, "482913", None, "reset")
        self.ledger.clear.assert_awaited_once_with(user.id)
        assert self._audited() == [AuditEventType.OTP_VERIFIED]

    @pytest.mark.asyncio
    async def test_wrong_code_issues_no_token(self):
        self.users.find_by_phone_number.return_value = self._jeweler()
        self.challenge.verify.side_effect = InvalidOtpError(2)

        with pytest.raises(InvalidOtpError):
            await self.service.verify_reset_otp("5551234567", "000000")

        self.tokens.issue.assert_not_called()

    @pytest.mark.asyncio
    async def test_verify_for_unknown_user(self):
        with pytest.raises(AccountNotFoundError):
            await self.service.verify_reset_otp("5551234567", "482913")

    # ------------------------------------------------------------------
    # reset_password
    # ------------------------------------------------------------------

    @pytest.mark.asyncio
    async def test_reset_updates_hash_and_unlocks(self):
        user = self._jeweler(
            is_locked=True,
            lockout_expires_at=self.clock.now + timedelta(minutes=10),
        )
        self.users.find_by_phone_number.return_value = user
        token_data = self._token_data(user)
        self.tokens.verify.return_value = token_data

        await self.service.reset_password(
            "5551234567",
            TOKEN,
            NEW_PASSWORD,
            NEW_PASSWORD,
            self.context,
        )

        self.tokens.verify.assert_awaited_once_with(TOKEN, user.id)
        self.tokens.consume.assert_awaited_once_with(token_data)
        user_id, new_hash = self.users.update_password_hash.call_args.args
        assert user_id == user.id
        assert self.passwords.verify(NEW_PASSWORD, new_hash)
        self.users.unlock.assert_awaited_once_with(user.id)
        self.ledger.clear.assert_awaited_once_with(user.id)
        assert self._audited() == [
            AuditEventType.RESET_SUCCESS,
            AuditEventType.ACCOUNT_UNLOCKED,
        ]
        self.notifications.send_confirmation.assert_awaited_once_with(
            ContactChannel.SMS,
            "5551234567",
            "ravi",
        )

    @pytest.mark.asyncio
    async def test_malformed_token_rejected_before_lookup(self):
        self.tokens.has_valid_shape.return_value = False

        with pytest.raises(InvalidResetTokenError):
            await self.service.reset_password(
                "5551234567",
                "fabricated",
                NEW_PASSWORD,
                NEW_PASSWORD,
            )

        self.users.find_by_phone_number.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_token_changes_nothing(self):
        self.users.find_by_phone_number.return_value = self._jeweler()
        self.tokens.verify.side_effect = InvalidResetTokenError()

        with pytest.raises(InvalidResetTokenError):
            await self.service.reset_password(
                "5551234567",
                TOKEN,
                NEW_PASSWORD,
                NEW_PASSWORD,
            )

        self.users.update_password_hash.assert_not_called()

    @pytest.mark.asyncio
    async def test_mismatched_confirmation(self):
        user = self._jeweler()
        self.users.find_by_phone_number.return_value = user
        self.tokens.verify.return_value = self._token_data(user)

        with pytest.raises(ValidationFailureError) as exc_info:
            await self.service.reset_password(
                "5551234567",
                TOKEN,
                NEW_PASSWORD,
                "Other#Pass42",
            )

        assert exc_info.value.message == "Passwords do not match."
        self.tokens.consume.assert_not_called()

    @pytest.mark.asyncio
    async def test_weak_password_keeps_token(self):
        user = self._jeweler()
        self.users.find_by_phone_number.return_value = user
        self.tokens.verify.return_value = self._token_data(user)

        with pytest.raises(WeakPasswordError) as exc_info:
            await self.service.reset_password("5551234567", TOKEN, "short", "short")

        assert len(exc_info.value.errors) == 4
        self.tokens.consume.assert_not_called()
        self.users.update_password_hash.assert_not_called()

    @pytest.mark.asyncio
    async def test_confirmation_failure_does_not_undo_reset(self, caplog):
        user = self._jeweler()
        self.users.find_by_phone_number.return_value = user
        self.tokens.verify.return_value = self._token_data(user)
        self.notifications.send_confirmation.side_effect = NotificationDeliveryError()

        await self.service.reset_password(
            "5551234567",
            TOKEN,
            NEW_PASSWORD,
            NEW_PASSWORD,
        )

        self.users.update_password_hash.assert_awaited_once()
        assert "Failed to send reset confirmation" in caplog.text
