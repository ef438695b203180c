"""End-to-end account security flows against an in-memory database.

Every scenario goes through ``IdentityServiceFactory`` with real
repositories, the real lockout policy and a controllable clock. Only the
notification senders are replaced by recorders.
"""

import pytest
import pytest_asyncio
from sqlalchemy import text

from johri_identity import (
    AccountLockedError,
    AuditEventType,
    InvalidCredentialsError,
    InvalidOtpError,
    InvalidResetTokenError,
    NotificationDeliveryError,
    OtpExpiredError,
    OtpRateLimitError,
    UserRole,
    ValidationFailureError,
)
from johri_identity.infrastructure.persistence.sqlalchemy import (
    AuditEventRepositorySQLAlchemy,
    OtpRecordRepositorySQLAlchemy,
)
from johri_identity.services import otp_ledger

PHONE = "5551234567"
JEWELER_PHONE = "5559876543"
WRONG_CODE = "000000"
PASSWORD = "Sparkle#Gold9"
NEW_PASSWORD = "Fresh#Start42"


@pytest.fixture
def auth(service_factory):
    return service_factory.authentication_service()


@pytest.fixture
def resets(service_factory):
    return service_factory.password_reset_service()


async def _events(async_session, user_id) -> list[AuditEventType]:
    repo = AuditEventRepositorySQLAlchemy(async_session)
    return [event.event_type for event in await repo.list_for_user(user_id)]


class TestOtpLockoutLadder:
    @pytest.mark.asyncio
    async def test_progressive_lockout_and_auto_unlock(
        self,
        auth,
        service_factory,
        sms_sender,
        clock,
        async_session,
    ):
        await auth.request_otp(PHONE)
        code = sms_sender.last_code

        remaining = []
        for _ in range(4):
            with pytest.raises(InvalidOtpError) as exc_info:
                await auth.verify_otp_login(PHONE, WRONG_CODE)
            remaining.append(exc_info.value.remaining_attempts)
        assert remaining == [4, 3, 2, 1]

        with pytest.raises(AccountLockedError) as exc_info:
            await auth.verify_otp_login(PHONE, WRONG_CODE)
        assert "Too many failed attempts" in exc_info.value.message

        # Even the right code is refused while the lock is in force
        with pytest.raises(AccountLockedError):
            await auth.verify_otp_login(PHONE, code)

        user = await service_factory.user_repository.find_by_phone_number(PHONE)
        assert user.is_locked is True

        clock.advance(minutes=16)

        # The lock has lapsed, but so has the code
        with pytest.raises(OtpExpiredError):
            await auth.verify_otp_login(PHONE, code)

        user = await service_factory.user_repository.find_by_phone_number(PHONE)
        assert user.is_locked is False
        assert user.lockout_expires_at is None

        await auth.request_otp(PHONE)
        session = await auth.verify_otp_login(PHONE, sms_sender.last_code)

        assert session.user.phone_number == PHONE
        assert not hasattr(session.user, "password_hash")
        assert await auth.resolve_session(session.session_token) == session.user

        events = await _events(async_session, user.id)
        assert events.count(AuditEventType.OTP_FAILED) == 4
        assert events.count(AuditEventType.ACCOUNT_LOCKED) == 1
        assert events.count(AuditEventType.ACCOUNT_UNLOCKED) == 1
        assert AuditEventType.LOGIN_SUCCESS in events

    @pytest.mark.asyncio
    async def test_expired_code_does_not_use_up_attempts(
        self,
        auth,
        service_factory,
        sms_sender,
        clock,
        async_session,
    ):
        await auth.request_otp(PHONE)
        code = sms_sender.last_code
        clock.advance(minutes=5, seconds=1)

        with pytest.raises(OtpExpiredError):
            await auth.verify_otp_login(PHONE, code)

        user = await service_factory.user_repository.find_by_phone_number(PHONE)
        otp_repo = OtpRecordRepositorySQLAlchemy(async_session)
        record = await otp_repo.find_latest_for_user(user.id)
        assert record.attempts == 0
        assert user.is_locked is False

    @pytest.mark.asyncio
    async def test_resend_is_throttled_and_supersedes_old_code(
        self,
        auth,
        sms_sender,
        clock,
        monkeypatch,
    ):
        codes = iter(["111111", "222222"])
        monkeypatch.setattr(otp_ledger, "generate_code", lambda: next(codes))

        await auth.request_otp(PHONE)
        first_code = sms_sender.last_code

        clock.advance(seconds=20)
        with pytest.raises(OtpRateLimitError) as exc_info:
            await auth.request_otp(PHONE)
        assert exc_info.value.retry_after_seconds == 40

        clock.advance(seconds=41)
        await auth.request_otp(PHONE)
        second_code = sms_sender.last_code
        assert (first_code, second_code) == ("111111", "222222")

        # Only the newest record is live, so the old code is just a wrong code
        # and costs an attempt
        with pytest.raises(InvalidOtpError) as exc_info:
            await auth.verify_otp_login(PHONE, first_code)
        assert exc_info.value.remaining_attempts == 4

        session = await auth.verify_otp_login(PHONE, second_code)
        assert session.user.phone_number == PHONE

    @pytest.mark.asyncio
    async def test_failed_delivery_does_not_throttle_retry(
        self,
        auth,
        service_factory,
        sms_sender,
        async_session,
    ):
        sms_sender.fail_codes = True
        with pytest.raises(NotificationDeliveryError):
            await auth.request_otp(PHONE)

        user = await service_factory.user_repository.find_by_phone_number(PHONE)
        otp_repo = OtpRecordRepositorySQLAlchemy(async_session)
        assert await otp_repo.find_latest_for_user(user.id) is None
        assert AuditEventType.OTP_SENT not in await _events(async_session, user.id)

        sms_sender.fail_codes = False
        await auth.request_otp(PHONE)

        session = await auth.verify_otp_login(PHONE, sms_sender.last_code)
        assert session.user.id == user.id

    @pytest.mark.asyncio
    async def test_successful_login_clears_residual_codes(self, auth, sms_sender):
        await auth.request_otp(PHONE)
        code = sms_sender.last_code
        await auth.verify_otp_login(PHONE, code)

        with pytest.raises(OtpExpiredError):
            await auth.verify_otp_login(PHONE, code)


@pytest_asyncio.fixture
async def jeweler(auth):
    return await auth.register(
        UserRole.JEWELER,
        "ravi",
        PASSWORD,
        phone_number=JEWELER_PHONE,
        display_name="Ravi",
    )


@pytest.mark.usefixtures("jeweler")
class TestPasswordReset:
    @pytest.mark.asyncio
    async def test_full_reset_flow(
        self,
        auth,
        resets,
        sms_sender,
        async_session,
        jeweler,
    ):
        await resets.initiate_reset(JEWELER_PHONE)
        grant = await resets.verify_reset_otp(JEWELER_PHONE, sms_sender.last_code)

        await resets.reset_password(
            JEWELER_PHONE,
            grant.token,
            NEW_PASSWORD,
            NEW_PASSWORD,
        )

        assert sms_sender.confirmations == [JEWELER_PHONE]
        with pytest.raises(InvalidCredentialsError):
            await auth.authenticate_local("ravi", PASSWORD)
        session = await auth.authenticate_local("ravi", NEW_PASSWORD)
        assert session.user.id == jeweler.id

        # Tokens are single-use
        with pytest.raises(InvalidResetTokenError):
            await resets.reset_password(
                JEWELER_PHONE,
                grant.token,
                "Another#Pass7",
                "Another#Pass7",
            )

        events = await _events(async_session, jeweler.id)
        assert AuditEventType.RESET_SUCCESS in events

    @pytest.mark.asyncio
    async def test_failed_reset_delivery_does_not_throttle_retry(
        self,
        resets,
        sms_sender,
    ):
        sms_sender.fail_codes = True
        with pytest.raises(NotificationDeliveryError):
            await resets.initiate_reset(JEWELER_PHONE)

        sms_sender.fail_codes = False
        await resets.initiate_reset(JEWELER_PHONE)

        grant = await resets.verify_reset_otp(JEWELER_PHONE, sms_sender.last_code)
        assert grant.token.startswith("otpv.")

    @pytest.mark.asyncio
    async def test_fabricated_token_is_rejected(self, resets):
        with pytest.raises(InvalidResetTokenError):
            await resets.reset_password(
                JEWELER_PHONE,
                "fabricated-token",
                NEW_PASSWORD,
                NEW_PASSWORD,
            )

    @pytest.mark.asyncio
    async def test_token_of_another_user_is_rejected(self, auth, resets, sms_sender):
        await auth.register(
            UserRole.JEWELER,
            "meera",
            PASSWORD,
            phone_number="5550001111",
        )
        await resets.initiate_reset("5550001111")
        grant = await resets.verify_reset_otp("5550001111", sms_sender.last_code)

        with pytest.raises(InvalidResetTokenError):
            await resets.reset_password(
                JEWELER_PHONE,
                grant.token,
                NEW_PASSWORD,
                NEW_PASSWORD,
            )

    @pytest.mark.asyncio
    async def test_weak_password_lists_rules_and_keeps_token(
        self,
        resets,
        sms_sender,
    ):
        await resets.initiate_reset(JEWELER_PHONE)
        grant = await resets.verify_reset_otp(JEWELER_PHONE, sms_sender.last_code)

        with pytest.raises(ValidationFailureError) as exc_info:
            await resets.reset_password(JEWELER_PHONE, grant.token, "abc", "abc")
        assert len(exc_info.value.errors) == 4

        await resets.reset_password(
            JEWELER_PHONE,
            grant.token,
            NEW_PASSWORD,
            NEW_PASSWORD,
        )

    @pytest.mark.asyncio
    async def test_locked_account_cannot_start_reset(
        self,
        resets,
        sms_sender,
        clock,
    ):
        await resets.initiate_reset(JEWELER_PHONE)
        for _ in range(4):
            with pytest.raises(InvalidOtpError):
                await resets.verify_reset_otp(JEWELER_PHONE, WRONG_CODE)
        with pytest.raises(AccountLockedError):
            await resets.verify_reset_otp(JEWELER_PHONE, WRONG_CODE)

        clock.advance(minutes=2)
        with pytest.raises(AccountLockedError):
            await resets.initiate_reset(JEWELER_PHONE)

    @pytest.mark.asyncio
    async def test_confirmation_failure_keeps_new_password(
        self,
        auth,
        resets,
        sms_sender,
    ):
        sms_sender.fail_confirmations = True
        await resets.initiate_reset(JEWELER_PHONE)
        grant = await resets.verify_reset_otp(JEWELER_PHONE, sms_sender.last_code)

        await resets.reset_password(
            JEWELER_PHONE,
            grant.token,
            NEW_PASSWORD,
            NEW_PASSWORD,
        )

        session = await auth.authenticate_local("ravi", NEW_PASSWORD)
        assert session.user.username == "ravi"


class TestAuditStoreFailure:
    """Security outcomes must not depend on the audit log being writable."""

    @pytest_asyncio.fixture(autouse=True)
    async def _drop_audit_table(self, async_session):
        await async_session.execute(text("DROP TABLE audit_events"))

    @pytest.mark.asyncio
    async def test_lockout_ladder_without_audit_store(
        self,
        auth,
        service_factory,
        sms_sender,
        clock,
        caplog,
    ):
        await auth.request_otp(PHONE)

        remaining = []
        for _ in range(4):
            with pytest.raises(InvalidOtpError) as exc_info:
                await auth.verify_otp_login(PHONE, WRONG_CODE)
            remaining.append(exc_info.value.remaining_attempts)
        assert remaining == [4, 3, 2, 1]

        with pytest.raises(AccountLockedError):
            await auth.verify_otp_login(PHONE, WRONG_CODE)

        user = await service_factory.user_repository.find_by_phone_number(PHONE)
        assert user.is_locked is True
        assert "Failed to write audit event otp_failed" in caplog.text

        clock.advance(minutes=16)
        await auth.request_otp(PHONE)
        session = await auth.verify_otp_login(PHONE, sms_sender.last_code)

        assert session.user.id == user.id
        assert await auth.resolve_session(session.session_token) == session.user

    @pytest.mark.asyncio
    async def test_password_login_and_reset_without_audit_store(
        self,
        auth,
        resets,
        sms_sender,
    ):
        await auth.register(
            UserRole.JEWELER,
            "ravi",
            PASSWORD,
            phone_number=JEWELER_PHONE,
        )

        with pytest.raises(InvalidCredentialsError):
            await auth.authenticate_local("ravi", "Wrong#Pass1")
        session = await auth.authenticate_local("ravi", PASSWORD)
        assert session.user.username == "ravi"

        await resets.initiate_reset(JEWELER_PHONE)
        grant = await resets.verify_reset_otp(JEWELER_PHONE, sms_sender.last_code)
        await resets.reset_password(
            JEWELER_PHONE,
            grant.token,
            NEW_PASSWORD,
            NEW_PASSWORD,
        )

        session = await auth.authenticate_local("ravi", NEW_PASSWORD)
        assert session.user.username == "ravi"
