"""Tests for the request/response models."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from johri_identity import (
    AuthenticatedSession,
    ContactChannel,
    OtpDispatch,
    PublicUser,
    UserRole,
    VerificationGrant,
)
from johri_identity.presentation.api.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    OtpDispatchResponse,
    OtpRequest,
    OtpVerifyRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SessionResponse,
    UserResponse,
    VerificationGrantResponse,
)

NOW = datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)


class TestRequestSchemas:
    def test_otp_must_be_six_digits(self):
        assert OtpVerifyRequest(identifier="5551234567", otp="482913").otp == "482913"

        for bad in ("12345", "1234567", "abcdef"):
            with pytest.raises(ValidationError):
                OtpVerifyRequest(identifier="5551234567", otp=bad)

    def test_login_requires_both_fields(self):
        assert LoginRequest(username="ravi", password="x").username == "ravi"

        with pytest.raises(ValidationError):
            LoginRequest(username="", password="x")

    def test_identifier_cannot_be_empty(self):
        assert ForgotPasswordRequest(identifier="owner@example.com").identifier

        for model in (OtpRequest, ForgotPasswordRequest):
            with pytest.raises(ValidationError):
                model(identifier="")

    def test_reset_password_leaves_strength_to_the_service(self):
        """Weak passwords pass the schema so every broken rule can be listed."""
        request = ResetPasswordRequest(
            identifier="5551234567",
            token="otpv.abc.1.n",
            new_password="abc",
            confirm_password="abc",
        )

        assert request.new_password == "abc"

        with pytest.raises(ValidationError):
            ResetPasswordRequest(
                identifier="5551234567",
                token="",
                new_password="abc",
                confirm_password="abc",
            )

    def test_owner_registration_requires_email(self):
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(role=UserRole.OWNER, username="asha", password="x")

        assert "Email is required" in str(exc_info.value)

    def test_jeweler_registration_requires_phone(self):
        with pytest.raises(ValidationError):
            RegisterRequest(role=UserRole.JEWELER, username="ravi", password="x")

    def test_jeweler_registration(self):
        request = RegisterRequest(
            role="jeweler",
            username="ravi",
            password="Sparkle#Gold9",
            phone_number="5551234567",
        )

        assert request.role == UserRole.JEWELER


class TestResponseSchemas:
    def test_user_response_has_no_password_hash(self):
        public = PublicUser(
            id=uuid4(),
            role=UserRole.VIEWER,
            username=None,
            email=None,
            phone_number="5551234567",
            display_name=None,
            has_google_account=False,
            created_at=NOW,
        )

        dumped = UserResponse.from_public(public).model_dump()

        assert "password_hash" not in dumped
        assert dumped["phone_number"] == "5551234567"

    @pytest.mark.parametrize(
        ("channel", "message"),
        [
            (ContactChannel.SMS, "OTP sent to your phone."),
            (ContactChannel.EMAIL, "OTP sent to your email."),
        ],
    )
    def test_dispatch_message(self, channel, message):
        dispatch = OtpDispatch(channel=channel, destination="x", expires_at=NOW)

        response = OtpDispatchResponse.from_dispatch(dispatch)

        assert response.message == message
        assert "destination" not in response.model_dump()

    def test_session_response(self):
        public = PublicUser(
            id=uuid4(),
            role=UserRole.JEWELER,
            username="ravi",
            email=None,
            phone_number="5551234567",
            display_name="Ravi",
            has_google_account=False,
            created_at=NOW,
        )
        session = AuthenticatedSession(
            user=public,
            session_token="signed.jwt.value",
            expires_at=NOW,
        )

        response = SessionResponse.from_session(session)

        assert response.token_type == "bearer"
        assert response.session_token == "signed.jwt.value"
        assert response.user.id == public.id

    def test_verification_grant_response(self):
        grant = VerificationGrant(token="otpv.abc.1.n", expires_at=NOW)

        response = VerificationGrantResponse.from_grant(grant)

        assert response.message == "OTP verified successfully."
        assert response.token == grant.token

    def test_message_response(self):
        response = MessageResponse(message="Password reset successfully.")

        assert response.model_dump() == {"message": "Password reset successfully."}
