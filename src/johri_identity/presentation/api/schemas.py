"""Request/response models for the account-security endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from johri_identity.domain.user import ContactChannel, UserRole
from johri_identity.schemas import (
    AuthenticatedSession,
    OtpDispatch,
    PublicUser,
    VerificationGrant,
)


class LoginRequest(BaseModel):
    """Request schema for username/password login."""

    username: str = Field(..., min_length=1, max_length=150)
    password: str = Field(..., min_length=1)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"username": "owner", "password": "Secure#Pass1"},
        },
    )


class OtpRequest(BaseModel):
    """Request schema for sending a code to an email address or phone number."""

    identifier: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Email address or 10-15 digit mobile number",
    )

    model_config = ConfigDict(
        json_schema_extra={"example": {"identifier": "5551234567"}},
    )


class OtpVerifyRequest(BaseModel):
    """Request schema for submitting a code."""

    identifier: str = Field(..., min_length=1, max_length=255)
    otp: str = Field(..., pattern=r"^[0-9]{6}$", description="6-digit code")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"identifier": "5551234567", "otp": "123456"},
        },
    )


class ForgotPasswordRequest(OtpRequest):
    """Request schema for starting a password reset."""


class ResetPasswordRequest(BaseModel):
    """Request schema for setting a new password with a verification token.

    Password strength is checked by the service so the response can list
    every violated rule.
    """

    identifier: str = Field(..., min_length=1, max_length=255)
    token: str = Field(..., min_length=1)
    new_password: str
    confirm_password: str


class RegisterRequest(BaseModel):
    """Request schema for Owner (email) or Jeweler (phone) sign-up."""

    role: UserRole
    username: str = Field(..., min_length=1, max_length=150)
    password: str
    email: EmailStr | None = None
    phone_number: str | None = Field(default=None, pattern=r"^[0-9]{10,15}$")
    display_name: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def _check_identifier(self) -> "RegisterRequest":
        if self.role == UserRole.OWNER and not self.email:
            msg = "Email is required for Super Admin registration."
            raise ValueError(msg)
        if self.role == UserRole.JEWELER and not self.phone_number:
            msg = "Phone number is required for Jeweler registration."
            raise ValueError(msg)
        return self


class UserResponse(BaseModel):
    """Public user data. Never includes the password hash."""

    id: UUID
    role: UserRole
    username: str | None
    email: str | None
    phone_number: str | None
    display_name: str | None
    has_google_account: bool
    created_at: datetime

    @classmethod
    def from_public(cls, user: PublicUser) -> "UserResponse":
        return cls(
            id=user.id,
            role=user.role,
            username=user.username,
            email=user.email,
            phone_number=user.phone_number,
            display_name=user.display_name,
            has_google_account=user.has_google_account,
            created_at=user.created_at,
        )


class SessionResponse(BaseModel):
    """Response after a successful sign-in."""

    user: UserResponse
    session_token: str
    token_type: str = "bearer"
    expires_at: datetime

    @classmethod
    def from_session(cls, session: AuthenticatedSession) -> "SessionResponse":
        return cls(
            user=UserResponse.from_public(session.user),
            session_token=session.session_token,
            expires_at=session.expires_at,
        )


class OtpDispatchResponse(BaseModel):
    """Response after a code was sent."""

    message: str
    channel: ContactChannel
    expires_at: datetime

    @classmethod
    def from_dispatch(cls, dispatch: OtpDispatch) -> "OtpDispatchResponse":
        target = "email" if dispatch.channel == ContactChannel.EMAIL else "phone"
        return cls(
            message=f"OTP sent to your {target}.",
            channel=dispatch.channel,
            expires_at=dispatch.expires_at,
        )


class VerificationGrantResponse(BaseModel):
    """Response after a reset code was verified."""

    message: str = "OTP verified successfully."
    token: str
    expires_at: datetime

    @classmethod
    def from_grant(cls, grant: VerificationGrant) -> "VerificationGrantResponse":
        return cls(token=grant.token, expires_at=grant.expires_at)


class MessageResponse(BaseModel):
    message: str
