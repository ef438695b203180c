from enum import Enum


class AuditEventType(str, Enum):
    """Security events written to the audit log."""

    OTP_SENT = "otp_sent"
    OTP_VERIFIED = "otp_verified"
    OTP_FAILED = "otp_failed"
    RESET_SUCCESS = "reset_success"
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_UNLOCKED = "account_unlocked"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
