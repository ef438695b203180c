"""Johri settings, read from the environment.

Lookup order: process environment first, then the first existing file of
``$JOHRI_ENV_FILE``, ``config/.env.dev`` and ``config/.env``, then defaults.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, SecretStr, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ROOT_MARKERS = ("config", ".git")


def _project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if any((parent / marker).is_dir() for marker in _ROOT_MARKERS):
            return parent
        if parent == Path("/app"):
            return parent
    return here.parents[2]


def _env_file() -> Path | None:
    root = _project_root()
    candidates = []
    override = os.environ.get("JOHRI_ENV_FILE")
    if override:
        path = Path(override)
        candidates.append(path if path.is_absolute() else root / path)
    candidates += [root / "config" / ".env.dev", root / "config" / ".env"]
    return next((path for path in candidates if path.is_file()), None)


class Settings(BaseSettings):
    """Runtime configuration for the identity and account-security layer."""

    model_config = SettingsConfigDict(
        env_file=_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Required, no defaults
    session_secret_key: SecretStr  # Signs session tokens
    verification_token_secret: SecretStr  # Keys the reset-token HMAC
    postgres_password: SecretStr

    # Database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "postgres"
    postgres_db: str = "johri"
    database_url_override: str | None = None  # e.g. sqlite+aiosqlite for local runs
    database_echo: bool = False

    # HTTP edge
    api_trust_proxy_headers: bool = False

    # Sessions
    session_expire_hours: int = Field(default=24, ge=1)

    # Account security
    otp_expiry_minutes: int = Field(default=5, ge=1)
    max_otp_attempts: int = Field(default=5, ge=1)
    lockout_duration_minutes: int = Field(default=15, ge=1)
    verification_token_ttl_minutes: int = Field(default=10, ge=1)
    password_hash_rounds: int = Field(default=12, ge=4, le=31)

    # Email delivery
    smtp_enabled: bool = False
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: SecretStr | None = None
    smtp_from_email: str = ""
    smtp_from_name: str = "Johri"
    smtp_use_tls: bool = True
    smtp_starttls: bool = True

    # SMS delivery
    sms_enabled: bool = False
    sms_gateway_url: str = ""
    sms_api_key: SecretStr | None = None
    sms_sender_id: str = "JOHRI"
    sms_timeout: float = 10.0

    # Logging
    log_level: str = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, v: Any) -> str:
        """Accept log levels in any case."""
        return str(v).upper() if v else "INFO"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """Construct the database URL from components."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:"
            f"{self.postgres_password.get_secret_value()}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


@lru_cache()
def get_settings() -> Settings:
    """Load settings once per process.

    Required fields (session_secret_key, verification_token_secret,
    postgres_password) must be provided via environment variables or .env file.
    """
    return Settings()  # type: ignore[call-arg]  # pydantic-settings loads from env


def clear_settings_cache() -> None:
    """Forget the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
