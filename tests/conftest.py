"""Root pytest configuration and shared fixtures.

Test Structure:
    tests/
    ├── unit/                  # Fast, isolated tests (mocks, no database)
    │   ├── config/
    │   ├── domain/
    │   ├── services/
    │   ├── application/
    │   ├── infrastructure/    # Repositories against in-memory SQLite
    │   └── presentation/
    └── e2e/                   # Full flows through the service factory

Environment Variables:
    JOHRI_ENV_FILE       Optional .env file for settings (defaults are set below)
"""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from johri_config import Settings, clear_settings_cache
from johri_identity.application.context import RequestContext
from johri_identity.application.ports import NotificationDispatcher, NotificationSender
from johri_identity.domain.user import ContactChannel
from johri_identity.infrastructure.factory import IdentityServiceFactory
from johri_identity.infrastructure.persistence.sqlalchemy import (
    create_identity_engine,
    create_tables,
    drop_tables,
)

PROJECT_ROOT = Path(__file__).resolve().parents[1]

CONFIG_DIR = PROJECT_ROOT / "config"
if (CONFIG_DIR / ".env.test").exists():
    load_dotenv(CONFIG_DIR / ".env.test")

os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret-0123456789abcdef")
os.environ.setdefault(
    "VERIFICATION_TOKEN_SECRET",
    "test-verification-secret-0123456789abcdef",
)
os.environ.setdefault("POSTGRES_PASSWORD", "test-password")

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
START_TIME = datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable replacement for ``utc_now``."""

    def __init__(self, now: datetime = START_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingSender(NotificationSender):
    """Notification sender that remembers what it was asked to deliver."""

    def __init__(self):
        self.codes: list[tuple[str, str]] = []
        self.confirmations: list[str] = []
        self.fail_codes = False
        self.fail_confirmations = False

    @property
    def last_code(self) -> str:
        return self.codes[-1][1]

    async def send_code(self, destination, code, display_name=None):
        if self.fail_codes:
            msg = "gateway down"
            raise ConnectionError(msg)
        self.codes.append((destination, code))

    async def send_confirmation(self, destination, display_name=None):
        if self.fail_confirmations:
            msg = "gateway down"
            raise ConnectionError(msg)
        self.confirmations.append(destination)


@pytest.fixture(scope="session", autouse=True)
def configure_app_settings():
    """Make sure every test session starts from freshly loaded settings."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def request_context() -> RequestContext:
    return RequestContext(ip_address="203.0.113.7", user_agent="pytest-agent/1.0")


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        session_secret_key="test-session-secret-0123456789abcdef",
        verification_token_secret="test-verification-secret-0123456789abcdef",
        postgres_password="test-password",
        password_hash_rounds=4,
        _env_file=None,
    )


@pytest.fixture
def email_sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def sms_sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def dispatcher(email_sender, sms_sender) -> NotificationDispatcher:
    return NotificationDispatcher(
        {ContactChannel.EMAIL: email_sender, ContactChannel.SMS: sms_sender},
    )


@pytest_asyncio.fixture
async def async_engine():
    """Fresh in-memory SQLite database with the identity schema."""
    engine = create_identity_engine(TEST_DATABASE_URL)
    await create_tables(engine)
    yield engine
    await drop_tables(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(async_engine):
    session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def service_factory(async_session, test_settings, dispatcher, clock):
    return IdentityServiceFactory(async_session, test_settings, dispatcher, clock)
