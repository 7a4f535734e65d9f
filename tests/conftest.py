# ABOUTME: Pytest fixtures and configuration for daily reflection tests.
# ABOUTME: Provides test settings, a temporary JSON store, fake transports and a frozen clock.

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from pydantic import SecretStr

from daily_reflection.config import Settings
from daily_reflection.errors import TransportFailure
from daily_reflection.storage.json_file import JsonFileStore

ADMIN_PASSWORD = "correct horse battery staple"


@pytest.fixture
def mock_settings(tmp_path: Path) -> Settings:
    """Create settings for testing."""
    return Settings(
        admin_password=SecretStr(ADMIN_PASSWORD),
        session_ttl_hours=24,
        store_backend="json",
        data_file=tmp_path / "data.json",
        smtp_host="localhost",
        smtp_port=1025,
        smtp_user=SecretStr("test-user"),
        smtp_password=SecretStr("test-password"),
        smtp_timeout=15.0,
        sender_email="test@example.com",
        sender_name="Test Sender",
        bounce_email="bounce@example.com",
        web_dir=tmp_path / "web",
        log_level="DEBUG",
    )


@pytest.fixture
def json_store(tmp_path: Path) -> JsonFileStore:
    """Create a JSON file store in a temporary directory."""
    return JsonFileStore(tmp_path / "data.json")


class FakeTransport:
    """Records every send; fails for the configured addresses."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[tuple[str, str, str, str]] = []

    async def send_one(self, address: str, subject: str, html_body: str, text_body: str) -> None:
        self.calls.append((address, subject, html_body, text_body))
        if address in self.failing:
            raise TransportFailure(f"Mailbox unavailable: {address}")


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Create a transport that succeeds for every address."""
    return FakeTransport()


@pytest.fixture
def transport_factory() -> type[FakeTransport]:
    """Give tests the FakeTransport class to build failing transports."""
    return FakeTransport


class FrozenClock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FrozenClock:
    """Create a frozen clock at a fixed instant."""
    return FrozenClock(datetime(2026, 3, 1, 9, 0, tzinfo=UTC))
