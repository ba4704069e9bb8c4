"""Shared test fixtures for Beacon."""

import pytest
from beacon.core.config import BeaconConfig
from beacon.core.events import EventCategory, NotificationPayload


class RecordingFailureLog:
    """Stands in for FailureLog; keeps messages in memory."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def config():
    """Create a default config without loading from disk."""
    return BeaconConfig()


@pytest.fixture
def failure_log():
    """In-memory failure recorder."""
    return RecordingFailureLog()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_payload():
    """Factory for payloads with sensible defaults."""

    def _make(category: EventCategory = EventCategory.TASK_COMPLETE, **kwargs) -> NotificationPayload:
        defaults = dict(
            category=category,
            title=f"[{category.value}] demo",
            body="Done",
            project_label="demo",
            session_id="ses_1",
        )
        defaults.update(kwargs)
        return NotificationPayload(**defaults)

    return _make
