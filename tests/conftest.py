"""Shared pytest fixtures for message reminder tests."""

from typing import Generator
from unittest.mock import MagicMock, AsyncMock

import pytest
from fastapi.testclient import TestClient

from message_reminder.registry import ReminderRegistry
from message_reminder.scheduler import ReminderScheduler
from message_reminder.server import create_app
from message_reminder.store import MemoryStore


class FakeClock:
    """Settable epoch-ms clock."""

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at t=0."""
    return FakeClock(0)


@pytest.fixture
def store() -> MemoryStore:
    """Empty in-memory store."""
    return MemoryStore()


@pytest.fixture
def mock_notifier() -> MagicMock:
    """
    Notifier whose notify() always succeeds.

    Returns:
        MagicMock with an AsyncMock notify returning True
    """
    mock = MagicMock()
    mock.notify = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def registry(store: MemoryStore, mock_notifier: MagicMock, clock: FakeClock) -> ReminderRegistry:
    """Registry wired to the memory store, mock notifier and fake clock."""
    return ReminderRegistry(store=store, notifier=mock_notifier, clock=clock)


@pytest.fixture
def scheduler(registry: ReminderRegistry, mock_notifier: MagicMock) -> ReminderScheduler:
    """Scheduler with a short interval so init() tests stay fast."""
    return ReminderScheduler(
        registry=registry,
        notifier=mock_notifier,
        interval_seconds=0.01,
    )


@pytest.fixture
def test_client(scheduler: ReminderScheduler) -> Generator[TestClient, None, None]:
    """
    FastAPI TestClient for the reminder API.

    The scheduler loop is not started; tests drive ticks through /focus.
    """
    app = create_app(scheduler=scheduler, config={})
    with TestClient(app) as client:
        yield client
