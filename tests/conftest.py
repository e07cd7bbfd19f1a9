"""Shared fixtures for the engagement engine tests."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import pytest

from workout_engagement.config import Settings
from workout_engagement.db.adapters import ProgressBackend
from workout_engagement.db.adapters.memory_adapter import InMemoryAdapter
from workout_engagement.exceptions import PersistenceError
from workout_engagement.models.progress import ProgressDocument
from workout_engagement.services.notifications import RecordingNotificationSink
from workout_engagement.store.progress_store import ProgressStateStore


# Monday
MONDAY_7AM = datetime(2024, 3, 4, 7, 0, tzinfo=timezone.utc)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = MONDAY_7AM):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


def sequence_source(values: Iterable[float]):
    """Random source that replays the given values, repeating the last one."""
    values = list(values)
    state = {"index": 0}

    def draw() -> float:
        value = values[min(state["index"], len(values) - 1)]
        state["index"] += 1
        return value

    return draw


class FailingBackend(ProgressBackend):
    """In-memory backend whose loads and saves can be made to fail."""

    name = "flaky"

    def __init__(self, fail_load: bool = False, fail_save: bool = False):
        self.fail_load = fail_load
        self.fail_save = fail_save
        self.inner = InMemoryAdapter()
        self.save_calls = 0

    async def load(self, user_id: str) -> Optional[ProgressDocument]:
        if self.fail_load:
            raise PersistenceError("remote unreachable", backend=self.name)
        return await self.inner.load(user_id)

    async def save(self, document: ProgressDocument) -> None:
        self.save_calls += 1
        if self.fail_save:
            raise PersistenceError("remote unreachable", backend=self.name)
        await self.inner.save(document)

    async def delete(self, user_id: str) -> bool:
        return await self.inner.delete(user_id)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Default settings with the local cache in a temp directory."""
    return Settings(local_db_path=tmp_path / "engagement.db", persist_timeout_seconds=1.0)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def notifier() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def local_backend() -> InMemoryAdapter:
    return InMemoryAdapter()


@pytest.fixture
def store(settings, clock, notifier, local_backend) -> ProgressStateStore:
    """Store with an in-memory local cache and no remote store."""
    return ProgressStateStore(
        local=local_backend,
        settings=settings,
        clock=clock,
        notifier=notifier,
        random_source=sequence_source([0.0]),
    )
