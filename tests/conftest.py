"""Pytest configuration and shared fixtures."""

import pytest
from datetime import datetime
from typing import Any, Optional

from tomato_app.errors import PersistenceError
from tomato_app.history.session_log import SessionHistory
from tomato_app.persistence.kv_store import BaseKeyValueStore, InMemoryKeyValueStore, StorageScope
from tomato_app.persistence.timer_store import TimerStore
from tomato_app.scheduler.base import BaseWakeupScheduler
from tomato_app.state.models import TimerSettings
from tomato_app.state.runtime import TimerService


# Monday 2024-01-15 09:00 local time
BASE_TIME_MS = int(datetime(2024, 1, 15, 9, 0, 0).timestamp() * 1000)


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now_ms: int = BASE_TIME_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


class RecordingScheduler(BaseWakeupScheduler):
    """Scheduler that records arm/disarm calls and fires only on demand."""

    def __init__(self) -> None:
        super().__init__()
        self.armed: dict[str, float] = {}
        self.arm_calls: list[tuple[str, float]] = []
        self.disarm_calls: list[str] = []

    def arm(self, name: str, delay_seconds: float) -> None:
        delay = self._check_delay(name, delay_seconds)
        self.armed[name] = delay
        self.arm_calls.append((name, delay))

    def disarm(self, name: str) -> None:
        self.armed.pop(name, None)
        self.disarm_calls.append(name)

    def is_armed(self, name: str) -> bool:
        return name in self.armed

    def fire(self, name: str) -> None:
        self.armed.pop(name, None)
        self._fire(name)


class FailingStore(BaseKeyValueStore):
    """Store whose every operation fails."""

    def __init__(self, scope: StorageScope = StorageScope.SYNCED):
        super().__init__(scope)
        self.calls: list[str] = []

    def get(self, key: str) -> Optional[Any]:
        self.calls.append(f"get:{key}")
        raise PersistenceError("storage unavailable", operation="read", target=key)

    def set(self, key: str, value: Any) -> None:
        self.calls.append(f"set:{key}")
        raise PersistenceError("storage unavailable", operation="write", target=key)

    def remove(self, key: str) -> None:
        self.calls.append(f"remove:{key}")
        raise PersistenceError("storage unavailable", operation="remove", target=key)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def local_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(StorageScope.LOCAL)


@pytest.fixture
def synced_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(StorageScope.SYNCED)


@pytest.fixture
def timer_store(local_store, synced_store) -> TimerStore:
    return TimerStore(local=local_store, synced=synced_store)


@pytest.fixture
def history(timer_store) -> SessionHistory:
    return SessionHistory(timer_store)


@pytest.fixture
def make_service(timer_store, scheduler, clock):
    """Factory for TimerService instances sharing the fixture collaborators."""

    def _make(store: Optional[TimerStore] = None, **kwargs) -> TimerService:
        store = store or timer_store
        kwargs.setdefault("history", SessionHistory(store))
        kwargs.setdefault("settings", TimerSettings())
        return TimerService(store=store, scheduler=scheduler, clock=clock, **kwargs)

    return _make


@pytest.fixture
def service(make_service) -> TimerService:
    """Recovered service with no persisted data."""
    svc = make_service()
    svc.recover()
    return svc
