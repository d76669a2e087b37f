"""Shared fixtures and fake collaborators for capture core tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from src.healthsync.base import GeoFix
from src.healthsync.errors import WriteFailure
from src.healthsync.orchestrator import CaptureOrchestrator
from src.healthsync.providers.base import HealthProvider, LocationProvider
from src.healthsync.storage.backend import MemoryBackend, Value
from src.healthsync.storage.interval_config import IntervalConfig
from src.healthsync.storage.record_store import RecordStore
from src.healthsync.sync.scheduler import Constraints, HostScheduler, TriggerCallback

# Canonical capture instant
TEST_NOW = datetime(2024, 1, 10, 8, 0, 0, tzinfo=timezone.utc)
TEST_TZ = ZoneInfo("UTC")


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Settable clock returning a fixed UTC instant."""

    def __init__(self, now: datetime = TEST_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class FakeHealthProvider(HealthProvider):
    """Health provider returning canned values, optionally failing or stalling."""

    NAME = "fake_health"

    def __init__(
        self,
        steps: int = 0,
        sleep_minutes: int = 0,
        authorized: bool = True,
        steps_error: Exception | None = None,
        sleep_error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.steps = steps
        self.sleep_minutes = sleep_minutes
        self.authorized = authorized
        self.steps_error = steps_error
        self.sleep_error = sleep_error
        self.gate = gate
        self.steps_calls: list[tuple[datetime, datetime]] = []
        self.sleep_calls: list[tuple[datetime, datetime]] = []

    async def request_authorization(self) -> bool:
        return self.authorized

    async def get_steps(self, start: datetime, end: datetime) -> int:
        self.steps_calls.append((start, end))
        if self.gate is not None:
            await self.gate.wait()
        if self.steps_error is not None:
            raise self.steps_error
        return self.steps

    async def get_sleep_minutes(self, start: datetime, end: datetime) -> int:
        self.sleep_calls.append((start, end))
        if self.sleep_error is not None:
            raise self.sleep_error
        return self.sleep_minutes


class FakeLocationProvider(LocationProvider):
    """Location provider with configurable permission, fix, error and delay."""

    NAME = "fake_location"

    def __init__(
        self,
        granted: bool = False,
        fix: GeoFix | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.granted = granted
        self.fix = fix
        self.error = error
        self.delay = delay
        self.position_calls: list[tuple[float, bool]] = []

    async def request_permission(self) -> bool:
        return self.granted

    async def get_current_position(
        self, timeout: float, high_accuracy: bool = True
    ) -> GeoFix | None:
        self.position_calls.append((timeout, high_accuracy))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.fix


class FailingBackend(MemoryBackend):
    """Backend whose writes are rejected."""

    async def set(self, key: str, value: Value) -> None:
        raise WriteFailure("disk full")


class SlowBackend(MemoryBackend):
    """Backend that yields to the event loop between read and write."""

    async def get(self, key: str) -> Value | None:
        value = await super().get(key)
        await asyncio.sleep(0.01)
        return value


class FakeHostScheduler(HostScheduler):
    """Records every call; optionally refuses registrations."""

    def __init__(self, refuse: bool = False) -> None:
        self.refuse = refuse
        self.calls: list[str] = []
        self.active: dict[str, tuple[timedelta, Constraints, TriggerCallback]] = {}

    async def register_periodic(
        self,
        name: str,
        task: str,
        interval: timedelta,
        constraints: Constraints,
        callback: TriggerCallback,
    ) -> None:
        self.calls.append(f"register:{name}:{int(interval.total_seconds() // 60)}")
        if self.refuse:
            raise RuntimeError("background execution not permitted")
        self.active[name] = (interval, constraints, callback)

    async def cancel_all(self) -> None:
        self.calls.append("cancel_all")
        self.active.clear()


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend, clock: FakeClock) -> RecordStore:
    return RecordStore(backend, clock=clock, tz=TEST_TZ)


@pytest.fixture
def interval_config(backend: MemoryBackend) -> IntervalConfig:
    return IntervalConfig(backend)


@pytest.fixture
def health() -> FakeHealthProvider:
    return FakeHealthProvider(steps=4821, sleep_minutes=412)


@pytest.fixture
def location() -> FakeLocationProvider:
    return FakeLocationProvider(granted=False)


@pytest.fixture
def orchestrator(
    health: FakeHealthProvider,
    location: FakeLocationProvider,
    store: RecordStore,
    clock: FakeClock,
) -> CaptureOrchestrator:
    return CaptureOrchestrator(
        health, location, store, clock=clock, tz=TEST_TZ, location_timeout=0.2
    )


@pytest.fixture
def host() -> FakeHostScheduler:
    return FakeHostScheduler()
