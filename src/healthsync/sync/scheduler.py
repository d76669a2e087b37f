"""Periodic capture scheduling.

Bridges the persisted sync interval and a host periodic-execution facility:

    Unregistered ──register_periodic()──▶ Registered(interval)
    Registered(i) ──update_interval(j)──▶ Registered(j)    (cancel, then register)
    Registered(i) ──trigger fires───────▶ Registered(i)    (runs a background capture)
    Registered(i) ──cancel_all()────────▶ Unregistered

Registrations are always unconstrained (no network, battery, charging, idle
or storage gating) so the host is as likely as possible to honour the
cadence.  The cadence itself is approximate and host-determined.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

from src.healthsync.base import CaptureResult
from src.healthsync.errors import SchedulerRegistrationFailure
from src.healthsync.orchestrator import CaptureOrchestrator
from src.healthsync.storage.interval_config import IntervalConfig, validate_interval

logger = logging.getLogger("healthsync.sync.scheduler")

SYNC_REGISTRATION_NAME = "healthSync"
SYNC_TASK_NAME = "healthSyncTask"

TriggerCallback = Callable[[], Awaitable[None]]


@dataclass(frozen=True)
class Constraints:
    """Execution constraints advisory to the host scheduler."""

    network_required: bool = False
    requires_battery_not_low: bool = False
    requires_charging: bool = False
    requires_device_idle: bool = False
    requires_storage_not_low: bool = False

    @property
    def is_unconstrained(self) -> bool:
        return not (
            self.network_required
            or self.requires_battery_not_low
            or self.requires_charging
            or self.requires_device_idle
            or self.requires_storage_not_low
        )


UNCONSTRAINED = Constraints()


# ---------------------------------------------------------------------------
# Host scheduler contract
# ---------------------------------------------------------------------------


class HostScheduler(ABC):
    """Host facility that invokes a callback on an approximate cadence."""

    @abstractmethod
    async def register_periodic(
        self,
        name: str,
        task: str,
        interval: timedelta,
        constraints: Constraints,
        callback: TriggerCallback,
    ) -> None:
        """Register ``callback`` to run roughly every ``interval``.

        Registering an existing ``name`` replaces the previous registration.
        """

    @abstractmethod
    async def cancel_all(self) -> None:
        """Cancel every registration made through this scheduler."""


class AsyncioHostScheduler(HostScheduler):
    """In-process host scheduler: one asyncio task per registration.

    Each registration sleeps ``interval`` then awaits the callback, forever.
    Callback exceptions are logged and the loop keeps going.  Constraints are
    accepted for interface compatibility; an in-process loop has nothing to
    gate on.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def registrations(self) -> list[str]:
        return [name for name, t in self._tasks.items() if not t.done()]

    async def register_periodic(
        self,
        name: str,
        task: str,
        interval: timedelta,
        constraints: Constraints,
        callback: TriggerCallback,
    ) -> None:
        seconds = interval.total_seconds()
        if seconds <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        existing = self._tasks.pop(name, None)
        if existing is not None:
            await self._cancel(existing)
        self._tasks[name] = asyncio.create_task(
            self._loop(task, seconds, callback), name=f"{name}:{task}"
        )
        logger.info("Registered periodic task %s/%s every %ss", name, task, seconds)

    async def cancel_all(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for t in tasks:
            await self._cancel(t)
        if tasks:
            logger.info("Cancelled %d periodic task(s)", len(tasks))

    @staticmethod
    async def _cancel(task: asyncio.Task[None]) -> None:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    @staticmethod
    async def _loop(task: str, seconds: float, callback: TriggerCallback) -> None:
        while True:
            await asyncio.sleep(seconds)
            logger.debug("Periodic task %s firing", task)
            try:
                await callback()
            except Exception:
                logger.exception("Periodic task %s raised", task)


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


class SchedulerState(str, enum.Enum):
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"


@dataclass(frozen=True)
class Registration:
    """The active periodic registration."""

    interval_minutes: int
    constraints: Constraints = UNCONSTRAINED
    registered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def interval(self) -> timedelta:
        return timedelta(minutes=self.interval_minutes)


class PeriodicSyncScheduler:
    """Keep exactly one periodic capture registration in line with the interval config.

    Register, update and cancel are serialized by a lock, so an interval
    change cancels the old cadence and registers the new one as a single step.

    Usage::

        scheduler = PeriodicSyncScheduler(AsyncioHostScheduler(), orchestrator, interval_config)
        await scheduler.register_periodic()
        await scheduler.update_interval(15)
    """

    def __init__(
        self,
        host: HostScheduler,
        orchestrator: CaptureOrchestrator,
        interval_config: IntervalConfig,
    ) -> None:
        self._host = host
        self._orchestrator = orchestrator
        self._config = interval_config
        self._registration: Registration | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> SchedulerState:
        if self._registration is None:
            return SchedulerState.UNREGISTERED
        return SchedulerState.REGISTERED

    @property
    def registration(self) -> Registration | None:
        return self._registration

    async def register_periodic(self) -> Registration:
        """Register (or re-register) using the persisted interval.

        Raises:
            SchedulerRegistrationFailure: If the host refuses the registration.
        """
        async with self._lock:
            minutes = await self._config.get()
            return await self._register(minutes)

    async def update_interval(self, minutes: int) -> Registration:
        """Persist a new interval and reschedule with it.

        Raises:
            InvalidInterval:              If ``minutes`` is outside [1, 1440].
            WriteFailure:                 If the interval could not be persisted.
            SchedulerRegistrationFailure: If the host refuses the new registration.
        """
        validate_interval(minutes)
        async with self._lock:
            await self._config.set(minutes)
            return await self._register(minutes)

    async def cancel_all(self) -> None:
        async with self._lock:
            await self._host.cancel_all()
            self._registration = None
        logger.info("Periodic sync cancelled")

    async def on_trigger(self) -> None:
        """Host callback: run a best-effort background capture."""
        await self._orchestrator.run_background()

    async def trigger_now(self) -> CaptureResult:
        """Manual "sync now".

        Raises:
            WriteFailure: If the record could not be stored.
        """
        return await self._orchestrator.sync_now()

    async def _register(self, minutes: int) -> Registration:
        registration = Registration(interval_minutes=minutes)
        try:
            await self._host.cancel_all()
            self._registration = None
            await self._host.register_periodic(
                SYNC_REGISTRATION_NAME,
                SYNC_TASK_NAME,
                registration.interval,
                registration.constraints,
                self.on_trigger,
            )
        except Exception as exc:
            self._registration = None
            logger.error("Periodic sync registration failed (%d min): %s", minutes, exc)
            raise SchedulerRegistrationFailure(
                f"Host refused periodic registration every {minutes} min: {exc}"
            ) from exc

        self._registration = registration
        logger.info("Periodic sync registered every %d minutes", minutes)
        return registration
