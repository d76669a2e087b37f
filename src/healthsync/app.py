"""Composition root for the capture core.

Builds every component explicitly from ``Settings`` and hands them to the
caller; there are no process-wide singletons.  The FastAPI lifespan owns one
``SyncApp`` per process and stores it on ``app.state``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Callable
from zoneinfo import ZoneInfo

from src.config import Settings
from src.healthsync.orchestrator import CaptureOrchestrator
from src.healthsync.providers import (
    AppleHealthExportProvider,
    HealthProvider,
    HttpLocationProvider,
    LocationProvider,
    NullHealthProvider,
    NullLocationProvider,
)
from src.healthsync.storage.backend import JsonFileBackend, KeyValueBackend
from src.healthsync.storage.interval_config import IntervalConfig
from src.healthsync.storage.record_store import RecordStore, utc_now
from src.healthsync.sync.scheduler import (
    AsyncioHostScheduler,
    HostScheduler,
    PeriodicSyncScheduler,
)

logger = logging.getLogger("healthsync.app")


@dataclass
class SyncApp:
    """All wired components of one running capture core."""

    settings: Settings
    backend: KeyValueBackend
    store: RecordStore
    interval_config: IntervalConfig
    orchestrator: CaptureOrchestrator
    scheduler: PeriodicSyncScheduler
    host: HostScheduler

    async def start(self) -> None:
        """Register the periodic capture if scheduling is enabled.

        A registration failure is logged, not raised: the API stays up and a
        later interval update retries the registration.
        """
        if not self.settings.scheduler_enabled:
            logger.info("Periodic scheduling disabled by configuration")
            return
        try:
            await self.scheduler.register_periodic()
        except Exception as exc:
            logger.error("Periodic sync not registered at startup: %s", exc)

    async def stop(self) -> None:
        await self.scheduler.cancel_all()


def resolve_timezone(name: str | None) -> tzinfo | None:
    return ZoneInfo(name) if name else None


def build_health_provider(settings: Settings) -> HealthProvider:
    if settings.apple_health_export_path is None:
        logger.warning("No health source configured; steps and sleep will read as 0")
        return NullHealthProvider()
    return AppleHealthExportProvider(
        settings.apple_health_export_path,
        include_in_bed=settings.apple_health_include_in_bed,
    )


def build_location_provider(settings: Settings) -> LocationProvider:
    if not settings.location_url:
        return NullLocationProvider()
    return HttpLocationProvider(settings.location_url)


def build_sync_app(
    settings: Settings,
    *,
    backend: KeyValueBackend | None = None,
    health: HealthProvider | None = None,
    location: LocationProvider | None = None,
    host: HostScheduler | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> SyncApp:
    """Construct a ``SyncApp``.

    Every collaborator can be injected; anything omitted is built from
    ``settings``.
    """
    tz = resolve_timezone(settings.timezone)
    backend = backend or JsonFileBackend(settings.store_path)
    store = RecordStore(backend, retention_days=settings.retention_days, clock=clock, tz=tz)
    interval_config = IntervalConfig(backend, default=settings.default_interval_minutes)
    orchestrator = CaptureOrchestrator(
        health or build_health_provider(settings),
        location or build_location_provider(settings),
        store,
        clock=clock,
        tz=tz,
        location_timeout=settings.location_timeout_seconds,
    )
    host = host or AsyncioHostScheduler()
    scheduler = PeriodicSyncScheduler(host, orchestrator, interval_config)
    return SyncApp(
        settings=settings,
        backend=backend,
        store=store,
        interval_config=interval_config,
        orchestrator=orchestrator,
        scheduler=scheduler,
        host=host,
    )
