"""Capture orchestrator — one provider sweep, one immutable record.

Workflow per capture:
1. Ask the health provider for authorization
2. Read steps for [local midnight, now) and sleep for [yesterday 18:00, today 12:00)
3. Check location permission and request a high-accuracy fix with a bounded wait
4. Assemble a CaptureRecord stamped with the orchestration time
5. Append it to the record store

Any provider failure degrades only its own field (0 or absent location) and
is reported as a ``ProviderUnavailable`` in ``CaptureResult.degraded``.  Only
a store write failure fails the capture.

Concurrent requests are coalesced: while a capture is in flight, further
callers wait for it and receive its result instead of starting a second one.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, tzinfo
from typing import Awaitable, Callable

from src.healthsync.base import CaptureRecord, CaptureResult, CaptureTrigger, GeoFix
from src.healthsync.errors import ProviderUnavailable, WriteFailure
from src.healthsync.providers.base import HealthProvider, LocationProvider
from src.healthsync.storage.record_store import RecordStore, utc_now
from src.healthsync.windows import sleep_window, steps_window

logger = logging.getLogger("healthsync.orchestrator")

DEFAULT_LOCATION_TIMEOUT_SECONDS = 10.0


class CaptureOrchestrator:
    """Compose provider reads into a ``CaptureRecord`` and persist it.

    Usage::

        orchestrator = CaptureOrchestrator(health, location, store)
        result = await orchestrator.sync_now()
        print(result.record)
    """

    def __init__(
        self,
        health: HealthProvider,
        location: LocationProvider,
        store: RecordStore,
        clock: Callable[[], datetime] = utc_now,
        tz: tzinfo | None = None,
        location_timeout: float = DEFAULT_LOCATION_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            health:           Steps / sleep provider.
            location:         Position provider.
            store:            Destination record store.
            clock:            Returns the current UTC-aware instant.
            tz:               Local timezone for the capture windows (None = system local).
            location_timeout: Seconds to wait for a position fix.
        """
        self._health = health
        self._location = location
        self._store = store
        self._clock = clock
        self._tz = tz
        self._location_timeout = location_timeout
        self._inflight: asyncio.Task[CaptureResult] | None = None

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def run_capture(self, trigger: CaptureTrigger = "manual") -> CaptureResult:
        """Run one capture, or join the capture already in flight.

        Never raises for provider or write failures; inspect ``status``.
        """
        if self.in_flight:
            logger.info("Capture already in flight, coalescing %s request", trigger)
            result = await asyncio.shield(self._inflight)
            return replace(result, coalesced=True)

        task = asyncio.ensure_future(self._capture(trigger))
        self._inflight = task
        return await asyncio.shield(task)

    async def sync_now(self) -> CaptureResult:
        """Manual capture.

        Raises:
            WriteFailure: If the record could not be stored.
        """
        result = await self.run_capture("manual")
        if result.status == "error":
            raise WriteFailure(result.error or "capture failed")
        return result

    async def run_background(self) -> None:
        """Periodic capture.  Best effort: failures are logged, never raised."""
        try:
            result = await self.run_capture("periodic")
        except Exception:
            logger.exception("Background capture crashed")
            return
        if result.status == "error":
            logger.error("Background capture not stored: %s", result.error)

    # ------------------------------------------------------------------
    # Capture steps
    # ------------------------------------------------------------------

    async def _capture(self, trigger: CaptureTrigger) -> CaptureResult:
        now = self._clock()
        result = CaptureResult(trigger=trigger, started_at=now)

        (steps, sleep_minutes, health_errors), (fix, location_error) = await asyncio.gather(
            self._read_health(now),
            self._read_location(),
        )
        result.degraded.update(health_errors)
        if location_error is not None:
            result.degraded["location"] = location_error

        record = CaptureRecord.capture(now, steps, sleep_minutes, fix)
        try:
            await self._store.append(record)
        except WriteFailure as exc:
            logger.error("Capture at %s could not be stored: %s", now, exc)
            result.status = "error"
            result.error = str(exc)
            return result

        result.record = record
        result.status = "partial" if result.degraded else "success"
        for field_name, cause in result.degraded.items():
            logger.warning("Capture degraded %s: %s", field_name, cause.reason)
        logger.info(
            "Capture complete (%s): steps=%d sleep=%dmin location=%s status=%s",
            trigger, record.steps, record.sleep_minutes,
            "yes" if record.has_location else "no", result.status,
        )
        return result

    async def _read_health(
        self, now: datetime
    ) -> tuple[int, int, dict[str, ProviderUnavailable]]:
        name = self._health.NAME
        try:
            authorized = await self._health.request_authorization()
        except Exception as exc:
            cause = ProviderUnavailable(name, f"authorization failed: {exc}")
            return 0, 0, {"steps": cause, "sleep": cause}
        if not authorized:
            cause = ProviderUnavailable(name, "not authorized")
            return 0, 0, {"steps": cause, "sleep": cause}

        steps_span = steps_window(now, self._tz)
        sleep_span = sleep_window(now, self._tz)
        (steps, steps_error), (sleep_minutes, sleep_error) = await asyncio.gather(
            self._read_count(self._health.get_steps(steps_span.start, steps_span.end)),
            self._read_count(self._health.get_sleep_minutes(sleep_span.start, sleep_span.end)),
        )
        errors: dict[str, ProviderUnavailable] = {}
        if steps_error is not None:
            errors["steps"] = steps_error
        if sleep_error is not None:
            errors["sleep"] = sleep_error
        return steps, sleep_minutes, errors

    async def _read_count(
        self, call: Awaitable[int]
    ) -> tuple[int, ProviderUnavailable | None]:
        name = self._health.NAME
        try:
            value = await call
        except ProviderUnavailable as exc:
            return 0, exc
        except Exception as exc:
            return 0, ProviderUnavailable(name, str(exc) or type(exc).__name__)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            return 0, ProviderUnavailable(name, f"invalid value {value!r}")
        return value, None

    async def _read_location(self) -> tuple[GeoFix | None, ProviderUnavailable | None]:
        name = self._location.NAME
        try:
            granted = await self._location.request_permission()
        except Exception as exc:
            return None, ProviderUnavailable(name, f"permission check failed: {exc}")
        if not granted:
            return None, ProviderUnavailable(name, "permission denied")

        timeout = self._location_timeout
        try:
            fix = await asyncio.wait_for(
                self._location.get_current_position(timeout, high_accuracy=True),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            return None, ProviderUnavailable(name, f"no fix within {timeout}s")
        except ProviderUnavailable as exc:
            return None, exc
        except Exception as exc:
            return None, ProviderUnavailable(name, str(exc) or type(exc).__name__)
        if fix is not None and not isinstance(fix, GeoFix):
            return None, ProviderUnavailable(name, f"invalid fix {fix!r}")
        return fix, None
