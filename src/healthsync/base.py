"""Canonical data models for the HealthSync capture core.

``CaptureRecord`` is the single persisted shape.  It is created only by the
capture orchestrator, never mutated, and serialized to the history document
with ``to_json()`` / ``from_json()``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from src.healthsync.errors import ProviderUnavailable, StoreCorrupt

logger = logging.getLogger("healthsync")

CaptureStatus = Literal["success", "partial", "error"]
CaptureTrigger = Literal["manual", "periodic"]


def to_utc(value: datetime) -> datetime:
    """Return ``value`` as a UTC-aware datetime.

    Naive datetimes are interpreted as local wall-clock time.
    """
    if value.tzinfo is None:
        value = value.astimezone()
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format an instant as ISO-8601 UTC with a ``Z`` suffix."""
    return to_utc(value).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string into a UTC-aware datetime.

    Accepts the ``Z`` suffix and explicit offsets.  Naive strings (written by
    older clients in local time) are read as local time.

    Raises:
        ValueError: If the string is not ISO-8601.
    """
    return to_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


# ---------------------------------------------------------------------------
# Location fix
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GeoFix:
    """A best-effort position returned by a location provider."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")


# ---------------------------------------------------------------------------
# Capture record
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CaptureRecord:
    """One point-in-time snapshot of health and location state.

    Attributes:
        timestamp:     Instant of capture, stored as UTC.
        steps:         Step count for the local calendar day up to ``timestamp``.
        sleep_minutes: Minutes asleep between yesterday 18:00 and today 12:00.
        latitude:      Optional latitude; present iff ``longitude`` is present.
        longitude:     Optional longitude; present iff ``latitude`` is present.
    """

    timestamp: datetime
    steps: int
    sleep_minutes: int
    latitude: float | None = None
    longitude: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", to_utc(self.timestamp))
        if self.steps < 0:
            raise ValueError(f"steps must be >= 0, got {self.steps}")
        if self.sleep_minutes < 0:
            raise ValueError(f"sleep_minutes must be >= 0, got {self.sleep_minutes}")
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be both present or both absent")

    @classmethod
    def capture(
        cls,
        timestamp: datetime,
        steps: int,
        sleep_minutes: int,
        fix: GeoFix | None = None,
    ) -> "CaptureRecord":
        """Build a record from provider values and an optional fix."""
        return cls(
            timestamp=timestamp,
            steps=steps,
            sleep_minutes=sleep_minutes,
            latitude=fix.latitude if fix else None,
            longitude=fix.longitude if fix else None,
        )

    @property
    def has_location(self) -> bool:
        return self.latitude is not None

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "timestamp": format_timestamp(self.timestamp),
            "steps": self.steps,
            "sleepMinutes": self.sleep_minutes,
        }
        if self.has_location:
            data["latitude"] = self.latitude
            data["longitude"] = self.longitude
        return data

    @classmethod
    def from_json(cls, data: Any) -> "CaptureRecord":
        """Decode one history entry.

        Missing ``steps`` / ``sleepMinutes`` default to 0, and ``null``
        coordinates are read as absent.

        Raises:
            StoreCorrupt: If the entry cannot be decoded into a valid record.
        """
        if not isinstance(data, dict):
            raise StoreCorrupt(f"history entry is not an object: {data!r}")
        try:
            timestamp = parse_timestamp(data["timestamp"])
            steps = _as_int(data.get("steps", 0))
            sleep_minutes = _as_int(data.get("sleepMinutes", 0))
            latitude = _as_float(data.get("latitude"))
            longitude = _as_float(data.get("longitude"))
            return cls(
                timestamp=timestamp,
                steps=steps,
                sleep_minutes=sleep_minutes,
                latitude=latitude,
                longitude=longitude,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise StoreCorrupt(f"invalid history entry {data!r}: {exc}") from exc


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"expected an integer, got {value!r}")
    return int(value)


def _as_float(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {value!r}")
    return float(value)


# ---------------------------------------------------------------------------
# Capture outcome
# ---------------------------------------------------------------------------


@dataclass
class CaptureResult:
    """Outcome of one capture run.

    Attributes:
        trigger:    'manual' or 'periodic'.
        record:     The stored record, or None when the write failed.
        status:     'success', 'partial' (stored, some provider degraded) or 'error'.
        degraded:   Field group ('steps', 'sleep', 'location') → cause of degradation.
        error:      Error message if status == 'error'.
        coalesced:  True when this caller joined a capture already in flight.
        started_at: UTC timestamp the capture began.
    """

    trigger: CaptureTrigger
    record: CaptureRecord | None = None
    status: CaptureStatus = "success"
    degraded: dict[str, ProviderUnavailable] = field(default_factory=dict)
    error: str | None = None
    coalesced: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        return self.status != "error"
