"""HealthSync capture core.

Periodically captures step count, sleep duration and an optional position
fix into a 30-day retained local history.

Subpackages:
    providers/ — Health and location provider contracts and implementations
    storage/   — Key-value backends, record store, interval configuration
    sync/      — Host scheduler contract and the periodic sync adapter

Core modules:
    base         — CaptureRecord, GeoFix, CaptureResult
    errors       — Exception hierarchy
    windows      — Step and sleep capture windows
    orchestrator — Provider sweep → record → store
    app          — Composition root (SyncApp)
"""

from src.healthsync.base import CaptureRecord, CaptureResult, GeoFix
from src.healthsync.errors import (
    HealthSyncError,
    InvalidInterval,
    ProviderUnavailable,
    SchedulerRegistrationFailure,
    StoreCorrupt,
    WriteFailure,
)

__all__ = [
    "CaptureRecord",
    "CaptureResult",
    "GeoFix",
    "HealthSyncError",
    "InvalidInterval",
    "ProviderUnavailable",
    "SchedulerRegistrationFailure",
    "StoreCorrupt",
    "WriteFailure",
]
