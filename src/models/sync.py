"""Pydantic models for capture records, sync results and the sync interval."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from src.healthsync.base import CaptureRecord, CaptureResult
from src.healthsync.storage.interval_config import MAX_INTERVAL_MINUTES, MIN_INTERVAL_MINUTES
from src.models.base import HealthSyncBase


# ---------- Capture Records ----------

class CaptureRecordRead(HealthSyncBase):
    timestamp: datetime
    steps: int = Field(ge=0)
    sleep_minutes: int = Field(ge=0)
    latitude: float | None = None
    longitude: float | None = None

    @classmethod
    def from_record(cls, record: CaptureRecord) -> "CaptureRecordRead":
        return cls.model_validate(record)


# ---------- Sync ----------

class DegradedField(HealthSyncBase):
    field: str
    provider: str
    reason: str


class SyncResultRead(HealthSyncBase):
    trigger: Literal["manual", "periodic"]
    status: Literal["success", "partial", "error"]
    coalesced: bool = False
    started_at: datetime
    record: CaptureRecordRead | None = None
    degraded: list[DegradedField] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: CaptureResult) -> "SyncResultRead":
        return cls(
            trigger=result.trigger,
            status=result.status,
            coalesced=result.coalesced,
            started_at=result.started_at,
            record=CaptureRecordRead.from_record(result.record) if result.record else None,
            degraded=[
                DegradedField(field=name, provider=cause.provider, reason=cause.reason)
                for name, cause in result.degraded.items()
            ],
        )


# ---------- Interval ----------

class IntervalRead(HealthSyncBase):
    interval_minutes: int
    scheduler_state: Literal["registered", "unregistered"]


class IntervalUpdate(HealthSyncBase):
    interval_minutes: int = Field(ge=MIN_INTERVAL_MINUTES, le=MAX_INTERVAL_MINUTES)
