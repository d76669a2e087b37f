"""Sync endpoints: manual capture, retained history, and the capture interval."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from src.dependencies import CurrentSyncApp
from src.healthsync.errors import SchedulerRegistrationFailure, WriteFailure
from src.models.sync import CaptureRecordRead, IntervalRead, IntervalUpdate, SyncResultRead

router = APIRouter(tags=["sync"])
logger = logging.getLogger("healthsync.api.sync")


# ---------- Sync Now ----------

@router.post("/sync", response_model=SyncResultRead)
async def sync_now(sync: CurrentSyncApp) -> Any:
    try:
        result = await sync.scheduler.trigger_now()
    except WriteFailure as exc:
        logger.error("Manual sync failed: %s", exc)
        raise HTTPException(status_code=503, detail=f"Capture not stored: {exc}") from exc
    return SyncResultRead.from_result(result)


# ---------- Records ----------

@router.get("/records", response_model=list[CaptureRecordRead])
async def list_records(sync: CurrentSyncApp) -> Any:
    return [CaptureRecordRead.from_record(r) for r in await sync.store.get_all()]


@router.get("/records/today", response_model=list[CaptureRecordRead])
async def list_today_records(sync: CurrentSyncApp) -> Any:
    return [CaptureRecordRead.from_record(r) for r in await sync.store.get_today()]


@router.delete("/records", status_code=204)
async def clear_records(sync: CurrentSyncApp) -> None:
    try:
        await sync.store.clear()
    except WriteFailure as exc:
        raise HTTPException(status_code=503, detail=f"History not cleared: {exc}") from exc


# ---------- Interval ----------

@router.get("/interval", response_model=IntervalRead)
async def get_interval(sync: CurrentSyncApp) -> Any:
    return IntervalRead(
        interval_minutes=await sync.interval_config.get(),
        scheduler_state=sync.scheduler.state.value,
    )


@router.put("/interval", response_model=IntervalRead)
async def update_interval(sync: CurrentSyncApp, body: IntervalUpdate) -> Any:
    try:
        registration = await sync.scheduler.update_interval(body.interval_minutes)
    except WriteFailure as exc:
        raise HTTPException(status_code=503, detail=f"Interval not saved: {exc}") from exc
    except SchedulerRegistrationFailure as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return IntervalRead(
        interval_minutes=registration.interval_minutes,
        scheduler_state=sync.scheduler.state.value,
    )
