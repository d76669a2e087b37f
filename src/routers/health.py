"""Health check endpoint — public, no auth required."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from src.dependencies import CurrentSyncApp

router = APIRouter(tags=["system"])


@router.get("/health")
async def health_check(sync: CurrentSyncApp) -> dict:
    """Liveness probe. Returns 200 if the API process is up.

    Also reports whether the periodic capture is registered.
    """
    settings = sync.settings
    interval = await sync.interval_config.get()
    registration = sync.scheduler.registration
    return {
        "status": "healthy" if registration or not settings.scheduler_enabled else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "scheduler": sync.scheduler.state.value,
        "interval_minutes": interval,
        "capture_in_flight": sync.orchestrator.in_flight,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
