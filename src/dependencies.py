"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from src.healthsync.app import SyncApp


async def get_sync_app(request: Request) -> SyncApp:
    """Return the ``SyncApp`` built by the application lifespan.

    The lifespan stores it on ``app.state.sync`` before routes run.
    """
    sync_app: SyncApp | None = getattr(request.app.state, "sync", None)
    if sync_app is None:
        raise HTTPException(status_code=503, detail="Capture core not started")
    return sync_app


# Annotated shortcuts for route signatures
CurrentSyncApp = Annotated[SyncApp, Depends(get_sync_app)]
