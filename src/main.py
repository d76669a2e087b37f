"""HealthSync API — FastAPI application entry point.

Run locally:
    uvicorn src.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.config import Settings, get_settings
from src.healthsync.app import SyncApp, build_sync_app
from src.routers import health, sync

logger = logging.getLogger("healthsync")


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


# ---------- App factory ----------

def create_app(
    settings: Settings | None = None, sync_app: SyncApp | None = None
) -> FastAPI:
    """Build the API.

    Args:
        settings: Configuration; defaults to ``get_settings()``.
        sync_app: Pre-built capture core (tests inject one with fakes).
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Startup / shutdown hooks."""
        logger.info(
            "Starting HealthSync API v%s [%s]",
            settings.app_version,
            settings.environment,
        )
        core = sync_app or build_sync_app(settings)
        app.state.sync = core
        await core.start()
        yield
        await core.stop()
        app.state.sync = None
        logger.info("HealthSync API shut down")

    app = FastAPI(
        title="HealthSync API",
        description=(
            "Periodic capture of steps, sleep and location into a "
            "30-day retained local history."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ---------- Health check (outside v1 prefix — always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    app.include_router(sync.router, prefix="/api/v1")

    return app


app = create_app()
