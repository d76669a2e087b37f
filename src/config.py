"""Application configuration loaded from environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """All configuration is loaded from HEALTHSYNC_* environment variables (or .env file)."""

    # --- App ---
    app_name: str = "HealthSync"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Storage ---
    data_dir: Path = Path(".healthsync")
    store_filename: str = "store.json"
    retention_days: int = Field(default=30, ge=1)

    # --- Scheduling ---
    scheduler_enabled: bool = True
    default_interval_minutes: int = Field(default=60, ge=1, le=1440)

    # --- Providers ---
    apple_health_export_path: Path | None = None
    apple_health_include_in_bed: bool = False
    location_url: str | None = None
    location_timeout_seconds: float = Field(default=10.0, gt=0)

    # IANA zone for "today" and the sleep window; system local when unset
    timezone: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="HEALTHSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @property
    def store_path(self) -> Path:
        return self.data_dir / self.store_filename


@lru_cache
def get_settings() -> Settings:
    return Settings()
