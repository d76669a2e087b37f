"""Providers for when no data source is configured."""

from __future__ import annotations

from datetime import datetime

from src.healthsync.base import GeoFix
from src.healthsync.errors import ProviderUnavailable
from src.healthsync.providers.base import HealthProvider, LocationProvider


class NullHealthProvider(HealthProvider):
    """Health access is never granted; every read is unavailable."""

    NAME = "none"

    async def request_authorization(self) -> bool:
        return False

    async def get_steps(self, start: datetime, end: datetime) -> int:
        raise ProviderUnavailable(self.NAME, "no health source configured")

    async def get_sleep_minutes(self, start: datetime, end: datetime) -> int:
        raise ProviderUnavailable(self.NAME, "no health source configured")


class NullLocationProvider(LocationProvider):
    """Location access is never granted."""

    NAME = "none"

    async def request_permission(self) -> bool:
        return False

    async def get_current_position(
        self, timeout: float, high_accuracy: bool = True
    ) -> GeoFix | None:
        return None
