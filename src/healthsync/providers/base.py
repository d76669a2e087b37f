"""Provider contracts consumed by the capture orchestrator.

Providers are treated as stateless external services.  Every method may
raise; the orchestrator converts any failure into ``ProviderUnavailable`` and
degrades the affected field instead of aborting the capture.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from src.healthsync.base import GeoFix


class HealthProvider(ABC):
    """Source of step and sleep totals.

    Subclasses must implement:
        - request_authorization()
        - get_steps()
        - get_sleep_minutes()
    """

    #: Short name used in logs and CaptureResult.degraded causes.
    NAME: str = "health"

    @abstractmethod
    async def request_authorization(self) -> bool:
        """Ask for read access to steps and sleep.  Returns True if granted."""

    @abstractmethod
    async def get_steps(self, start: datetime, end: datetime) -> int:
        """Return the total step count for [start, end).

        Raises:
            ProviderUnavailable: If not authorized or the data cannot be read.
        """

    @abstractmethod
    async def get_sleep_minutes(self, start: datetime, end: datetime) -> int:
        """Return total minutes asleep inside [start, end).

        Implementations must de-duplicate overlapping sleep samples before
        summing; callers treat the returned total as authoritative.

        Raises:
            ProviderUnavailable: If not authorized or the data cannot be read.
        """


class LocationProvider(ABC):
    """Source of an optional, best-effort position fix."""

    NAME: str = "location"

    @abstractmethod
    async def request_permission(self) -> bool:
        """Return True if position access is granted."""

    @abstractmethod
    async def get_current_position(
        self, timeout: float, high_accuracy: bool = True
    ) -> GeoFix | None:
        """Return the current position, or None when there is no fix.

        Args:
            timeout:       Seconds to wait for a fix.
            high_accuracy: Request the most accurate fix available.

        Raises:
            ProviderUnavailable: If the position cannot be obtained.
        """
