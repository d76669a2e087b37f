"""Persisted periodic-capture interval (minutes)."""

from __future__ import annotations

import logging

from src.healthsync.errors import InvalidInterval
from src.healthsync.storage.backend import KeyValueBackend

logger = logging.getLogger("healthsync.storage.interval_config")

INTERVAL_KEY = "sync_interval_minutes"
DEFAULT_INTERVAL_MINUTES = 60
MIN_INTERVAL_MINUTES = 1
MAX_INTERVAL_MINUTES = 1440


def validate_interval(minutes: object) -> int:
    """Return ``minutes`` if it is an integer in [1, 1440].

    Raises:
        InvalidInterval: Otherwise.
    """
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise InvalidInterval(minutes, MIN_INTERVAL_MINUTES, MAX_INTERVAL_MINUTES)
    if not MIN_INTERVAL_MINUTES <= minutes <= MAX_INTERVAL_MINUTES:
        raise InvalidInterval(minutes, MIN_INTERVAL_MINUTES, MAX_INTERVAL_MINUTES)
    return minutes


class IntervalConfig:
    """Single integer setting governing the periodic capture cadence."""

    def __init__(
        self, backend: KeyValueBackend, default: int = DEFAULT_INTERVAL_MINUTES
    ) -> None:
        self._backend = backend
        self._default = validate_interval(default)

    @property
    def default(self) -> int:
        return self._default

    async def get(self) -> int:
        """Return the stored interval, or the default when unset or invalid."""
        stored = await self._backend.get(INTERVAL_KEY)
        if stored is None:
            return self._default
        try:
            return validate_interval(stored)
        except InvalidInterval:
            logger.warning(
                "Ignoring invalid stored interval %r, using default %d", stored, self._default
            )
            return self._default

    async def set(self, minutes: int) -> None:
        """Persist a new interval.

        Raises:
            InvalidInterval: If ``minutes`` is outside [1, 1440].
            WriteFailure:    If the backend rejects the write.
        """
        validate_interval(minutes)
        await self._backend.set(INTERVAL_KEY, minutes)
        logger.info("Sync interval set to %d minutes", minutes)
