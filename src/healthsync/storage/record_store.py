"""Durable, time-bounded history of capture records.

The whole history lives under one backend key as a JSON array.  Every append
is a full read-modify-write-replace of that document, guarded by an
``asyncio.Lock`` so a manual sync racing a periodic trigger can never
overwrite the other's write with stale history.

Retention is enforced at write time: after each append no record older than
``now - retention_days`` survives.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable

from src.healthsync.base import CaptureRecord
from src.healthsync.errors import StoreCorrupt
from src.healthsync.storage.backend import KeyValueBackend, Value
from src.healthsync.windows import local_midnight

logger = logging.getLogger("healthsync.storage.record_store")

RECORDS_KEY = "health_records"
DEFAULT_RETENTION_DAYS = 30


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def decode_history(raw: Value | None) -> list[CaptureRecord]:
    """Decode a persisted history document.

    Args:
        raw: The stored value, or None if the key is absent.

    Returns:
        Records in insertion order (empty for an absent document).

    Raises:
        StoreCorrupt: If the document or any entry in it is malformed.
    """
    if raw is None:
        return []
    if not isinstance(raw, str):
        raise StoreCorrupt(f"history document is not a string: {type(raw).__name__}")
    try:
        entries = json.loads(raw)
    except ValueError as exc:
        raise StoreCorrupt(f"history document is not valid JSON: {exc}") from exc
    if not isinstance(entries, list):
        raise StoreCorrupt("history document is not a JSON array")
    return [CaptureRecord.from_json(entry) for entry in entries]


def encode_history(records: list[CaptureRecord]) -> str:
    return json.dumps([r.to_json() for r in records], separators=(",", ":"))


class RecordStore:
    """Append-only, 30-day retained collection of ``CaptureRecord``.

    Usage::

        store = RecordStore(JsonFileBackend(path))
        await store.append(record)
        today = await store.get_today()
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        clock: Callable[[], datetime] = utc_now,
        tz: tzinfo | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            backend:        Key-value persistence layer.
            retention_days: Sliding retention horizon in days.
            clock:          Returns the current UTC-aware instant.
            tz:             Local timezone for "today" (None = system local).
        """
        if retention_days < 1:
            raise ValueError(f"retention_days must be >= 1, got {retention_days}")
        self._backend = backend
        self._retention = timedelta(days=retention_days)
        self._clock = clock
        self._tz = tz
        self._lock = asyncio.Lock()

    @property
    def retention(self) -> timedelta:
        return self._retention

    async def append(self, record: CaptureRecord) -> None:
        """Append ``record`` and evict everything past the retention horizon.

        A corrupt existing document is discarded: the append proceeds from an
        empty history and the rewrite replaces the corrupt document.

        Raises:
            WriteFailure: If the backend rejects the write.
        """
        async with self._lock:
            records = await self._load()
            records.append(record)

            cutoff = self._clock() - self._retention
            kept = [r for r in records if r.timestamp >= cutoff]
            evicted = len(records) - len(kept)

            await self._backend.set(RECORDS_KEY, encode_history(kept))

        if evicted:
            logger.info("Retention evicted %d record(s) older than %s", evicted, cutoff)
        logger.debug("Appended record at %s (%d retained)", record.timestamp, len(kept))

    async def get_all(self) -> list[CaptureRecord]:
        """Return every retained record, oldest first.  Never raises on corruption."""
        return await self._load()

    async def get_today(self) -> list[CaptureRecord]:
        """Return records captured since local midnight."""
        midnight = local_midnight(self._clock(), self._tz)
        return [r for r in await self._load() if r.timestamp >= midnight]

    async def clear(self) -> None:
        """Delete the history document unconditionally."""
        async with self._lock:
            await self._backend.remove(RECORDS_KEY)
        logger.info("History cleared")

    async def _load(self) -> list[CaptureRecord]:
        raw = await self._backend.get(RECORDS_KEY)
        try:
            return decode_history(raw)
        except StoreCorrupt as exc:
            logger.warning("Corrupt history document, treating as empty: %s", exc)
            return []
