"""Key-value persistence backends.

The record store and the interval configuration each own a single named key.
Backends persist the whole key space as one document so that every write is a
full replace: readers see either the old document or the new one, never a
partial write.

Available backends:
    JsonFileBackend — JSON object on disk, replaced atomically via os.replace
    MemoryBackend   — dict in process memory (tests, ephemeral runs)
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from src.healthsync.errors import WriteFailure

logger = logging.getLogger("healthsync.storage.backend")

Value = Union[str, int]


class KeyValueBackend(ABC):
    """Abstract named-key store holding string or integer values."""

    @abstractmethod
    async def get(self, key: str) -> Value | None:
        """Return the value stored under ``key`` or None if absent."""

    @abstractmethod
    async def set(self, key: str, value: Value) -> None:
        """Store ``value`` under ``key``.

        Raises:
            WriteFailure: If the underlying medium rejects the write.
        """

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete ``key``.  Removing an absent key is a no-op."""


class MemoryBackend(KeyValueBackend):
    """In-process backend.  Values live as long as the instance."""

    def __init__(self, initial: dict[str, Value] | None = None) -> None:
        self._data: dict[str, Value] = dict(initial or {})

    async def get(self, key: str) -> Value | None:
        return self._data.get(key)

    async def set(self, key: str, value: Value) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, Value]:
        return dict(self._data)


class JsonFileBackend(KeyValueBackend):
    """Single JSON object on disk.

    Writes go to a temporary file in the same directory and are moved into
    place with ``os.replace``, which is atomic on POSIX and Windows.  Disk I/O
    runs in a worker thread so the event loop is never blocked.

    Usage::

        backend = JsonFileBackend(Path("~/.healthsync/store.json").expanduser())
        await backend.set("sync_interval_minutes", 30)
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def get(self, key: str) -> Value | None:
        data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set(self, key: str, value: Value) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read, True)
            data[key] = value
            await asyncio.to_thread(self._write, data)

    async def remove(self, key: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read, True)
            if key not in data:
                return
            del data[key]
            await asyncio.to_thread(self._write, data)

    def _read(self, for_update: bool = False) -> dict[str, Value]:
        """Load the document.  Undecodable content reads as empty.

        Raises:
            WriteFailure: If ``for_update`` and the file exists but cannot be
                          read, so a following write would discard its keys.
        """
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except OSError as exc:
            if for_update:
                raise WriteFailure(f"Could not read {self._path} before writing: {exc}") from exc
            logger.warning("Unreadable store file %s, treating as empty: %s", self._path, exc)
            return {}
        except ValueError as exc:
            logger.warning("Corrupt store file %s, treating as empty: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Store file %s does not hold an object, treating as empty", self._path)
            return {}
        return data

    def _write(self, data: dict[str, Value]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, ensure_ascii=False)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise WriteFailure(f"Could not write {self._path}: {exc}") from exc
