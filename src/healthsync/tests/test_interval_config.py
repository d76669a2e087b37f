"""Tests for the persisted sync interval."""

from __future__ import annotations

import pytest

from src.healthsync.errors import InvalidInterval, WriteFailure
from src.healthsync.storage.backend import MemoryBackend
from src.healthsync.storage.interval_config import (
    INTERVAL_KEY,
    IntervalConfig,
    validate_interval,
)
from src.healthsync.tests.conftest import FailingBackend


class TestIntervalConfig:
    @pytest.mark.asyncio
    async def test_default_on_fresh_store(self, interval_config: IntervalConfig) -> None:
        assert await interval_config.get() == 60

    @pytest.mark.asyncio
    async def test_round_trip(self, interval_config: IntervalConfig) -> None:
        await interval_config.set(15)
        assert await interval_config.get() == 15

    @pytest.mark.asyncio
    async def test_bounds_accepted(self, interval_config: IntervalConfig) -> None:
        await interval_config.set(1)
        assert await interval_config.get() == 1
        await interval_config.set(1440)
        assert await interval_config.get() == 1440

    @pytest.mark.parametrize("minutes", [0, -5, 1441, True, 15.0, "15", None])
    @pytest.mark.asyncio
    async def test_out_of_range_rejected(
        self, interval_config: IntervalConfig, backend: MemoryBackend, minutes: object
    ) -> None:
        with pytest.raises(InvalidInterval):
            await interval_config.set(minutes)  # type: ignore[arg-type]
        assert INTERVAL_KEY not in backend.snapshot()

    @pytest.mark.asyncio
    async def test_invalid_stored_value_falls_back_to_default(
        self, interval_config: IntervalConfig, backend: MemoryBackend
    ) -> None:
        await backend.set(INTERVAL_KEY, 0)
        assert await interval_config.get() == 60
        await backend.set(INTERVAL_KEY, "sixty")
        assert await interval_config.get() == 60

    @pytest.mark.asyncio
    async def test_custom_default(self, backend: MemoryBackend) -> None:
        config = IntervalConfig(backend, default=30)
        assert await config.get() == 30

    def test_invalid_default_rejected(self, backend: MemoryBackend) -> None:
        with pytest.raises(InvalidInterval):
            IntervalConfig(backend, default=0)

    @pytest.mark.asyncio
    async def test_write_failure_propagates(self) -> None:
        config = IntervalConfig(FailingBackend())
        with pytest.raises(WriteFailure):
            await config.set(30)


class TestValidateInterval:
    def test_invalid_interval_is_value_error(self) -> None:
        with pytest.raises(ValueError, match=r"\[1, 1440\]"):
            validate_interval(2000)

    def test_returns_value(self) -> None:
        assert validate_interval(45) == 45
