"""Apple Health export provider.

Apple does not expose HealthKit off-device, so step and sleep samples are
read from the ``export.xml`` produced by the Health app ("Export All Health
Data") or by an automation that refreshes it on a schedule.

The export holds one ``Record`` element per sample::

    <Record type="HKQuantityTypeIdentifierStepCount" unit="count" value="412"
            startDate="2024-01-10 07:30:00 +0000" endDate="2024-01-10 07:40:00 +0000"/>
    <Record type="HKCategoryTypeIdentifierSleepAnalysis"
            value="HKCategoryValueSleepAnalysisAsleepCore"
            startDate="2024-01-09 23:10:00 +0000" endDate="2024-01-10 01:00:00 +0000"/>

A missing export is reported as "not authorized".
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from xml.etree import ElementTree as ET

from src.healthsync.base import to_utc
from src.healthsync.errors import ProviderUnavailable
from src.healthsync.providers.base import HealthProvider
from src.healthsync.providers.sleep import total_sleep_minutes

logger = logging.getLogger("healthsync.providers.apple_health")

_HK_STEP_COUNT = "HKQuantityTypeIdentifierStepCount"
_HK_SLEEP_ANALYSIS = "HKCategoryTypeIdentifierSleepAnalysis"

_ASLEEP_VALUES = frozenset({
    "HKCategoryValueSleepAnalysisAsleep",
    "HKCategoryValueSleepAnalysisAsleepUnspecified",
    "HKCategoryValueSleepAnalysisAsleepCore",
    "HKCategoryValueSleepAnalysisAsleepDeep",
    "HKCategoryValueSleepAnalysisAsleepREM",
})
_IN_BED_VALUE = "HKCategoryValueSleepAnalysisInBed"

_EXPORT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"


@dataclass(frozen=True)
class _Sample:
    type: str
    value: str
    start: datetime
    end: datetime


def parse_export_date(value: str) -> datetime | None:
    """Parse an export timestamp ('2024-01-10 07:30:00 +0000') to UTC.

    ISO-8601 strings are accepted too.  Returns None if unparseable.
    """
    if not value:
        return None
    try:
        return to_utc(datetime.strptime(value, _EXPORT_DATE_FORMAT))
    except ValueError:
        pass
    try:
        return to_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        logger.warning("Could not parse export date: %r", value)
        return None


class AppleHealthExportProvider(HealthProvider):
    """Reads step and sleep totals from an Apple Health XML export.

    Args:
        export_path:    Path to ``export.xml``.
        include_in_bed: Count in-bed samples as sleep (they are merged with
                        asleep samples, so nested stages are never doubled).
    """

    NAME = "apple_health"

    def __init__(self, export_path: Path, include_in_bed: bool = False) -> None:
        self._export_path = Path(export_path)
        self._include_in_bed = include_in_bed

    async def request_authorization(self) -> bool:
        return self._export_path.is_file()

    async def get_steps(self, start: datetime, end: datetime) -> int:
        samples = await self._load(_HK_STEP_COUNT)
        lo, hi = to_utc(start), to_utc(end)
        total = 0.0
        for sample in samples:
            if lo <= sample.start < hi:
                try:
                    total += float(sample.value)
                except ValueError:
                    logger.warning("Skipping non-numeric step sample: %r", sample.value)
        return int(total)

    async def get_sleep_minutes(self, start: datetime, end: datetime) -> int:
        samples = await self._load(_HK_SLEEP_ANALYSIS)
        wanted = set(_ASLEEP_VALUES)
        if self._include_in_bed:
            wanted.add(_IN_BED_VALUE)
        intervals = [(s.start, s.end) for s in samples if s.value in wanted]
        return total_sleep_minutes(intervals, to_utc(start), to_utc(end))

    async def _load(self, record_type: str) -> list[_Sample]:
        if not await self.request_authorization():
            raise ProviderUnavailable(self.NAME, f"no export at {self._export_path}")
        return await asyncio.to_thread(self._parse, record_type)

    def _parse(self, record_type: str) -> list[_Sample]:
        try:
            tree = ET.parse(self._export_path)
        except (ET.ParseError, OSError) as exc:
            logger.error("Apple Health export unreadable: %s", exc)
            raise ProviderUnavailable(self.NAME, f"invalid export: {exc}") from exc

        samples: list[_Sample] = []
        for record in tree.getroot().iter("Record"):
            if record.get("type") != record_type:
                continue
            start = parse_export_date(record.get("startDate", ""))
            end = parse_export_date(record.get("endDate", ""))
            if start is None or end is None:
                continue
            samples.append(
                _Sample(type=record_type, value=record.get("value", ""), start=start, end=end)
            )
        logger.debug("Apple Health export: %d %s samples", len(samples), record_type)
        return samples
