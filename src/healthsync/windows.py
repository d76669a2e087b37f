"""Capture time windows.

All windows are computed in the user's local timezone and returned as
timezone-aware datetimes.  ``tz=None`` means the system local timezone.

Window bounds are local wall-clock times, so each bound is localized on its
own: on a DST-change day midnight and 18:00 the day before carry different
UTC offsets than ``now``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo

# Sleep lookback: previous day 18:00 → current day 12:00 (covers a normal night)
SLEEP_WINDOW_START = time(18, 0)
SLEEP_WINDOW_END = time(12, 0)


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval [start, end)."""

    start: datetime
    end: datetime

    def __contains__(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


def to_local(moment: datetime, tz: tzinfo | None = None) -> datetime:
    return moment.astimezone(tz)


def local_wall_time(day: date, at: time, tz: tzinfo | None = None) -> datetime:
    """Return ``day`` at wall-clock ``at`` in ``tz`` with the offset in force then.

    With ``tz=None`` the naive time is resolved against the system zone, which
    picks the offset for that instant rather than the current one.
    """
    if tz is None:
        return datetime.combine(day, at).astimezone()
    return datetime.combine(day, at, tzinfo=tz)


def local_midnight(now: datetime, tz: tzinfo | None = None) -> datetime:
    """Return 00:00 of ``now``'s local calendar day."""
    return local_wall_time(to_local(now, tz).date(), time(0, 0), tz)


def steps_window(now: datetime, tz: tzinfo | None = None) -> TimeWindow:
    """Return [local midnight, now)."""
    return TimeWindow(start=local_midnight(now, tz), end=to_local(now, tz))


def sleep_window(now: datetime, tz: tzinfo | None = None) -> TimeWindow:
    """Return [yesterday 18:00, today 12:00) in local time."""
    today = to_local(now, tz).date()
    return TimeWindow(
        start=local_wall_time(today - timedelta(days=1), SLEEP_WINDOW_START, tz),
        end=local_wall_time(today, SLEEP_WINDOW_END, tz),
    )
