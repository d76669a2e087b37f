"""Sleep-sample de-duplication.

Health stores often hold several overlapping sleep samples for the same
night (phone + watch, stage samples nested inside an in-bed sample).  Summing
them directly double counts.  Samples are clipped to the query window and
merged into their union before minutes are totalled.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

Interval = tuple[datetime, datetime]


def clip_interval(start: datetime, end: datetime, lo: datetime, hi: datetime) -> Interval | None:
    """Return [start, end) ∩ [lo, hi), or None if empty."""
    clipped_start = max(start, lo)
    clipped_end = min(end, hi)
    if clipped_end <= clipped_start:
        return None
    return clipped_start, clipped_end


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """Merge overlapping or touching intervals into a sorted disjoint list."""
    merged: list[Interval] = []
    for start, end in sorted(i for i in intervals if i[1] > i[0]):
        if merged and start <= merged[-1][1]:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def total_sleep_minutes(
    samples: Iterable[Interval], window_start: datetime, window_end: datetime
) -> int:
    """Return whole minutes covered by the union of ``samples`` inside the window."""
    clipped = (
        clip_interval(start, end, window_start, window_end) for start, end in samples
    )
    union = merge_intervals(c for c in clipped if c is not None)
    seconds = sum((end - start).total_seconds() for start, end in union)
    return int(seconds // 60)
