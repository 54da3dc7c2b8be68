from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Iterable, Sequence

from sleep_fusion.constants import LOOKBACK_MONTH_DAYS, LOOKBACK_WEEK_DAYS
from sleep_fusion.io.schema import SleepSummary
from sleep_fusion.models import Segment, Stage


class LookbackRange(str, Enum):
    WEEK = "week"
    MONTH = "month"

    @property
    def days(self) -> int:
        if self is LookbackRange.MONTH:
            return LOOKBACK_MONTH_DAYS
        return LOOKBACK_WEEK_DAYS


def filtered_segments(
    segments: Iterable[Segment], now: datetime, window_days: float
) -> list[Segment]:
    """Segments starting strictly after ``now - window_days``, oldest first.

    Segments straddling the window start are dropped whole, never clipped.
    """
    window_start = now - timedelta(days=window_days)
    kept = [segment for segment in segments if segment.start_time > window_start]
    return sorted(kept, key=lambda segment: segment.start_time)


def total_sleep_time(filtered: Sequence[Segment]) -> float:
    """Hours spent in any sleep stage; in-bed and awake time are excluded."""
    return _asleep_minutes(filtered) / 60.0


def average_sleep_time_per_night(
    filtered: Sequence[Segment], tz: tzinfo | None = None
) -> float:
    nights = _distinct_days(filtered, tz)
    if not nights:
        return 0.0
    return total_sleep_time(filtered) / len(nights)


def sleep_efficiency(filtered: Sequence[Segment]) -> float:
    """Asleep time as a percentage of in-bed time.

    Returns 0 when there is no in-bed time at all. The ratio is not clamped,
    so short in-bed annotations next to long sleep runs exceed 100.
    """
    in_bed_minutes = sum(
        segment.duration_minutes for segment in filtered if segment.stage == Stage.IN_BED
    )
    if in_bed_minutes <= 0:
        return 0.0
    return _asleep_minutes(filtered) / in_bed_minutes * 100.0


def time_in_stage_minutes(filtered: Sequence[Segment]) -> dict[str, float]:
    totals: dict[str, float] = defaultdict(float)
    for segment in filtered:
        totals[segment.stage.value] += segment.duration_minutes
    return dict(totals)


def summarize(
    segments: Iterable[Segment],
    now: datetime,
    window_days: float,
    tz: tzinfo | None = None,
) -> SleepSummary:
    filtered = filtered_segments(segments, now, window_days)
    return SleepSummary(
        window_start=now - timedelta(days=window_days),
        window_end=now,
        segment_count=len(filtered),
        nights=len(_distinct_days(filtered, tz)),
        total_sleep_hours=total_sleep_time(filtered),
        average_sleep_hours_per_night=average_sleep_time_per_night(filtered, tz),
        sleep_efficiency_pct=sleep_efficiency(filtered),
        time_in_stage_minutes=time_in_stage_minutes(filtered),
    )


def _asleep_minutes(filtered: Sequence[Segment]) -> float:
    return sum(segment.duration_minutes for segment in filtered if segment.stage.is_sleep)


def _distinct_days(filtered: Sequence[Segment], tz: tzinfo | None) -> set[date]:
    if tz is None:
        return {segment.start_time.date() for segment in filtered}
    return {segment.start_time.astimezone(tz).date() for segment in filtered}
