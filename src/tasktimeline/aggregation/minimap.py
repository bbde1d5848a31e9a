"""Time-bucketed task counts for the timeline minimap.

``aggregate`` is fail-soft: malformed input yields an empty list instead of
an exception, so callers always get a renderable sequence.
"""

from bisect import bisect_left, bisect_right
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta, timezone
from itertools import accumulate
from typing import Any, List, Optional, Sequence, Union

import structlog
from pydantic import BaseModel, Field

from tasktimeline.models import Granularity

logger = structlog.get_logger(__name__)

MAX_BUCKETS = 10_000

_ONE_MS = timedelta(milliseconds=1)

# Bounds of representable UTC timestamps
_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)
_LATEST = datetime.max.replace(microsecond=999_000, tzinfo=timezone.utc)


class MinimapBucket(BaseModel):
    """One time-unit slot of the minimap."""

    date: datetime = Field(..., description="Representative timestamp (UTC)")
    count: int = Field(0, ge=0, description="Tasks overlapping the slot")


def aggregate(
    tasks: Any,
    granularity: Union[Granularity, str],
    bucket_range_start: Any,
    bucket_range_end: Any,
    clamp_range_start: Any,
    clamp_range_end: Any,
) -> List[MinimapBucket]:
    """Count tasks per time unit.

    A task contributes to every bucket its [start, end] interval touches.
    Buckets cover the bucket range, snapped to unit boundaries. The clamp
    range drops tasks lying wholly outside it and places each bucket's
    representative timestamp at the midpoint of the bucket's intersection
    with it.

    Args:
        tasks: TaskRecords or mappings with "start" and optional "end"
        granularity: Day, week, or month
        bucket_range_start: First date to cover
        bucket_range_end: Last date to cover (inclusive)
        clamp_range_start: Start of the visible window
        clamp_range_end: Last day of the visible window (inclusive)

    Returns:
        Buckets in chronological order; empty on invalid input
    """
    if not isinstance(tasks, (list, tuple)):
        return []

    bucket_start = to_utc_datetime(bucket_range_start)
    bucket_end = to_utc_datetime(bucket_range_end)
    clamp_start = to_utc_datetime(clamp_range_start)
    clamp_end = to_utc_datetime(clamp_range_end)
    if bucket_start is None or bucket_end is None or clamp_start is None or clamp_end is None:
        return []
    if bucket_start > bucket_end:
        return []

    unit = coerce_granularity(granularity)
    period_starts = generate_periods(bucket_start, bucket_end, unit)
    if not period_starts:
        return []
    period_ends = [period_end(start, unit) for start in period_starts]

    clamp_end_of_day = end_of_day(clamp_end)

    # diff[i] += 1 where a task starts overlapping, diff[j + 1] -= 1 after it stops
    diff = [0] * (len(period_starts) + 1)
    for task in tasks:
        interval = task_interval(task)
        if interval is None:
            continue
        task_start, task_end = interval
        if task_end < clamp_start or task_start > clamp_end_of_day:
            continue

        first = bisect_left(period_ends, task_start)
        last = bisect_right(period_starts, task_end) - 1
        if first <= last:
            diff[first] += 1
            diff[last + 1] -= 1

    counts = list(accumulate(diff[:-1]))

    return [
        MinimapBucket(
            date=_midpoint_within(start, end, clamp_start, clamp_end_of_day),
            count=count,
        )
        for start, end, count in zip(period_starts, period_ends, counts)
    ]


# ============================================================================
# Date helpers
# ============================================================================


def coerce_granularity(value: Union[Granularity, str]) -> Granularity:
    """Read a granularity, falling back to days for unknown values."""
    if isinstance(value, Granularity):
        return value
    try:
        return Granularity(str(value).lower())
    except ValueError:
        logger.debug("unknown_granularity", value=value, fallback=Granularity.DAY.value)
        return Granularity.DAY


def to_utc_datetime(value: Any) -> Optional[datetime]:
    """Interpret a date-like value as an aware UTC datetime.

    Accepts datetimes, dates and ISO 8601 strings (a trailing "Z" is
    allowed). Naive values are taken to be UTC.

    Returns:
        Datetime in UTC, or None if the value cannot be interpreted
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        # Offset pushes the instant outside years 1..9999
        return None


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999_000)


def period_start(moment: datetime, unit: Granularity) -> datetime:
    """Snap a moment down to the start of its unit.

    Weeks start on Sunday.
    """
    midnight = start_of_day(moment)
    if unit is Granularity.WEEK:
        # weekday(): Monday == 0; days since Sunday
        try:
            return midnight - timedelta(days=(midnight.weekday() + 1) % 7)
        except OverflowError:
            return _EARLIEST
    if unit is Granularity.MONTH:
        return midnight.replace(day=1)
    return midnight


def next_period(start: datetime, unit: Granularity) -> datetime:
    if unit is Granularity.WEEK:
        # Next Sunday; a week clamped at year 1 starts on a Monday
        return start + timedelta(days=7 - (start.weekday() + 1) % 7)
    if unit is Granularity.MONTH:
        if start.month == 12:
            return start.replace(year=start.year + 1, month=1)
        return start.replace(month=start.month + 1)
    return start + timedelta(days=1)


def period_end(start: datetime, unit: Granularity) -> datetime:
    """Last millisecond of the unit beginning at start.

    Units running past year 9999 end at the last representable millisecond.
    """
    try:
        if unit is Granularity.WEEK:
            return next_period(start, unit) - _ONE_MS
        if unit is Granularity.MONTH:
            return next_period(period_start(start, unit), unit) - _ONE_MS
    except (ValueError, OverflowError):
        return _LATEST
    return end_of_day(start)


def generate_periods(range_start: datetime, range_end: datetime, unit: Granularity) -> List[datetime]:
    """Unit starts from range_start to range_end inclusive.

    Stops early at MAX_BUCKETS or when a step cannot advance, which
    includes stepping past year 9999.
    """
    current = period_start(range_start, unit)
    last = period_start(range_end, unit)

    periods: List[datetime] = []
    while current <= last:
        periods.append(current)
        if len(periods) >= MAX_BUCKETS:
            logger.warning("minimap_bucket_cap_reached", cap=MAX_BUCKETS, unit=unit.value)
            break
        try:
            following = next_period(current, unit)
        except (ValueError, OverflowError):
            break
        if following <= current:
            break
        current = following
    return periods


def task_interval(task: Any) -> Optional[tuple]:
    """Start and effective end of a task, or None without a valid start."""
    start = to_utc_datetime(_field(task, "start"))
    if start is None:
        return None
    end = to_utc_datetime(_field(task, "end")) or start
    return start, end


def _field(task: Any, name: str) -> Any:
    if isinstance(task, Mapping):
        return task.get(name)
    return getattr(task, name, None)


def _midpoint_within(
    start: datetime, end: datetime, window_start: datetime, window_end: datetime
) -> datetime:
    lower = max(start, window_start)
    upper = min(end, window_end)
    return lower + (upper - lower) / 2


def counts_by_label(buckets: Sequence[MinimapBucket]) -> List[tuple]:
    """(ISO date, count) pairs for display."""
    return [(bucket.date.date().isoformat(), bucket.count) for bucket in buckets]
