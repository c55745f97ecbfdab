"""Duration helpers for time entries.

All durations are integer milliseconds. Stored timestamps are naive UTC
datetimes, which is what Motor hands back; anything timezone-aware is
normalised with to_utc_naive before arithmetic.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from worktimer.exceptions import ValidationError

MS_PER_SECOND = 1000
MS_PER_HOUR = 3_600_000
_ONE_MS = timedelta(milliseconds=1)


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """
    Convert a datetime to naive UTC at millisecond precision.

    Naive values are assumed to already be UTC. BSON dates only keep
    milliseconds, so anything finer is dropped here.

    Examples:
        >>> to_utc_naive(datetime(2024, 1, 1, 10, tzinfo=timezone(timedelta(hours=1))))
        datetime.datetime(2024, 1, 1, 9, 0)
    """
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def utc_now() -> datetime:
    """Current instant as naive UTC."""
    return to_utc_naive(datetime.now(timezone.utc))


def validate_bounds(start_time: datetime, end_time: Optional[datetime]) -> None:
    """
    Reject an entry whose start lies after its end.

    Raises:
        ValidationError: If start_time > end_time
    """
    if end_time is None:
        return
    if to_utc_naive(start_time) > to_utc_naive(end_time):
        raise ValidationError("startTime must be before endTime", field="start_time")


def calculate_duration_ms(start_time: datetime, end_time: datetime) -> int:
    """
    Calculate the duration of a closed interval in milliseconds.

    Args:
        start_time: Start time
        end_time: End time

    Returns:
        end_time - start_time in whole milliseconds

    Raises:
        ValidationError: If start_time is after end_time

    Examples:
        >>> calculate_duration_ms(datetime(2024, 1, 1, 9), datetime(2024, 1, 1, 9, 30))
        1800000
    """
    validate_bounds(start_time, end_time)
    delta = to_utc_naive(end_time) - to_utc_naive(start_time)
    return delta // _ONE_MS


def elapsed_ms(
    start_time: datetime,
    end_time: Optional[datetime],
    now: datetime,
) -> int:
    """
    Elapsed time of an entry.

    Closed entries measure up to end_time. Running entries measure up to
    the given now, so calling again with a later now gives the live value.
    A running entry that starts after now has elapsed nothing yet.
    """
    if end_time is not None:
        return calculate_duration_ms(start_time, end_time)
    delta = to_utc_naive(now) - to_utc_naive(start_time)
    return max(delta // _ONE_MS, 0)


def format_duration(seconds: float) -> str:
    """
    Format seconds as H:MM:SS.

    Examples:
        >>> format_duration(1800)
        '0:30:00'
        >>> format_duration(37230.9)
        '10:20:30'
    """
    total = int(seconds)
    hours = total // 3600
    minutes = (total - hours * 3600) // 60
    secs = total - hours * 3600 - minutes * 60
    return f"{hours}:{minutes:02d}:{secs:02d}"


def format_duration_ms(duration_ms: int) -> str:
    return format_duration(duration_ms / MS_PER_SECOND)


def ms_to_hours(duration_ms: int) -> float:
    """Unrounded hours; round only when presenting."""
    return duration_ms / MS_PER_HOUR


def round_hours(duration_ms: int) -> float:
    """
    Hours rounded to two decimals for display.

    Examples:
        >>> round_hours(10_800_000)
        3.0
    """
    return round(ms_to_hours(duration_ms), 2)
