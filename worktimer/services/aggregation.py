"""Aggregation of time entries into per-day, per-project and rolling totals.

These functions hold no state and never touch the database. Callers pass
the entries they loaded, the reference instant and the display timezone.
"""
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Optional

from worktimer.models.report import ProjectTotal
from worktimer.models.time_entry import DayTotal, TimeEntry
from worktimer.utils.duration import elapsed_ms, to_utc_naive


def local_date(value: datetime, tz: tzinfo) -> date:
    """Calendar date of a (naive UTC or aware) instant in the given timezone."""
    aware = to_utc_naive(value).replace(tzinfo=timezone.utc)
    return aware.astimezone(tz).date()


def local_midnight_utc(day: date, tz: tzinfo) -> datetime:
    """Naive UTC instant at which the given local day starts."""
    return to_utc_naive(datetime.combine(day, time.min, tzinfo=tz))


def day_totals(
    entries: Iterable[TimeEntry],
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> list[DayTotal]:
    """
    Group entries by the local calendar date of their start time.

    Running entries contribute their live elapsed time up to now. Days keep
    the order in which they first appear in entries.
    """
    groups: dict[date, DayTotal] = {}
    for entry in entries:
        day = local_date(entry.start_time, tz)
        group = groups.get(day)
        if group is None:
            group = groups[day] = DayTotal(day=day, total_ms=0, entries=[])
        group.total_ms += elapsed_ms(entry.start_time, entry.end_time, now)
        group.entries.append(entry)
    return list(groups.values())


def project_totals_from_entries(
    entries: Iterable[TimeEntry],
    date_from: datetime,
    date_to: datetime,
) -> list[ProjectTotal]:
    """
    Sum cached durations per project for entries starting in [date_from, date_to].

    Entries without a cached duration are skipped, so backfill first.
    """
    date_from = to_utc_naive(date_from)
    date_to = to_utc_naive(date_to)
    sums: dict[str, int] = defaultdict(int)
    for entry in entries:
        if entry.duration is None:
            continue
        if date_from <= to_utc_naive(entry.start_time) <= date_to:
            sums[entry.project_id] += entry.duration
    return [
        ProjectTotal(project_id=project_id, total_ms=total)
        for project_id, total in sorted(sums.items())
    ]


def closed_total_since(
    entries: Iterable[TimeEntry],
    since: datetime,
    now: datetime,
) -> int:
    """
    Sum durations of entries started on/after since and ended by now.

    Running entries are left out; their live time is added by whoever
    displays it.
    """
    since = to_utc_naive(since)
    now = to_utc_naive(now)
    total = 0
    for entry in entries:
        if entry.end_time is None:
            continue
        end_time = to_utc_naive(entry.end_time)
        if to_utc_naive(entry.start_time) >= since and end_time <= now:
            total += elapsed_ms(entry.start_time, end_time, now)
    return total


def start_of_today(now: datetime, tz: tzinfo) -> datetime:
    return local_midnight_utc(local_date(now, tz), tz)


def start_of_week_window(now: datetime, tz: tzinfo) -> datetime:
    """Start of the day seven days before today."""
    return local_midnight_utc(local_date(now, tz) - timedelta(days=7), tz)


def start_of_month(now: datetime, tz: tzinfo) -> datetime:
    return local_midnight_utc(local_date(now, tz).replace(day=1), tz)


def today_ms(entries: Iterable[TimeEntry], now: datetime, tz: tzinfo = timezone.utc) -> int:
    return closed_total_since(entries, start_of_today(now, tz), now)


def week_to_date_ms(entries: Iterable[TimeEntry], now: datetime, tz: tzinfo = timezone.utc) -> int:
    return closed_total_since(entries, start_of_week_window(now, tz), now)


def month_to_date_ms(entries: Iterable[TimeEntry], now: datetime, tz: tzinfo = timezone.utc) -> int:
    return closed_total_since(entries, start_of_month(now, tz), now)


def running_entry(entries: Iterable[TimeEntry]) -> Optional[TimeEntry]:
    """The first entry without an end time, if any."""
    return next((entry for entry in entries if entry.end_time is None), None)
