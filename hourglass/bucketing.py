"""Pure grouping and gap-filling over history records.

Every function here is total: empty input gives empty maps, and input
without any dated record makes range filling a no-op. Nothing mutates its
arguments; each call builds a fresh structure.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timedelta

from hourglass.moments import Granularity, all_hour_keys, day_key, moment_for
from hourglass.records import HistoryRecord, visit_time_desc

DayBucketMap = dict[str, list[HistoryRecord]]
DayHourBucketMap = dict[str, dict[str, list[HistoryRecord]]]


def filter_records(records: Sequence[HistoryRecord], query: str) -> Sequence[HistoryRecord]:
    """Records whose title or URL contains ``query``, case-insensitively.

    An empty query returns ``records`` itself.
    """
    if not query:
        return records
    needle = query.lower()
    return [
        r for r in records
        if (r.title and needle in r.title.lower()) or (r.url and needle in r.url.lower())
    ]


def _sort_newest_first(items: list[HistoryRecord]) -> None:
    # list.sort is stable, so equal timestamps keep encounter order
    items.sort(key=visit_time_desc, reverse=True)


def group_by_day(records: Sequence[HistoryRecord]) -> DayBucketMap:
    grouped: DayBucketMap = {}
    for record in records:
        if not record.dated:
            continue
        moment = moment_for(record.last_visit_time, Granularity.DAY)
        grouped.setdefault(moment.key, []).append(record)

    for items in grouped.values():
        _sort_newest_first(items)
    return grouped


def group_by_day_and_hour(records: Sequence[HistoryRecord]) -> DayHourBucketMap:
    grouped: DayHourBucketMap = {}
    for record in records:
        if not record.dated:
            continue
        moment = moment_for(record.last_visit_time, Granularity.HOUR)
        hours = grouped.setdefault(moment.day_part, {})
        hours.setdefault(moment.hour_part, []).append(record)

    for hours in grouped.values():
        for items in hours.values():
            _sort_newest_first(items)
    return grouped


def timestamp_range(records: Sequence[HistoryRecord]) -> tuple[date, date] | None:
    """Local calendar dates of the earliest and latest dated record."""
    timestamps = [r.last_visit_time for r in records if r.last_visit_time is not None]
    if not timestamps:
        return None
    start = datetime.fromtimestamp(min(timestamps) / 1000).date()
    end = datetime.fromtimestamp(max(timestamps) / 1000).date()
    return start, end


def week_start(d: date) -> date:
    """The Monday on or before ``d``."""
    return d - timedelta(days=d.weekday())


def iter_days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def fill_empty_days(grouped: DayBucketMap, all_records: Sequence[HistoryRecord]) -> DayBucketMap:
    """Add an empty bucket for every day from the Monday of the earliest
    record's week through the latest record's day.

    The range comes from ``all_records`` (the unfiltered set), so a narrow
    search never shrinks the calendar.
    """
    filled = dict(grouped)
    span = timestamp_range(all_records)
    if span is None:
        return filled

    start, end = span
    for d in iter_days(week_start(start), end):
        filled.setdefault(day_key(d), [])
    return filled


def fill_empty_hours(
    grouped: DayHourBucketMap, all_records: Sequence[HistoryRecord]
) -> DayHourBucketMap:
    """Ensure every day in range has all 24 hour buckets. No week alignment."""
    filled = {day: dict(hours) for day, hours in grouped.items()}
    span = timestamp_range(all_records)
    if span is None:
        return filled

    start, end = span
    hour_keys = all_hour_keys()
    for d in iter_days(start, end):
        hours = filled.setdefault(day_key(d), {})
        for hk in hour_keys:
            hours.setdefault(hk, [])
    return filled
