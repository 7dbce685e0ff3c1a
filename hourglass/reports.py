"""One-shot queries and display labels on top of the bucketing functions."""

from __future__ import annotations

from datetime import datetime

from hourglass.bucketing import (
    DayBucketMap,
    DayHourBucketMap,
    fill_empty_days,
    fill_empty_hours,
    filter_records,
    group_by_day,
    group_by_day_and_hour,
)
from hourglass.moments import HourMoment, parse_moment
from hourglass.sources.base import HistorySource


async def history_by_day(
    source: HistorySource, query: str = "", fill_empty: bool = False
) -> DayBucketMap:
    """Fetch, filter and bucket by day without keeping any store state."""
    everything = await source.fetch_all_history()
    grouped = group_by_day(filter_records(everything, query))
    if fill_empty:
        grouped = fill_empty_days(grouped, everything)
    return grouped


async def history_by_day_and_hour(
    source: HistorySource, query: str = "", fill_empty: bool = False
) -> DayHourBucketMap:
    everything = await source.fetch_all_history()
    grouped = group_by_day_and_hour(filter_records(everything, query))
    if fill_empty:
        grouped = fill_empty_hours(grouped, everything)
    return grouped


def format_date(dt) -> str:
    return f"{dt:%A, %B} {dt.day}, {dt.year}"


def format_moment_key(key: str, timestamp: float | None = None) -> str:
    """Human label for a moment key.

    "2024-01-15"    -> "Monday, January 15, 2024"
    "2024-01-15T14" -> "Monday, January 15, 2024 at 14:00"

    When ``timestamp`` (epoch ms) is given, the date comes from it instead
    of the key.
    """
    moment = parse_moment(key)
    if timestamp is not None:
        label = format_date(datetime.fromtimestamp(timestamp / 1000))
    else:
        label = format_date(moment.day)
    if isinstance(moment, HourMoment):
        return f"{label} at {moment.hour_part}:00"
    return label
