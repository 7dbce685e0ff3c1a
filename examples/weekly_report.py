#!/usr/bin/env python3
"""Print browsing volume per calendar week, plus the busiest hours.

Weeks start on Monday, matching the gap-filled day view, so weeks with no
browsing still show up as zero rows.

Usage:
    python examples/weekly_report.py                 # default browser
    python examples/weekly_report.py firefox github  # browser + search text
"""

import asyncio
import sys
from collections import Counter, defaultdict
from datetime import date

from hourglass.sources.factory import source_for
from hourglass.store import HistoryStore


def run(browser: str | None = None, query: str = ""):
    store = HistoryStore(source_for(browser))
    asyncio.run(store.fetch())
    if store.error:
        print(f"error: {store.error}")
        return
    store.set_search(query)

    print(f"\n{'=' * 60}")
    print(f"  Weekly Report — {store.source.name}"
          + (f" matching {query!r}" if query else ""))
    print(f"{'=' * 60}")

    # ── Visits per week ──
    weeks: dict[str, int] = defaultdict(int)
    for key, items in store.by_day_with_empty.items():
        year, week, _ = date.fromisoformat(key).isocalendar()
        weeks[f"{year}-W{week:02d}"] += len(items)

    print("\n  VISITS PER WEEK")
    print(f"  {'─' * 56}")
    for week in sorted(weeks, reverse=True):
        print(f"    {week:<12s} {weeks[week]:>6,}")

    # ── Busiest hours of the day ──
    by_hour: Counter[str] = Counter()
    for hours in store.by_day_and_hour.values():
        for hour, items in hours.items():
            by_hour[hour] += len(items)

    if by_hour:
        print("\n  BUSIEST HOURS")
        print(f"  {'─' * 56}")
        for hour, count in by_hour.most_common(5):
            print(f"    {hour}:00        {count:>6,}")
    print()


if __name__ == "__main__":
    run(
        sys.argv[1] if len(sys.argv) > 1 else None,
        sys.argv[2] if len(sys.argv) > 2 else "",
    )
