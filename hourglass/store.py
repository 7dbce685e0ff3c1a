"""Aggregation store — raw history plus derived calendar views.

Inputs: raw records, search text, calendar mode.
Derived, in order:

    raw ─► filtered ─► by_day ─────────► by_day_with_empty
                   └─► by_day_and_hour ─► by_day_and_hour_with_empty

Gap-filled views always take their date range from the *unfiltered* raw
records. Views are computed lazily on read and cached until one of their
inputs changes; each input carries a revision counter that is bumped on
every write.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from hourglass.bucketing import (
    DayBucketMap,
    DayHourBucketMap,
    fill_empty_days,
    fill_empty_hours,
    filter_records,
    group_by_day,
    group_by_day_and_hour,
)
from hourglass.moments import Granularity, HourMoment, Moment, parse_moment
from hourglass.records import HistoryRecord
from hourglass.selection import Selection
from hourglass.sources.base import DeletionError, HistorySource, UnavailableError

log = logging.getLogger(__name__)

CalendarMode = Granularity


def _message(exc: BaseException, fallback: str) -> str:
    return str(exc) or fallback


class HistoryStore:
    """Holds the session's history state and exposes memoized views."""

    def __init__(self, source: HistorySource | None = None):
        self.source = source
        self._raw: tuple[HistoryRecord, ...] = ()
        self._search = ""
        self._mode = CalendarMode.DAY
        self._loading = False
        self._error: str | None = None
        self._selection = Selection(self._mode)

        self._raw_rev = 0
        self._search_rev = 0
        self._cache: dict[str, tuple[tuple, object]] = {}

    # ── raw state ───────────────────────────────────────────────────────
    @property
    def raw(self) -> tuple[HistoryRecord, ...]:
        return self._raw

    @property
    def search(self) -> str:
        return self._search

    @property
    def calendar_mode(self) -> CalendarMode:
        return self._mode

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def selected_moments(self) -> list[str]:
        return self._selection.keys

    def _set_raw(self, records: Sequence[HistoryRecord]) -> None:
        self._raw = tuple(records)
        self._raw_rev += 1

    # ── derived state ───────────────────────────────────────────────────
    def _memo(self, name: str, deps: tuple, compute: Callable[[], object]):
        cached = self._cache.get(name)
        if cached is not None and cached[0] == deps:
            return cached[1]
        value = compute()
        self._cache[name] = (deps, value)
        return value

    @property
    def filtered(self) -> Sequence[HistoryRecord]:
        return self._memo(
            "filtered",
            (self._raw_rev, self._search_rev),
            lambda: filter_records(self._raw, self._search),
        )

    @property
    def by_day(self) -> DayBucketMap:
        return self._memo(
            "by_day",
            (self._raw_rev, self._search_rev),
            lambda: group_by_day(self.filtered),
        )

    @property
    def by_day_with_empty(self) -> DayBucketMap:
        return self._memo(
            "by_day_with_empty",
            (self._raw_rev, self._search_rev),
            lambda: fill_empty_days(self.by_day, self._raw),
        )

    @property
    def by_day_and_hour(self) -> DayHourBucketMap:
        return self._memo(
            "by_day_and_hour",
            (self._raw_rev, self._search_rev),
            lambda: group_by_day_and_hour(self.filtered),
        )

    @property
    def by_day_and_hour_with_empty(self) -> DayHourBucketMap:
        return self._memo(
            "by_day_and_hour_with_empty",
            (self._raw_rev, self._search_rev),
            lambda: fill_empty_hours(self.by_day_and_hour, self._raw),
        )

    # ── actions ─────────────────────────────────────────────────────────
    async def fetch(self) -> None:
        """Replace raw records with the source's full history.

        Failures never propagate: raw records are emptied and the error
        message is kept in ``self.error``.
        """
        self._loading = True
        self._error = None
        try:
            if self.source is None:
                raise UnavailableError("history source not configured")
            records = await self.source.fetch_all_history()
            self._set_raw(records)
            log.info("fetched %d history records from %s", len(self._raw), self.source.name)
        except Exception as e:
            self._error = _message(e, "Failed to fetch history")
            self._set_raw([])
            log.warning("history fetch failed: %s", self._error)
        finally:
            self._loading = False

    async def remove_url(self, url: str) -> None:
        """Delete ``url`` from the source, then drop exact matches locally."""
        try:
            if self.source is None:
                raise DeletionError("history source not configured")
            await self.source.delete_history_entry(url)
        except Exception as e:
            self._error = _message(e, "Failed to delete URL")
            log.warning("delete of %s failed: %s", url, self._error)
            return
        before = len(self._raw)
        self._set_raw([r for r in self._raw if r.url != url])
        log.info("removed %d records for %s", before - len(self._raw), url)

    remove_record = remove_url

    def set_search(self, query: str) -> None:
        if query == self._search:
            return
        self._search = query
        self._search_rev += 1

    def set_calendar_mode(self, mode: CalendarMode | str) -> None:
        self._mode = CalendarMode(mode)
        # Always clear, even when the mode is unchanged
        self._selection.switch_mode(self._mode)

    # ── selection ───────────────────────────────────────────────────────
    def toggle_moment(self, key: str | Moment) -> None:
        self._selection.toggle(key)

    def clear_selection(self) -> None:
        self._selection.clear()

    def items_for_moment(self, key: str | Moment) -> list[HistoryRecord]:
        """Records for a day or hour moment; empty when absent or malformed."""
        try:
            moment = parse_moment(key)
        except ValueError:
            return []
        if isinstance(moment, HourMoment):
            return self.by_day_and_hour.get(moment.day_part, {}).get(moment.hour_part, [])
        return self.by_day.get(moment.key, [])

    resolve_items = items_for_moment


_default_store: HistoryStore | None = None


def get_store(source: HistorySource | None = None) -> HistoryStore:
    """The process-wide store, created on first use."""
    global _default_store
    if _default_store is None:
        _default_store = HistoryStore(source)
    elif source is not None:
        _default_store.source = source
    return _default_store
