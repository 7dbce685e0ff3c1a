"""In-process history source for embedders and tests."""

from __future__ import annotations

from collections.abc import Iterable

from hourglass.bucketing import filter_records
from hourglass.records import HistoryRecord
from hourglass.sources.base import DeletionError, HistorySource, UnavailableError


class MemoryHistorySource(HistorySource):
    """Serves records from a list. ``available=False`` simulates a host
    without a history facility; ``fail_deletes`` makes every delete fail.
    """
    name = "memory"

    def __init__(
        self,
        records: Iterable[HistoryRecord] = (),
        available: bool = True,
        fail_deletes: str | None = None,
    ):
        self.records = list(records)
        self.available = available
        self.fail_deletes = fail_deletes
        self.deleted: list[str] = []

    async def fetch_all_history(self, text: str = "") -> list[HistoryRecord]:
        if not self.available:
            raise UnavailableError("history API not available")
        return list(filter_records(self.records, text))

    async def delete_history_entry(self, url: str) -> None:
        if not self.available:
            raise DeletionError("history API not available")
        if self.fail_deletes is not None:
            raise DeletionError(self.fail_deletes)
        self.records = [r for r in self.records if r.url != url]
        self.deleted.append(url)
