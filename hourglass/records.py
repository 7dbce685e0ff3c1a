"""History record model shared by sources, bucketers and the store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class HistoryRecord:
    """One visited URL as reported by a browser history facility.

    ``last_visit_time`` is epoch milliseconds, matching the browser
    extension API. ``None`` means the record cannot be dated.
    """
    url: str
    title: str | None = None
    last_visit_time: float | None = None
    id: str | None = None
    visit_count: int | None = None
    typed_count: int | None = None

    @property
    def dated(self) -> bool:
        return self.last_visit_time is not None

    def local_datetime(self) -> datetime | None:
        if self.last_visit_time is None:
            return None
        return datetime.fromtimestamp(self.last_visit_time / 1000)

    @classmethod
    def from_dict(cls, data: dict) -> HistoryRecord:
        """Build a record from a browser API style dict (camelCase or snake_case)."""
        ts = data.get("lastVisitTime", data.get("last_visit_time"))
        return cls(
            url=data.get("url", ""),
            title=data.get("title"),
            last_visit_time=ts,
            id=data.get("id"),
            visit_count=data.get("visitCount", data.get("visit_count")),
            typed_count=data.get("typedCount", data.get("typed_count")),
        )


def visit_time_desc(record: HistoryRecord) -> float:
    """Sort key for newest-first ordering; undated records sort last."""
    return record.last_visit_time if record.last_visit_time is not None else float("-inf")
