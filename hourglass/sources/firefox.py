"""Firefox history source — places.sqlite of the default profile.

Firefox stores ``last_visit_date`` as microseconds since the Unix epoch.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path

import hourglass.config as config
from hourglass.records import HistoryRecord
from hourglass.sources.base import DeletionError, HistorySource, UnavailableError, copy_db

log = logging.getLogger(__name__)


def firefox_to_epoch_ms(value: int | None) -> float | None:
    if not value:
        return None
    return value / 1000


class FirefoxHistorySource(HistorySource):
    name = "firefox"

    def __init__(self, profiles_dir: Path | None = None, places_db: Path | None = None):
        self.profiles_dir = Path(profiles_dir) if profiles_dir else config.FIREFOX_PROFILES
        self._places_db = Path(places_db) if places_db else None

    def places_db(self) -> Path | None:
        if self._places_db is not None:
            return self._places_db if self._places_db.exists() else None
        if not self.profiles_dir.exists():
            return None
        profiles = sorted(self.profiles_dir.glob("*.default*"))
        if not profiles:
            return None
        db = profiles[0] / "places.sqlite"
        return db if db.exists() else None

    def _missing(self) -> str:
        if self._places_db is not None:
            return f"firefox history not found at {self._places_db}"
        return f"no firefox profile found under {self.profiles_dir}"

    async def fetch_all_history(self) -> list[HistoryRecord]:
        return await asyncio.to_thread(self._read_places)

    async def delete_history_entry(self, url: str) -> None:
        await asyncio.to_thread(self._delete_url, url)

    def _read_places(self) -> list[HistoryRecord]:
        db = self.places_db()
        if db is None:
            raise UnavailableError(self._missing())

        tmp = copy_db(db)
        try:
            conn = sqlite3.connect(tmp)
            try:
                cur = conn.execute(
                    """SELECT id, url, title, visit_count, typed, last_visit_date
                       FROM moz_places
                       ORDER BY last_visit_date DESC"""
                )
                records = [
                    HistoryRecord(
                        url=url,
                        title=title or None,
                        last_visit_time=firefox_to_epoch_ms(last_visit),
                        id=str(place_id),
                        visit_count=visit_count,
                        typed_count=typed,
                    )
                    for place_id, url, title, visit_count, typed, last_visit in cur
                ]
            finally:
                conn.close()
        except sqlite3.Error as e:
            log.exception("[%s] failed to read history", self.name)
            raise UnavailableError(f"cannot read firefox history: {e}") from e
        finally:
            Path(tmp).unlink(missing_ok=True)

        log.info("[%s] read %d history entries", self.name, len(records))
        return records

    def _delete_url(self, url: str) -> None:
        db = self.places_db()
        if db is None:
            raise DeletionError(self._missing())
        try:
            conn = sqlite3.connect(str(db), timeout=config.SQLITE_TIMEOUT)
            try:
                with conn:
                    conn.execute(
                        "DELETE FROM moz_historyvisits WHERE place_id IN "
                        "(SELECT id FROM moz_places WHERE url = ?)",
                        (url,),
                    )
                    cur = conn.execute("DELETE FROM moz_places WHERE url = ?", (url,))
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise DeletionError(str(e)) from e
        log.info("[%s] deleted %d entries for %s", self.name, cur.rowcount, url)
