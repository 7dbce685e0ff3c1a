"""Chromium-family history source — Chrome, Arc.

Chromium stores ``last_visit_time`` as microseconds since 1601-01-01, with
0 meaning "never visited". We copy the DB before reading because the
browser holds a write lock; deletes go to the live file.
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

# Chrome epoch offset: microseconds between 1601-01-01 and 1970-01-01
_CHROME_EPOCH_OFFSET = 11644473600 * 1_000_000


def chrome_to_epoch_ms(value: int | None) -> float | None:
    if not value:
        return None
    return (value - _CHROME_EPOCH_OFFSET) / 1000


class ChromiumHistorySource(HistorySource):

    def __init__(self, browser: str, db_path: Path):
        self.name = browser
        self.db_path = Path(db_path)

    async def fetch_all_history(self) -> list[HistoryRecord]:
        return await asyncio.to_thread(self._read_urls)

    async def delete_history_entry(self, url: str) -> None:
        await asyncio.to_thread(self._delete_url, url)

    def _read_urls(self) -> list[HistoryRecord]:
        if not self.db_path.exists():
            raise UnavailableError(f"{self.name} history not found at {self.db_path}")

        tmp = copy_db(self.db_path)
        try:
            conn = sqlite3.connect(tmp)
            try:
                cur = conn.execute(
                    """SELECT id, url, title, visit_count, typed_count, last_visit_time
                       FROM urls
                       ORDER BY last_visit_time DESC"""
                )
                records = [
                    HistoryRecord(
                        url=url,
                        title=title or None,
                        last_visit_time=chrome_to_epoch_ms(last_visit),
                        id=str(url_id),
                        visit_count=visit_count,
                        typed_count=typed_count,
                    )
                    for url_id, url, title, visit_count, typed_count, last_visit in cur
                ]
            finally:
                conn.close()
        except sqlite3.Error as e:
            log.exception("[%s] failed to read history", self.name)
            raise UnavailableError(f"cannot read {self.name} history: {e}") from e
        finally:
            Path(tmp).unlink(missing_ok=True)

        log.info("[%s] read %d history entries", self.name, len(records))
        return records

    def _delete_url(self, url: str) -> None:
        if not self.db_path.exists():
            raise DeletionError(f"{self.name} history not found at {self.db_path}")
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=config.SQLITE_TIMEOUT)
            try:
                with conn:
                    conn.execute(
                        "DELETE FROM visits WHERE url IN (SELECT id FROM urls WHERE url = ?)",
                        (url,),
                    )
                    cur = conn.execute("DELETE FROM urls WHERE url = ?", (url,))
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise DeletionError(str(e)) from e
        log.info("[%s] deleted %d entries for %s", self.name, cur.rowcount, url)
