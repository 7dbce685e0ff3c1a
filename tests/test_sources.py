"""Tests for history sources — Chromium/Firefox DB reading, deletes, factory."""

import asyncio
import sqlite3
import time
from pathlib import Path

import pytest

from hourglass.sources.base import DeletionError, UnavailableError
from hourglass.sources.chromium import _CHROME_EPOCH_OFFSET, ChromiumHistorySource, chrome_to_epoch_ms
from hourglass.sources.factory import source_for
from hourglass.sources.firefox import FirefoxHistorySource
from hourglass.sources.memory import MemoryHistorySource
from hourglass.records import HistoryRecord


def _create_fake_chrome_db(path, now_chrome) -> None:
    """Minimal Chromium history DB: 3 urls, one never visited."""
    conn = sqlite3.connect(str(path))
    conn.execute(
        "CREATE TABLE urls (id INTEGER PRIMARY KEY, url TEXT, title TEXT,"
        " visit_count INTEGER, typed_count INTEGER, last_visit_time INTEGER)"
    )
    conn.execute(
        "CREATE TABLE visits (id INTEGER PRIMARY KEY, url INTEGER,"
        " visit_time INTEGER, visit_duration INTEGER, transition INTEGER)"
    )
    conn.execute(
        "INSERT INTO urls VALUES (1, 'https://example.com', 'Example', 2, 1, ?)",
        (now_chrome,),
    )
    conn.execute(
        "INSERT INTO urls VALUES (2, 'https://test.dev', '', 1, 0, ?)",
        (now_chrome - 60_000_000,),
    )
    conn.execute("INSERT INTO urls VALUES (3, 'https://never.org', 'Never', 0, 0, 0)")
    conn.execute("INSERT INTO visits VALUES (1, 1, ?, 5000000, 0)", (now_chrome,))
    conn.execute("INSERT INTO visits VALUES (2, 1, ?, 5000000, 0)", (now_chrome - 1_000_000,))
    conn.execute("INSERT INTO visits VALUES (3, 2, ?, 3000000, 0)", (now_chrome - 60_000_000,))
    conn.commit()
    conn.close()


def _create_fake_places_db(path, now_us) -> None:
    conn = sqlite3.connect(str(path))
    conn.execute(
        "CREATE TABLE moz_places (id INTEGER PRIMARY KEY, url TEXT, title TEXT,"
        " visit_count INTEGER, typed INTEGER, last_visit_date INTEGER)"
    )
    conn.execute(
        "CREATE TABLE moz_historyvisits (id INTEGER PRIMARY KEY, place_id INTEGER,"
        " visit_date INTEGER)"
    )
    conn.execute(
        "INSERT INTO moz_places VALUES (1, 'https://mozilla.org', 'Mozilla', 1, 0, ?)",
        (now_us,),
    )
    conn.execute("INSERT INTO moz_places VALUES (2, 'https://blank.org', NULL, 0, 0, NULL)")
    conn.execute("INSERT INTO moz_historyvisits VALUES (1, 1, ?)", (now_us,))
    conn.commit()
    conn.close()


class TestChromiumSource:
    def test_reads_urls_as_records(self, tmp_path):
        now = time.time()
        now_chrome = int(now * 1_000_000) + _CHROME_EPOCH_OFFSET
        db = tmp_path / "History"
        _create_fake_chrome_db(db, now_chrome)

        records = asyncio.run(ChromiumHistorySource("chrome", db).fetch_all_history())

        assert [r.url for r in records] == ["https://example.com", "https://test.dev", "https://never.org"]
        first = records[0]
        assert first.title == "Example"
        assert first.visit_count == 2
        assert first.typed_count == 1
        assert first.last_visit_time == pytest.approx(now * 1000, abs=1)
        assert records[1].title is None
        assert records[2].last_visit_time is None

    def test_missing_db_is_unavailable(self, tmp_path):
        src = ChromiumHistorySource("arc", tmp_path / "nope")
        with pytest.raises(UnavailableError, match="not found"):
            asyncio.run(src.fetch_all_history())

    def test_corrupt_db_is_unavailable(self, tmp_path):
        db = tmp_path / "History"
        db.write_bytes(b"definitely not sqlite" * 100)
        with pytest.raises(UnavailableError):
            asyncio.run(ChromiumHistorySource("chrome", db).fetch_all_history())

    def test_read_leaves_no_temp_copies(self, tmp_path, monkeypatch):
        monkeypatch.setattr("tempfile.tempdir", str(tmp_path / "tmp"))
        (tmp_path / "tmp").mkdir()
        db = tmp_path / "History"
        _create_fake_chrome_db(db, _CHROME_EPOCH_OFFSET + 1)
        asyncio.run(ChromiumHistorySource("chrome", db).fetch_all_history())
        assert list((tmp_path / "tmp").iterdir()) == []

    def test_delete_removes_url_and_visits(self, tmp_path):
        db = tmp_path / "History"
        _create_fake_chrome_db(db, int(time.time() * 1_000_000) + _CHROME_EPOCH_OFFSET)

        asyncio.run(ChromiumHistorySource("chrome", db).delete_history_entry("https://example.com"))

        conn = sqlite3.connect(str(db))
        urls = [r[0] for r in conn.execute("SELECT url FROM urls")]
        visits = conn.execute("SELECT COUNT(*) FROM visits").fetchone()[0]
        conn.close()
        assert urls == ["https://test.dev", "https://never.org"]
        assert visits == 1

    def test_delete_failure_raises_deletion_error(self, tmp_path):
        db = tmp_path / "History"
        sqlite3.connect(str(db)).close()  # empty DB, no tables
        with pytest.raises(DeletionError, match="no such table"):
            asyncio.run(ChromiumHistorySource("chrome", db).delete_history_entry("https://x"))

    def test_epoch_conversion(self):
        assert chrome_to_epoch_ms(0) is None
        assert chrome_to_epoch_ms(None) is None
        assert chrome_to_epoch_ms(_CHROME_EPOCH_OFFSET + 1_000_000) == 1000


class TestFirefoxSource:
    def test_reads_default_profile(self, tmp_path):
        profile = tmp_path / "abcd.default-release"
        profile.mkdir()
        now_us = int(time.time() * 1_000_000)
        _create_fake_places_db(profile / "places.sqlite", now_us)

        records = asyncio.run(FirefoxHistorySource(profiles_dir=tmp_path).fetch_all_history())

        assert records[0].url == "https://mozilla.org"
        assert records[0].last_visit_time == pytest.approx(now_us / 1000)
        assert records[1].last_visit_time is None
        assert records[1].title is None

    def test_no_profile_is_unavailable(self, tmp_path):
        with pytest.raises(UnavailableError, match="no firefox profile"):
            asyncio.run(FirefoxHistorySource(profiles_dir=tmp_path).fetch_all_history())

    def test_delete(self, tmp_path):
        places = tmp_path / "places.sqlite"
        _create_fake_places_db(places, int(time.time() * 1_000_000))
        src = FirefoxHistorySource(places_db=places)

        asyncio.run(src.delete_history_entry("https://mozilla.org"))

        conn = sqlite3.connect(str(places))
        assert conn.execute("SELECT COUNT(*) FROM moz_historyvisits").fetchone()[0] == 0
        assert [r[0] for r in conn.execute("SELECT url FROM moz_places")] == ["https://blank.org"]
        conn.close()

    def test_missing_override_reports_its_path(self, tmp_path):
        src = FirefoxHistorySource(profiles_dir=tmp_path, places_db=tmp_path / "gone.sqlite")
        with pytest.raises(UnavailableError, match="gone.sqlite"):
            asyncio.run(src.fetch_all_history())
        with pytest.raises(DeletionError, match="firefox history not found"):
            asyncio.run(src.delete_history_entry("x"))

    def test_delete_without_profile(self, tmp_path):
        with pytest.raises(DeletionError):
            asyncio.run(FirefoxHistorySource(profiles_dir=tmp_path).delete_history_entry("x"))


class TestMemorySource:
    def test_text_prefilter(self):
        src = MemoryHistorySource([HistoryRecord("https://a.com", "A"), HistoryRecord("https://b.com", "B")])
        assert [r.url for r in asyncio.run(src.fetch_all_history("b.com"))] == ["https://b.com"]

    def test_unavailable(self):
        with pytest.raises(UnavailableError):
            asyncio.run(MemoryHistorySource(available=False).fetch_all_history())


class TestFactory:
    def test_chrome_default_path(self, tmp_path, monkeypatch):
        monkeypatch.setattr("hourglass.config.CHROME_HISTORY", tmp_path / "History")
        monkeypatch.setattr("hourglass.config.HISTORY_DB_OVERRIDE", "")
        src = source_for("chrome")
        assert isinstance(src, ChromiumHistorySource)
        assert src.db_path == tmp_path / "History"

    def test_arc(self, tmp_path, monkeypatch):
        monkeypatch.setattr("hourglass.config.ARC_HISTORY", tmp_path / "ArcHistory")
        monkeypatch.setattr("hourglass.config.HISTORY_DB_OVERRIDE", "")
        src = source_for("ARC")
        assert src.name == "arc"
        assert src.db_path == tmp_path / "ArcHistory"

    def test_default_browser_from_config(self, monkeypatch):
        monkeypatch.setattr("hourglass.config.DEFAULT_BROWSER", "firefox")
        assert isinstance(source_for(), FirefoxHistorySource)

    def test_explicit_db_path(self, tmp_path):
        src = source_for("chrome", tmp_path / "Other")
        assert src.db_path == Path(tmp_path / "Other")

    def test_unknown_browser(self):
        with pytest.raises(ValueError, match="unknown browser"):
            source_for("netscape")


def test_record_from_browser_api_dict():
    r = HistoryRecord.from_dict({
        "id": "7", "url": "https://x.io", "title": "X",
        "lastVisitTime": 1705312800000.0, "visitCount": 3, "typedCount": 1,
    })
    assert r == HistoryRecord("https://x.io", "X", 1705312800000.0, "7", 3, 1)
    assert HistoryRecord.from_dict({"url": "u", "last_visit_time": 5}).last_visit_time == 5
    assert not HistoryRecord.from_dict({"url": "u"}).dated
