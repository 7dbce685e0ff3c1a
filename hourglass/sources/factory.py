"""Pick a history source by browser name."""

from __future__ import annotations

from pathlib import Path

import hourglass.config as config
from hourglass.sources.base import HistorySource
from hourglass.sources.chromium import ChromiumHistorySource
from hourglass.sources.firefox import FirefoxHistorySource


def source_for(browser: str | None = None, db_path: Path | str | None = None) -> HistorySource:
    """Build the history source for a browser name."""
    browser = (browser or config.DEFAULT_BROWSER).lower()
    if browser not in config.SUPPORTED_BROWSERS:
        raise ValueError(
            f"unknown browser: {browser!r} (expected one of {', '.join(config.SUPPORTED_BROWSERS)})"
        )
    override = db_path or config.HISTORY_DB_OVERRIDE or None

    if browser == "firefox":
        return FirefoxHistorySource(places_db=Path(override) if override else None)

    default = config.CHROME_HISTORY if browser == "chrome" else config.ARC_HISTORY
    return ChromiumHistorySource(browser, Path(override) if override else default)
