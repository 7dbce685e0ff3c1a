"""HistorySource ABC — the browser-history collaborator the store talks to."""

from __future__ import annotations

import abc
import logging
import os
import shutil
import tempfile
from pathlib import Path

from hourglass.records import HistoryRecord

log = logging.getLogger(__name__)


class HistorySourceError(Exception):
    """Base for failures reported by a history source."""


class UnavailableError(HistorySourceError):
    """The host history facility cannot be accessed."""


class DeletionError(HistorySourceError):
    """The host refused or failed to delete a history entry."""


class HistorySource(abc.ABC):
    """Abstract base for history backends.

    Subclasses must implement:
        name                   — unique string identifier
        fetch_all_history()    — every record, unfiltered
        delete_history_entry() — remove all history for one exact URL
    """

    name: str = ""

    @abc.abstractmethod
    async def fetch_all_history(self) -> list[HistoryRecord]:
        """Return the full record set. Raises UnavailableError."""

    @abc.abstractmethod
    async def delete_history_entry(self, url: str) -> None:
        """Delete every visit of ``url``. Raises DeletionError."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


def copy_db(src: Path) -> str:
    """Copy a locked SQLite DB to a temp file for safe reading.

    The caller owns the returned path and must unlink it.
    """
    try:
        fd, tmp = tempfile.mkstemp(suffix=".db")
        os.close(fd)
    except OSError as e:
        raise UnavailableError(f"cannot create temp copy of {src}: {e}") from e
    try:
        shutil.copy2(str(src), tmp)
        return tmp
    except PermissionError as e:
        Path(tmp).unlink(missing_ok=True)
        log.warning("%s needs Full Disk Access — cannot read history", src)
        raise UnavailableError(f"permission denied reading {src}") from e
    except (OSError, shutil.Error) as e:
        Path(tmp).unlink(missing_ok=True)
        log.exception("failed to copy db %s", src)
        raise UnavailableError(f"failed to copy {src}: {e}") from e
