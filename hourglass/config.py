"""Central configuration for hourglass."""

import os
from pathlib import Path

# ── Paths ──────────────────────────────────────────────────────────────
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Load .env from project root
_env_path = _PROJECT_ROOT / ".env"
if _env_path.exists():
    for _line in _env_path.read_text().splitlines():
        _line = _line.strip()
        if _line and not _line.startswith("#") and "=" in _line:
            _k, _, _v = _line.partition("=")
            os.environ.setdefault(_k.strip(), _v.strip())


def _default_data_dir() -> Path:
    env = os.environ.get("HOURGLASS_DATA_DIR")
    if env:
        return Path(env)
    if (_PROJECT_ROOT / "pyproject.toml").exists():
        return _PROJECT_ROOT / "data"
    return Path.home() / ".hourglass"


DATA_DIR = _default_data_dir()
LOG_PATH = DATA_DIR / "hourglass.log"

# ── Browser selection ─────────────────────────────────────────────────
DEFAULT_BROWSER = os.environ.get("HOURGLASS_BROWSER", "chrome")
SUPPORTED_BROWSERS = ("chrome", "arc", "firefox")

# Explicit history DB path, overrides the per-browser default below
HISTORY_DB_OVERRIDE = os.environ.get("HOURGLASS_HISTORY_DB", "")

# ── Browser history paths ──────────────────────────────────────────────
CHROME_HISTORY = Path("~/Library/Application Support/Google/Chrome/Default/History").expanduser()
ARC_HISTORY = Path("~/Library/Application Support/Arc/User Data/Default/History").expanduser()
FIREFOX_PROFILES = Path("~/Library/Application Support/Firefox/Profiles").expanduser()

# ── Calendar ──────────────────────────────────────────────────────────
HOURS_PER_DAY = 24
MOMENT_SEPARATOR = "T"

# SQLite busy timeout when writing to a live browser DB (seconds)
SQLITE_TIMEOUT = 10.0
