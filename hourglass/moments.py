"""Moment keys — calendar bucket identifiers at day or hour granularity.

String encoding:
- day key   ``YYYY-MM-DD``      e.g. "2024-01-15"
- hour key  ``YYYY-MM-DDTHH``   e.g. "2024-01-15T14"

Granularity is inferred from the ``T`` separator. Inside the engine moments
are carried as ``DayMoment`` / ``HourMoment`` so nothing downstream has to
re-parse strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from hourglass.config import HOURS_PER_DAY, MOMENT_SEPARATOR

_DAY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_HOUR_RE = re.compile(r"^\d{2}$")


class Granularity(str, Enum):
    DAY = "day"
    HOUR = "hour"


def day_key(d: date | datetime) -> str:
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def hour_key(hour: int | datetime) -> str:
    if isinstance(hour, datetime):
        hour = hour.hour
    return f"{hour:02d}"


def all_hour_keys() -> list[str]:
    return [hour_key(h) for h in range(HOURS_PER_DAY)]


def granularity_of(key: str) -> Granularity:
    return Granularity.HOUR if MOMENT_SEPARATOR in key else Granularity.DAY


@dataclass(frozen=True)
class DayMoment:
    day: date

    granularity = Granularity.DAY

    @property
    def key(self) -> str:
        return day_key(self.day)

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class HourMoment:
    day: date
    hour: int

    granularity = Granularity.HOUR

    def __post_init__(self):
        if not 0 <= self.hour < HOURS_PER_DAY:
            raise ValueError(f"hour out of range: {self.hour!r}")

    @property
    def key(self) -> str:
        return f"{day_key(self.day)}{MOMENT_SEPARATOR}{hour_key(self.hour)}"

    @property
    def day_part(self) -> str:
        return day_key(self.day)

    @property
    def hour_part(self) -> str:
        return hour_key(self.hour)

    def __str__(self) -> str:
        return self.key


Moment = DayMoment | HourMoment


def _parse_day(text: str) -> date:
    m = _DAY_RE.match(text)
    if not m:
        raise ValueError(f"malformed day key: {text!r}")
    year, month, day = (int(g) for g in m.groups())
    return date(year, month, day)


def parse_moment(key: str | Moment) -> Moment:
    """Decode a moment key. Raises ValueError on malformed input."""
    if isinstance(key, (DayMoment, HourMoment)):
        return key
    if not isinstance(key, str):
        raise ValueError(f"moment key must be a string, got {type(key).__name__}")
    if MOMENT_SEPARATOR not in key:
        return DayMoment(_parse_day(key))
    day_part, _, hour_part = key.partition(MOMENT_SEPARATOR)
    if not _HOUR_RE.match(hour_part):
        raise ValueError(f"malformed hour key: {key!r}")
    return HourMoment(_parse_day(day_part), int(hour_part))


def moment_for(ts_ms: float, granularity: Granularity) -> Moment:
    """The moment a timestamp (epoch ms) falls into, in local time."""
    dt = datetime.fromtimestamp(ts_ms / 1000)
    if granularity is Granularity.HOUR:
        return HourMoment(dt.date(), dt.hour)
    return DayMoment(dt.date())
