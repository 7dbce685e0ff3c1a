"""Selected calendar moments, scoped to one granularity at a time."""

from __future__ import annotations

import logging

from hourglass.moments import Granularity, Moment, parse_moment

log = logging.getLogger(__name__)


class Selection:
    """Unique moments sorted newest first.

    Only moments matching the current granularity may be selected, and
    switching granularity clears everything so no stale cross-granularity
    keys survive.
    """

    def __init__(self, granularity: Granularity = Granularity.DAY):
        self.granularity = Granularity(granularity)
        self._moments: tuple[Moment, ...] = ()

    @property
    def keys(self) -> list[str]:
        return [m.key for m in self._moments]

    def __contains__(self, key) -> bool:
        try:
            return parse_moment(key) in self._moments
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._moments)

    def toggle(self, key: str | Moment) -> None:
        moment = parse_moment(key)
        if moment.granularity is not self.granularity:
            raise ValueError(
                f"cannot select {moment.key!r} in {self.granularity.value} mode"
            )
        if moment in self._moments:
            self._moments = tuple(m for m in self._moments if m != moment)
        else:
            self._moments = tuple(
                sorted(self._moments + (moment,), key=lambda m: m.key, reverse=True)
            )
        log.debug("selection now %s", self.keys)

    def clear(self) -> None:
        self._moments = ()

    def switch_mode(self, granularity: Granularity | str) -> None:
        self.granularity = Granularity(granularity)
        self.clear()
