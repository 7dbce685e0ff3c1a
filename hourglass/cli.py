"""hourglass CLI — browse and prune browser history as a calendar."""

import argparse
import asyncio
import logging
import sys

from hourglass.config import DATA_DIR, LOG_PATH, SUPPORTED_BROWSERS
from hourglass.moments import Granularity, granularity_of
from hourglass.reports import format_moment_key
from hourglass.sources.factory import source_for
from hourglass.store import HistoryStore, get_store

log = logging.getLogger("hourglass")

_BAR_WIDTH = 40


def _setup_logging(verbose: bool = False) -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(str(LOG_PATH)),
            logging.StreamHandler(sys.stderr),
        ],
    )


def _load(args: argparse.Namespace) -> HistoryStore:
    store = get_store(source_for(args.browser, args.db))
    asyncio.run(store.fetch())
    store.set_search(args.search or "")
    return store


def _bar(count: int, peak: int) -> str:
    if not count or not peak:
        return ""
    return "█" * max(1, round(count / peak * _BAR_WIDTH))


# ── Rendering ────────────────────────────────────────────────────────────


def render_days(store: HistoryStore) -> list[str]:
    days = store.by_day_with_empty
    peak = max((len(items) for items in days.values()), default=0)
    lines = []
    for key in sorted(days, reverse=True):
        count = len(days[key])
        lines.append(f"  {key}  {count:5d}  {_bar(count, peak)}")
    return lines


def render_hours(store: HistoryStore) -> list[str]:
    days = store.by_day_and_hour_with_empty
    lines = []
    for key in sorted(days, reverse=True):
        hours = days[key]
        total = sum(len(items) for items in hours.values())
        cells = "".join(
            "·" if not hours[h] else ("▪" if len(hours[h]) < 5 else "█")
            for h in sorted(hours)
        )
        lines.append(f"  {key}  {cells}  {total:5d}")
    return lines


def render_items(store: HistoryStore, key: str) -> list[str]:
    items = store.items_for_moment(key)
    first_ts = items[0].last_visit_time if items else None
    lines = [f"  {format_moment_key(key, first_ts)}", f"  {'─' * 56}"]
    for record in items:
        t = record.local_datetime()
        when = t.strftime("%H:%M:%S") if t else "--:--:--"
        title = record.title or record.url
        lines.append(f"  {when}  {title[:60]}")
        if record.title:
            lines.append(f"            {record.url[:70]}")
    if not items:
        lines.append("  (no history)")
    return lines


# ── Subcommands ──────────────────────────────────────────────────────────


def cmd_calendar(args: argparse.Namespace) -> int:
    store = _load(args)
    if store.error:
        print(f"error: {store.error}", file=sys.stderr)
        return 1

    store.set_calendar_mode(Granularity.HOUR if args.hours else Granularity.DAY)
    header = "hour" if args.hours else "day"
    print(f"\n  {store.source.name} history by {header}"
          + (f" matching {store.search!r}" if store.search else ""))
    print(f"  {'─' * 56}")
    lines = render_hours(store) if args.hours else render_days(store)
    for line in lines:
        print(line)
    print(f"\n  {len(store.filtered):,} of {len(store.raw):,} entries\n")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    store = _load(args)
    if store.error:
        print(f"error: {store.error}", file=sys.stderr)
        return 1
    try:
        mode = granularity_of(args.moment)
        store.set_calendar_mode(mode)
        for key in args.moment.split(","):
            store.toggle_moment(key.strip())
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    for key in store.selected_moments:
        print()
        for line in render_items(store, key):
            print(line)
    print()
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    store = _load(args)
    if store.error:
        print(f"error: {store.error}", file=sys.stderr)
        return 1

    matches = sum(1 for r in store.raw if r.url == args.url)
    asyncio.run(store.remove_url(args.url))
    if store.error:
        print(f"error: {store.error}", file=sys.stderr)
        return 1
    print(f"deleted {args.url} ({matches} entries)")
    return 0


# ── Main ─────────────────────────────────────────────────────────────────


def _add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--browser", choices=SUPPORTED_BROWSERS, default=None,
                   help="browser whose history to read")
    p.add_argument("--db", default=None,
                   help="explicit path to the browser history database")
    p.add_argument("--search", default="",
                   help="only count entries whose title or URL contains this text")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="hourglass",
        description="browser history as a calendar",
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="enable debug logging")
    sub = parser.add_subparsers(dest="command")

    p_calendar = sub.add_parser("calendar", help="show history counts per day or hour")
    p_calendar.add_argument("--hours", action="store_true",
                            help="bucket by hour instead of by day")
    _add_source_args(p_calendar)

    p_show = sub.add_parser("show", help="list the entries of one or more moments")
    p_show.add_argument("moment",
                        help="day (2024-01-15) or hour (2024-01-15T14) keys, comma separated")
    _add_source_args(p_show)

    p_delete = sub.add_parser("delete", help="remove a URL from browser history")
    p_delete.add_argument("url", help="exact URL to delete")
    _add_source_args(p_delete)

    args = parser.parse_args(argv)

    commands = {
        "calendar": cmd_calendar,
        "show": cmd_show,
        "delete": cmd_delete,
    }

    if args.command not in commands:
        parser.print_help()
        return 0

    _setup_logging(args.verbose)
    try:
        return commands[args.command](args)
    except ValueError as e:
        log.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
