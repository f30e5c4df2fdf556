from __future__ import annotations

import argparse
import logging
import stat
from pathlib import Path
from typing import Any

from . import aggregate as agg
from . import timegrid
from ._util import _fmt_minutes, _sparkline
from .actions import apply_event, copy_fixed, fill_night, find_sleep_event, push_recent, tag
from .catalog import (
    Catalog,
    add_category,
    add_event,
    category_only_event,
    delete_category,
    delete_event,
)
from .gesture import selection_info
from .paths import data_path_reason, resolve_data_path
from .segments import rows
from .settings import THEME_MODES
from .storage import Store, load_json
from .timeparse import parse_clock, parse_day
from .transfer import ImportRejected, build_export, default_export_name, export_to_file, import_from_file


# -------------------------
# Argument helpers
# -------------------------

def _parse_clock_arg(value: str | None, arg_name: str) -> str:
    if value is None:
        raise SystemExit(f"{arg_name} is required")
    try:
        return parse_clock(value)
    except ValueError:
        raise SystemExit(f"{arg_name} must be a time like 9am, 7:30pm or 14:30 (got {value!r})") from None


def _slot_range(args: argparse.Namespace, day_start_hour: int) -> list[int]:
    """
    Slots covered by --from/--to. --to is exclusive; a --to equal to the
    day start means the end of the day.
    """
    start_hm = _parse_clock_arg(args.start, "--from")
    end_hm = _parse_clock_arg(args.end, "--to")
    start = timegrid.time_to_slot(start_hm, day_start_hour)
    end = timegrid.time_to_slot(end_hm, day_start_hour)
    if end == 0:
        end = timegrid.TOTAL_SLOTS
    if end <= start:
        raise SystemExit(
            f"--to must be after --from within the day starting at {timegrid.slot_to_time(0, day_start_hour)}"
        )
    return list(range(start, end))


def _resolve_event_arg(args: argparse.Namespace, categories, events) -> tuple[list[dict[str, Any]], str]:
    if args.event:
        if not any(e.get("id") == args.event for e in events):
            raise SystemExit(f"Unknown event id {args.event!r} (see `daygrid event list`)")
        return events, args.event
    if args.category:
        if not any(c.get("id") == args.category for c in categories):
            raise SystemExit(f"Unknown category id {args.category!r} (see `daygrid cat list`)")
        return category_only_event(events, args.category)
    raise SystemExit("Pass --event ID or --category ID")


# -------------------------
# Print blocks
# -------------------------

def _print_day(day: dict[str, Any], catalog: Catalog, day_start_hour: int) -> None:
    letters: dict[str, str] = {}
    alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

    def letter(eid: str) -> str:
        if eid not in letters:
            letters[eid] = alphabet[len(letters) % len(alphabet)]
        return letters[eid]

    print(f"=== {day['dateKey']} ===")
    for r, pieces in enumerate(rows(day["slots"])):
        row_start = r * timegrid.SLOTS_PER_ROW
        cells = ["·"] * timegrid.SLOTS_PER_ROW
        labels: list[str] = []
        for piece in pieces:
            ch = letter(piece.event_id)
            for i in range(piece.start, piece.end):
                cells[i - row_start] = ch
            if piece.is_start_here:
                minutes = piece.segment.length * timegrid.SLOT_MINUTES
                labels.append(f"{ch} {catalog.label(piece.event_id)} · {minutes}m")
        left = timegrid.slot_to_time(row_start, day_start_hour)
        line = f"{left}  {''.join(cells)}"
        if labels:
            line += "  " + "; ".join(labels)
        print(line)


def _print_rows(title: str, aggregate: agg.Aggregate, catalog: Catalog, by: str, top: int | None) -> None:
    print(f"\n[{title}] total {_fmt_minutes(aggregate.total_minutes)} over {aggregate.days} logged day(s)")
    if not aggregate.total_minutes:
        print("- no data")
        return
    for row in agg.ranked_rows(aggregate, catalog, by=by, n=top):
        print(f"- {row.label}: {_fmt_minutes(row.minutes)} ({row.share * 100:.0f}%)")


def _print_trend(trend: list[tuple[str, int]]) -> None:
    values = [float(m) for _, m in trend]
    print(f"\n[Trend – last {len(trend)} days] {_sparkline(values, vmin=0.0)}")
    for key, minutes in trend:
        print(f"- {key}: {_fmt_minutes(minutes)}")


# -------------------------
# Core commands
# -------------------------

def cmd_init(args: argparse.Namespace) -> None:
    store: Store = args.store
    store.load_settings()
    store.load_meta()
    print(f"✅ Initialized data file: {args.data_path}")


def cmd_where(args: argparse.Namespace) -> None:
    print(args.data_path)
    print(f"↳ using {data_path_reason(args.data_arg, args.profile)}")


def cmd_doctor(args: argparse.Namespace) -> None:
    print("=== DayGrid Doctor ===")

    data = load_json(args.data_path)
    print("✅ JSON readable: OK")

    days = data.get("days") if isinstance(data.get("days"), dict) else {}
    bad = [k for k, v in days.items() if not timegrid.is_valid_day(v)]
    print(f"📅 Day logs: {len(days)} ({len(bad)} malformed, read as empty)")

    events = data.get("events") if isinstance(data.get("events"), list) else []
    known = {e.get("id") for e in events if isinstance(e, dict)}
    dangling = {s for v in days.values() if timegrid.is_valid_day(v) for s in v["slots"] if s and s not in known}
    if dangling:
        print(f"⚠️ {len(dangling)} deleted event id(s) still referenced by slots")

    try:
        mode = args.data_path.stat().st_mode
        perms = stat.S_IMODE(mode)
        print(f"🔐 File permissions: {oct(perms)} (target 0o600)")
    except FileNotFoundError:
        print("⚠️ Data file missing (run `daygrid init`)")

    print("=== Done ===")


# -------------------------
# DAY commands
# -------------------------

def cmd_show(args: argparse.Namespace) -> None:
    store: Store = args.store
    settings = store.load_settings()
    categories, events, _recent = store.load_meta()
    day = store.load_day(parse_day(args.date))
    _print_day(day, Catalog(categories, events), settings["dayStartHour"])


def cmd_tag(args: argparse.Namespace) -> None:
    store: Store = args.store
    settings = store.load_settings()
    categories, events, recent = store.load_meta()
    date_key = parse_day(args.date)

    selection = _slot_range(args, settings["dayStartHour"])
    events, event_id = _resolve_event_arg(args, categories, events)

    day, recent = tag(store.load_day(date_key), recent, selection, event_id)
    store.save_day(day)
    store.save_meta(categories, events, recent)

    info = selection_info(selection, settings["dayStartHour"])
    label = Catalog(categories, events).label(event_id)
    print(f"🟦 {date_key} {info.start_time}–{info.end_time} ({_fmt_minutes(info.minutes)}) → {label}")


def cmd_clear(args: argparse.Namespace) -> None:
    store: Store = args.store
    settings = store.load_settings()
    date_key = parse_day(args.date)

    selection = _slot_range(args, settings["dayStartHour"])
    day = apply_event(store.load_day(date_key), selection, None)
    store.save_day(day)

    info = selection_info(selection, settings["dayStartHour"])
    print(f"⬜ {date_key} {info.start_time}–{info.end_time} cleared")


def cmd_fill_sleep(args: argparse.Namespace) -> None:
    store: Store = args.store
    settings = store.load_settings()
    categories, events, recent = store.load_meta()
    date_key = parse_day(args.date)

    event_id = args.event or find_sleep_event(events)
    if not event_id:
        raise SystemExit("No 'Sleep' event yet. Create one with `daygrid event add --category ID --name Sleep`.")
    if not any(e.get("id") == event_id for e in events):
        raise SystemExit(f"Unknown event id {event_id!r}")

    day = fill_night(
        store.load_day(date_key),
        event_id,
        settings["nightStart"],
        settings["nightEnd"],
        override=args.override,
        day_start_hour=settings["dayStartHour"],
    )
    store.save_day(day)
    store.save_meta(categories, events, push_recent(recent, event_id))
    print(f"😴 Filled {settings['nightStart']}–{settings['nightEnd']} on {date_key}")


def cmd_copy_fixed(args: argparse.Namespace) -> None:
    store: Store = args.store
    _categories, events, _recent = store.load_meta()
    date_key = parse_day(args.date)
    prev_key = timegrid.add_days(date_key, -1)

    before = store.load_day(date_key)
    after = copy_fixed(before, store.load_day(prev_key), events)
    store.save_day(after)

    copied = sum(1 for a, b in zip(before["slots"], after["slots"]) if a != b)
    print(f"📋 Copied {copied} fixed slot(s) from {prev_key} into {date_key}")


# -------------------------
# STATS commands
# -------------------------

def cmd_stats(args: argparse.Namespace) -> None:
    store: Store = args.store
    categories, events, _recent = store.load_meta()
    catalog = Catalog(categories, events)
    load_day = store.day_loader()
    date_key = parse_day(args.date)
    top = args.top

    if args.window == "day":
        _print_rows(f"Day {date_key}", agg.day_aggregate(date_key, load_day, catalog), catalog, args.by, top)
    elif args.window == "week":
        start = timegrid.week_start(date_key)
        title = f"Week {start} – {timegrid.add_days(start, 6)}"
        _print_rows(title, agg.week_aggregate(date_key, load_day, catalog), catalog, args.by, top)
    elif args.window == "month":
        title = f"Month {timegrid.month_start(date_key)[:7]}"
        _print_rows(title, agg.month_aggregate(date_key, load_day, catalog), catalog, args.by, top)
    elif args.window == "range":
        start_key = parse_day(args.start)
        end_key = parse_day(args.end) if args.end else date_key
        title = f"Range {min(start_key, end_key)} – {max(start_key, end_key)}"
        _print_rows(title, agg.range_aggregate(start_key, end_key, load_day, catalog), catalog, args.by, top)
    else:
        ov = agg.overview(date_key, load_day, catalog)
        print(f"=== Overview for {date_key} ===")
        _print_rows("Day", ov.day, catalog, args.by, top)
        _print_rows("Week", ov.week, catalog, args.by, top)
        _print_rows("Month", ov.month, catalog, args.by, top)
        _print_trend(ov.trend)


# -------------------------
# CATEGORY / EVENT commands
# -------------------------

def cmd_cat_list(args: argparse.Namespace) -> None:
    categories, events, _recent = args.store.load_meta()
    if not categories:
        print("No categories yet.")
        return
    for c in categories:
        n = sum(1 for e in events if e.get("categoryId") == c.get("id"))
        print(f"{c.get('id')} — {c.get('name')} ({n} event(s))")


def cmd_cat_add(args: argparse.Namespace) -> None:
    store: Store = args.store
    categories, events, recent = store.load_meta()
    updated = add_category(categories, args.name)
    if len(updated) == len(categories):
        raise SystemExit("--name must not be blank")
    store.save_meta(updated, events, recent)
    print(f"➕ Category {updated[-1]['id']} — {updated[-1]['name']}")


def cmd_cat_rm(args: argparse.Namespace) -> None:
    store: Store = args.store
    categories, events, recent = store.load_meta()
    if not any(c.get("id") == args.id for c in categories):
        raise SystemExit(f"Unknown category id {args.id!r}")
    if not args.yes:
        raise SystemExit("Refusing to delete without --yes (its events are kept and read as uncategorized)")
    store.save_meta(delete_category(categories, args.id), events, recent)
    print(f"🗑️ Deleted category {args.id}")


def cmd_event_list(args: argparse.Namespace) -> None:
    categories, events, recent = args.store.load_meta()
    catalog = Catalog(categories, events)
    if not events:
        print("No events yet.")
        return
    for e in events:
        flag = " [fixed]" if e.get("fixed") else ""
        print(f"{e.get('id')} — {catalog.label(str(e.get('id')))}{flag}")
    if recent:
        print("\nRecent: " + ", ".join(catalog.label(r) for r in recent))


def cmd_event_add(args: argparse.Namespace) -> None:
    store: Store = args.store
    categories, events, recent = store.load_meta()
    if not any(c.get("id") == args.category for c in categories):
        raise SystemExit(f"Unknown category id {args.category!r}")
    events = add_event(events, args.category, args.name, fixed=args.fixed)
    store.save_meta(categories, events, recent)
    print(f"➕ Event {events[-1]['id']} — {Catalog(categories, events).label(events[-1]['id'])}")


def cmd_event_rm(args: argparse.Namespace) -> None:
    store: Store = args.store
    categories, events, recent = store.load_meta()
    if not any(e.get("id") == args.id for e in events):
        raise SystemExit(f"Unknown event id {args.id!r}")
    if not args.yes:
        raise SystemExit("Refusing to delete without --yes (slots on the given day are cleared)")

    date_key = parse_day(args.date)
    events, recent, day = delete_event(events, recent, store.load_day(date_key), args.id)
    store.save_meta(categories, events, recent)
    store.save_day(day)
    print(f"🗑️ Deleted event {args.id} (cleared from {date_key})")


# -------------------------
# SETTINGS / TRANSFER commands
# -------------------------

def cmd_settings(args: argparse.Namespace) -> None:
    store: Store = args.store
    settings = store.load_settings()
    changed = False
    if args.night_start:
        settings["nightStart"] = _parse_clock_arg(args.night_start, "--night-start")
        changed = True
    if args.night_end:
        settings["nightEnd"] = _parse_clock_arg(args.night_end, "--night-end")
        changed = True
    if args.theme:
        settings["themeMode"] = args.theme
        changed = True
    if args.day_start is not None:
        if not 0 <= args.day_start <= 23:
            raise SystemExit("--day-start must be an hour between 0 and 23")
        settings["dayStartHour"] = args.day_start
        changed = True
    if changed:
        store.save_settings(settings)
    for key in sorted(settings):
        print(f"{key}: {settings[key]}")


def cmd_export(args: argparse.Namespace) -> None:
    date_key = parse_day(args.date)
    payload = build_export(args.store, date_key)
    out = Path(args.out or default_export_name(date_key)).expanduser().resolve()
    export_to_file(out, payload)
    print(f"📄 Exported {date_key} → {out}")


def cmd_import(args: argparse.Namespace) -> None:
    try:
        date_key = import_from_file(args.store, Path(args.path).expanduser())
    except ImportRejected as e:
        raise SystemExit(f"Import failed, nothing was written: {e}") from None
    print(f"📥 Imported {date_key} from {args.path}")


def _add_range_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--from", dest="start", required=True, help="Start time (e.g. 9am, 14:30)")
    parser.add_argument("--to", dest="end", required=True, help="End time, exclusive (e.g. 10:30)")
    parser.add_argument("--date", default=None, help="Day (default today; e.g. yesterday, 2026-02-25)")


def main(argv=None) -> None:
    p = argparse.ArgumentParser(prog="daygrid", description="DayGrid: tag your day in 15-minute slots")
    p.add_argument("--data", default=None, help="Path to data JSON (overrides env/default)")
    p.add_argument("--profile", default=None, help="Profile name (e.g. dev/test)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")

    sub = p.add_subparsers(dest="cmd", required=True)
    sub.add_parser("init", help="Initialize data store").set_defaults(func=cmd_init)
    sub.add_parser("where", help="Show which data file is active and why").set_defaults(func=cmd_where)
    sub.add_parser("doctor", help="Run health checks").set_defaults(func=cmd_doctor)

    # ---- day ----
    show = sub.add_parser("show", help="Print a day's grid")
    show.add_argument("--date", default=None)
    show.set_defaults(func=cmd_show)

    tag_p = sub.add_parser("tag", help="Tag a time range with an event")
    _add_range_args(tag_p)
    tag_p.add_argument("--event", default=None, help="Event id")
    tag_p.add_argument("--category", default=None, help="Category id (category-only tag)")
    tag_p.set_defaults(func=cmd_tag)

    clear = sub.add_parser("clear", help="Clear a time range")
    _add_range_args(clear)
    clear.set_defaults(func=cmd_clear)

    fill = sub.add_parser("fill-sleep", help="Fill the night range with the Sleep event")
    fill.add_argument("--date", default=None)
    fill.add_argument("--event", default=None, help="Event id to use instead of 'Sleep'")
    fill.add_argument("--override", action="store_true", help="Overwrite slots that are already tagged")
    fill.set_defaults(func=cmd_fill_sleep)

    copy = sub.add_parser("copy-fixed", help="Copy fixed events from the previous day into empty slots")
    copy.add_argument("--date", default=None)
    copy.set_defaults(func=cmd_copy_fixed)

    # ---- stats ----
    stats = sub.add_parser("stats", help="Time usage by event or category")
    stats.add_argument("window", choices=["day", "week", "month", "range", "overview"], nargs="?", default="overview")
    stats.add_argument("--date", default=None, help="Reference day (default today)")
    stats.add_argument("--start", default=None, help="Range start (for `range`)")
    stats.add_argument("--end", default=None, help="Range end, inclusive (for `range`; default --date)")
    stats.add_argument("--by", choices=["event", "category"], default="event")
    stats.add_argument("--top", type=int, default=None, help="Show the N largest rows and fold the rest into Other")
    stats.set_defaults(func=cmd_stats)

    # ---- cat ----
    cat = sub.add_parser("cat", help="Categories")
    cat_sub = cat.add_subparsers(dest="cat_cmd", required=True)
    cat_sub.add_parser("list", help="List categories").set_defaults(func=cmd_cat_list)
    cat_add = cat_sub.add_parser("add", help="Add a category")
    cat_add.add_argument("--name", required=True)
    cat_add.set_defaults(func=cmd_cat_add)
    cat_rm = cat_sub.add_parser("rm", help="Delete a category (events are kept)")
    cat_rm.add_argument("id")
    cat_rm.add_argument("--yes", action="store_true", help="Confirm delete")
    cat_rm.set_defaults(func=cmd_cat_rm)

    # ---- event ----
    evt = sub.add_parser("event", help="Events")
    evt_sub = evt.add_subparsers(dest="event_cmd", required=True)
    evt_sub.add_parser("list", help="List events").set_defaults(func=cmd_event_list)
    evt_add = evt_sub.add_parser("add", help="Add an event")
    evt_add.add_argument("--category", required=True, help="Category id")
    evt_add.add_argument("--name", default=None, help="Leave out for a category-only event")
    evt_add.add_argument("--fixed", action="store_true", help="Carried over by copy-fixed")
    evt_add.set_defaults(func=cmd_event_add)
    evt_rm = evt_sub.add_parser("rm", help="Delete an event and clear it from one day")
    evt_rm.add_argument("id")
    evt_rm.add_argument("--date", default=None, help="Day to clear it from (default today)")
    evt_rm.add_argument("--yes", action="store_true", help="Confirm delete")
    evt_rm.set_defaults(func=cmd_event_rm)

    # ---- settings / transfer ----
    st = sub.add_parser("settings", help="Show or change settings")
    st.add_argument("--night-start", default=None)
    st.add_argument("--night-end", default=None)
    st.add_argument("--theme", choices=list(THEME_MODES), default=None)
    st.add_argument("--day-start", type=int, default=None, help="Hour the grid starts at (0-23)")
    st.set_defaults(func=cmd_settings)

    exp = sub.add_parser("export", help="Export one day plus settings/categories/events to JSON")
    exp.add_argument("--out", default=None, help="Output path (default daygrid_<date>.json)")
    exp.add_argument("--date", default=None)
    exp.set_defaults(func=cmd_export)

    imp = sub.add_parser("import", help="Import an exported JSON file")
    imp.add_argument("path")
    imp.set_defaults(func=cmd_import)

    args = p.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    args.data_arg = args.data
    args.data_path = resolve_data_path(args.data, args.profile)
    args.store = Store(args.data_path)

    args.func(args)
