"""Minute totals per event and category over one or many day logs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from . import timegrid
from .catalog import DELETED_LABEL, Catalog, Event
from .colors import color_for

DELETED_CATEGORY = "__deleted__"
OTHER_KEY = "__other__"
OTHER_LABEL = "Other"

DayLoader = Callable[[str], Optional[dict[str, Any]]]
EventLookup = Union[Catalog, Mapping[str, Event], Iterable[Event]]


@dataclass(frozen=True)
class Aggregate:
    total_minutes: int = 0
    minutes_by_category: dict[str, int] = field(default_factory=dict)
    minutes_by_event: dict[str, int] = field(default_factory=dict)
    days: int = 0  # non-null logs scanned


@dataclass(frozen=True)
class Overview:
    date_key: str
    day: Aggregate
    week: Aggregate
    month: Aggregate
    trend: list[tuple[str, int]]


@dataclass(frozen=True)
class StatRow:
    key: str
    label: str
    minutes: int
    share: float
    fill: str
    accent: str


def _category_resolver(events: EventLookup) -> Callable[[str], Optional[str]]:
    if isinstance(events, Catalog):
        return events.category_of
    if isinstance(events, Mapping):
        table = events
    else:
        table = {str(e.get("id")): e for e in events if isinstance(e, dict)}

    def resolve(event_id: str) -> Optional[str]:
        evt = table.get(event_id)
        return None if evt is None else str(evt.get("categoryId"))

    return resolve


def aggregate(days: Iterable[Optional[dict[str, Any]]], events: EventLookup) -> Aggregate:
    resolve = _category_resolver(events)
    by_event: dict[str, int] = {}
    by_category: dict[str, int] = {}
    total = 0
    scanned = 0

    for day in days:
        if not timegrid.is_valid_day(day):
            continue
        scanned += 1
        for eid in day["slots"]:
            if not eid:
                continue
            cat = resolve(eid) or DELETED_CATEGORY
            by_event[eid] = by_event.get(eid, 0) + timegrid.SLOT_MINUTES
            by_category[cat] = by_category.get(cat, 0) + timegrid.SLOT_MINUTES
            total += timegrid.SLOT_MINUTES

    return Aggregate(
        total_minutes=total,
        minutes_by_category=by_category,
        minutes_by_event=by_event,
        days=scanned,
    )


def top_n(minutes: Mapping[str, int], n: Optional[int] = None) -> list[tuple[str, int]]:
    """Descending by minutes; ties keep first-seen order (sorted() is stable)."""
    ranked = sorted(minutes.items(), key=lambda kv: -kv[1])
    return ranked if n is None else ranked[: max(0, n)]


def with_other(rows: Sequence[tuple[str, int]], n: int = 6) -> list[tuple[str, int]]:
    head = list(rows[:n])
    rest = sum(m for _, m in rows[n:])
    if rest > 0:
        head.append((OTHER_KEY, rest))
    return head


# -------------------------
# Windows
# -------------------------

def keys_aggregate(keys: Iterable[str], load_day: DayLoader, events: EventLookup) -> Aggregate:
    return aggregate((load_day(k) for k in keys), events)


def day_aggregate(date_key: str, load_day: DayLoader, events: EventLookup) -> Aggregate:
    return keys_aggregate([date_key], load_day, events)


def week_aggregate(date_key: str, load_day: DayLoader, events: EventLookup) -> Aggregate:
    return keys_aggregate(timegrid.week_keys(date_key), load_day, events)


def month_aggregate(date_key: str, load_day: DayLoader, events: EventLookup) -> Aggregate:
    return keys_aggregate(timegrid.month_keys(date_key), load_day, events)


def range_aggregate(start_key: str, end_key: str, load_day: DayLoader, events: EventLookup) -> Aggregate:
    return keys_aggregate(timegrid.range_keys(start_key, end_key), load_day, events)


def trend(date_key: str, load_day: DayLoader, events: EventLookup, n: int = 7) -> list[tuple[str, int]]:
    """Daily totals for date_key and the n-1 days before it, oldest first."""
    return [(k, day_aggregate(k, load_day, events).total_minutes) for k in timegrid.trailing_keys(date_key, n)]


def overview(date_key: str, load_day: DayLoader, events: EventLookup) -> Overview:
    return Overview(
        date_key=date_key,
        day=day_aggregate(date_key, load_day, events),
        week=week_aggregate(date_key, load_day, events),
        month=month_aggregate(date_key, load_day, events),
        trend=trend(date_key, load_day, events),
    )


# -------------------------
# Presentation rows
# -------------------------

def ranked_rows(
    agg: Aggregate,
    catalog: Catalog,
    by: str = "event",
    n: Optional[int] = None,
    dark: bool = False,
) -> list[StatRow]:
    """Largest rows first; with n set, rows past the n-th fold into one Other row."""
    if by not in ("event", "category"):
        raise ValueError(f"by must be 'event' or 'category', got {by!r}")

    source = agg.minutes_by_event if by == "event" else agg.minutes_by_category
    total = agg.total_minutes
    ranked = top_n(source)
    if n is not None:
        ranked = with_other(ranked, max(0, n))

    out: list[StatRow] = []
    for key, minutes in ranked:
        if key == OTHER_KEY:
            label = OTHER_LABEL
            swatch = color_for(OTHER_KEY, None, dark)
        elif by == "event":
            label = catalog.label(key)
            swatch = color_for(catalog.category_of(key) or DELETED_CATEGORY, key, dark)
        else:
            label = DELETED_LABEL if key == DELETED_CATEGORY else catalog.category_name(key)
            swatch = color_for(key, None, dark)
        out.append(
            StatRow(
                key=key,
                label=label,
                minutes=minutes,
                share=(minutes / total) if total else 0.0,
                fill=swatch.fill,
                accent=swatch.accent,
            )
        )
    return out
