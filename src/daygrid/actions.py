"""Day-log edits driven by the user: tag a selection, fill the night, copy fixed events."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from . import timegrid
from .catalog import Event

RECENT_LIMIT = 8
SLEEP_EVENT_NAME = "Sleep"


def push_recent(recent: list[str], event_id: str, limit: int = RECENT_LIMIT) -> list[str]:
    """Most-recently-used list: front-insert, de-duplicate, truncate."""
    out = [event_id]
    for x in recent:
        if len(out) >= limit:
            break
        if x != event_id:
            out.append(x)
    return out[:limit]


def apply_event(day: dict[str, Any], selection: Iterable[int], event_id: Optional[str]) -> dict[str, Any]:
    """New day log with event_id written into the selected slots (None clears them)."""
    slots = list(day["slots"])
    for idx in selection:
        if 0 <= idx < timegrid.TOTAL_SLOTS:
            slots[idx] = event_id
    return {**day, "slots": slots}


def tag(
    day: dict[str, Any],
    recent: list[str],
    selection: Iterable[int],
    event_id: Optional[str],
) -> tuple[dict[str, Any], list[str]]:
    selection = list(selection)
    if not selection:
        return day, list(recent)
    day = apply_event(day, selection, event_id)
    if event_id:
        recent = push_recent(recent, event_id)
    return day, list(recent)


def find_sleep_event(events: Iterable[Event], name: str = SLEEP_EVENT_NAME) -> Optional[str]:
    wanted = name.strip().lower()
    for e in events:
        if str(e.get("name") or "").strip().lower() == wanted:
            return str(e["id"])
    return None


def night_slots(night_start: str, night_end: str, day_start_hour: int = timegrid.DAY_START_HOUR) -> list[int]:
    return [
        i
        for i in range(timegrid.TOTAL_SLOTS)
        if timegrid.in_night_range(timegrid.slot_to_time(i, day_start_hour), night_start, night_end)
    ]


def fill_night(
    day: dict[str, Any],
    event_id: str,
    night_start: str,
    night_end: str,
    override: bool = False,
    day_start_hour: int = timegrid.DAY_START_HOUR,
) -> dict[str, Any]:
    slots = list(day["slots"])
    for i in night_slots(night_start, night_end, day_start_hour):
        if not override and slots[i]:
            continue
        slots[i] = event_id
    return {**day, "slots": slots}


def copy_fixed(day: dict[str, Any], prev_day: dict[str, Any], events: Iterable[Event]) -> dict[str, Any]:
    """Carry fixed events over from the previous day into empty slots only."""
    fixed = {str(e["id"]) for e in events if e.get("fixed")}
    slots = list(day["slots"])
    prev = prev_day["slots"]
    for i in range(timegrid.TOTAL_SLOTS):
        if slots[i]:
            continue
        if prev[i] and prev[i] in fixed:
            slots[i] = prev[i]
    return {**day, "slots": slots}
