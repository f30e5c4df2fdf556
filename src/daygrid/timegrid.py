from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Any

SLOT_MINUTES = 15
TOTAL_SLOTS = 96
DAY_START_HOUR = 8  # timeline starts at 08:00, not midnight
SLOTS_PER_ROW = 8  # 2 hours per display row
ROWS = TOTAL_SLOTS // SLOTS_PER_ROW

_MINUTES_PER_DAY = 24 * 60


def _pad2(n: int) -> str:
    return f"{n:02d}"


def hm_to_minutes(hm: str) -> int:
    """Minutes since midnight for an 'HH:MM' string."""
    parts = str(hm).strip().split(":")
    if len(parts) != 2 or not parts[0].isdigit() or not parts[1].isdigit():
        raise ValueError(f"expected HH:MM, got {hm!r}")
    h, m = int(parts[0]), int(parts[1])
    if h > 23 or m > 59:
        raise ValueError(f"expected HH:MM, got {hm!r}")
    return h * 60 + m


def slot_to_time(index: int, day_start_hour: int = DAY_START_HOUR) -> str:
    """
    Clock time at the start of a slot.

    Index 96 is accepted so the exclusive end of a selection can be shown
    (it wraps to the day start hour again).
    """
    if not 0 <= index <= TOTAL_SLOTS:
        raise ValueError(f"slot index out of range: {index}")
    total = (day_start_hour * 60 + index * SLOT_MINUTES) % _MINUTES_PER_DAY
    return f"{_pad2(total // 60)}:{_pad2(total % 60)}"


def time_to_slot(hm: str, day_start_hour: int = DAY_START_HOUR) -> int:
    """Slot containing the clock time; quarter-hour times invert slot_to_time exactly."""
    offset = (hm_to_minutes(hm) - day_start_hour * 60) % _MINUTES_PER_DAY
    return offset // SLOT_MINUTES


# -------------------------
# Date keys
# -------------------------

def to_date_key(d: date) -> str:
    return f"{d.year:04d}-{_pad2(d.month)}-{_pad2(d.day)}"


def parse_date_key(date_key: str) -> date:
    return date.fromisoformat(date_key)


def today_key() -> str:
    return to_date_key(date.today())


def add_days(date_key: str, delta: int) -> str:
    return to_date_key(parse_date_key(date_key) + timedelta(days=delta))


def week_start(date_key: str) -> str:
    """Monday on or before date_key (ISO weeks)."""
    d = parse_date_key(date_key)
    return to_date_key(d - timedelta(days=d.weekday()))


def week_keys(date_key: str) -> list[str]:
    start = week_start(date_key)
    return [add_days(start, i) for i in range(7)]


def month_start(date_key: str) -> str:
    return to_date_key(parse_date_key(date_key).replace(day=1))


def days_in_month(date_key: str) -> int:
    d = parse_date_key(date_key)
    return calendar.monthrange(d.year, d.month)[1]


def month_keys(date_key: str) -> list[str]:
    start = month_start(date_key)
    return [add_days(start, i) for i in range(days_in_month(date_key))]


def trailing_keys(date_key: str, n: int = 7) -> list[str]:
    """date_key and the n-1 days before it, oldest first."""
    return [add_days(date_key, -i) for i in range(n - 1, -1, -1)]


def range_keys(start_key: str, end_key: str) -> list[str]:
    """Inclusive range; a reversed range is swapped."""
    a, b = parse_date_key(start_key), parse_date_key(end_key)
    if b < a:
        a, b = b, a
    return [to_date_key(a + timedelta(days=i)) for i in range((b - a).days + 1)]


# -------------------------
# Day logs
# -------------------------

def new_day(date_key: str) -> dict[str, Any]:
    return {"dateKey": date_key, "slots": [None] * TOTAL_SLOTS}


def is_valid_day(raw: Any) -> bool:
    if not isinstance(raw, dict):
        return False
    slots = raw.get("slots")
    return isinstance(slots, list) and len(slots) == TOTAL_SLOTS


def ensure_day(raw: Any, date_key: str) -> dict[str, Any]:
    """Return raw if it is a well-formed 96-slot log, else a fresh empty one."""
    if is_valid_day(raw):
        return raw
    return new_day(date_key)


def in_night_range(hm: str, night_start: str, night_end: str) -> bool:
    """Half-open [start, end) test that wraps past midnight. start == end is empty."""
    t = hm_to_minutes(hm)
    start = hm_to_minutes(night_start)
    end = hm_to_minutes(night_end)
    if start == end:
        return False
    if start < end:
        return start <= t < end
    return t >= start or t < end
