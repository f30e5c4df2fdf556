from __future__ import annotations

import re
from datetime import date, datetime, timedelta

from .timegrid import to_date_key


def parse_day(value: str | None, today: date | None = None) -> str:
    """
    Parse a flexible day reference into a 'YYYY-MM-DD' date key.
    Accepts:
      - None / blank / "today" -> today
      - "yesterday", "tomorrow"
      - ISO dates: "2026-02-25", also "2026/02/25"
      - relative: "3 days ago", "in 2 days", "-1", "+2"
    Raises SystemExit with a hint when nothing matches.
    """
    base = today or date.today()
    if not value or not value.strip():
        return to_date_key(base)

    s = value.strip().lower()

    if s == "today":
        return to_date_key(base)
    if s == "yesterday":
        return to_date_key(base - timedelta(days=1))
    if s == "tomorrow":
        return to_date_key(base + timedelta(days=1))

    # --- ISO / slashed dates ---
    for fmt in ("%Y-%m-%d", "%Y/%m/%d"):
        try:
            return to_date_key(datetime.strptime(s, fmt).date())
        except ValueError:
            continue

    # --- Relative ---
    m = re.fullmatch(r"(\d+)\s*(day|days)\s*ago", s)
    if m:
        return to_date_key(base - timedelta(days=int(m.group(1))))
    m = re.fullmatch(r"in\s+(\d+)\s*(day|days)", s)
    if m:
        return to_date_key(base + timedelta(days=int(m.group(1))))
    m = re.fullmatch(r"([+-]\d+)", s)
    if m:
        return to_date_key(base + timedelta(days=int(m.group(1))))

    raise SystemExit(
        f"Could not parse date {value!r}. Try '2026-02-25', 'yesterday', '3 days ago' or '-1'."
    )


def parse_clock(value: str) -> str:
    """
    Parse a wall-clock time like '9am', '7:30am', '7:30 pm' or '14:30'
    into 'HH:MM'. Raises ValueError when the value is not a time.
    """
    s = value.strip().lower()

    t_formats = [
        "%I:%M%p",
        "%I:%M %p",
        "%I%p",
        "%I %p",
        "%H:%M",
    ]
    for fmt in t_formats:
        try:
            t = datetime.strptime(s, fmt)
            return f"{t.hour:02d}:{t.minute:02d}"
        except ValueError:
            continue

    raise ValueError(f"Could not parse time-only value: {value!r}")
