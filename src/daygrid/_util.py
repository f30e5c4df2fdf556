"""Shared low-level helpers used by both cli.py and gui.py."""

from __future__ import annotations

from datetime import datetime


def _now_local() -> datetime:
    return datetime.now().astimezone()


def _fmt_minutes(minutes: int) -> str:
    h, m = divmod(int(minutes), 60)
    if not h:
        return f"{m}m"
    if not m:
        return f"{h}h"
    return f"{h}h {m}m"


def _sparkline(values: list[float], vmin: float | None = None, vmax: float | None = None) -> str:
    if not values:
        return ""
    blocks = "▁▂▃▄▅▆▇█"
    lo = min(values) if vmin is None else vmin
    hi = max(values) if vmax is None else vmax
    span = max(1e-9, hi - lo)
    out = []
    for v in values:
        x = (v - lo) / span
        idx = int(round(x * (len(blocks) - 1)))
        idx = max(0, min(len(blocks) - 1, idx))
        out.append(blocks[idx])
    return "".join(out)
