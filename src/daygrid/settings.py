"""User settings: night range, theme and where the day starts."""

from __future__ import annotations

from typing import Any

from .timegrid import DAY_START_HOUR, hm_to_minutes

THEME_MODES = ("system", "light", "dark")


def default_settings() -> dict[str, Any]:
    return {
        "nightStart": "23:00",
        "nightEnd": "08:00",
        "themeMode": "system",
        "dayStartHour": DAY_START_HOUR,
    }


def _valid_hm(value: object) -> bool:
    try:
        hm_to_minutes(str(value))
    except ValueError:
        return False
    return True


def normalize_settings(raw: Any) -> dict[str, Any]:
    """Fill in defaults and drop values that do not parse. Unknown keys are kept."""
    out = default_settings()
    if not isinstance(raw, dict):
        return out

    merged = {**out, **raw}
    for key in ("nightStart", "nightEnd"):
        if not _valid_hm(merged.get(key)):
            merged[key] = out[key]
    if merged.get("themeMode") not in THEME_MODES:
        merged["themeMode"] = out["themeMode"]
    try:
        merged["dayStartHour"] = max(0, min(23, int(merged.get("dayStartHour"))))
    except (TypeError, ValueError, OverflowError):
        merged["dayStartHour"] = out["dayStartHour"]
    return merged


def is_dark(settings: dict[str, Any], system_dark: bool = False) -> bool:
    mode = settings.get("themeMode", "system")
    if mode == "dark":
        return True
    if mode == "light":
        return False
    return system_dark
