"""
JSON export/import of one day plus the current settings and catalog.

Import is all-or-nothing: the payload is fully validated first and then
written with a single save of the data file.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from . import timegrid
from ._util import _now_local
from .settings import normalize_settings
from .storage import Store, save_json

logger = logging.getLogger(__name__)

EXPORT_VERSION = 1


class ImportRejected(ValueError):
    """The payload is not a valid export; nothing was written."""


def build_export(store: Store, date_key: str, now: Optional[datetime] = None) -> dict[str, Any]:
    settings = store.load_settings()
    categories, events, recent = store.load_meta()
    day = store.load_day(date_key)
    exported_at = (now or _now_local()).isoformat(timespec="seconds")
    return {
        "version": EXPORT_VERSION,
        "exportedAt": exported_at,
        "dateKey": date_key,
        "settings": settings,
        "categories": categories,
        "events": events,
        "recentEvents": recent,
        "day": day,
    }


def _check_list_of_dicts(data: dict[str, Any], key: str) -> None:
    value = data.get(key)
    if value is None:
        return
    if not isinstance(value, list) or not all(isinstance(x, dict) and "id" in x for x in value):
        raise ImportRejected(f"{key} must be a list of objects with an id")


def validate_payload(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ImportRejected("payload must be a JSON object")
    if data.get("version") != EXPORT_VERSION:
        raise ImportRejected(f"unsupported export version {data.get('version')!r} (expected {EXPORT_VERSION})")

    day = data.get("day")
    if not isinstance(day, dict):
        raise ImportRejected("payload has no day")
    slots = day.get("slots")
    if not isinstance(slots, list) or len(slots) != timegrid.TOTAL_SLOTS:
        raise ImportRejected(f"day.slots must have exactly {timegrid.TOTAL_SLOTS} entries")
    if not all(s is None or isinstance(s, str) for s in slots):
        raise ImportRejected("day.slots entries must be strings or null")

    date_key = day.get("dateKey")
    try:
        canonical = timegrid.to_date_key(timegrid.parse_date_key(str(date_key)))
    except ValueError as e:
        raise ImportRejected(f"day.dateKey is not a date: {date_key!r}") from e
    if canonical != date_key:
        # fromisoformat also takes 20260225 or 2026-W09-3
        raise ImportRejected(f"day.dateKey must be YYYY-MM-DD, got {date_key!r}")

    settings = data.get("settings")
    if settings is not None and not isinstance(settings, dict):
        raise ImportRejected("settings must be an object")

    _check_list_of_dicts(data, "categories")
    _check_list_of_dicts(data, "events")

    recent = data.get("recentEvents")
    if recent is not None and (not isinstance(recent, list) or not all(isinstance(x, str) for x in recent)):
        raise ImportRejected("recentEvents must be a list of event ids")

    return data


def parse_payload(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportRejected(f"not valid JSON: {e}") from e
    return validate_payload(data)


def apply_import(store: Store, payload: dict[str, Any]) -> str:
    """Write a validated payload; returns the imported day's date key."""
    payload = validate_payload(payload)
    data = store.load()

    if payload.get("settings") is not None:
        data["settings"] = normalize_settings(payload["settings"])
    if payload.get("categories") is not None:
        data["categories"] = payload["categories"]
    if payload.get("events") is not None:
        data["events"] = payload["events"]
    if payload.get("recentEvents") is not None:
        data["recentEvents"] = payload["recentEvents"]

    day = payload["day"]
    date_key = str(day["dateKey"])
    data["days"][date_key] = {"dateKey": date_key, "slots": list(day["slots"])}

    store.save(data)
    logger.info("Imported day %s into %s", date_key, store.data_path)
    return date_key


def export_to_file(path: Path, payload: dict[str, Any]) -> None:
    save_json(Path(path), payload)


def import_from_file(store: Store, path: Path) -> str:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ImportRejected(f"cannot read {path}: {e}") from e
    return apply_import(store, parse_payload(text))


def default_export_name(date_key: str) -> str:
    return f"daygrid_{date_key}.json"
