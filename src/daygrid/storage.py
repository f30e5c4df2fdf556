from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Optional

from . import timegrid
from .catalog import default_categories, default_events, default_recent
from .settings import normalize_settings

logger = logging.getLogger(__name__)


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def load_json(path: Path) -> dict[str, Any]:
    """
    Safe load:
    - creates parent dirs
    - if missing/empty -> writes {}
    - if corrupt -> backs up raw text then resets to {}
    Always returns a dict.
    """
    path = Path(path)
    _ensure_parent(path)

    if not path.exists():
        save_json(path, {})
        return {}

    txt = path.read_text(encoding="utf-8").strip()
    if not txt:
        save_json(path, {})
        return {}

    try:
        data = json.loads(txt)
    except json.JSONDecodeError:
        backup = path.with_suffix(f".corrupt-{int(time.time())}.json")
        backup.write_text(txt, encoding="utf-8")
        logger.warning("Corrupt data file %s, backed up to %s", path, backup)
        save_json(path, {})
        return {}

    if not isinstance(data, dict):
        logger.warning("Data file %s does not hold a JSON object, ignoring it", path)
        return {}
    return data


def save_json(path: Path, data: Any) -> None:
    """
    Atomic-ish save:
    - write to temp file in same directory
    - flush + fsync
    - os.replace to target
    - chmod 0600 best-effort
    """
    path = Path(path)
    _ensure_parent(path)

    tmp = path.with_name(path.name + ".tmp")

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
    ) + "\n"

    with open(tmp, "w", encoding="utf-8") as f:
        f.write(payload)
        f.flush()
        os.fsync(f.fileno())

    os.replace(tmp, path)

    try:
        os.chmod(path, 0o600)
    except OSError:
        logger.debug("Could not chmod %s", path, exc_info=True)


# -------------------------
# Key-value store over one JSON document
# -------------------------


class Store:
    """
    Keys: settings, categories, events, recentEvents, days[dateKey].

    Every method reads the file fresh; nothing is cached between calls.
    """

    def __init__(self, data_path: Path):
        self.data_path = Path(data_path)

    def load(self) -> dict[str, Any]:
        d = load_json(self.data_path)
        if not isinstance(d.get("days"), dict):
            d["days"] = {}
        return d

    def save(self, data: dict[str, Any]) -> None:
        save_json(self.data_path, data)

    # ---- settings ----

    def load_settings(self) -> dict[str, Any]:
        data = self.load()
        raw = data.get("settings")
        settings = normalize_settings(raw)
        if raw != settings:
            data["settings"] = settings
            self.save(data)
        return settings

    def save_settings(self, settings: dict[str, Any]) -> None:
        data = self.load()
        data["settings"] = normalize_settings(settings)
        self.save(data)

    # ---- categories / events / recent ----

    def load_meta(self) -> tuple[list[dict[str, Any]], list[dict[str, Any]], list[str]]:
        data = self.load()
        changed = False
        defaults = {
            "categories": default_categories,
            "events": default_events,
            "recentEvents": default_recent,
        }
        for key, make in defaults.items():
            if not isinstance(data.get(key), list):
                data[key] = make()
                changed = True
        if changed:
            self.save(data)
        return data["categories"], data["events"], data["recentEvents"]

    def save_meta(self, categories: list[dict[str, Any]], events: list[dict[str, Any]], recent: list[str]) -> None:
        data = self.load()
        data["categories"] = categories
        data["events"] = events
        data["recentEvents"] = recent
        self.save(data)

    # ---- days ----

    def peek_day(self, date_key: str) -> Optional[dict[str, Any]]:
        """Stored log for date_key if it is well-formed, else None. Never writes."""
        raw = self.load()["days"].get(date_key)
        return raw if timegrid.is_valid_day(raw) else None

    def load_day(self, date_key: str) -> dict[str, Any]:
        """Stored log, or a fresh empty one (persisted) when missing or malformed."""
        data = self.load()
        raw = data["days"].get(date_key)
        day = timegrid.ensure_day(raw, date_key)
        if day is raw:
            return day
        if raw is not None:
            logger.debug("Replacing malformed day log %s", date_key)
        data["days"][date_key] = day
        self.save(data)
        return day

    def save_day(self, day: dict[str, Any]) -> None:
        data = self.load()
        data["days"][day["dateKey"]] = day
        self.save(data)

    def day_loader(self) -> Callable[[str], Optional[dict[str, Any]]]:
        """Read-only day lookup over a single snapshot of the file."""
        days = self.load()["days"]

        def load(date_key: str) -> Optional[dict[str, Any]]:
            raw = days.get(date_key)
            return raw if timegrid.is_valid_day(raw) else None

        return load
