"""Categories and events: plain JSON-shaped dicts plus lookup helpers."""

from __future__ import annotations

import secrets
import time
from typing import Any, Iterable, Optional

DELETED_LABEL = "(deleted)"
UNCATEGORIZED = "Uncategorized"

Category = dict[str, Any]
Event = dict[str, Any]


def new_id(prefix: str) -> str:
    return f"{prefix}_{secrets.token_hex(4)}_{int(time.time() * 1000):x}"


def default_categories() -> list[Category]:
    return [
        {"id": "cat_life", "name": "Life"},
        {"id": "cat_study", "name": "Study"},
        {"id": "cat_work", "name": "Work"},
    ]


def default_events() -> list[Event]:
    return [
        {"id": "evt_life_sleep", "categoryId": "cat_life", "name": "Sleep", "fixed": True},
        {"id": "evt_life_commute", "categoryId": "cat_life", "name": "Commute", "fixed": True},
        {"id": "evt_life_eat", "categoryId": "cat_life", "name": "Meals", "fixed": True},
        {"id": "evt_study_english", "categoryId": "cat_study", "name": "English class", "fixed": True},
        {"id": "evt_work_only", "categoryId": "cat_work", "fixed": False},
    ]


def default_recent() -> list[str]:
    return ["evt_life_sleep", "evt_life_eat", "evt_life_commute", "evt_study_english", "evt_work_only"]


def _clean_name(name: object) -> str:
    return str(name or "").strip()


def is_category_only(event: Event) -> bool:
    return not _clean_name(event.get("name"))


# -------------------------
# Mutations (return new lists)
# -------------------------

def add_category(categories: list[Category], name: str) -> list[Category]:
    trimmed = _clean_name(name)
    if not trimmed:
        return list(categories)
    return [*categories, {"id": new_id("cat"), "name": trimmed}]


def add_event(
    events: list[Event],
    category_id: str,
    name: Optional[str] = None,
    fixed: bool = False,
) -> list[Event]:
    evt: Event = {"id": new_id("evt"), "categoryId": category_id, "fixed": bool(fixed)}
    trimmed = _clean_name(name)
    if trimmed:
        evt["name"] = trimmed
    return [*events, evt]


def delete_category(categories: list[Category], category_id: str) -> list[Category]:
    # events keep pointing at it and read as uncategorized
    return [c for c in categories if c.get("id") != category_id]


def delete_event(
    events: list[Event],
    recent: list[str],
    day: Optional[dict[str, Any]],
    event_id: str,
) -> tuple[list[Event], list[str], Optional[dict[str, Any]]]:
    """
    Remove an event, drop it from the recent list and clear it out of the
    given (currently loaded) day. Other days are left as they are.
    """
    events = [e for e in events if e.get("id") != event_id]
    recent = [r for r in recent if r != event_id]
    if day is not None and event_id in day.get("slots", []):
        day = {**day, "slots": [None if s == event_id else s for s in day["slots"]]}
    return events, recent, day


def category_only_event(events: list[Event], category_id: str) -> tuple[list[Event], str]:
    """Existing unnamed event for the category, or a new one appended."""
    for e in events:
        if e.get("categoryId") == category_id and is_category_only(e):
            return list(events), str(e["id"])
    events = add_event(events, category_id)
    return events, str(events[-1]["id"])


# -------------------------
# Lookups
# -------------------------

class Catalog:
    """Id lookups over one snapshot of categories/events."""

    def __init__(self, categories: Iterable[Category], events: Iterable[Event]):
        self.categories = {str(c.get("id")): c for c in categories if isinstance(c, dict)}
        self.events = {str(e.get("id")): e for e in events if isinstance(e, dict)}

    def event(self, event_id: str) -> Optional[Event]:
        return self.events.get(event_id)

    def category(self, category_id: str) -> Optional[Category]:
        return self.categories.get(category_id)

    def category_of(self, event_id: str) -> Optional[str]:
        evt = self.events.get(event_id)
        if evt is None:
            return None
        return str(evt.get("categoryId"))

    def category_name(self, category_id: str) -> str:
        cat = self.categories.get(category_id)
        if cat is None:
            return UNCATEGORIZED
        return _clean_name(cat.get("name")) or UNCATEGORIZED

    def label(self, event_id: str) -> str:
        evt = self.events.get(event_id)
        if evt is None:
            return DELETED_LABEL
        cat_name = self.category_name(str(evt.get("categoryId")))
        name = _clean_name(evt.get("name"))
        return f"{cat_name}/{name}" if name else cat_name


def event_label(event_id: str, events: Iterable[Event], categories: Iterable[Category]) -> str:
    return Catalog(categories, events).label(event_id)
