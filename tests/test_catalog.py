"""Tests for catalog helpers and labels."""

from __future__ import annotations

from daygrid import timegrid
from daygrid.catalog import (
    DELETED_LABEL,
    UNCATEGORIZED,
    Catalog,
    add_category,
    add_event,
    category_only_event,
    default_categories,
    default_events,
    default_recent,
    delete_category,
    delete_event,
    event_label,
    is_category_only,
)


def test_defaults_are_consistent():
    cat_ids = {c["id"] for c in default_categories()}
    evt_ids = {e["id"] for e in default_events()}
    assert all(e["categoryId"] in cat_ids for e in default_events())
    assert set(default_recent()) <= evt_ids


def test_add_category_trims_and_ignores_blank():
    cats = add_category([], "  Health ")
    assert cats[0]["name"] == "Health"
    assert add_category(cats, "   ") == cats


def test_add_event_named_and_unnamed():
    events = add_event([], "c1", "Run", fixed=True)
    events = add_event(events, "c1")
    assert events[0]["name"] == "Run" and events[0]["fixed"] is True
    assert is_category_only(events[1])
    assert events[0]["id"] != events[1]["id"]


def test_category_only_event_reuses_existing():
    events, first = category_only_event([], "c1")
    events, second = category_only_event(events, "c1")
    assert first == second
    assert len(events) == 1


def test_delete_category_keeps_events():
    cats = [{"id": "c1", "name": "Work"}]
    events = [{"id": "e1", "categoryId": "c1", "name": "Email"}]
    cats = delete_category(cats, "c1")
    assert cats == []
    assert Catalog(cats, events).label("e1") == f"{UNCATEGORIZED}/Email"


def test_delete_event_clears_only_given_day():
    events = [{"id": "e1", "categoryId": "c1"}, {"id": "e2", "categoryId": "c1"}]
    day = timegrid.new_day("2026-02-25")
    day["slots"][0] = "e1"
    day["slots"][1] = "e2"
    events, recent, new_day = delete_event(events, ["e1", "e2"], day, "e1")
    assert [e["id"] for e in events] == ["e2"]
    assert recent == ["e2"]
    assert new_day["slots"][:2] == [None, "e2"]
    assert day["slots"][0] == "e1"


def test_labels():
    cats = [{"id": "c1", "name": "Work"}]
    events = [{"id": "e1", "categoryId": "c1", "name": "Email"}, {"id": "e2", "categoryId": "c1"}]
    catalog = Catalog(cats, events)
    assert catalog.label("e1") == "Work/Email"
    assert catalog.label("e2") == "Work"
    assert catalog.label("nope") == DELETED_LABEL
    assert event_label("e1", events, cats) == "Work/Email"
    assert catalog.category_of("e1") == "c1"
    assert catalog.category_of("nope") is None
