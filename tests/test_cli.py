"""Tests for the daygrid command line, run against a temporary data file."""

from __future__ import annotations

import argparse
import json

import pytest

from daygrid._util import _fmt_minutes, _sparkline
from daygrid.cli import _slot_range, main

DAY = "2026-02-25"


@pytest.fixture()
def run(tmp_path, capsys):
    data = tmp_path / "data.json"

    def _run(*argv: str) -> str:
        main(["--data", str(data), *argv])
        return capsys.readouterr().out

    _run.data = data
    return _run


def _slots(run, date_key: str = DAY) -> list:
    return json.loads(run.data.read_text())["days"][date_key]["slots"]


# ---- helpers ----


def _ns(start, end):
    return argparse.Namespace(start=start, end=end)


def test_slot_range_exclusive_end():
    assert _slot_range(_ns("9am", "10am"), 8) == [4, 5, 6, 7]


def test_slot_range_to_day_start_means_end_of_day():
    assert _slot_range(_ns("7am", "8am"), 8) == [92, 93, 94, 95]


def test_slot_range_reversed_raises():
    with pytest.raises(SystemExit) as excinfo:
        _slot_range(_ns("10am", "9am"), 8)
    assert "starting at 08:00" in str(excinfo.value)
    assert "08:00 to 08:00" not in str(excinfo.value)


def test_slot_range_bad_time_raises():
    with pytest.raises(SystemExit):
        _slot_range(_ns("soon", "9am"), 8)


def test_fmt_minutes():
    assert _fmt_minutes(45) == "45m"
    assert _fmt_minutes(120) == "2h"
    assert _fmt_minutes(90) == "1h 30m"


def test_sparkline():
    assert _sparkline([]) == ""
    assert _sparkline([0.0, 10.0], vmin=0.0) == "▁█"


# ---- commands ----


def test_init_and_where(run):
    assert "Initialized" in run("init")
    assert str(run.data.resolve()) in run("where")
    assert "--data" in run("where")


def test_tag_and_show(run):
    out = run("tag", "--from", "9am", "--to", "10:30", "--event", "evt_life_eat", "--date", DAY)
    assert "09:00–10:30" in out
    assert "Life/Meals" in out
    assert _slots(run)[4:10] == ["evt_life_eat"] * 6

    shown = run("show", "--date", DAY)
    assert "Life/Meals · 90m" in shown


def test_tag_category_only(run):
    run("tag", "--from", "9am", "--to", "9:15", "--category", "cat_work", "--date", DAY)
    events = json.loads(run.data.read_text())["events"]
    only = [e for e in events if e["categoryId"] == "cat_work" and not e.get("name")]
    assert len(only) == 1
    assert _slots(run)[4] == only[0]["id"]


def test_tag_unknown_event_rejected(run):
    with pytest.raises(SystemExit):
        run("tag", "--from", "9am", "--to", "10am", "--event", "nope", "--date", DAY)


def test_clear(run):
    run("tag", "--from", "9am", "--to", "10am", "--event", "evt_life_eat", "--date", DAY)
    run("clear", "--from", "9:30", "--to", "10am", "--date", DAY)
    assert _slots(run)[4:8] == ["evt_life_eat", "evt_life_eat", None, None]


def test_fill_sleep_and_copy_fixed(run):
    run("fill-sleep", "--date", DAY)
    assert _slots(run)[60:96] == ["evt_life_sleep"] * 36

    out = run("copy-fixed", "--date", "2026-02-26")
    assert "Copied 36" in out
    assert _slots(run, "2026-02-26")[60] == "evt_life_sleep"


def test_stats_overview(run):
    run("tag", "--from", "8am", "--to", "9am", "--event", "evt_life_sleep", "--date", DAY)
    run("tag", "--from", "10am", "--to", "10:15", "--event", "evt_study_english", "--date", DAY)
    out = run("stats", "--date", DAY)
    assert "Overview for 2026-02-25" in out
    assert "Life/Sleep: 1h (80%)" in out
    assert "Study/English class: 15m (20%)" in out


def test_stats_by_category_week(run):
    run("tag", "--from", "8am", "--to", "9am", "--event", "evt_life_sleep", "--date", DAY)
    out = run("stats", "week", "--date", DAY, "--by", "category")
    assert "Week 2026-02-23 – 2026-03-01" in out
    assert "- Life: 1h (100%)" in out


def test_stats_top_folds_rest_into_other(run):
    run("tag", "--from", "8am", "--to", "9am", "--event", "evt_life_sleep", "--date", DAY)
    run("tag", "--from", "10am", "--to", "10:15", "--event", "evt_study_english", "--date", DAY)
    run("tag", "--from", "11am", "--to", "11:15", "--event", "evt_life_eat", "--date", DAY)
    out = run("stats", "day", "--date", DAY, "--top", "1")
    assert "- Life/Sleep: 1h (67%)" in out
    assert "- Other: 30m (33%)" in out
    assert "English" not in out


def test_event_rm_requires_yes(run):
    with pytest.raises(SystemExit):
        run("event", "rm", "evt_life_eat")


def test_event_rm_clears_that_day(run):
    run("tag", "--from", "9am", "--to", "10am", "--event", "evt_life_eat", "--date", DAY)
    run("tag", "--from", "9am", "--to", "10am", "--event", "evt_life_eat", "--date", "2026-02-24")
    run("event", "rm", "evt_life_eat", "--date", DAY, "--yes")
    assert _slots(run)[4] is None
    assert _slots(run, "2026-02-24")[4] == "evt_life_eat"
    assert "(deleted)" in run("show", "--date", "2026-02-24")


def test_cat_add_and_list(run):
    run("cat", "add", "--name", "Health")
    assert "Health" in run("cat", "list")


def test_settings_update(run):
    out = run("settings", "--night-start", "10:30pm", "--theme", "dark")
    assert "nightStart: 22:30" in out
    assert "themeMode: dark" in out


def test_export_then_import(run, tmp_path):
    run("tag", "--from", "9am", "--to", "10am", "--event", "evt_life_eat", "--date", DAY)
    out_file = tmp_path / "export.json"
    run("export", "--date", DAY, "--out", str(out_file))

    payload = json.loads(out_file.read_text())
    payload["day"]["dateKey"] = "2026-03-01"
    out_file.write_text(json.dumps(payload))
    assert "Imported 2026-03-01" in run("import", str(out_file))
    assert _slots(run, "2026-03-01")[4] == "evt_life_eat"


def test_import_rejects_bad_file(run, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text('{"day": {"dateKey": "2026-01-01", "slots": []}}')
    with pytest.raises(SystemExit):
        run("import", str(bad))
