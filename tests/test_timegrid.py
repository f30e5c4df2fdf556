"""Tests for timegrid: slot/time mapping, date keys and day logs."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from daygrid import timegrid

# ---- slot <-> time ----


def test_first_slot_is_day_start():
    assert timegrid.slot_to_time(0) == "08:00"


def test_slot_four_is_nine():
    assert timegrid.slot_to_time(4) == "09:00"


def test_slot_wraps_past_midnight():
    assert timegrid.slot_to_time(64) == "00:00"
    assert timegrid.slot_to_time(95) == "07:45"


def test_slot_96_is_end_of_day():
    assert timegrid.slot_to_time(96) == "08:00"


def test_slot_out_of_range_raises():
    with pytest.raises(ValueError):
        timegrid.slot_to_time(97)
    with pytest.raises(ValueError):
        timegrid.slot_to_time(-1)


def test_time_to_slot_known_values():
    assert timegrid.time_to_slot("08:00") == 0
    assert timegrid.time_to_slot("09:00") == 4
    assert timegrid.time_to_slot("23:15") == 61
    assert timegrid.time_to_slot("07:45") == 95


def test_time_to_slot_mid_slot_rounds_down():
    assert timegrid.time_to_slot("09:14") == 4


def test_other_day_start():
    assert timegrid.slot_to_time(0, day_start_hour=0) == "00:00"
    assert timegrid.time_to_slot("06:30", day_start_hour=6) == 2


@given(st.integers(min_value=0, max_value=timegrid.TOTAL_SLOTS - 1), st.integers(min_value=0, max_value=23))
def test_slot_time_roundtrip(index, start_hour):
    hm = timegrid.slot_to_time(index, start_hour)
    assert timegrid.time_to_slot(hm, start_hour) == index


def test_hm_to_minutes_rejects_garbage():
    for bad in ("", "8", "8:60", "24:00", "ab:cd"):
        with pytest.raises(ValueError):
            timegrid.hm_to_minutes(bad)


# ---- date keys ----


def test_add_days_crosses_month_and_year():
    assert timegrid.add_days("2025-12-31", 1) == "2026-01-01"
    assert timegrid.add_days("2026-03-01", -1) == "2026-02-28"


@given(st.dates(), st.integers(min_value=-400, max_value=400))
def test_add_days_inverse(d, n):
    key = timegrid.to_date_key(d)
    try:
        shifted = timegrid.add_days(key, n)
    except OverflowError:
        return
    assert timegrid.add_days(shifted, -n) == key


def test_week_start_is_monday():
    # 2026-02-25 is a Wednesday
    assert timegrid.week_start("2026-02-25") == "2026-02-23"
    assert timegrid.week_start("2026-02-23") == "2026-02-23"
    assert timegrid.week_start("2026-03-01") == "2026-02-23"


def test_week_keys():
    keys = timegrid.week_keys("2026-02-25")
    assert keys[0] == "2026-02-23"
    assert keys[-1] == "2026-03-01"
    assert len(keys) == 7


def test_month_keys_february_leap_year():
    keys = timegrid.month_keys("2028-02-10")
    assert len(keys) == 29
    assert keys[0] == "2028-02-01"
    assert keys[-1] == "2028-02-29"


def test_month_keys_thirty_one_days():
    assert len(timegrid.month_keys("2026-01-31")) == 31


def test_trailing_keys_oldest_first():
    assert timegrid.trailing_keys("2026-03-02", 3) == ["2026-02-28", "2026-03-01", "2026-03-02"]


def test_range_keys_inclusive_and_swapped():
    assert timegrid.range_keys("2026-01-01", "2026-01-03") == ["2026-01-01", "2026-01-02", "2026-01-03"]
    assert timegrid.range_keys("2026-01-03", "2026-01-01") == ["2026-01-01", "2026-01-02", "2026-01-03"]


# ---- day logs ----


def test_new_day_is_empty():
    day = timegrid.new_day("2026-01-01")
    assert day["dateKey"] == "2026-01-01"
    assert day["slots"] == [None] * 96


def test_ensure_day_replaces_malformed():
    assert timegrid.ensure_day({"slots": [None]}, "2026-01-01") == timegrid.new_day("2026-01-01")
    assert timegrid.ensure_day(None, "2026-01-01") == timegrid.new_day("2026-01-01")


def test_ensure_day_keeps_valid():
    day = timegrid.new_day("2026-01-01")
    assert timegrid.ensure_day(day, "2026-01-01") is day


# ---- night range ----


def test_night_range_wraps_midnight():
    assert timegrid.in_night_range("23:00", "23:00", "08:00")
    assert timegrid.in_night_range("03:15", "23:00", "08:00")
    assert not timegrid.in_night_range("08:00", "23:00", "08:00")
    assert not timegrid.in_night_range("12:00", "23:00", "08:00")


def test_night_range_same_day():
    assert timegrid.in_night_range("14:00", "13:00", "15:00")
    assert not timegrid.in_night_range("15:00", "13:00", "15:00")


def test_night_range_empty_when_equal():
    assert not timegrid.in_night_range("10:00", "10:00", "10:00")
