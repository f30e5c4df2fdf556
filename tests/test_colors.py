"""Tests for colors: stable per-category hues with per-event variation."""

from __future__ import annotations

import colorsys

from hypothesis import given
from hypothesis import strategies as st

from daygrid.colors import HUE_BAND, category_hue, color_for, fnv1a_32, hue_distance, unit_hash


def _hls(hex_color: str) -> tuple[float, float, float]:
    r, g, b = (int(hex_color[i : i + 2], 16) / 255 for i in (1, 3, 5))
    return colorsys.rgb_to_hls(r, g, b)


# ---- hashing ----


def test_fnv1a_known_values():
    assert fnv1a_32("") == 0x811C9DC5
    assert fnv1a_32("a") == 0xE40C292C


@given(st.text(max_size=40))
def test_unit_hash_in_range(s):
    assert 0.0 <= unit_hash(s) < 1.0


# ---- color_for ----


def test_same_inputs_same_colors():
    assert color_for("catWork", "evt1") == color_for("catWork", "evt1")


def test_hex_format():
    sw = color_for("catWork", "evt1")
    for c in (sw.fill, sw.accent):
        assert c.startswith("#") and len(c) == 7
        int(c[1:], 16)


def test_events_of_one_category_share_a_band_but_differ():
    a = color_for("catWork", "evt1")
    b = color_for("catWork", "evt2")
    base = category_hue("catWork")
    assert hue_distance(a.hue, base) <= HUE_BAND
    assert hue_distance(b.hue, base) <= HUE_BAND
    assert (a.hue, a.tier) != (b.hue, b.tier)
    assert a.fill != b.fill


@given(st.text(min_size=1, max_size=12), st.text(min_size=1, max_size=12))
def test_event_hue_stays_in_category_band(category_id, event_id):
    sw = color_for(category_id, event_id)
    assert hue_distance(sw.hue, category_hue(category_id)) <= HUE_BAND


def test_category_only_uses_base_hue():
    sw = color_for("catWork")
    assert sw.hue == category_hue("catWork")
    assert sw.tier == 0


def test_dark_mode_keeps_hue():
    light = color_for("catWork", "evt1", dark=False)
    dark = color_for("catWork", "evt1", dark=True)
    assert light.hue == dark.hue
    assert light.tier == dark.tier
    assert light.fill != dark.fill
    # dark fills are darker than light fills
    assert _hls(dark.fill)[1] < _hls(light.fill)[1]


def test_hue_distance_wraps():
    assert hue_distance(350, 10) == 20
    assert hue_distance(10, 350) == 20
    assert hue_distance(0, 180) == 180
