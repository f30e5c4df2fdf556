"""Tests for segments.compress / clip / rows."""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from daygrid.segments import Segment, clip, compress, rows

slot_values = st.lists(st.sampled_from([None, "", "a", "b", "c"]), min_size=0, max_size=96)


# ---- compress ----


def test_compress_empty_day():
    assert compress([None] * 96) == []


def test_compress_runs():
    slots = ["a", "a", None, "b", "b", "b", "a"]
    assert compress(slots) == [Segment(0, 2, "a"), Segment(3, 6, "b"), Segment(6, 7, "a")]


def test_compress_treats_blank_as_empty():
    assert compress(["", "a", ""]) == [Segment(1, 2, "a")]


def test_compress_run_to_end():
    assert compress([None, "x", "x"]) == [Segment(1, 3, "x")]


def test_compress_subrange():
    slots = ["a"] * 10
    assert compress(slots, 2, 5) == [Segment(2, 5, "a")]


@given(slot_values)
def test_compress_covers_every_tagged_slot(slots):
    segs = compress(slots)
    covered = {i: s.event_id for s in segs for i in range(s.start, s.end)}
    expected = {i: v for i, v in enumerate(slots) if v}
    assert covered == expected


@given(slot_values)
def test_compress_segments_are_ordered_disjoint_and_maximal(slots):
    segs = compress(slots)
    for s in segs:
        assert s.length > 0
    for a, b in zip(segs, segs[1:]):
        assert a.end <= b.start
        if a.end == b.start:
            assert a.event_id != b.event_id


# ---- clip ----


def test_clip_run_across_rows():
    seg = Segment(6, 11, "a")
    first = clip([seg], 0, 8)
    second = clip([seg], 8, 16)
    assert len(first) == len(second) == 1
    assert (first[0].start, first[0].end) == (6, 8)
    assert first[0].is_start_here and not first[0].is_end_here
    assert (second[0].start, second[0].end) == (8, 11)
    assert not second[0].is_start_here and second[0].is_end_here
    assert first[0].segment is seg


def test_clip_whole_row_run_is_neither_start_nor_end():
    piece = clip([Segment(0, 24, "a")], 8, 16)[0]
    assert (piece.start, piece.end) == (8, 16)
    assert not piece.is_start_here and not piece.is_end_here


def test_clip_skips_segments_outside_row():
    segs = [Segment(0, 2, "a"), Segment(20, 22, "b")]
    assert clip(segs, 8, 16) == []


# ---- rows ----


def test_rows_shape():
    out = rows([None] * 96)
    assert len(out) == 12
    assert all(r == [] for r in out)


@given(slot_values)
def test_rows_pieces_reassemble_the_day(slots):
    flat = {}
    for pieces in rows(slots):
        for p in pieces:
            for i in range(p.start, p.end):
                flat[i] = p.event_id
    assert flat == {i: v for i, v in enumerate(slots) if v}


def test_label_appears_once_per_run():
    slots = [None] * 96
    for i in range(5, 21):
        slots[i] = "a"
    starts = [p for r in rows(slots) for p in r if p.is_start_here]
    ends = [p for r in rows(slots) for p in r if p.is_end_here]
    assert len(starts) == 1 and starts[0].start == 5
    assert len(ends) == 1 and ends[0].end == 21
    assert starts[0].segment.length == 16


@given(
    st.integers(min_value=0, max_value=95),
    st.integers(min_value=1, max_value=96),
    st.integers(min_value=0, max_value=95),
    st.integers(min_value=1, max_value=96),
)
def test_clip_flags_match_global_edges(seg_start, seg_len, row_start, row_len):
    seg = Segment(seg_start, min(96, seg_start + seg_len), "a")
    row_end = min(96, row_start + row_len)
    pieces = clip([seg], row_start, row_end)

    overlaps = seg.start < row_end and seg.end > row_start
    assert len(pieces) == (1 if overlaps else 0)
    for p in pieces:
        assert row_start <= p.start < p.end <= row_end
        assert p.is_start_here == (p.start == seg.start)
        assert p.is_end_here == (p.end == seg.end)
        assert p.segment is seg
