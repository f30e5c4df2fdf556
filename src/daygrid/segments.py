"""Run-length segments over a day's slot array, and their per-row pieces."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .timegrid import SLOTS_PER_ROW


@dataclass(frozen=True)
class Segment:
    start: int
    end: int  # exclusive
    event_id: str

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class RowPiece:
    start: int
    end: int
    event_id: str
    is_start_here: bool  # left edge is the run's real start: round cap + label
    is_end_here: bool  # right edge is the run's real end: round cap
    segment: Segment

    @property
    def length(self) -> int:
        return self.end - self.start


def compress(slots: Sequence[Optional[str]], start: int = 0, stop: Optional[int] = None) -> list[Segment]:
    """Maximal same-event runs over slots[start:stop], single pass."""
    if stop is None:
        stop = len(slots)
    start = max(0, start)
    stop = min(len(slots), stop)

    out: list[Segment] = []
    run_id: Optional[str] = None
    run_start = start
    for i in range(start, stop):
        eid = slots[i] or None
        if eid == run_id:
            continue
        if run_id is not None:
            out.append(Segment(run_start, i, run_id))
        run_id = eid
        run_start = i
    if run_id is not None:
        out.append(Segment(run_start, stop, run_id))
    return out


def clip(segments: Sequence[Segment], row_start: int, row_end: int) -> list[RowPiece]:
    """Visible part of each global segment inside [row_start, row_end)."""
    pieces: list[RowPiece] = []
    for seg in segments:
        if seg.end <= row_start:
            continue
        if seg.start >= row_end:
            break
        a = max(seg.start, row_start)
        b = min(seg.end, row_end)
        pieces.append(
            RowPiece(
                start=a,
                end=b,
                event_id=seg.event_id,
                is_start_here=a == seg.start,
                is_end_here=b == seg.end,
                segment=seg,
            )
        )
    return pieces


def rows(slots: Sequence[Optional[str]], per_row: int = SLOTS_PER_ROW) -> list[list[RowPiece]]:
    segs = compress(slots)
    return [clip(segs, r, min(r + per_row, len(slots))) for r in range(0, len(slots), per_row)]
