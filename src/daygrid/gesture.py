"""
Pointer gesture recognizer for the slot grid.

One interaction at a time:

    IDLE -> PENDING -> HORIZONTAL_DRAG | SCROLL_CANCELLED -> IDLE

A press selects the pressed slot right away (tap-select). Motion is measured
from the press point: clearly vertical motion hands the gesture to the
enclosing scroll surface, clearly horizontal motion captures the pointer and
range-selects from the anchor to the slot under the pointer. Release or
cancel always returns to IDLE and keeps the last selection.

`step` is a pure transition function; `GestureRecognizer` wraps it for UI
callbacks.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Hashable, Optional, Union

from .timegrid import DAY_START_HOUR, SLOT_MINUTES, TOTAL_SLOTS, slot_to_time

DRAG_THRESHOLD_PX = 6.0
AXIS_LOCK_RATIO = 1.2


class GestureState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    HORIZONTAL_DRAG = "horizontal_drag"
    SCROLL_CANCELLED = "scroll_cancelled"


class Effect(Enum):
    NONE = "none"
    SELECT = "select"  # selection changed
    CAPTURE = "capture"  # grid takes the pointer exclusively
    RELEASE_TO_SCROLL = "release_to_scroll"  # let the scroll surface have it
    END = "end"


@dataclass(frozen=True)
class Press:
    pointer_id: Hashable
    slot: int
    x: float
    y: float


@dataclass(frozen=True)
class Move:
    pointer_id: Hashable
    slot: Optional[int]  # None when not over a cell
    x: float
    y: float


@dataclass(frozen=True)
class Release:
    pointer_id: Hashable


@dataclass(frozen=True)
class Cancel:
    pointer_id: Hashable


PointerEvent = Union[Press, Move, Release, Cancel]


@dataclass(frozen=True)
class Gesture:
    state: GestureState = GestureState.IDLE
    pointer_id: Optional[Hashable] = None
    anchor: Optional[int] = None
    origin_x: float = 0.0
    origin_y: float = 0.0
    selection: frozenset[int] = field(default_factory=frozenset)


def slot_range(a: int, b: int) -> frozenset[int]:
    lo, hi = min(a, b), max(a, b)
    return frozenset(range(lo, hi + 1))


def _valid_slot(slot: Optional[int]) -> bool:
    return isinstance(slot, int) and 0 <= slot < TOTAL_SLOTS


def classify(dx: float, dy: float) -> GestureState:
    """Axis-lock test for motion relative to the press point."""
    adx, ady = abs(dx), abs(dy)
    if ady >= DRAG_THRESHOLD_PX and ady >= AXIS_LOCK_RATIO * adx:
        return GestureState.SCROLL_CANCELLED
    if adx >= DRAG_THRESHOLD_PX and adx >= AXIS_LOCK_RATIO * ady:
        return GestureState.HORIZONTAL_DRAG
    return GestureState.PENDING


def _press(g: Gesture, ev: Press) -> tuple[Gesture, Effect]:
    if not _valid_slot(ev.slot):
        return g, Effect.NONE
    if g.state is not GestureState.IDLE and ev.pointer_id != g.pointer_id:
        # another pointer is already being tracked
        return g, Effect.NONE
    started = Gesture(
        state=GestureState.PENDING,
        pointer_id=ev.pointer_id,
        anchor=ev.slot,
        origin_x=ev.x,
        origin_y=ev.y,
        selection=frozenset({ev.slot}),
    )
    return started, Effect.SELECT


def _move(g: Gesture, ev: Move) -> tuple[Gesture, Effect]:
    if g.state is GestureState.PENDING:
        nxt = classify(ev.x - g.origin_x, ev.y - g.origin_y)
        if nxt is GestureState.SCROLL_CANCELLED:
            return replace(g, state=nxt), Effect.RELEASE_TO_SCROLL
        if nxt is GestureState.HORIZONTAL_DRAG:
            sel = slot_range(g.anchor, ev.slot) if _valid_slot(ev.slot) else g.selection
            return replace(g, state=nxt, selection=sel), Effect.CAPTURE
        return g, Effect.NONE

    if g.state is GestureState.HORIZONTAL_DRAG:
        if not _valid_slot(ev.slot):
            return g, Effect.NONE
        sel = slot_range(g.anchor, ev.slot)
        if sel == g.selection:
            return g, Effect.NONE
        return replace(g, selection=sel), Effect.SELECT

    return g, Effect.NONE


def step(g: Gesture, ev: PointerEvent) -> tuple[Gesture, Effect]:
    """Pure transition: (gesture, pointer event) -> (gesture, effect)."""
    if isinstance(ev, Press):
        return _press(g, ev)

    if g.state is GestureState.IDLE or ev.pointer_id != g.pointer_id:
        return g, Effect.NONE

    if isinstance(ev, Move):
        return _move(g, ev)

    # Release / Cancel: tear down, keep the selection for the caller
    return Gesture(selection=g.selection), Effect.END


def clear_selection(g: Gesture) -> Gesture:
    return replace(g, selection=frozenset())


class GestureRecognizer:
    """Mutable holder around `step` for event-callback code."""

    def __init__(self) -> None:
        self.gesture = Gesture()

    @property
    def state(self) -> GestureState:
        return self.gesture.state

    @property
    def selection(self) -> frozenset[int]:
        return self.gesture.selection

    def feed(self, ev: PointerEvent) -> Effect:
        self.gesture, effect = step(self.gesture, ev)
        return effect

    def press(self, pointer_id: Hashable, slot: int, x: float, y: float) -> Effect:
        return self.feed(Press(pointer_id, slot, x, y))

    def move(self, pointer_id: Hashable, slot: Optional[int], x: float, y: float) -> Effect:
        return self.feed(Move(pointer_id, slot, x, y))

    def release(self, pointer_id: Hashable) -> Effect:
        return self.feed(Release(pointer_id))

    def cancel(self, pointer_id: Hashable) -> Effect:
        return self.feed(Cancel(pointer_id))

    def clear(self) -> None:
        self.gesture = clear_selection(self.gesture)


@dataclass(frozen=True)
class SelectionInfo:
    start: int
    end: int  # exclusive
    minutes: int
    start_time: str
    end_time: str


def selection_info(selection, day_start_hour: int = DAY_START_HOUR) -> Optional[SelectionInfo]:
    if not selection:
        return None
    ordered = sorted(selection)
    start, end = ordered[0], ordered[-1] + 1
    return SelectionInfo(
        start=start,
        end=end,
        minutes=len(ordered) * SLOT_MINUTES,
        start_time=slot_to_time(start, day_start_hour),
        end_time=slot_to_time(end, day_start_hour),
    )
