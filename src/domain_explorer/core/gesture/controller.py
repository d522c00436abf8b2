"""Pointer gesture state machine: pan, pinch-zoom and tap classification.

The controller is a pure function `step(state, event) -> (state, effects)`.
Platform bindings translate native pointer events into `PointerDown`,
`PointerMove` and `PointerUp` and apply the returned effects to the view.

Mouse and touch are treated differently. A mouse commits to a drag on its
first move but still counts as a click when the release lands within a few
units of the press. Touch commits only after moving past a threshold, and a
touch tap must also be short, so that press-and-hold is not a navigation.
"""

import math
from dataclasses import dataclass, replace
from typing import Literal

from domain_explorer.config import (
    BUTTON_MAX_ZOOM,
    BUTTON_MIN_ZOOM,
    BUTTON_ZOOM_STEP,
    MAX_POINTERS,
    MOUSE_CLICK_TOLERANCE,
    PINCH_MAX_ZOOM,
    PINCH_MIN_ZOOM,
    TAP_MAX_DURATION_MS,
    TOUCH_DRAG_THRESHOLD,
)

PointerType = Literal["mouse", "touch", "pen"]
GestureMode = Literal["idle", "tracking", "pinch", "suspended"]


@dataclass(frozen=True)
class Point:
    x: float
    y: float


ORIGIN = Point(0.0, 0.0)


# --- Events ---


@dataclass(frozen=True)
class PointerDown:
    pointer_id: int
    x: float
    y: float
    pointer_type: PointerType = "mouse"
    timestamp: float = 0.0


@dataclass(frozen=True)
class PointerMove:
    pointer_id: int
    x: float
    y: float
    timestamp: float = 0.0


@dataclass(frozen=True)
class PointerUp:
    """Pointer release. Cancel and leaving the hit region end a pointer the same way."""

    pointer_id: int
    x: float
    y: float
    timestamp: float = 0.0


GestureEvent = PointerDown | PointerMove | PointerUp


# --- Effects ---


@dataclass(frozen=True)
class PanBy:
    dx: float
    dy: float


@dataclass(frozen=True)
class ZoomTo:
    zoom: float


@dataclass(frozen=True)
class TapClassified:
    """Emitted when the last pointer lifts."""

    is_tap: bool


Effect = PanBy | ZoomTo | TapClassified


@dataclass(frozen=True)
class GestureState:
    """Everything the controller remembers between events.

    `pointer_type` is the device type of the first pointer of the current
    interaction; it decides the drag and tap policy for the whole gesture.
    """

    pinch_enabled: bool = False
    pointers: tuple[tuple[int, Point], ...] = ()
    mode: GestureMode = "idle"
    drag_committed: bool = False
    pointer_type: PointerType = "touch"
    down_position: Point = ORIGIN
    down_at: float = 0.0
    last_position: Point = ORIGIN
    pinch_start_distance: float = 0.0
    pinch_start_zoom: float = 1.0
    pan: Point = ORIGIN
    zoom: float = 1.0
    last_tap: bool = False

    def position_of(self, pointer_id: int) -> Point | None:
        for tracked_id, point in self.pointers:
            if tracked_id == pointer_id:
                return point
        return None


def _distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def _with_pointer(
    pointers: tuple[tuple[int, Point], ...], pointer_id: int, point: Point
) -> tuple[tuple[int, Point], ...]:
    return tuple((pid, point if pid == pointer_id else p) for pid, p in pointers)


def _start_pinch(state: GestureState) -> GestureState:
    first, second = state.pointers[0][1], state.pointers[1][1]
    return replace(
        state,
        mode="pinch",
        drag_committed=False,
        pinch_start_distance=_distance(first, second),
        pinch_start_zoom=state.zoom,
    )


def _on_down(state: GestureState, event: PointerDown) -> tuple[GestureState, tuple[Effect, ...]]:
    if state.position_of(event.pointer_id) is not None or len(state.pointers) >= MAX_POINTERS:
        return state, ()

    point = Point(event.x, event.y)
    state = replace(state, pointers=(*state.pointers, (event.pointer_id, point)))
    count = len(state.pointers)

    if count == 1:
        return (
            replace(
                state,
                mode="tracking",
                drag_committed=False,
                pointer_type=event.pointer_type,
                down_position=point,
                down_at=event.timestamp,
                last_position=point,
            ),
            (),
        )
    if count == 2 and state.pinch_enabled:
        return _start_pinch(state), ()
    return replace(state, mode="suspended"), ()


def _on_move(state: GestureState, event: PointerMove) -> tuple[GestureState, tuple[Effect, ...]]:
    if state.position_of(event.pointer_id) is None:
        return state, ()

    point = Point(event.x, event.y)
    state = replace(state, pointers=_with_pointer(state.pointers, event.pointer_id, point))

    if state.mode == "pinch":
        if state.pinch_start_distance <= 0:
            return state, ()
        first, second = state.pointers[0][1], state.pointers[1][1]
        ratio = _distance(first, second) / state.pinch_start_distance
        zoom = _clamp(state.pinch_start_zoom * ratio, PINCH_MIN_ZOOM, PINCH_MAX_ZOOM)
        return replace(state, zoom=zoom), (ZoomTo(zoom),)

    if state.mode != "tracking":
        return state, ()

    if not state.drag_committed:
        if state.pointer_type != "mouse" and (
            _distance(state.down_position, point) <= TOUCH_DRAG_THRESHOLD
        ):
            return state, ()
        state = replace(state, drag_committed=True)

    dx = point.x - state.last_position.x
    dy = point.y - state.last_position.y
    pan = Point(state.pan.x + dx, state.pan.y + dy)
    return replace(state, pan=pan, last_position=point), (PanBy(dx, dy),)


def _on_up(state: GestureState, event: PointerUp) -> tuple[GestureState, tuple[Effect, ...]]:
    if state.position_of(event.pointer_id) is None:
        return state, ()

    remaining = tuple((pid, p) for pid, p in state.pointers if pid != event.pointer_id)
    state = replace(state, pointers=remaining, pinch_start_distance=0.0)

    if len(remaining) == 1:
        # A finger left on the glass after a pinch pans right away.
        return (
            replace(state, mode="tracking", last_position=remaining[0][1], drag_committed=True),
            (),
        )
    if len(remaining) == 2 and state.pinch_enabled:
        return _start_pinch(state), ()
    if remaining:
        return replace(state, mode="suspended"), ()

    drag_committed = state.drag_committed
    displacement = _distance(state.down_position, Point(event.x, event.y))
    if state.pointer_type == "mouse" and displacement < MOUSE_CLICK_TOLERANCE:
        drag_committed = False

    is_tap = not drag_committed
    if state.pointer_type != "mouse":
        is_tap = is_tap and event.timestamp - state.down_at < TAP_MAX_DURATION_MS

    state = replace(state, mode="idle", drag_committed=drag_committed, last_tap=is_tap)
    return state, (TapClassified(is_tap),)


def step(state: GestureState, event: GestureEvent) -> tuple[GestureState, tuple[Effect, ...]]:
    """Apply one pointer event.

    Events for pointers that are not tracked are ignored, as are presses
    beyond `MAX_POINTERS`.
    """
    if isinstance(event, PointerDown):
        return _on_down(state, event)
    if isinstance(event, PointerMove):
        return _on_move(state, event)
    return _on_up(state, event)


def request_selection(state: GestureState, timestamp: float) -> bool:
    """Whether a tap on a child at `timestamp` should navigate.

    Suppressed while a drag is committed. Touch and pen taps must also come
    within `TAP_MAX_DURATION_MS` of the press; mouse clicks are not timed.
    """
    if state.drag_committed:
        return False
    if state.pointer_type != "mouse" and timestamp - state.down_at >= TAP_MAX_DURATION_MS:
        return False
    return True


def zoom_in(state: GestureState) -> GestureState:
    return replace(state, zoom=min(state.zoom + BUTTON_ZOOM_STEP, BUTTON_MAX_ZOOM))


def zoom_out(state: GestureState) -> GestureState:
    return replace(state, zoom=max(state.zoom - BUTTON_ZOOM_STEP, BUTTON_MIN_ZOOM))


def reset_view(state: GestureState) -> GestureState:
    """Recenter and unzoom, keeping pointer tracking and settings."""
    return replace(state, pan=ORIGIN, zoom=1.0)


def set_pinch_enabled(state: GestureState, enabled: bool) -> GestureState:
    return replace(state, pinch_enabled=enabled)
