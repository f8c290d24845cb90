"""Drag-to-pan translation between pointer pixels and series indices.

Dragging right moves the view into history (indices decrease), dragging
left moves it back towards the live edge.  A pinned range whose right edge
reaches the last sample is released so the chart resumes live tracking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .model import PinnedRange

logger = logging.getLogger(__name__)


@dataclass
class DragSession:
    """Pointer state while the button is held."""

    anchor_px: float
    last_px: float


def index_delta(pixels: float, pixels_per_index: int) -> int:
    """Whole indices covered by *pixels*, truncated toward zero."""
    steps = int(abs(pixels) // pixels_per_index)
    return -steps if pixels < 0 else steps


def shift_range(pin: PinnedRange, delta: int, max_index: int) -> PinnedRange | None:
    """Move *pin* ``delta`` indices into history (negative: towards live).

    Returns ``None`` when the edge being approached is already reached.
    Overflow past either bound is clamped onto that bound while keeping
    the width.
    """
    if delta > 0 and pin.start <= 0:
        return None
    if delta < 0 and pin.end >= max_index:
        return None

    start = pin.start - delta
    end = pin.end - delta
    if start <= 0:
        return PinnedRange(0, pin.width)
    if end > max_index:
        overflow = end - max_index
        return PinnedRange(start - overflow, max_index)
    return PinnedRange(start, end)


def step_range(current: PinnedRange, direction: int, to_edge: bool,
               max_index: int) -> PinnedRange | None:
    """One window back/forward from *current*, or straight to an edge.

    A step that would run past a boundary becomes a jump to that edge.
    ``None`` means live mode.
    """
    width = current.width
    if not to_edge:
        if direction > 0 and max_index - current.end <= width:
            to_edge = True
        elif direction < 0 and current.start <= width:
            to_edge = True

    if to_edge:
        if direction > 0:
            return None
        return PinnedRange(0, width)

    return PinnedRange(current.start + direction * width,
                       current.end + direction * width)


def validate_pin(pin: PinnedRange | None, length: int) -> PinnedRange | None:
    """*pin* if it indexes a series of *length* samples, else None (live)."""
    if pin is None or pin.is_valid(length):
        return pin
    logger.warning("discarding pinned range %s for %d samples", tuple(pin), length)
    return None


def nav_controls(current: PinnedRange | None, pan_allowed: bool,
                 max_index: int) -> tuple[bool, bool]:
    """(back_allowed, forward_allowed) for the navigation controls."""
    if not pan_allowed or current is None:
        return False, False
    return current.start > 0, current.end < max_index


def reanchor(pin: PinnedRange, anchor_ts: float, timestamps: np.ndarray,
             later_equal: int = 0) -> PinnedRange:
    """Re-index *pin* after the series head moved.

    The new start is the sample whose timestamp matches *anchor_ts* (the
    timestamp previously at ``pin.start``).  *later_equal* counts the
    samples after the anchor sharing its timestamp; the head only loses
    samples, so that count picks the same sample among duplicates.  An
    evicted anchor clamps the start to 0; the width is preserved while it
    fits.
    """
    max_index = len(timestamps) - 1
    last_equal = int(np.searchsorted(timestamps, anchor_ts, side="right")) - 1
    start = max(0, last_equal - later_equal)
    end = start + pin.width
    if end > max_index:
        end = max_index
        start = max(0, end - pin.width)
    return PinnedRange(start, end)


class PanController:
    """Owns the pinned range and the drag session.

    States: Idle (``drag is None``) and Dragging.
    """

    def __init__(self) -> None:
        self.pin: PinnedRange | None = None
        self.drag: DragSession | None = None

    @property
    def dragging(self) -> bool:
        return self.drag is not None

    @property
    def live(self) -> bool:
        return self.pin is None

    def current(self, live_range: PinnedRange | None) -> PinnedRange | None:
        """The pinned range, or the live one when not pinned."""
        return self.pin if self.pin is not None else live_range

    def press(self, x: float, live_range: PinnedRange | None,
              pan_allowed: bool) -> bool:
        """Pointer down.  Freezes the live view; returns True if a drag started."""
        assert self.drag is None, "pointer down while already dragging"
        if not pan_allowed or live_range is None:
            return False
        self.drag = DragSession(anchor_px=x, last_px=x)
        if self.pin is None:
            self.pin = live_range
        return True

    def move(self, x: float, pixels_per_index: int, max_index: int) -> bool:
        """Pointer move while dragging.  Returns True if the pin changed."""
        drag = self.drag
        if drag is None or self.pin is None:
            return False

        # Moving back towards the anchor re-anchors instead of shifting
        if abs(drag.anchor_px - x) < abs(drag.anchor_px - drag.last_px):
            drag.anchor_px = x
            drag.last_px = x
            return False

        drag.last_px = x
        delta = index_delta(x - drag.anchor_px, pixels_per_index)
        if delta == 0:
            return False

        drag.anchor_px += delta * pixels_per_index
        shifted = shift_range(self.pin, delta, max_index)
        if shifted is None or shifted == self.pin:
            return False
        logger.debug("pan %+d -> %s", -delta, tuple(shifted))
        self.pin = shifted
        return True

    def release(self, max_index: int) -> bool:
        """Pointer up.  Returns True if live mode was resumed."""
        self.drag = None
        return self._rejoin_live(max_index)

    def leave(self, max_index: int) -> bool:
        """Pointer left the plot: abandon the drag, keep what was applied."""
        if self.drag is None:
            return False
        self.drag = None
        return self._rejoin_live(max_index)

    def step(self, direction: int, to_edge: bool,
             live_range: PinnedRange | None, max_index: int) -> None:
        current = self.current(live_range)
        if current is None:
            return
        self.pin = step_range(current, direction, to_edge, max_index)
        self._rejoin_live(max_index)

    def reset(self) -> None:
        """Back to live mode (e.g. after a window change)."""
        self.pin = None

    def controls(self, live_range: PinnedRange | None, pan_allowed: bool,
                 max_index: int) -> tuple[bool, bool]:
        return nav_controls(self.current(live_range), pan_allowed, max_index)

    def _rejoin_live(self, max_index: int) -> bool:
        if self.pin is not None and self.pin.end >= max_index:
            self.pin = None
            return True
        return False
