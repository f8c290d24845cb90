"""Cursor tracking: pointer x to the nearest plotted point, and tooltip content."""

from __future__ import annotations

import bisect
import time
from dataclasses import dataclass, field
from typing import Callable, Mapping, Sequence

from .model import ChartDimensions
from .stack import PlotPoint
from .ticks import format_clock
from .timers import Debouncer

CURSOR_DELAY = 0.1  # seconds


@dataclass
class TooltipValue:
    key: str
    label: str
    value: float


@dataclass
class Tooltip:
    x: float
    timestamp: float
    time_label: str
    values: list[TooltipValue] = field(default_factory=list)
    anchor_right: bool = False  # place the box to the left of the cursor line


def nearest_point(points: Sequence[PlotPoint], x: float) -> PlotPoint | None:
    """Point whose x is closest to *x*; ties go to the later point.

    *points* must be ordered by x.  Returns None outside the plotted data.
    """
    if not points or x < points[0].x or x > points[-1].x:
        return None
    i = bisect.bisect_left([p.x for p in points], x)
    point = points[i]
    if point.x == x or i == 0:
        return point
    prev = points[i - 1]
    if point.x - x <= x - prev.x:
        return point
    return prev


def build_tooltip(point: PlotPoint, metrics: Sequence[str],
                  dims: ChartDimensions,
                  labels: Mapping[str, str] | None = None) -> Tooltip:
    values = [
        TooltipValue(key, labels.get(key, key) if labels else key, point.values[key])
        for key in metrics if key in point.values
    ]
    return Tooltip(point.x, point.timestamp, format_clock(point.timestamp), values,
                   anchor_right=point.x > dims.plot_width / 2)


class CursorTracker:
    """Debounced pointer position in plot space.

    ``x`` is the committed position used for the tooltip; pointer moves
    only update a pending value that is committed when the timer fires.
    """

    def __init__(self, dims: ChartDimensions, delay: float = CURSOR_DELAY,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self._dims = dims
        self.x: float | None = None
        self._pending_x: float | None = None
        self._dragging = False
        self._timer = Debouncer(delay, self._commit, clock)

    def move(self, offset_x: float) -> None:
        """Pointer moved to *offset_x* pixels from the plot's left edge."""
        self._pending_x = self._dims.offset_left + offset_x
        self._timer.trigger()

    def set_dragging(self, dragging: bool) -> None:
        self._dragging = dragging
        if dragging:
            self.x = None

    def leave(self) -> None:
        self._timer.cancel()
        self._pending_x = None
        self.x = None

    def cancel(self) -> None:
        self._timer.cancel()

    def poll(self) -> bool:
        """Run the debounce timer.  Returns True if ``x`` changed."""
        before = self.x
        self._timer.poll()
        return self.x != before

    def _commit(self) -> None:
        if not self._dragging:
            self.x = self._pending_x
