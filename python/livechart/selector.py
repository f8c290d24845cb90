"""Window selection — which slice of the series is visible this frame.

The live window ends at ``time_end`` and reaches back one window duration
plus a small guard (a fraction of the sampling period) so the oldest point
does not flicker in and out at the left edge.  A pinned range, when
present, overrides the live window entirely.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .model import PinnedRange, Series, timestamps_of
from .windows import TimeWindow

logger = logging.getLogger(__name__)

GUARD_FRACTION = 0.2  # of one update period, added to the window duration
SNAP_PERIODS = 2      # leading gaps shorter than this many periods are snapped


@dataclass
class WindowSlice:
    """Resolved visible slice of a series."""

    samples: Series
    time_start: float
    time_diff: float
    pan_allowed: bool = False
    live_range: PinnedRange | None = None  # (first visible, last) in live mode

    @property
    def empty(self) -> bool:
        return len(self.samples) == 0

    @property
    def time_end(self) -> float:
        return self.time_start + self.time_diff


def first_index_at(timestamps: np.ndarray, t: float) -> int:
    """Index of the first timestamp >= *t* (``len`` when there is none)."""
    return int(np.searchsorted(timestamps, t, side="left"))


def select_window(series: Series, window: TimeWindow, update_period: float,
                  time_end: float, pin: PinnedRange | None = None) -> WindowSlice:
    """Resolve the visible slice of *series* for one frame.

    *update_period* is the sampling period in seconds.  *pin* must already
    be validated against ``len(series)``.
    """
    time_diff = window.duration + GUARD_FRACTION * update_period
    time_start = time_end - time_diff

    if len(series) == 0:
        return WindowSlice([], time_start, time_diff)

    timestamps = timestamps_of(series)
    first = first_index_at(timestamps, time_start)
    if first >= len(series):
        # Everything is older than the window: nothing to draw this frame
        return WindowSlice([], time_start, time_diff)

    pan_allowed = first > 0
    if pan_allowed and timestamps[first] - time_start < SNAP_PERIODS * update_period:
        time_start = float(timestamps[first])
        time_diff = time_end - time_start

    live_range = PinnedRange(first, len(series) - 1)

    if pin is not None:
        samples = series[pin.start:pin.end]
        if len(samples) == 0:
            logger.debug("pinned range %s is empty", tuple(pin))
            return WindowSlice([], time_start, time_diff, pan_allowed, live_range)
        time_start = samples[0].timestamp
        time_diff = samples[-1].timestamp - time_start
    else:
        samples = series[first:]

    return WindowSlice(samples, time_start, time_diff, pan_allowed, live_range)
