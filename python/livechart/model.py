"""Core value types shared by the chart engine components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, NamedTuple, Sequence

import numpy as np


@dataclass(frozen=True)
class Sample:
    """One timestamped reading of every metric (timestamp in seconds)."""

    timestamp: float
    values: Mapping[str, float] = field(default_factory=dict)


Series = Sequence[Sample]


class PinnedRange(NamedTuple):
    """Explicit (start, end) index range overriding live tracking."""

    start: int
    end: int

    @property
    def width(self) -> int:
        return self.end - self.start

    def is_valid(self, length: int) -> bool:
        return 0 <= self.start <= self.end <= length - 1


@dataclass(frozen=True)
class ChartDimensions:
    """Pixel geometry of the chart surface."""

    width: int = 1150
    height: int = 250
    offset_top: int = 70
    offset_left: int = 50
    offset_bottom: int = 30
    offset_right: int = 20
    text_offset: int = 5
    tick_size: int = 6

    @property
    def plot_width(self) -> int:
        return self.width - self.offset_left - self.offset_right

    @property
    def plot_height(self) -> int:
        return self.height - self.offset_top - self.offset_bottom

    @property
    def baseline(self) -> int:
        """y coordinate of the time axis."""
        return self.height - self.offset_bottom

    def x_scale(self, time_diff: float) -> float:
        """Pixels per second for a visible span of *time_diff* seconds."""
        if time_diff <= 0:
            return 0.0
        return self.plot_width / time_diff

    def to_x(self, t: float, time_start: float, x_scale: float) -> float:
        return self.offset_left + (t - time_start) * x_scale


def timestamps_of(series: Series) -> np.ndarray:
    """Timestamps of *series* as a float64 array (for binary search)."""
    return np.fromiter((s.timestamp for s in series), dtype=np.float64,
                       count=len(series))
