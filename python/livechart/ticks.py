"""Time-axis ticks aligned to the window's tick spacing."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from .model import ChartDimensions
from .windows import TimeWindow


@dataclass
class Tick:
    timestamp: int
    x: float
    label: str


def format_clock(ts: float) -> str:
    """Local wall-clock time of *ts* (seconds) as ``HH:MM:SS``."""
    return datetime.fromtimestamp(ts).strftime("%H:%M:%S")


def build_ticks(time_start: float, time_diff: float, window: TimeWindow,
                dims: ChartDimensions) -> list[Tick]:
    """Every multiple of the window's tick step inside the visible span."""
    step = window.tick_step
    x_scale = dims.x_scale(time_diff)
    time_end = time_start + time_diff

    ticks: list[Tick] = []
    current = math.ceil(time_start / step) * step
    while current <= time_end:
        ticks.append(Tick(current, dims.to_x(current, time_start, x_scale),
                          format_clock(current)))
        current += step
    return ticks
