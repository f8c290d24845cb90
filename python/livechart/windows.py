"""Supported time windows and their per-window constants."""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeWindow:
    key: str
    duration: int          # seconds shown on the time axis
    tick_step: int         # seconds between axis ticks
    pixels_per_index: int  # drag distance that shifts the view by one sample


TIME_WINDOWS: dict[str, TimeWindow] = {
    w.key: w for w in (
        TimeWindow("1m", 60, 10, 20),
        TimeWindow("5m", 5 * 60, 60, 10),
        TimeWindow("15m", 15 * 60, 180, 5),
    )
}

DEFAULT_WINDOW = "5m"


def window_keys() -> list[str]:
    """Window keys in display order."""
    return list(TIME_WINDOWS)


def resolve_window(key: object) -> TimeWindow:
    """Look up *key*, substituting the default for unknown or missing values."""
    window = TIME_WINDOWS.get(key) if isinstance(key, str) else None
    if window is None:
        if key:
            logger.info("unknown time window %r, using %s", key, DEFAULT_WINDOW)
        window = TIME_WINDOWS[DEFAULT_WINDOW]
    return window
