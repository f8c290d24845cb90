"""Per-metric visibility and debounced legend highlight."""

from __future__ import annotations

import logging
import time
from typing import Callable

from .timers import Debouncer

logger = logging.getLogger(__name__)

HIGHLIGHT_DELAY = 0.2  # seconds


class LegendState:
    """DisabledMetrics plus the committed HighlightedMetric."""

    def __init__(self, delay: float = HIGHLIGHT_DELAY,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.disabled: set[str] = set()
        self.highlighted: str | None = None
        self._requested: str | None = None
        self._changed = False
        self._timer = Debouncer(delay, self._commit, clock)

    def toggle(self, key: str) -> None:
        if key in self.disabled:
            self.disabled.discard(key)
        else:
            self.disabled.add(key)
        self.highlighted = None
        logger.debug("toggled %s, disabled=%s", key, sorted(self.disabled))

    def request_highlight(self, key: str | None) -> None:
        """Hover over a legend entry (``None`` when the pointer leaves it)."""
        if key is not None and key in self.disabled:
            return
        self._requested = key
        self._timer.trigger()

    def poll(self) -> bool:
        """Run the debounce timer.  Returns True if the highlight changed."""
        self._changed = False
        self._timer.poll()
        return self._changed

    def cancel(self) -> None:
        self._timer.cancel()

    def _commit(self) -> None:
        if self._requested != self.highlighted:
            self.highlighted = self._requested
            self._changed = True
