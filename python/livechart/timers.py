"""Debounce timers polled from the frame loop.

There are no background threads: the owner calls :meth:`Debouncer.poll`
once per frame and the callback fires on the first poll past the deadline.
"""

from __future__ import annotations

import time
from typing import Callable


class Debouncer:
    """At most one outstanding timer; re-triggering while pending is a no-op."""

    def __init__(self, delay: float, callback: Callable[[], None],
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.delay = delay
        self._callback = callback
        self._clock = clock
        self._deadline: float | None = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    def trigger(self) -> None:
        if self._deadline is None:
            self._deadline = self._clock() + self.delay

    def poll(self) -> bool:
        """Fire the callback if the deadline has passed.  Returns True if fired."""
        if self._deadline is None or self._clock() < self._deadline:
            return False
        self._deadline = None
        self._callback()
        return True

    def cancel(self) -> None:
        self._deadline = None
