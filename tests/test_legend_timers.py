"""Tests for the frame-polled debounce timer and legend state.

Run from repo root:
    python3 tests/test_legend_timers.py
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "python"))

from livechart.timers import Debouncer
from livechart.legend import LegendState


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_debouncer_fires_once():
    print("test_debouncer_fires_once...", end="")

    clock = FakeClock()
    fired = []
    timer = Debouncer(0.5, lambda: fired.append(clock.now), clock)

    assert not timer.poll()
    timer.trigger()
    assert timer.pending
    clock.now = 0.25
    timer.trigger()  # no-op while pending
    assert not timer.poll()
    clock.now = 0.5
    assert timer.poll()
    assert fired == [0.5]
    assert not timer.pending
    assert not timer.poll()

    print(" OK")


def test_debouncer_cancel():
    print("test_debouncer_cancel...", end="")

    clock = FakeClock()
    fired = []
    timer = Debouncer(0.5, lambda: fired.append(True), clock)
    timer.trigger()
    timer.cancel()
    clock.now = 2.0
    assert not timer.poll()
    assert fired == []

    print(" OK")


def test_toggle():
    """Toggling flips membership and clears any highlight."""
    print("test_toggle...", end="")

    legend = LegendState(clock=FakeClock())
    legend.highlighted = "b"
    legend.toggle("a")
    assert legend.disabled == {"a"}
    assert legend.highlighted is None
    legend.toggle("a")
    assert legend.disabled == set()

    print(" OK")


def test_highlight_debounce():
    print("test_highlight_debounce...", end="")

    clock = FakeClock()
    legend = LegendState(clock=clock)

    legend.request_highlight("a")
    clock.now = 0.1
    assert not legend.poll()
    assert legend.highlighted is None
    legend.request_highlight("b")
    clock.now = 0.2
    assert legend.poll()
    assert legend.highlighted == "b"

    # Leaving the legend entry clears the highlight after the delay
    clock.now = 1.0
    legend.request_highlight(None)
    clock.now = 1.5
    assert legend.poll()
    assert legend.highlighted is None

    print(" OK")


def test_disabled_metric_not_highlighted():
    print("test_disabled_metric_not_highlighted...", end="")

    clock = FakeClock()
    legend = LegendState(clock=clock)
    legend.toggle("a")
    legend.request_highlight("a")
    clock.now = 1.0
    assert not legend.poll()
    assert legend.highlighted is None

    print(" OK")


if __name__ == "__main__":
    print("livechart legend/timer tests")
    print("============================\n")

    test_debouncer_fires_once()
    test_debouncer_cancel()
    test_toggle()
    test_highlight_debounce()
    test_disabled_metric_not_highlighted()

    print("\nAll legend/timer tests passed.")
