"""Tests for drag-to-pan, stepping and pinned-range re-anchoring.

Run from repo root:
    python3 tests/test_pan.py
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "python"))

import numpy as np

from livechart.model import PinnedRange
from livechart.pan import (PanController, index_delta, nav_controls, reanchor,
                           shift_range, step_range, validate_pin)


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def test_index_delta():
    print("test_index_delta...", end="")

    assert index_delta(45, 20) == 2
    assert index_delta(-45, 20) == -2
    assert index_delta(19, 20) == 0
    assert index_delta(-19, 20) == 0
    assert index_delta(50, 5) == 10

    print(" OK")


def test_shift_range_clamps():
    """Shifts keep the width and clamp onto either end of the series."""
    print("test_shift_range_clamps...", end="")

    assert shift_range(PinnedRange(40, 99), 2, 99) == PinnedRange(38, 97)
    # Past the oldest sample
    assert shift_range(PinnedRange(1, 61), 5, 99) == PinnedRange(0, 60)
    # Past the newest sample
    assert shift_range(PinnedRange(38, 97), -5, 99) == PinnedRange(40, 99)
    # Already at the edge being approached
    assert shift_range(PinnedRange(0, 60), 3, 99) is None
    assert shift_range(PinnedRange(39, 99), -3, 99) is None

    print(" OK")


def test_step_range():
    """Window-sized steps, turning into edge jumps near the boundaries."""
    print("test_step_range...", end="")

    assert step_range(PinnedRange(100, 160), -1, False, 300) == PinnedRange(40, 100)
    assert step_range(PinnedRange(40, 100), 1, False, 300) == PinnedRange(100, 160)
    # Too close to the oldest sample: jump to it
    assert step_range(PinnedRange(39, 99), -1, False, 99) == PinnedRange(0, 60)
    # Too close to the live edge: back to live
    assert step_range(PinnedRange(200, 260), 1, False, 300) is None
    # Explicit edges
    assert step_range(PinnedRange(100, 160), -1, True, 300) == PinnedRange(0, 60)
    assert step_range(PinnedRange(100, 160), 1, True, 300) is None

    print(" OK")


def test_validate_pin_and_controls():
    print("test_validate_pin_and_controls...", end="")

    assert validate_pin(None, 10) is None
    assert validate_pin(PinnedRange(5, 50), 100) == PinnedRange(5, 50)
    assert validate_pin(PinnedRange(5, 200), 100) is None
    assert validate_pin(PinnedRange(-1, 5), 100) is None
    assert validate_pin(PinnedRange(6, 5), 100) is None

    assert nav_controls(PinnedRange(0, 60), True, 99) == (False, True)
    assert nav_controls(PinnedRange(39, 99), True, 99) == (True, False)
    assert nav_controls(PinnedRange(10, 70), False, 99) == (False, False)
    assert nav_controls(None, True, 99) == (False, False)

    print(" OK")


def test_reanchor():
    """The pinned start follows its timestamp after the head is evicted."""
    print("test_reanchor...", end="")

    # Ten samples evicted from a series whose timestamps equal indices
    timestamps = np.arange(10, 110, dtype=np.float64)
    assert reanchor(PinnedRange(20, 40), 20.0, timestamps) == PinnedRange(10, 30)

    # Anchor itself evicted: clamp to the head
    assert reanchor(PinnedRange(5, 25), 5.0, timestamps) == PinnedRange(0, 20)

    # Width no longer fits
    short = np.arange(0, 30, dtype=np.float64)
    assert reanchor(PinnedRange(0, 50), 0.0, short) == PinnedRange(0, 29)

    print(" OK")


def test_reanchor_duplicate_timestamps():
    """Among equal timestamps the pin stays on the same sample."""
    print("test_reanchor_duplicate_timestamps...", end="")

    # Two samples per second; one sample evicted from the head
    timestamps = np.repeat(np.arange(100, dtype=np.float64), 2)[1:]
    # Old index 51 was the second sample at t=25
    assert reanchor(PinnedRange(51, 71), 25.0, timestamps, later_equal=0) == PinnedRange(50, 70)
    # Old index 50 was the first sample at t=25
    assert reanchor(PinnedRange(50, 70), 25.0, timestamps, later_equal=1) == PinnedRange(49, 69)

    # Anchor evicted while a later duplicate survives
    assert reanchor(PinnedRange(0, 20), 0.0, timestamps, later_equal=1) == PinnedRange(0, 20)

    print(" OK")


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

def test_drag_shifts_by_pixels_per_index():
    """A 200 px drag right in the 1m window moves ten samples into history."""
    print("test_drag_shifts_by_pixels_per_index...", end="")

    pan = PanController()
    assert pan.press(500, PinnedRange(39, 99), True)
    assert pan.dragging
    assert pan.pin == PinnedRange(39, 99)

    assert pan.move(700, 20, 99)
    assert pan.pin == PinnedRange(29, 89)
    assert pan.drag.anchor_px == 700

    # Less than one index worth of movement
    assert not pan.move(690, 20, 99)
    assert pan.pin == PinnedRange(29, 89)

    # Back towards live by two indices
    assert pan.move(650, 20, 99)
    assert pan.pin == PinnedRange(31, 91)
    assert pan.drag.anchor_px == 660

    print(" OK")


def test_drag_hysteresis_reanchors():
    """Moving back towards the anchor resets it instead of shifting."""
    print("test_drag_hysteresis_reanchors...", end="")

    pan = PanController()
    pan.press(500, PinnedRange(39, 99), True)
    assert not pan.move(510, 20, 99)
    assert not pan.move(505, 20, 99)
    assert pan.drag.anchor_px == 505
    assert pan.drag.last_px == 505
    assert pan.pin == PinnedRange(39, 99)

    print(" OK")


def test_press_requires_pan_allowed():
    print("test_press_requires_pan_allowed...", end="")

    pan = PanController()
    assert not pan.press(100, PinnedRange(0, 20), False)
    assert not pan.dragging
    assert pan.live

    print(" OK")


def test_release_rejoins_live_at_edge():
    """Releasing with the right edge on the newest sample resumes live mode."""
    print("test_release_rejoins_live_at_edge...", end="")

    pan = PanController()
    pan.press(500, PinnedRange(39, 99), True)
    assert pan.release(99)
    assert pan.live
    assert not pan.dragging

    pan.press(500, PinnedRange(39, 99), True)
    pan.move(700, 20, 99)
    assert not pan.release(99)
    assert pan.pin == PinnedRange(29, 89)

    # Dragging back to the live edge
    pan.press(700, PinnedRange(39, 99), True)
    assert pan.pin == PinnedRange(29, 89)
    pan.move(400, 20, 99)
    assert pan.pin == PinnedRange(39, 99)
    assert pan.leave(99)
    assert pan.live

    print(" OK")


def test_step_via_controller():
    print("test_step_via_controller...", end="")

    pan = PanController()
    pan.step(-1, False, PinnedRange(39, 99), 99)
    assert pan.pin == PinnedRange(0, 60)
    assert pan.controls(PinnedRange(39, 99), True, 99) == (False, True)

    pan.step(1, False, PinnedRange(39, 99), 99)
    assert pan.live

    pan.pin = PinnedRange(10, 30)
    pan.reset()
    assert pan.live

    print(" OK")


def test_drag_sequence_stays_in_bounds():
    """Arbitrary back-and-forth drags keep the pin inside the series."""
    print("test_drag_sequence_stays_in_bounds...", end="")

    max_index = 99
    for ppi in (20, 10, 5):
        pan = PanController()
        assert pan.press(500, PinnedRange(39, max_index), True)
        for x in (700, 900, 1200, 1190, 300, -400, 800, 20, 1500, 1510, -2000, 500, 505):
            pan.move(x, ppi, max_index)
            pin = pan.pin
            assert pin is not None
            assert 0 <= pin.start <= pin.end <= max_index, (ppi, x, pin)
            assert pin.width == 60
        pan.release(max_index)

    print(" OK")


if __name__ == "__main__":
    print("livechart pan tests")
    print("===================\n")

    test_index_delta()
    test_shift_range_clamps()
    test_step_range()
    test_validate_pin_and_controls()
    test_reanchor()
    test_reanchor_duplicate_timestamps()
    test_drag_shifts_by_pixels_per_index()
    test_drag_hysteresis_reanchors()
    test_press_requires_pan_allowed()
    test_release_rejoins_live_at_edge()
    test_step_via_controller()
    test_drag_sequence_stays_in_bounds()

    print("\nAll pan tests passed.")
