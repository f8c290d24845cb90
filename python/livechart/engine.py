"""Chart engine — event handling around a single pure recompute step.

Every input (new data, pointer event, timer, setting change) mutates the
engine state and then rebuilds the whole :class:`RenderModel` from that
state with :func:`recompute`.  Nothing else derives geometry.
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence

from .cursor import CursorTracker, Tooltip, build_tooltip, nearest_point
from .legend import LegendState
from .model import ChartDimensions, PinnedRange, Series, timestamps_of
from .pan import PanController, nav_controls, reanchor, validate_pin
from .selector import WindowSlice, select_window
from .settings import (TIME_WINDOW, UPDATING_PERIOD, DEFAULTS, MemorySettings,
                       SettingsStore, update_period_seconds)
from .source import SeriesSource
from .stack import (Guide, LegendEntry, MetricArea, MetricLine, PlotPoint,
                    build_stack)
from .ticks import Tick, build_ticks
from .windows import TIME_WINDOWS, TimeWindow, resolve_window

logger = logging.getLogger(__name__)


@dataclass
class ChartState:
    """Everything besides the series that the render model depends on."""

    window: TimeWindow
    update_period: float  # seconds
    time_end: float | None
    pin: PinnedRange | None = None
    disabled: frozenset[str] = frozenset()
    highlighted: str | None = None
    cursor_x: float | None = None
    dragging: bool = False


@dataclass
class WindowOption:
    key: str
    selected: bool


@dataclass
class RenderModel:
    """Render-ready bundle for the presentation layer."""

    window: str
    windows: list[WindowOption] = field(default_factory=list)
    lines: list[MetricLine] = field(default_factory=list)
    areas: list[MetricArea] = field(default_factory=list)
    guides: list[Guide] = field(default_factory=list)
    legend: list[LegendEntry] = field(default_factory=list)
    ticks: list[Tick] = field(default_factory=list)
    points: list[PlotPoint] = field(default_factory=list)
    tooltip: Tooltip | None = None
    y_max: float = 0
    y_total: float = 0
    time_start: float | None = None
    time_diff: float | None = None
    pan_allowed: bool = False
    back_allowed: bool = False
    forward_allowed: bool = False
    dragging: bool = False
    live: bool = True
    pin: PinnedRange | None = None
    live_range: PinnedRange | None = None
    series_length: int = 0

    @property
    def empty(self) -> bool:
        return not self.points


def recompute(series: Series, metrics: Sequence[str], state: ChartState,
              dims: ChartDimensions,
              labels: Mapping[str, str] | None = None) -> RenderModel:
    """Build the full render model for one frame."""
    pin = validate_pin(state.pin, len(series))
    model = RenderModel(
        window=state.window.key,
        windows=[WindowOption(key, key == state.window.key) for key in TIME_WINDOWS],
        dragging=state.dragging,
        live=pin is None,
        pin=pin,
        series_length=len(series),
    )
    if state.time_end is None or len(series) == 0:
        return model

    window_slice = select_window(series, state.window, state.update_period,
                                 state.time_end, pin)
    model.pan_allowed = window_slice.pan_allowed
    model.live_range = window_slice.live_range
    model.back_allowed, model.forward_allowed = nav_controls(
        pin if pin is not None else window_slice.live_range,
        window_slice.pan_allowed, len(series) - 1)
    if window_slice.empty:
        return model

    _fill_geometry(model, window_slice, metrics, state, dims, labels)
    return model


def _fill_geometry(model: RenderModel, window_slice: WindowSlice,
                   metrics: Sequence[str], state: ChartState,
                   dims: ChartDimensions,
                   labels: Mapping[str, str] | None) -> None:
    geometry = build_stack(window_slice.samples, metrics, state.disabled,
                           state.highlighted, window_slice.time_start,
                           window_slice.time_diff, dims, labels)
    model.time_start = window_slice.time_start
    model.time_diff = window_slice.time_diff
    model.lines = geometry.lines
    model.areas = geometry.areas
    model.guides = geometry.guides
    model.legend = geometry.legend
    model.points = geometry.points
    model.y_max = geometry.y_max
    model.y_total = geometry.y_total
    model.ticks = build_ticks(window_slice.time_start, window_slice.time_diff,
                              state.window, dims)

    if state.cursor_x is not None and not state.dragging:
        point = nearest_point(geometry.points, state.cursor_x)
        if point is not None:
            model.tooltip = build_tooltip(point, metrics, dims, labels)


class ChartEngine:
    """Stateful chart instance bound to a data source and a settings store.

    The owner calls :meth:`refresh` after the source reports new data,
    forwards pointer / legend / navigation events, and calls :meth:`tick`
    once per frame to run the debounce timers.  :attr:`model` always holds
    the render model for the latest state.
    """

    def __init__(self, source: SeriesSource,
                 settings: SettingsStore | None = None,
                 metrics: Sequence[str] | None = None,
                 labels: Mapping[str, str] | None = None,
                 dims: ChartDimensions | None = None,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self._source = source
        self._settings = settings if settings is not None else MemorySettings()
        self._auto_metrics = metrics is None
        self._metrics: list[str] = list(metrics) if metrics is not None else []
        self._labels = dict(labels) if labels else {}
        self._dims = dims if dims is not None else ChartDimensions()

        self._pan = PanController()
        self._legend = LegendState(clock=clock)
        self._cursor = CursorTracker(self._dims, clock=clock)
        self._window = resolve_window(self._settings.get(TIME_WINDOW))
        self._period_warned = False

        self._series: Series = source.samples()
        self._time_end: float | None = source.time_end
        self._pin_anchor_ts: float | None = None
        self._pin_later_equal = 0
        self._head_ts: float | None = None
        self._discover_metrics()

        self._token = self._settings.subscribe(self._on_window_setting, TIME_WINDOW)
        self._model = RenderModel(window=self._window.key)
        self._update()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def model(self) -> RenderModel:
        return self._model

    @property
    def window(self) -> TimeWindow:
        return self._window

    @property
    def metrics(self) -> list[str]:
        return list(self._metrics)

    @property
    def dims(self) -> ChartDimensions:
        return self._dims

    @property
    def pin(self) -> PinnedRange | None:
        return self._pan.pin

    @property
    def dragging(self) -> bool:
        return self._pan.dragging

    @property
    def disabled(self) -> frozenset[str]:
        return frozenset(self._legend.disabled)

    @property
    def highlighted(self) -> str | None:
        return self._legend.highlighted

    def refresh(self) -> bool:
        """Take the source's new series and live edge.

        Ignored unless the live edge advanced.  A pinned range is re-indexed
        against the new series before anything is recomputed.
        """
        time_end = self._source.time_end
        if time_end is None or (self._time_end is not None and time_end <= self._time_end):
            return False

        series = self._source.samples()
        if self._pan.pin is not None and self._head_moved(series):
            self._reanchor(series)
        self._series = series
        self._time_end = time_end
        self._discover_metrics()
        self._update()
        return True

    def pointer_down(self, offset_x: float) -> bool:
        """Start a drag at *offset_x* (pixels from the plot's left edge)."""
        started = self._pan.press(offset_x, self._model.live_range,
                                  self._model.pan_allowed)
        if started:
            self._cursor.set_dragging(True)
            self._update()
        return started

    def pointer_move(self, offset_x: float) -> bool:
        """Returns True if the model changed immediately (drag shift)."""
        if self._pan.dragging:
            if self._pan.move(offset_x, self._window.pixels_per_index,
                              self._max_index()):
                self._update()
                return True
            return False
        self._cursor.move(offset_x)
        return False

    def pointer_up(self) -> None:
        if not self._pan.dragging:
            return
        if self._pan.release(self._max_index()):
            logger.debug("drag ended at the live edge, tracking live data")
        self._cursor.set_dragging(False)
        self._update()

    def pointer_leave(self) -> None:
        self._cursor.leave()
        self._pan.leave(self._max_index())
        self._cursor.set_dragging(False)
        self._update()

    def step(self, direction: int, to_edge: bool = False) -> bool:
        """Navigate one window back (-1) / forward (+1), or to an edge."""
        allowed = (self._model.forward_allowed if direction > 0
                   else self._model.back_allowed)
        if not allowed:
            return False
        self._pan.step(direction, to_edge, self._model.live_range, self._max_index())
        self._update()
        return True

    def select_window(self, key: str) -> bool:
        """Persist *key* as the time window.  Unknown keys are ignored."""
        if key == self._window.key:
            return False
        if key not in TIME_WINDOWS:
            logger.info("ignoring unknown time window %r", key)
            return False
        self._settings.set(TIME_WINDOW, key)
        return True

    def toggle_metric(self, key: str) -> None:
        self._legend.toggle(key)
        self._update()

    def hover_metric(self, key: str | None) -> None:
        self._legend.request_highlight(key)

    def tick(self) -> bool:
        """Run the debounce timers.  Returns True if the model changed."""
        changed = self._legend.poll()
        changed = self._cursor.poll() or changed
        if changed:
            self._update()
        return changed

    def close(self) -> None:
        """Detach from the settings store and cancel pending timers."""
        if self._token is not None:
            self._settings.unsubscribe(self._token)
            self._token = None
        self._cursor.cancel()
        self._legend.cancel()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _state(self) -> ChartState:
        return ChartState(
            window=self._window,
            update_period=self._update_period(),
            time_end=self._time_end,
            pin=self._pan.pin,
            disabled=frozenset(self._legend.disabled),
            highlighted=self._legend.highlighted,
            cursor_x=self._cursor.x,
            dragging=self._pan.dragging,
        )

    def _update(self) -> None:
        self._pan.pin = validate_pin(self._pan.pin, len(self._series))
        self._model = recompute(self._series, self._metrics, self._state(),
                                self._dims, self._labels)
        self._record_anchor()
        self._head_ts = self._series[0].timestamp if len(self._series) else None

    def _update_period(self) -> float:
        raw = self._settings.get(UPDATING_PERIOD)
        period = update_period_seconds(raw)
        if period is None:
            period = update_period_seconds(DEFAULTS[UPDATING_PERIOD])
            if not self._period_warned:
                self._period_warned = True
                logger.warning("invalid %s %r, using %s ms",
                               UPDATING_PERIOD, raw, DEFAULTS[UPDATING_PERIOD])
        return period

    def _max_index(self) -> int:
        return len(self._series) - 1

    def _head_moved(self, series: Series) -> bool:
        if len(series) == 0:
            return False
        if self._source.at_capacity:
            return True
        return self._head_ts is not None and series[0].timestamp != self._head_ts

    def _reanchor(self, series: Series) -> None:
        pin = self._pan.pin
        if pin is None or self._pin_anchor_ts is None:
            return
        moved = reanchor(pin, self._pin_anchor_ts, timestamps_of(series),
                         self._pin_later_equal)
        if moved != pin:
            logger.debug("re-anchored pinned range %s -> %s", tuple(pin), tuple(moved))
        self._pan.pin = moved

    def _record_anchor(self) -> None:
        """Remember which sample the pinned range starts at."""
        pin = self._pan.pin
        if pin is None:
            self._pin_anchor_ts = None
            self._pin_later_equal = 0
            return
        anchor_ts = self._series[pin.start].timestamp
        later = 0
        for sample in itertools.islice(self._series, pin.start + 1, None):
            if sample.timestamp != anchor_ts:
                break
            later += 1
        self._pin_anchor_ts = anchor_ts
        self._pin_later_equal = later

    def _discover_metrics(self) -> None:
        if not self._auto_metrics:
            return
        for key in self._source.metrics():
            if key not in self._metrics:
                self._metrics.append(key)

    def _on_window_setting(self, value: Any) -> None:
        self._window = resolve_window(value)
        self._pan.reset()
        self._update()
