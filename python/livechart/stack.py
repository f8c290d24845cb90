"""Stacked area/line geometry for the visible slice.

Metrics are stacked from the last one in order to the first, so the first
metric is drawn on top.  Every metric gets a polyline through its stacked
values and a closed area reaching down to the next-lower enabled metric
(or to the time axis for the lowest one).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Collection, Mapping, Sequence

import numpy as np

from .model import ChartDimensions, Sample

Point = tuple[float, float]


def _fmt(v: float) -> str:
    s = f"{v:.3f}".rstrip("0").rstrip(".")
    return s if s not in ("", "-0") else "0"


def path_of(coordinates: Sequence[Point], close: bool = False) -> str:
    """SVG-style path command string through *coordinates*."""
    if not coordinates:
        return ""
    parts = [f"M {_fmt(coordinates[0][0])} {_fmt(coordinates[0][1])}"]
    parts.extend(f"L {_fmt(x)} {_fmt(y)}" for x, y in coordinates[1:])
    if close:
        parts.append("Z")
    return " ".join(parts)


@dataclass
class MetricLine:
    key: str
    coordinates: list[Point]
    faded: bool = False

    @property
    def path(self) -> str:
        return path_of(self.coordinates)


@dataclass
class MetricArea:
    """Closed fill boundary: first and last coordinates coincide."""

    key: str
    boundary: list[Point]
    faded: bool = False

    @property
    def path(self) -> str:
        return path_of(self.boundary, close=True)


@dataclass
class PlotPoint:
    """One plotted sample: x position plus the values stacked at it."""

    x: float
    timestamp: float
    values: dict[str, float] = field(default_factory=dict)


@dataclass
class Guide:
    """Horizontal y-axis guide line."""

    y: float
    value: float
    label: str


@dataclass
class LegendEntry:
    key: str
    label: str
    disabled: bool = False
    highlighted: bool = False


@dataclass
class StackGeometry:
    points: list[PlotPoint] = field(default_factory=list)
    lines: list[MetricLine] = field(default_factory=list)
    areas: list[MetricArea] = field(default_factory=list)
    guides: list[Guide] = field(default_factory=list)
    legend: list[LegendEntry] = field(default_factory=list)
    y_max: float = 0
    y_total: float = 0  # largest stacked total before rounding


def scale_max(total: float) -> float:
    """y scale maximum for a stacked *total*.

    Odd whole totals are bumped to the next even number so the mid guide
    lands on a whole value; fractional totals are used as they are.
    """
    if total <= 0:
        return 0
    if float(total).is_integer() and int(total) % 2 == 1:
        return total + 1
    return total


def value_matrix(samples: Sequence[Sample], metrics: Sequence[str]) -> np.ndarray:
    """``(n_samples, n_metrics)`` float array, NaN where a value is absent."""
    matrix = np.full((len(samples), len(metrics)), np.nan, dtype=np.float64)
    for i, sample in enumerate(samples):
        for j, key in enumerate(metrics):
            value = sample.values.get(key)
            if value is not None:
                matrix[i, j] = value
    return matrix


def _label(key: str, labels: Mapping[str, str] | None) -> str:
    if labels and key in labels:
        return labels[key]
    return key


def _format_value(value: float) -> str:
    return f"{value:g}"


def build_legend(metrics: Sequence[str], disabled: Collection[str],
                 highlighted: str | None,
                 labels: Mapping[str, str] | None = None) -> list[LegendEntry]:
    """Legend entries in metric order, top of the stack first."""
    return [
        LegendEntry(key, _label(key, labels), key in disabled, key == highlighted)
        for key in metrics
    ]


def build_stack(samples: Sequence[Sample], metrics: Sequence[str],
                disabled: Collection[str], highlighted: str | None,
                time_start: float, time_diff: float,
                dims: ChartDimensions,
                labels: Mapping[str, str] | None = None) -> StackGeometry:
    """Turn the visible slice into stacked plot geometry."""
    geometry = StackGeometry(legend=build_legend(metrics, disabled, highlighted, labels))
    if len(samples) == 0:
        return geometry

    enabled = [j for j, key in enumerate(metrics) if key not in disabled]
    matrix = value_matrix(samples, metrics)
    if enabled:
        totals = np.nansum(matrix[:, enabled], axis=1)
        geometry.y_total = float(totals.max())
    geometry.y_max = scale_max(geometry.y_total)

    x_scale = dims.x_scale(time_diff)
    xs = [dims.to_x(s.timestamp, time_start, x_scale) for s in samples]

    # Plot points are kept even without a y scale (tooltip values only)
    for i, sample in enumerate(samples):
        values = {
            metrics[j]: float(matrix[i, j])
            for j in reversed(enabled) if not np.isnan(matrix[i, j])
        }
        geometry.points.append(PlotPoint(xs[i], sample.timestamp, values))

    if geometry.y_max <= 0:
        return geometry

    baseline = dims.offset_top + dims.plot_height
    y_scale = dims.plot_height / geometry.y_max

    coordinates: dict[str, list[Point]] = {}
    running = np.zeros(len(samples), dtype=np.float64)
    for j in reversed(enabled):
        column = matrix[:, j]
        present = ~np.isnan(column)
        ys = baseline - y_scale * (column + running)
        coords = [(xs[i], float(ys[i])) for i in np.flatnonzero(present)]
        if coords:
            coordinates[metrics[j]] = coords
        running += np.where(present, column, 0.0)

    def faded(key: str) -> bool:
        return highlighted is not None and highlighted != key

    for pos in range(len(metrics) - 1, -1, -1):
        key = metrics[pos]
        coords = coordinates.get(key)
        if coords is None:
            continue
        geometry.lines.append(MetricLine(key, coords, faded(key)))

        lower = next((metrics[k] for k in range(pos + 1, len(metrics))
                      if metrics[k] in coordinates), None)
        if lower is None:
            boundary = coords + [(coords[-1][0], baseline), (coords[0][0], baseline)]
        else:
            boundary = coords + coordinates[lower][::-1]
        boundary.append(coords[0])
        geometry.areas.append(MetricArea(key, boundary, faded(key)))

    mid = dims.offset_top + dims.plot_height / 2
    geometry.guides = [
        Guide(dims.offset_top, geometry.y_max, _format_value(geometry.y_max)),
        Guide(mid, geometry.y_max / 2, _format_value(geometry.y_max / 2)),
    ]
    return geometry
