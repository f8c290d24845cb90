"""livechart - windowed, stacked, pannable live time-series chart engine."""

from .model import Sample, PinnedRange, ChartDimensions
from .windows import TimeWindow, TIME_WINDOWS, DEFAULT_WINDOW, resolve_window
from .selector import WindowSlice, select_window
from .pan import DragSession, PanController
from .stack import StackGeometry, build_stack
from .ticks import Tick, build_ticks
from .cursor import CursorTracker, Tooltip, nearest_point
from .legend import LegendState
from .settings import MemorySettings, JsonSettings
from .source import SeriesSource, BufferedSource, FileSource, StreamSource
from .engine import ChartEngine, ChartState, RenderModel, recompute

__all__ = [
    "Sample", "PinnedRange", "ChartDimensions",
    "TimeWindow", "TIME_WINDOWS", "DEFAULT_WINDOW", "resolve_window",
    "WindowSlice", "select_window",
    "DragSession", "PanController",
    "StackGeometry", "build_stack",
    "Tick", "build_ticks",
    "CursorTracker", "Tooltip", "nearest_point",
    "LegendState",
    "MemorySettings", "JsonSettings",
    "SeriesSource", "BufferedSource", "FileSource", "StreamSource",
    "ChartEngine", "ChartState", "RenderModel", "recompute",
]
