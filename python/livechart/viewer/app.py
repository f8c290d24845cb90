"""DearPyGui application shell — toolbar, chart drawlist, legend, main loop.

The viewer only paints :class:`~livechart.engine.RenderModel` objects and
forwards raw input to the engine; all geometry comes from the engine.
"""

from __future__ import annotations

import logging

import dearpygui.dearpygui as dpg

from ..engine import ChartEngine, RenderModel
from ..model import ChartDimensions
from ..settings import TIME_WINDOW, JsonSettings
from ..source import FileSource, SeriesSource, StreamSource
from ..stack import MetricArea
from ..windows import window_keys

logger = logging.getLogger(__name__)

# ImPlot "Deep" colormap
_PALETTE = [
    (76, 114, 176),
    (221, 132, 82),
    (85, 168, 104),
    (196, 78, 82),
    (129, 114, 179),
    (147, 120, 96),
    (218, 139, 195),
    (140, 140, 140),
    (204, 185, 116),
    (100, 182, 205),
]

_AXIS = (160, 160, 160, 255)
_GRID = (90, 90, 90, 255)
_TEXT = (200, 200, 200, 255)
_CURSOR = (230, 230, 230, 200)
_TOOLTIP_BG = (30, 30, 30, 230)

_CHAR_WIDTH = 7  # approximate pixel width of one label character

_NAV_CONTROLS = [
    # (label, direction, to_edge, tooltip)
    ("<<", -1, True, "View the oldest data"),
    ("<", -1, False, "Go back one window"),
    (">", 1, False, "Go forward one window"),
    (">>", 1, True, "Return to live mode"),
]


class ViewerApp:
    """Top-level viewer application."""

    def __init__(self, metrics: list[str] | None = None,
                 settings_path: str | None = None) -> None:
        self._metrics = metrics
        self._settings = JsonSettings(settings_path)
        self._dims = ChartDimensions()
        self._source: SeriesSource | None = None
        self._engine: ChartEngine | None = None
        self._drawn: RenderModel | None = None

        self._drawlist: int | str | None = None
        self._nav_buttons: list[int | str] = []
        self._window_buttons: dict[str, int | str] = {}
        self._legend_buttons: dict[str, int | str] = {}

        # Input polling state
        self._prev_lmb_down = False
        self._in_plot = False
        self._last_mouse: tuple[float, float] | None = None
        self._hover_key: str | None = None

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def setup(self) -> None:
        logging.basicConfig(level=logging.INFO,
                            format="%(name)s: %(message)s")

        dpg.create_context()
        dpg.create_viewport(title="livechart viewer",
                            width=self._dims.width + 40,
                            height=self._dims.height + 150)
        self._build_layout()
        dpg.setup_dearpygui()
        dpg.show_viewport()

    def _build_layout(self) -> None:
        with dpg.window(tag="chart_window", no_close=True):
            with dpg.group(horizontal=True):
                for label, direction, to_edge, hint in _NAV_CONTROLS:
                    btn = dpg.add_button(
                        label=label, enabled=False,
                        callback=self._on_nav, user_data=(direction, to_edge))
                    with dpg.tooltip(btn):
                        dpg.add_text(hint)
                    self._nav_buttons.append(btn)
                dpg.add_spacer(width=40)
                for key in window_keys():
                    self._window_buttons[key] = dpg.add_button(
                        label=key, callback=self._on_window, user_data=key)

            self._drawlist = dpg.add_drawlist(width=self._dims.width,
                                              height=self._dims.height)
            dpg.add_group(horizontal=True, tag="legend_group")
            dpg.add_text("Status: No source loaded.", tag="status_bar")
        dpg.set_primary_window("chart_window", True)

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def open_file(self, path: str) -> None:
        """Open a sample log immediately (called from CLI args)."""
        try:
            source = FileSource(path)
        except (OSError, ValueError) as e:
            logger.error("cannot open %s: %s", path, e)
            self._set_status(f"Error opening file: {e}")
            return
        self._set_source(source)
        self._set_status(f"File: {path}")

    def open_live(self, address: str) -> None:
        """Connect live immediately.

        *address* is ``tcp:host:port``, or ``file:path`` to replay a recording.
        """
        from ..transport import open_transport

        try:
            transport = open_transport(address, timeout=0.01)
        except (OSError, ValueError) as e:
            logger.error("cannot open %s: %s", address, e)
            self._set_status(f"Error connecting: {e}")
            return
        self._set_source(StreamSource(transport))
        self._set_status(f"Live: {address}")

    def _set_source(self, source: SeriesSource) -> None:
        self._close_source()
        self._source = source
        self._engine = ChartEngine(source, self._settings, metrics=self._metrics,
                                   dims=self._dims)
        self._drawn = None

    def _close_source(self) -> None:
        if self._engine is not None:
            self._engine.close()
            self._engine = None
        if self._source is not None:
            self._source.close()
            self._source = None

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _on_nav(self, sender: int, app_data: object, user_data: tuple[int, bool]) -> None:
        if self._engine is not None:
            direction, to_edge = user_data
            self._engine.step(direction, to_edge)

    def _on_window(self, sender: int, app_data: object, user_data: str) -> None:
        if self._engine is not None:
            self._engine.select_window(user_data)
        else:
            self._settings.set(TIME_WINDOW, user_data)

    def _on_legend_click(self, sender: int, app_data: object, user_data: str) -> None:
        if self._engine is not None:
            self._engine.toggle_metric(user_data)

    # ------------------------------------------------------------------
    # Input polling
    # ------------------------------------------------------------------

    def _poll_input(self) -> None:
        """Translate raw mouse state into engine pointer events."""
        engine = self._engine
        assert engine is not None and self._drawlist is not None
        dims = self._dims

        lmb_down = dpg.is_mouse_button_down(dpg.mvMouseButton_Left)
        mx, my = dpg.get_drawing_mouse_pos()
        offset_x = mx - dims.offset_left
        in_plot = (dpg.is_item_hovered(self._drawlist)
                   and 0 <= offset_x <= dims.plot_width
                   and dims.offset_top <= my <= dims.offset_top + dims.plot_height)

        if in_plot:
            if lmb_down and not self._prev_lmb_down and not engine.dragging:
                engine.pointer_down(offset_x)
            elif not lmb_down and self._prev_lmb_down:
                engine.pointer_up()
            if (mx, my) != self._last_mouse:
                engine.pointer_move(offset_x)
        elif self._in_plot:
            engine.pointer_leave()

        self._in_plot = in_plot
        self._prev_lmb_down = lmb_down
        self._last_mouse = (mx, my)

        hovered = None
        for key, btn in self._legend_buttons.items():
            if dpg.is_item_hovered(btn):
                hovered = key
                break
        if hovered != self._hover_key:
            self._hover_key = hovered
            engine.hover_metric(hovered)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _color(self, key: str, alpha: int) -> tuple[int, int, int, int]:
        assert self._engine is not None
        metrics = self._engine.metrics
        index = metrics.index(key) if key in metrics else 0
        r, g, b = _PALETTE[index % len(_PALETTE)]
        return (r, g, b, alpha)

    def _render(self, model: RenderModel) -> None:
        self._draw_chart(model)
        self._update_controls(model)
        self._update_legend(model)
        self._drawn = model

    def _draw_chart(self, model: RenderModel) -> None:
        dl = self._drawlist
        dims = self._dims
        dpg.delete_item(dl, children_only=True)

        left = dims.offset_left
        right = left + dims.plot_width
        baseline = dims.baseline

        for guide in model.guides:
            dpg.draw_line((left, guide.y), (right, guide.y), color=_GRID, parent=dl)
            dpg.draw_text((left - dims.text_offset - _CHAR_WIDTH * len(guide.label),
                           guide.y - 7), guide.label, color=_TEXT, size=13, parent=dl)

        lines = {line.key: line for line in model.lines}
        for area in model.areas:
            alpha = 25 if area.faded else 90
            n_line = len(lines[area.key].coordinates) if area.key in lines else 0
            self._fill_area(area, n_line, self._color(area.key, alpha))
        for line in model.lines:
            alpha = 70 if line.faded else 255
            dpg.draw_polyline(line.coordinates, color=self._color(line.key, alpha),
                              thickness=1.5, parent=dl)

        dpg.draw_line((left, baseline), (right, baseline), color=_AXIS, parent=dl)
        dpg.draw_text((left - dims.text_offset - _CHAR_WIDTH, baseline - 7), "0",
                      color=_TEXT, size=13, parent=dl)
        for tick in model.ticks:
            dpg.draw_line((tick.x, baseline), (tick.x, baseline + dims.tick_size),
                          color=_AXIS, parent=dl)
            dpg.draw_text((tick.x - _CHAR_WIDTH * len(tick.label) / 2,
                           baseline + 2 * dims.tick_size), tick.label,
                          color=_TEXT, size=12, parent=dl)

        if model.tooltip is not None:
            self._draw_tooltip(model)

    def _fill_area(self, area: MetricArea, n_line: int,
                   color: tuple[int, int, int, int]) -> None:
        """Fill an area as vertical trapezoids (the boundary may be concave)."""
        top = area.boundary[:n_line]
        bottom = area.boundary[n_line:-1][::-1]
        if len(bottom) == 2 and n_line != 2:
            # Closed against the axis: bottom edge is the baseline
            bottom = [(x, bottom[0][1]) for x, _ in top]
        if n_line < 2 or len(bottom) != len(top):
            dpg.draw_polygon(area.boundary, color=(0, 0, 0, 0), fill=color,
                             parent=self._drawlist)
            return
        for i in range(n_line - 1):
            dpg.draw_quad(top[i], top[i + 1], bottom[i + 1], bottom[i],
                          color=(0, 0, 0, 0), fill=color, parent=self._drawlist)

    def _draw_tooltip(self, model: RenderModel) -> None:
        tip = model.tooltip
        assert tip is not None
        dl = self._drawlist
        dims = self._dims

        dpg.draw_line((tip.x, dims.offset_top - 10),
                      (tip.x, dims.offset_top + dims.plot_height + 6),
                      color=_CURSOR, parent=dl)

        rows = [f"{v.label}: {v.value:g}" for v in tip.values] + [tip.time_label]
        width = _CHAR_WIDTH * max(len(r) for r in rows) + 16
        height = 16 * len(rows) + 8
        x0 = tip.x - 8 - width if tip.anchor_right else tip.x + 8
        y0 = 4
        dpg.draw_rectangle((x0, y0), (x0 + width, y0 + height), color=_GRID,
                           fill=_TOOLTIP_BG, parent=dl)
        for i, value in enumerate(tip.values):
            dpg.draw_text((x0 + 8, y0 + 4 + 16 * i), rows[i],
                          color=self._color(value.key, 255), size=13, parent=dl)
        dpg.draw_text((x0 + 8, y0 + 4 + 16 * len(tip.values)), tip.time_label,
                      color=_TEXT, size=13, parent=dl)

    def _update_controls(self, model: RenderModel) -> None:
        flags = [model.back_allowed, model.back_allowed,
                 model.forward_allowed, model.forward_allowed]
        for btn, enabled in zip(self._nav_buttons, flags):
            dpg.configure_item(btn, enabled=enabled)
        for option in model.windows:
            btn = self._window_buttons.get(option.key)
            if btn is not None:
                dpg.configure_item(btn, enabled=not option.selected)

    def _update_legend(self, model: RenderModel) -> None:
        # Highlight changes must not rebuild the buttons under the pointer
        def layout(legend):
            return [(e.key, e.label, e.disabled) for e in legend]

        drawn = self._drawn
        if drawn is not None and layout(drawn.legend) == layout(model.legend):
            return
        dpg.delete_item("legend_group", children_only=True)
        self._legend_buttons.clear()
        for entry in model.legend:
            label = f"[ ] {entry.label}" if entry.disabled else f"[x] {entry.label}"
            self._legend_buttons[entry.key] = dpg.add_button(
                label=label, parent="legend_group",
                callback=self._on_legend_click, user_data=entry.key)

    # ------------------------------------------------------------------
    # Status bar
    # ------------------------------------------------------------------

    def _set_status(self, text: str) -> None:
        if dpg.does_item_exist("status_bar"):
            dpg.set_value("status_bar", f"Status: {text}")

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        while dpg.is_dearpygui_running():
            # 1. Poll the source for new samples (live mode)
            if self._source is not None and self._engine is not None:
                if self._source.poll():
                    self._engine.refresh()

            # 2. Input and debounce timers
            if self._engine is not None:
                self._poll_input()
                self._engine.tick()
                if self._engine.model is not self._drawn:
                    self._render(self._engine.model)

            dpg.render_dearpygui_frame()

        self._cleanup()

    def _cleanup(self) -> None:
        self._close_source()
        dpg.destroy_context()
