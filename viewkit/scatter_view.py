"""Scatter view: two field dropdowns, drag-to-zoom and click-to-reset.

Purpose
-------
``ScatterView`` plots one record per point with the x/y fields chosen in two
dropdowns. The selection is persisted, so reopening the notebook restores
it. Dragging a rectangle zooms both axes to it; a click (or a tiny drag)
resets them.

Architecture notes
------------------
- The view holds a single :class:`~viewkit.view_state.ScatterViewState` and
  replaces it on every interaction; :meth:`render` derives everything the
  surface shows from it.
- Plotly reports box selections in data units. They are converted to plot
  pixels and fed through :class:`~viewkit.drag_zoom.DragZoomController`, so
  the click threshold is measured in pixels as for a hand-drawn overlay.
- Rendering is logged with the same rate limiting used for relayout storms.

Examples
--------
>>> from viewkit import ScatterView, load_dataset  # doctest: +SKIP
>>> view = ScatterView(load_dataset("phenology.csv"))  # doctest: +SKIP
>>> view  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Dict, List, Optional, Tuple

import ipywidgets as widgets
from IPython.display import display

from .axis_selector import AxisSelector, ScatterPoint
from .config import SCATTER_MARGIN, ViewConfig
from .data_loader import Dataset
from .drag_zoom import DragZoomController, ZoomOutcome
from .draw_surface import DrawSurface, PlotlySurface, PointShape
from .layout import OneShotOutput, ViewLayout
from .preferences import PreferenceStore
from .view_state import ScatterViewState, field_label

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

POINT_LAYER = "points"
POINT_COLOR = "steelblue"
POINT_OPACITY = 0.7
HOVER_OPACITY = 1.0


def _format_cell(value: float) -> str:
    if not math.isfinite(value):
        return "N/A"
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


class ScatterView:
    """Interactive two-field scatter plot.

    Parameters
    ----------
    dataset : Dataset
        Records to plot; every column is offered in both dropdowns.
    store : PreferenceStore, optional
        Where the ``xFeat``/``yFeat`` choice is kept. Defaults to the file
        named by ``config.prefs_path``.
    config : ViewConfig, optional
        Sizes, padding, click threshold and transition duration.
    surface : DrawSurface, optional
        Rendering target; a :class:`PlotlySurface` is created when omitted.
    """

    def __init__(
        self,
        dataset: Dataset,
        store: Optional[PreferenceStore] = None,
        *,
        config: Optional[ViewConfig] = None,
        surface: Optional[DrawSurface] = None,
    ) -> None:
        self.config = config if config is not None else ViewConfig.from_env()
        self._store = store if store is not None else PreferenceStore(self.config.prefs_path)
        self._selector = AxisSelector(dataset, self._store, padding=self.config.padding)
        self._drag = DragZoomController(self.config.scatter_size, click_threshold=self.config.click_threshold_px)
        width, height = self.config.scatter_size
        self._surface = (
            surface if surface is not None else PlotlySurface(width=width, height=height, margin=SCATTER_MARGIN)
        )
        self._state: ScatterViewState = self._selector.initial_state()
        self._hovered: Optional[str] = None
        self._suspend_dropdowns = False
        self._render_info_last_log_t = 0.0
        self._render_debug_last_log_t = 0.0

        self._layout = ViewLayout()
        options = self._selector.options()
        self.x_dropdown = widgets.Dropdown(options=options, value=self._state.x_field, description="X:")
        self.y_dropdown = widgets.Dropdown(options=options, value=self._state.y_field, description="Y:")
        self.x_dropdown.observe(lambda change: self._on_dropdown("x", change), names="value")
        self.y_dropdown.observe(lambda change: self._on_dropdown("y", change), names="value")
        self._layout.set_controls([self.x_dropdown, self.y_dropdown])
        if isinstance(self._surface, PlotlySurface):
            self._layout.set_plot_widget(self._surface.figure)

        self._surface.set_drag_mode("select")
        self._surface.on_box_select(self._on_box_select)
        self._surface.on_deselect(self._on_deselect)
        self._surface.on_hover(self._on_hover)
        self.render(reason="init", animate=False)

    # --- public API ---

    @property
    def state(self) -> ScatterViewState:
        return self._state

    @property
    def surface(self) -> DrawSurface:
        return self._surface

    @property
    def layout(self) -> ViewLayout:
        return self._layout

    @property
    def selector(self) -> AxisSelector:
        return self._selector

    def select_field(self, axis: str, name: str) -> None:
        """Show field ``name`` on ``axis`` (``"x"`` or ``"y"``) and persist the choice."""
        self._state = self._selector.select(self._state, axis, name)
        self._sync_dropdowns()
        self.render(reason=f"{axis}_field")

    def drag(self, start: Tuple[float, float], end: Tuple[float, float]) -> ZoomOutcome:
        """Run a complete drag gesture in plot-area pixels."""
        self._drag.start(*start)
        self._surface.set_selection_box(self._drag.selection.as_tuple())
        selection = self._drag.move(*end)
        self._surface.set_selection_box(selection.as_tuple())
        state, outcome = self._drag.end(self._state)
        return self._apply(state, outcome)

    def click(self, x: float = 0.0, y: float = 0.0) -> ZoomOutcome:
        state, outcome = self._drag.click(self._state, x, y)
        return self._apply(state, outcome)

    def points(self) -> List[ScatterPoint]:
        return self._selector.points(self._state)

    def render(self, reason: str = "manual", *, animate: bool = True) -> None:
        """Push axes, title and points for the current state to the surface."""
        self._log_render(reason)
        state = self._state
        points = self.points()
        duration = self.config.transition_ms if animate else 0
        self._surface.set_title(state.title)
        self._surface.set_axis("x", self._selector.x_axis_spec(state, points), duration_ms=duration)
        self._surface.set_axis("y", self._selector.y_axis_spec(state), duration_ms=duration)
        self._surface.draw_points(POINT_LAYER, self._point_shapes(points), duration_ms=duration)

    @property
    def output_widget(self) -> OneShotOutput:
        return self._layout.output_widget

    def _ipython_display_(self, **kwargs: Any) -> None:
        display(self._layout.output_widget)

    # --- internals ---

    def _point_shapes(self, points: List[ScatterPoint]) -> List[PointShape]:
        x_label = field_label(self._state.x_field)
        y_label = field_label(self._state.y_field)
        return [
            PointShape(
                key=p.index,
                x=p.x,
                y=p.y,
                color=POINT_COLOR,
                opacity=HOVER_OPACITY if str(p.index) == self._hovered else POINT_OPACITY,
                hover=(
                    f"Year: {_format_cell(p.year)}<br>"
                    f"{x_label}: {_format_cell(p.x)}<br>"
                    f"{y_label}: {_format_cell(p.y)}"
                ),
            )
            for p in points
        ]

    def _apply(self, state: ScatterViewState, outcome: ZoomOutcome) -> ZoomOutcome:
        self._surface.set_selection_box(None)
        if outcome is ZoomOutcome.NOOP:
            return outcome
        self._state = state
        self.render(reason=outcome.value)
        return outcome

    def _on_box_select(self, x_range: Tuple[float, float], y_range: Tuple[float, float]) -> None:
        state, outcome = self._drag.select_data_box(self._state, x_range, y_range)
        self._apply(state, outcome)

    def _on_deselect(self) -> None:
        self.click()

    def _on_hover(self, layer: str, key: Optional[str]) -> None:
        if layer != POINT_LAYER or key == self._hovered:
            return
        self._hovered = key
        self._surface.draw_points(POINT_LAYER, self._point_shapes(self.points()))

    def _on_dropdown(self, axis: str, change: Dict[str, Any]) -> None:
        if self._suspend_dropdowns:
            return
        self.select_field(axis, change["new"])

    def _sync_dropdowns(self) -> None:
        self._suspend_dropdowns = True
        try:
            self.x_dropdown.value = self._state.x_field
            self.y_dropdown.value = self._state.y_field
        finally:
            self._suspend_dropdowns = False

    def _log_render(self, reason: str) -> None:
        now = time.monotonic()
        if logger.isEnabledFor(logging.INFO) and (now - self._render_info_last_log_t) > 1.0:
            self._render_info_last_log_t = now
            logger.info("render(reason=%s) title=%r", reason, self._state.title)
        if logger.isEnabledFor(logging.DEBUG) and (now - self._render_debug_last_log_t) > 0.5:
            self._render_debug_last_log_t = now
            logger.debug("domains x=%s y=%s", self._state.x_domain, self._state.y_domain)
