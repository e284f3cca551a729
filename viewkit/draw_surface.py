"""Draw-surface abstraction and its Plotly implementation.

Purpose
-------
Views never touch Plotly directly. They describe what to show with small
frozen shape/axis specs and hand them to a :class:`DrawSurface`. This keeps
the selection, zoom and filtering logic testable against a recording surface
while :class:`PlotlySurface` does the real drawing in a notebook.

Architecture notes
------------------
- One *layer* is one Plotly trace (points) or a group of traces (paths).
  Redrawing a layer replaces its data in place; traces are created lazily on
  first use so the trace order equals the order layers were first drawn.
- Animated updates go through ``FigureWidget.batch_animate``; instant ones
  through ``batch_update``.
- Interaction callbacks (box selection, deselect/click, viewport changes) are
  registered on the surface so views stay agnostic of Plotly's event API.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, List, Optional, Sequence, Tuple

import plotly.graph_objects as go

from .scales import ticks as nice_ticks

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

Range = Tuple[float, float]
Ring = Tuple[Tuple[float, float], ...]
BoxSelectCallback = Callable[[Range, Range], None]
ViewportCallback = Callable[[Range, Range], None]
HoverCallback = Callable[[str, Optional[str]], None]


@dataclass(frozen=True)
class AxisSpec:
    """Declarative axis configuration.

    Parameters
    ----------
    domain : tuple[float, float]
        Visible data range.
    tick_values : tuple[float, ...] or None
        Exact tick positions; ``None`` lets the surface pick ~``tick_count``.
    hidden_ticks : tuple[float, ...]
        Ticks whose label renders blank.
    integer_format : bool
        Format labels as integers (years).
    label : str
        Axis title.
    animate : bool
        Whether a change of this axis may be animated.
    reversed : bool
        Whether larger values are drawn towards the start of the range
        (pixel-space y axes).
    """

    domain: Range
    tick_values: Optional[Tuple[float, ...]] = None
    tick_count: int = 10
    hidden_ticks: Tuple[float, ...] = ()
    integer_format: bool = False
    label: str = ""
    animate: bool = True
    reversed: bool = False
    visible: bool = True


@dataclass(frozen=True)
class PointShape:
    key: Hashable
    x: float
    y: float
    color: str = "steelblue"
    opacity: float = 0.7
    size: float = 10.0
    hover: str = ""


@dataclass(frozen=True)
class PathShape:
    """Polyline/polygon in surface coordinates; ``fill=None`` draws only the outline."""

    key: str
    rings: Tuple[Ring, ...]
    fill: Optional[str] = None
    stroke: str = "#555"
    stroke_width: float = 0.3
    hover: str = ""


class DrawSurface(ABC):
    """Minimal rendering interface used by the views."""

    @abstractmethod
    def set_axis(self, name: str, spec: AxisSpec, *, duration_ms: int = 0) -> None:
        """Configure axis ``"x"`` or ``"y"``."""

    @abstractmethod
    def set_title(self, text: str) -> None: ...

    @abstractmethod
    def draw_points(self, layer: str, points: Sequence[PointShape], *, duration_ms: int = 0) -> None:
        """Replace the contents of point layer ``layer``."""

    @abstractmethod
    def draw_paths(self, layer: str, paths: Sequence[PathShape]) -> None:
        """Replace the contents of path layer ``layer``."""

    @abstractmethod
    def update_path_fills(self, layer: str, fills: Dict[str, str], hovers: Dict[str, str]) -> None:
        """Restyle existing paths by key without rebuilding geometry."""

    @abstractmethod
    def set_selection_box(self, box: Optional[Tuple[float, float, float, float]]) -> None:
        """Show the drag rectangle ``(x, y, width, height)`` in pixels, or hide it."""

    @abstractmethod
    def set_viewport(self, x_range: Range, y_range: Range) -> None: ...

    @abstractmethod
    def set_drag_mode(self, mode: Optional[str]) -> None:
        """``"select"``, ``"pan"``, ``"zoom"`` or ``None`` (drag disabled)."""

    @abstractmethod
    def show_message(self, text: Optional[str]) -> None: ...

    @abstractmethod
    def on_box_select(self, callback: BoxSelectCallback) -> None: ...

    @abstractmethod
    def on_deselect(self, callback: Callable[[], None]) -> None: ...

    @abstractmethod
    def on_viewport_change(self, callback: ViewportCallback) -> None: ...

    @abstractmethod
    def on_hover(self, callback: HoverCallback) -> None:
        """Call ``callback(layer, key)`` when a point is hovered and ``(layer, None)`` when it is left."""


def _tick_text(value: float, integer_format: bool) -> str:
    if integer_format:
        return str(int(round(value)))
    return f"{value:g}"


class PlotlySurface(DrawSurface):
    """:class:`DrawSurface` backed by a ``plotly.graph_objects.FigureWidget``.

    Parameters
    ----------
    figure : go.FigureWidget, optional
        Widget to draw into; a fresh one is created when omitted.
    width, height : int
        Plot-area size in pixels.
    margin : dict, optional
        Plotly margin dict.
    """

    def __init__(
        self,
        figure: Optional[go.FigureWidget] = None,
        *,
        width: int = 740,
        height: int = 400,
        margin: Optional[dict] = None,
    ) -> None:
        self.figure = figure if figure is not None else go.FigureWidget()
        m = margin or dict(t=40, r=30, b=60, l=60)
        self.figure.update_layout(
            width=width + m.get("l", 0) + m.get("r", 0),
            height=height + m.get("t", 0) + m.get("b", 0),
            margin=m,
            template="plotly_white",
            showlegend=False,
            hovermode="closest",
            plot_bgcolor="#ffffff",
            paper_bgcolor="#ffffff",
        )
        self._point_traces: Dict[str, int] = {}
        self._path_traces: Dict[str, Dict[str, int]] = {}
        self._box_select_callbacks: List[BoxSelectCallback] = []
        self._deselect_callbacks: List[Callable[[], None]] = []
        self._hover_callbacks: List[HoverCallback] = []
        self._viewport_callbacks: List[ViewportCallback] = []
        self._viewport_bound = False

    # --- axes / layout ---

    def set_axis(self, name: str, spec: AxisSpec, *, duration_ms: int = 0) -> None:
        if name not in ("x", "y"):
            raise ValueError(f"Unknown axis: {name}")
        lo, hi = spec.domain
        axis: dict = dict(
            range=[hi, lo] if spec.reversed else [lo, hi],
            title=dict(text=spec.label),
            visible=spec.visible,
            showgrid=False,
            zeroline=False,
            ticks="outside",
            showline=True,
            linecolor="#000",
            fixedrange=False,
        )
        if spec.tick_values is not None or spec.hidden_ticks:
            values = (
                list(spec.tick_values)
                if spec.tick_values is not None
                else nice_ticks(lo, hi, spec.tick_count)
            )
            hidden = set(spec.hidden_ticks)
            axis.update(
                tickmode="array",
                tickvals=values,
                ticktext=["" if v in hidden else _tick_text(v, spec.integer_format) for v in values],
            )
        else:
            axis.update(tickmode="auto", nticks=spec.tick_count, tickformat="d" if spec.integer_format else "")
        key = "xaxis" if name == "x" else "yaxis"
        if duration_ms > 0 and spec.animate:
            with self.figure.batch_animate(duration=duration_ms, easing="cubic-in-out"):
                self.figure.layout[key].update(axis)
        else:
            with self.figure.batch_update():
                self.figure.layout[key].update(axis)

    def set_title(self, text: str) -> None:
        self.figure.layout.title = dict(text=text, x=0.5, xanchor="center", font=dict(size=16))

    def set_viewport(self, x_range: Range, y_range: Range) -> None:
        with self.figure.batch_update():
            self.figure.layout.xaxis.range = list(x_range)
            self.figure.layout.yaxis.range = list(y_range)

    def set_drag_mode(self, mode: Optional[str]) -> None:
        self.figure.layout.dragmode = mode if mode is not None else False

    def show_message(self, text: Optional[str]) -> None:
        if not text:
            self.figure.layout.annotations = ()
            return
        self.figure.layout.annotations = (
            dict(text=text, x=0.5, y=0.5, xref="paper", yref="paper", showarrow=False, font=dict(color="#b91c1c")),
        )

    def set_selection_box(self, box: Optional[Tuple[float, float, float, float]]) -> None:
        # Plotly draws its own selection outline while dragging; nothing to mirror.
        if box is None:
            self.figure.layout.selections = ()

    # --- layers ---

    def _ensure_point_trace(self, layer: str) -> go.Scatter:
        index = self._point_traces.get(layer)
        if index is None:
            self.figure.add_trace(
                go.Scatter(
                    x=[], y=[], mode="markers", name=layer, uid=layer,
                    hoverinfo="text", hoverlabel=dict(bgcolor="rgba(0,0,0,0.7)", font=dict(color="#fff")),
                )
            )
            index = len(self.figure.data) - 1
            self._point_traces[layer] = index
            self._bind_trace_events(self.figure.data[index])
        return self.figure.data[index]

    def draw_points(self, layer: str, points: Sequence[PointShape], *, duration_ms: int = 0) -> None:
        trace = self._ensure_point_trace(layer)
        update = dict(
            x=[p.x for p in points],
            y=[p.y for p in points],
            ids=[str(p.key) for p in points],
            hovertext=[p.hover for p in points],
            marker=dict(
                color=[p.color for p in points],
                opacity=[p.opacity for p in points],
                size=[p.size for p in points],
                line=dict(width=0),
            ),
        )
        if duration_ms > 0:
            with self.figure.batch_animate(duration=duration_ms, easing="cubic-in-out"):
                trace.update(update)
        else:
            with self.figure.batch_update():
                trace.update(update)

    def draw_paths(self, layer: str, paths: Sequence[PathShape]) -> None:
        existing = self._path_traces.setdefault(layer, {})
        with self.figure.batch_update():
            for shape in paths:
                xs: List[Optional[float]] = []
                ys: List[Optional[float]] = []
                for ring in shape.rings:
                    if xs:
                        xs.append(None)
                        ys.append(None)
                    xs.extend(pt[0] for pt in ring)
                    ys.extend(pt[1] for pt in ring)
                props = dict(
                    x=xs,
                    y=ys,
                    mode="lines",
                    line=dict(color=shape.stroke, width=shape.stroke_width),
                    fill="toself" if shape.fill else "none",
                    fillcolor=shape.fill,
                    hoveron="fills" if shape.fill else "points",
                    hoverinfo="text" if shape.hover else "skip",
                    text=shape.hover,
                    name=shape.key,
                )
                index = existing.get(shape.key)
                if index is None:
                    self.figure.add_trace(go.Scatter(**props))
                    existing[shape.key] = len(self.figure.data) - 1
                else:
                    self.figure.data[index].update(props)

    def update_path_fills(self, layer: str, fills: Dict[str, str], hovers: Dict[str, str]) -> None:
        existing = self._path_traces.get(layer, {})
        with self.figure.batch_update():
            for key, index in existing.items():
                trace = self.figure.data[index]
                if key in fills:
                    trace.fillcolor = fills[key]
                if key in hovers:
                    trace.text = hovers[key]

    # --- events ---

    def on_box_select(self, callback: BoxSelectCallback) -> None:
        self._box_select_callbacks.append(callback)

    def on_deselect(self, callback: Callable[[], None]) -> None:
        self._deselect_callbacks.append(callback)

    def on_viewport_change(self, callback: ViewportCallback) -> None:
        self._viewport_callbacks.append(callback)
        if not self._viewport_bound:
            self._viewport_bound = True
            self.figure.layout.on_change(self._dispatch_viewport, "xaxis.range", "yaxis.range")

    def on_hover(self, callback: HoverCallback) -> None:
        self._hover_callbacks.append(callback)

    def _bind_trace_events(self, trace: go.Scatter) -> None:
        trace.on_selection(self._dispatch_selection)
        trace.on_deselect(self._dispatch_deselect)
        trace.on_hover(self._dispatch_hover)
        trace.on_unhover(self._dispatch_unhover)

    def _dispatch_selection(self, _trace, _points, selector) -> None:
        xrange = getattr(selector, "xrange", None)
        yrange = getattr(selector, "yrange", None)
        if xrange is None or yrange is None:
            return
        for callback in list(self._box_select_callbacks):
            callback((float(xrange[0]), float(xrange[1])), (float(yrange[0]), float(yrange[1])))

    def _dispatch_deselect(self, *_args) -> None:
        for callback in list(self._deselect_callbacks):
            callback()

    def _dispatch_viewport(self, _layout, xrange, yrange) -> None:
        if xrange is None or yrange is None:
            return
        for callback in list(self._viewport_callbacks):
            callback((float(xrange[0]), float(xrange[1])), (float(yrange[0]), float(yrange[1])))

    def _dispatch_hover(self, trace, points, _state) -> None:
        indices = list(getattr(points, "point_inds", None) or [])
        ids = list(trace.ids or [])
        if not indices or indices[0] >= len(ids):
            return
        for callback in list(self._hover_callbacks):
            callback(trace.name, ids[indices[0]])

    def _dispatch_unhover(self, trace, _points, _state) -> None:
        for callback in list(self._hover_callbacks):
            callback(trace.name, None)
