"""In-memory ``DrawSurface`` used by the view tests."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Tuple

from viewkit.draw_surface import AxisSpec, DrawSurface


class RecordingSurface(DrawSurface):
    def __init__(self) -> None:
        self.axes: Dict[str, AxisSpec] = {}
        self.axis_durations: Dict[str, int] = {}
        self.title = ""
        self.points: Dict[str, list] = {}
        self.point_durations: Dict[str, int] = {}
        self.paths: Dict[str, list] = {}
        self.fills: Dict[str, Dict[str, str]] = {}
        self.hovers: Dict[str, Dict[str, str]] = {}
        self.selection_boxes: List[Optional[Tuple[float, float, float, float]]] = []
        self.viewports: List[Tuple[Tuple[float, float], Tuple[float, float]]] = []
        self.drag_modes: List[Optional[str]] = []
        self.messages: List[Optional[str]] = []
        self.box_select_callbacks: List[Callable[..., Any]] = []
        self.deselect_callbacks: List[Callable[[], None]] = []
        self.viewport_callbacks: List[Callable[..., Any]] = []
        self.hover_callbacks: List[Callable[..., Any]] = []

    def set_axis(self, name: str, spec: AxisSpec, *, duration_ms: int = 0) -> None:
        self.axes[name] = spec
        self.axis_durations[name] = duration_ms if spec.animate else 0

    def set_title(self, text: str) -> None:
        self.title = text

    def draw_points(self, layer, points, *, duration_ms: int = 0) -> None:
        self.points[layer] = list(points)
        self.point_durations[layer] = duration_ms

    def draw_paths(self, layer, paths) -> None:
        self.paths[layer] = list(paths)

    def update_path_fills(self, layer, fills, hovers) -> None:
        self.fills[layer] = dict(fills)
        self.hovers[layer] = dict(hovers)

    def set_selection_box(self, box) -> None:
        self.selection_boxes.append(box)

    def set_viewport(self, x_range, y_range) -> None:
        self.viewports.append((tuple(x_range), tuple(y_range)))

    def set_drag_mode(self, mode) -> None:
        self.drag_modes.append(mode)

    def show_message(self, text) -> None:
        self.messages.append(text)

    def on_box_select(self, callback) -> None:
        self.box_select_callbacks.append(callback)

    def on_deselect(self, callback) -> None:
        self.deselect_callbacks.append(callback)

    def on_viewport_change(self, callback) -> None:
        self.viewport_callbacks.append(callback)

    def on_hover(self, callback) -> None:
        self.hover_callbacks.append(callback)


class ManualTimer:
    """Stand-in for ``PlaybackTimer`` that only ticks when told to."""

    def __init__(self) -> None:
        self.callback: Optional[Callable[[], None]] = None
        self.interval_s: Optional[float] = None
        self.starts = 0
        self.cancels = 0

    @property
    def active(self) -> bool:
        return self.callback is not None

    def start(self, interval_s: float, callback: Callable[[], None]) -> None:
        self.cancel()
        self.starts += 1
        self.interval_s = interval_s
        self.callback = callback

    def cancel(self) -> None:
        self.cancels += 1
        self.callback = None

    def tick(self) -> None:
        assert self.callback is not None
        self.callback()
