"""Pan/zoom for the map view.

The map content lives in viewport pixel space ``[0, width] x [0, height]``
(y grows downward). A :class:`~viewkit.view_state.ZoomTransform` maps content
to viewport; the controller keeps it clamped so the map always covers the
viewport and converts between the transform and the axis ranges the draw
surface reports.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from .config import MAP_HEIGHT, MAP_WIDTH, MAX_ZOOM, MIN_ZOOM
from .view_state import IDENTITY, ZoomTransform

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

Range = Tuple[float, float]

ALWAYS_ACCEPTED = frozenset({"wheel", "dblclick", "touchstart"})
DRAG_EVENT_PREFIXES = ("mouse", "pointer", "touch", "drag")


class PanZoomController:
    """Clamp and convert map transforms.

    Parameters
    ----------
    size : tuple[int, int]
        Viewport width and height in pixels.
    zoom_extent : tuple[float, float]
        Allowed range of the zoom factor ``k``.
    """

    def __init__(
        self,
        size: Tuple[int, int] = (MAP_WIDTH, MAP_HEIGHT),
        *,
        zoom_extent: Tuple[float, float] = (MIN_ZOOM, MAX_ZOOM),
    ) -> None:
        self.width, self.height = float(size[0]), float(size[1])
        self.min_zoom, self.max_zoom = float(zoom_extent[0]), float(zoom_extent[1])
        if self.min_zoom <= 0 or self.min_zoom > self.max_zoom:
            raise ValueError(f"Invalid zoom extent: {zoom_extent}")

    def accepts(self, event_type: str, transform: ZoomTransform = IDENTITY) -> bool:
        """Whether a gesture starting with ``event_type`` may change the transform.

        Wheel, double-click and touchstart are always accepted; other mouse,
        pointer and touch events only count once the map is zoomed in.
        """
        if event_type in ALWAYS_ACCEPTED:
            return True
        if event_type.startswith(DRAG_EVENT_PREFIXES):
            return transform.k > 1
        return False

    def drag_mode(self, transform: ZoomTransform) -> str:
        """Surface drag mode for ``transform``: pan when zoomed, box-zoom otherwise."""
        return "pan" if self.accepts("mousedown", transform) else "zoom"

    def clamp(self, transform: ZoomTransform) -> ZoomTransform:
        """Limit ``k`` to the zoom extent and keep the content covering the viewport."""
        k = min(self.max_zoom, max(self.min_zoom, transform.k))
        min_x = min(0.0, self.width - self.width * k)
        min_y = min(0.0, self.height - self.height * k)
        x = min(0.0, max(min_x, transform.x))
        y = min(0.0, max(min_y, transform.y))
        return ZoomTransform(x=x, y=y, k=k)

    def to_ranges(self, transform: ZoomTransform) -> Tuple[Range, Range]:
        """Visible content ranges ``(x0, x1), (y0, y1)`` for ``transform``."""
        x0, y0 = transform.invert(0.0, 0.0)
        x1, y1 = transform.invert(self.width, self.height)
        return (x0, x1), (y0, y1)

    def from_ranges(self, x_range: Range, y_range: Optional[Range] = None) -> ZoomTransform:
        """Transform showing ``x_range`` (and ``y_range``), before clamping.

        The zoom factor follows the x span; with a uniform transform the y
        range only contributes its top edge.
        """
        x0, x1 = sorted(x_range)
        span = x1 - x0
        if span <= 0:
            return IDENTITY
        k = self.width / span
        y0 = min(y_range) if y_range is not None else 0.0
        return ZoomTransform(x=-x0 * k, y=-y0 * k, k=k)

    def update_from_ranges(self, x_range: Range, y_range: Optional[Range] = None) -> ZoomTransform:
        transform = self.clamp(self.from_ranges(x_range, y_range))
        logger.debug("viewport %s %s -> %s", x_range, y_range, transform)
        return transform
