"""Drag-to-zoom / click-to-reset for the scatter view.

State machine
-------------
::

    IDLE --start--> DRAGGING --move--> DRAGGING
    DRAGGING --end, selection <= threshold--> IDLE   (click)
    DRAGGING --end, selection >  threshold--> ZOOMED

A click at the original domains changes nothing. A click while zoomed resets
both domains to their original extents. A larger selection replaces both
domains with the inverse-projected rectangle; the y domain is niced.

Coordinates are plot-area pixels with the origin at the top-left corner, so
the rectangle's bottom edge (larger pixel y) maps to the lower y value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from .config import CLICK_THRESHOLD_PX, DOMAIN_EPS, Y_TICK_COUNT
from .scales import LinearScale, nice_domain
from .view_state import Domain, ScatterViewState

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class DragPhase(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    ZOOMED = "zoomed"


class ZoomOutcome(Enum):
    """What ``DragZoomController.end`` did to the domains."""

    NOOP = "noop"
    RESET = "reset"
    ZOOMED = "zoomed"


@dataclass(frozen=True)
class Selection:
    """Drag rectangle in pixels: top-left corner plus size."""

    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


def domains_equal(a: Domain, b: Domain, eps: float = DOMAIN_EPS) -> bool:
    return abs(a[0] - b[0]) < eps and abs(a[1] - b[1]) < eps


def is_at_original(state: ScatterViewState) -> bool:
    """Return ``True`` when neither axis is zoomed."""
    return domains_equal(state.x_domain, state.original_x_domain) and domains_equal(
        state.y_domain, state.original_y_domain
    )


def hidden_tick_labels(tick_values: Iterable[float], domain: Domain, eps: float = DOMAIN_EPS) -> Tuple[float, ...]:
    """Return the ticks sitting on either end of ``domain``; their labels are blanked."""
    lo, hi = domain
    return tuple(t for t in tick_values if abs(t - lo) < eps or abs(t - hi) < eps)


class DragZoomController:
    """Track one drag gesture and turn it into a domain change.

    Parameters
    ----------
    size : tuple[int, int]
        Plot-area width and height in pixels.
    click_threshold : float
        Selections no wider and no taller than this are clicks.
    """

    def __init__(self, size: Tuple[int, int], *, click_threshold: float = CLICK_THRESHOLD_PX) -> None:
        self._width, self._height = size
        self._click_threshold = float(click_threshold)
        self._phase = DragPhase.IDLE
        self._origin: Optional[Tuple[float, float]] = None
        self._selection: Optional[Selection] = None

    @property
    def phase(self) -> DragPhase:
        return self._phase

    @property
    def selection(self) -> Optional[Selection]:
        """Current overlay rectangle, ``None`` when no drag is in progress."""
        return self._selection

    def x_scale(self, state: ScatterViewState) -> LinearScale:
        return LinearScale(state.x_domain, (0.0, float(self._width)))

    def y_scale(self, state: ScatterViewState) -> LinearScale:
        return LinearScale(state.y_domain, (float(self._height), 0.0))

    def start(self, x: float, y: float) -> Selection:
        self._origin = (float(x), float(y))
        self._selection = Selection(float(x), float(y), 0.0, 0.0)
        self._phase = DragPhase.DRAGGING
        return self._selection

    def move(self, x: float, y: float) -> Selection:
        if self._origin is None:
            return self.start(x, y)
        ox, oy = self._origin
        self._selection = Selection(min(ox, x), min(oy, y), abs(x - ox), abs(y - oy))
        return self._selection

    def end(self, state: ScatterViewState) -> Tuple[ScatterViewState, ZoomOutcome]:
        """Finish the gesture and return the new state and what happened."""
        selection = self._selection
        self._origin = None
        self._selection = None
        if selection is None:
            return state, ZoomOutcome.NOOP

        if selection.width <= self._click_threshold and selection.height <= self._click_threshold:
            if is_at_original(state):
                self._phase = DragPhase.IDLE
                return state, ZoomOutcome.NOOP
            self._phase = DragPhase.IDLE
            logger.debug("click reset to x=%s y=%s", state.original_x_domain, state.original_y_domain)
            return (
                replace(state, x_domain=state.original_x_domain, y_domain=state.original_y_domain),
                ZoomOutcome.RESET,
            )

        xs = self.x_scale(state)
        ys = self.y_scale(state)
        new_x = (xs.invert(selection.x), xs.invert(selection.x2))
        # Pixel y grows downward: the bottom edge is the lower data value.
        new_y = nice_domain((ys.invert(selection.y2), ys.invert(selection.y)), Y_TICK_COUNT)
        self._phase = DragPhase.ZOOMED
        logger.debug("zoom to x=%s y=%s", new_x, new_y)
        return replace(state, x_domain=new_x, y_domain=new_y), ZoomOutcome.ZOOMED

    def click(self, state: ScatterViewState, x: float = 0.0, y: float = 0.0) -> Tuple[ScatterViewState, ZoomOutcome]:
        """A zero-size drag at ``(x, y)``."""
        self.start(x, y)
        return self.end(state)

    def select_data_box(
        self, state: ScatterViewState, x_range: Tuple[float, float], y_range: Tuple[float, float]
    ) -> Tuple[ScatterViewState, ZoomOutcome]:
        """Run a whole drag from a selection reported in data units."""
        xs = self.x_scale(state)
        ys = self.y_scale(state)
        px: List[float] = sorted((xs(x_range[0]), xs(x_range[1])))
        py: List[float] = sorted((ys(y_range[0]), ys(y_range[1])))
        self.start(px[0], py[0])
        self.move(px[1], py[1])
        return self.end(state)
