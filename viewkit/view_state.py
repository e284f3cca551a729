"""View-state values for the scatter and map views.

Purpose
-------
All interaction handlers take a state value and return a new one; nothing
keeps free-floating module globals for the current selection, zoom or year.
The dataclasses are frozen, so handlers build successors with
:func:`dataclasses.replace`.

Notes
-----
Only a subset of this state is persisted (axis fields and category toggles);
domains, transforms and the current year live for one session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

from .event_categories import Category

Domain = Tuple[float, float]


def field_label(name: str) -> str:
    """Display label for a field id (underscores become spaces)."""
    return str(name).replace("_", " ")


@dataclass(frozen=True)
class ZoomTransform:
    """Translate-then-scale transform of the map content.

    Parameters
    ----------
    x, y : float
        Translation in viewport pixels.
    k : float
        Zoom factor; ``1`` is the un-zoomed map.
    """

    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def apply(self, px: float, py: float) -> tuple[float, float]:
        """Map content coordinates to viewport coordinates."""
        return (px * self.k + self.x, py * self.k + self.y)

    def invert(self, vx: float, vy: float) -> tuple[float, float]:
        """Map viewport coordinates back to content coordinates."""
        return ((vx - self.x) / self.k, (vy - self.y) / self.k)


IDENTITY = ZoomTransform()


@dataclass(frozen=True)
class ScatterViewState:
    """State of the scatter view.

    Parameters
    ----------
    x_field, y_field : str
        Selected dataset columns.
    x_domain, y_domain : Domain
        Current (possibly zoomed) axis domains.
    original_x_domain, original_y_domain : Domain
        Extents a click resets to; recomputed whenever a field changes.
    y_ticks : tuple[float, ...]
        Tick values captured for the un-zoomed y domain.
    """

    x_field: str
    y_field: str
    x_domain: Domain
    y_domain: Domain
    original_x_domain: Domain
    original_y_domain: Domain
    y_ticks: Tuple[float, ...] = ()

    @property
    def title(self) -> str:
        return f"{field_label(self.y_field)} vs {field_label(self.x_field)}"


@dataclass(frozen=True)
class MapViewState:
    """State of the map view.

    Parameters
    ----------
    year : int
        Year shown by the slider, choropleth and overlay.
    playing : bool
        Whether playback is advancing the year.
    transform : ZoomTransform
        Current clamped pan/zoom transform.
    disabled_categories : frozenset[Category]
        Categories whose swatch is toggled off.
    """

    year: int
    playing: bool = False
    transform: ZoomTransform = IDENTITY
    disabled_categories: FrozenSet[Category] = field(default_factory=frozenset)
