"""Axis/feature selection for the scatter view.

The selector restores the persisted ``xFeat``/``yFeat`` choice, derives the
scatter points and axis domains for a pair of fields, and builds the axis
specs the draw surface consumes.

Year axes are special: their ticks are the exact distinct years (only those
inside the current x domain once zoomed), formatted as integers, and never
animated so ticks do not fly in from the old positions.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from .config import DEFAULT_X_FIELD, DEFAULT_Y_FIELD, DOMAIN_PADDING, X_TICK_COUNT, Y_TICK_COUNT, YEAR_FIELD
from .convert import to_number
from .data_loader import Dataset
from .draw_surface import AxisSpec
from .drag_zoom import domains_equal, hidden_tick_labels
from .preferences import PreferenceStore
from .scales import extent, nice_domain, ticks
from .view_state import Domain, ScatterViewState, field_label

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

AXIS_KEYS = {"x": "xFeat", "y": "yFeat"}


@dataclass(frozen=True)
class ScatterPoint:
    """One plotted record; ``index`` is its row and stable key."""

    index: int
    x: float
    y: float
    year: float


def restore_axis_fields(
    store: PreferenceStore,
    fields: Sequence[str],
    defaults: Tuple[str, str] = (DEFAULT_X_FIELD, DEFAULT_Y_FIELD),
) -> Tuple[str, str]:
    """Return the stored ``(x, y)`` fields, falling back per axis to ``defaults``.

    A stored value naming a field missing from ``fields`` is ignored. When a
    default is missing too, the first field is used so the view still opens.
    """
    if not fields:
        raise ValueError("Dataset has no fields")
    chosen = []
    for axis, default in zip(("x", "y"), defaults):
        saved = store.get(AXIS_KEYS[axis])
        if saved and saved in fields:
            chosen.append(saved)
            continue
        if saved:
            logger.debug("Stored %s field %r not in dataset, using default", axis, saved)
        chosen.append(default if default in fields else fields[0])
    return chosen[0], chosen[1]


def padded_domain(values: Sequence[float], padding: float = DOMAIN_PADDING) -> Domain:
    """``[min - padding, max + padding]`` over the finite values."""
    bounds = extent(values)
    if bounds is None:
        bounds = (0.0, 1.0)
    return (bounds[0] - padding, bounds[1] + padding)


class AxisSelector:
    """Compute scatter data and axis configuration for field selections.

    Parameters
    ----------
    dataset : Dataset
        Loaded records; every cell is still text.
    store : PreferenceStore
        Where selections are persisted.
    padding : float
        Units added on each side of a fresh domain.
    """

    def __init__(self, dataset: Dataset, store: PreferenceStore, *, padding: float = DOMAIN_PADDING) -> None:
        if not dataset.fields:
            raise ValueError("Dataset has no fields")
        self._dataset = dataset
        self._store = store
        self._padding = float(padding)

    @property
    def fields(self) -> List[str]:
        return list(self._dataset.fields)

    def options(self) -> List[Tuple[str, str]]:
        """Dropdown ``(label, value)`` pairs."""
        return [(field_label(f), f) for f in self._dataset.fields]

    def _values(self, name: str) -> List[float]:
        return [to_number(row.get(name)) for row in self._dataset.records]

    def points(self, state: ScatterViewState) -> List[ScatterPoint]:
        """Records with finite coordinates for the selected fields."""
        xs = self._values(state.x_field)
        ys = self._values(state.y_field)
        years = self._values(YEAR_FIELD) if self._dataset.has_field(YEAR_FIELD) else [math.nan] * len(xs)
        return [
            ScatterPoint(index=i, x=x, y=y, year=yr)
            for i, (x, y, yr) in enumerate(zip(xs, ys, years))
            if math.isfinite(x) and math.isfinite(y)
        ]

    def initial_state(self, x_field: Optional[str] = None, y_field: Optional[str] = None) -> ScatterViewState:
        """Build the un-zoomed state, restoring persisted fields when not given."""
        if x_field is None or y_field is None:
            rx, ry = restore_axis_fields(self._store, self._dataset.fields)
            x_field = x_field or rx
            y_field = y_field or ry
        x_domain = padded_domain(self._values(x_field), self._padding)
        y_domain = nice_domain(padded_domain(self._values(y_field), self._padding), Y_TICK_COUNT)
        return ScatterViewState(
            x_field=x_field,
            y_field=y_field,
            x_domain=x_domain,
            y_domain=y_domain,
            original_x_domain=x_domain,
            original_y_domain=y_domain,
            y_ticks=tuple(ticks(y_domain[0], y_domain[1], Y_TICK_COUNT)),
        )

    def select(self, state: ScatterViewState, axis: str, name: str) -> ScatterViewState:
        """Switch ``axis`` (``"x"`` or ``"y"``) to field ``name`` and persist it.

        The other axis keeps its current domain.
        """
        if axis not in AXIS_KEYS:
            raise ValueError(f"Unknown axis: {axis!r}")
        if not self._dataset.has_field(name):
            raise KeyError(f"Unknown field: {name}")
        self._store.set(AXIS_KEYS[axis], name)
        domain = padded_domain(self._values(name), self._padding)
        if axis == "x":
            return replace(state, x_field=name, x_domain=domain, original_x_domain=domain)
        domain = nice_domain(domain, Y_TICK_COUNT)
        return replace(
            state,
            y_field=name,
            y_domain=domain,
            original_y_domain=domain,
            y_ticks=tuple(ticks(domain[0], domain[1], Y_TICK_COUNT)),
        )

    def x_axis_spec(self, state: ScatterViewState, points: Sequence[ScatterPoint]) -> AxisSpec:
        is_year = state.x_field == YEAR_FIELD
        tick_values = None
        if is_year:
            lo, hi = state.x_domain
            tick_values = tuple(sorted({p.x for p in points if lo <= p.x <= hi}))
        return AxisSpec(
            domain=state.x_domain,
            tick_values=tick_values,
            tick_count=X_TICK_COUNT,
            integer_format=is_year,
            label=field_label(state.x_field),
            animate=not is_year,
        )

    def y_axis_spec(self, state: ScatterViewState) -> AxisSpec:
        is_year = state.y_field == YEAR_FIELD
        if domains_equal(state.y_domain, state.original_y_domain) and state.y_ticks:
            values = state.y_ticks
        else:
            values = tuple(ticks(state.y_domain[0], state.y_domain[1], Y_TICK_COUNT))
        return AxisSpec(
            domain=state.y_domain,
            tick_values=values,
            tick_count=Y_TICK_COUNT,
            hidden_ticks=hidden_tick_labels(values, state.y_domain),
            integer_format=is_year,
            label=field_label(state.y_field),
            animate=not is_year,
        )
