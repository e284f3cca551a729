"""Sidebar legends for the map view.

Purpose
-------
:class:`CategoryLegend` renders one row per event category: a checkbox bound
to the :class:`~viewkit.event_categories.CategoryFilter`, a colour swatch
(grey while toggled off) and the category label. :func:`decile_legend_html`
renders the choropleth's colour bins as a single strip.

Architecture notes
------------------
Rows are created once and updated in place, and programmatic checkbox writes
are guarded so they do not echo back into the filter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

import ipywidgets as widgets

from .choropleth import NO_DATA_FILL, LegendBin
from .event_categories import Category, CategoryFilter


@dataclass
class SwatchRow:
    """Widgets of one legend row bound to a category."""

    category: Category
    container: widgets.HBox
    toggle: widgets.Checkbox
    swatch: widgets.HTML


def swatch_html(color: str, label: str) -> str:
    return (
        f"<span style='display:inline-block;width:12px;height:12px;margin-right:6px;"
        f"border:1px solid #333;background:{color}'></span>{label}"
    )


class CategoryLegend:
    """Legend rows that toggle event categories.

    Parameters
    ----------
    category_filter : CategoryFilter
        Toggle state; every checkbox write goes through it (and is persisted).
    on_change : callable, optional
        Called with no arguments after a user toggle so the view can redraw.
    categories : iterable of Category, optional
        Rows to show, in order. Defaults to every category.
    """

    def __init__(
        self,
        category_filter: CategoryFilter,
        *,
        on_change: Optional[Callable[[], None]] = None,
        categories: Optional[Iterable[Category]] = None,
    ) -> None:
        self._filter = category_filter
        self._on_change = on_change
        self._suspended: set[Category] = set()
        self._rows: Dict[Category, SwatchRow] = {}
        for category in categories if categories is not None else Category:
            self._rows[category] = self._create_row(category)
        self.refresh()

    @property
    def rows(self) -> Dict[Category, SwatchRow]:
        return dict(self._rows)

    @property
    def row_widgets(self) -> Sequence[widgets.Widget]:
        return tuple(row.container for row in self._rows.values())

    def refresh(self) -> None:
        """Mirror the filter state into the checkboxes and swatches."""
        for category, row in self._rows.items():
            enabled = self._filter.is_enabled(category)
            html = swatch_html(self._filter.swatch_color(category), category.label)
            if row.swatch.value != html:
                row.swatch.value = html
            if row.toggle.value != enabled:
                self._suspended.add(category)
                try:
                    row.toggle.value = enabled
                finally:
                    self._suspended.discard(category)

    def _create_row(self, category: Category) -> SwatchRow:
        toggle = widgets.Checkbox(
            value=True,
            description="",
            indent=False,
            layout=widgets.Layout(width="28px", min_width="28px", margin="0"),
        )
        swatch = widgets.HTML(value="", layout=widgets.Layout(margin="0", width="100%"))
        container = widgets.HBox(
            [toggle, swatch],
            layout=widgets.Layout(width="100%", align_items="center", margin="0", gap="6px"),
        )
        toggle.observe(lambda change, c=category: self._on_toggle_changed(c, change), names="value")
        return SwatchRow(category=category, container=container, toggle=toggle, swatch=swatch)

    def _on_toggle_changed(self, category: Category, change: Dict[str, Any]) -> None:
        if change.get("name") != "value" or category in self._suspended:
            return
        self._filter.set_enabled(category, bool(change.get("new")))
        self.refresh()
        if self._on_change is not None:
            self._on_change()


def decile_legend_html(bins: Sequence[LegendBin], title: str = "Deciles") -> str:
    """Colour strip for the choropleth bins plus a *No data* box."""
    cells = "".join(
        f"<span title='{b.title}' style='display:inline-block;width:18px;height:12px;background:{b.color}'></span>"
        for b in bins
    )
    no_data = swatch_html(NO_DATA_FILL, "No data")
    return f"<div><b>{title}</b></div><div style='margin:4px 0'>{cells}</div><div>{no_data}</div>"
