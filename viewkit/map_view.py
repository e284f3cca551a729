"""Map view: yearly choropleth, event overlay, playback and pan/zoom.

Purpose
-------
``MapView`` draws country boundaries in the Natural Earth projection,
colours them by decile of the selected year's values, and overlays the
events of that year. A slider picks the year, a play button animates
through all years (older events fading out), and legend swatches toggle
event categories.

Concepts and structure
----------------------
- Geometry is projected once at construction. Later updates only restyle
  country fills and replace the event layer.
- Choropleth values come from a wide population table (``POP.raw.YYYY``
  columns) when one is given, otherwise from per-region event counts.
- Pan/zoom is done by the surface's own axis range handling. Every range
  change is funnelled through a :class:`~viewkit.debouncing.LatestCallThrottle`
  and clamped by :class:`~viewkit.pan_zoom.PanZoomController`; the clamped
  ranges are pushed back when they differ.

Error modes
-----------
Boundaries that cannot be loaded leave the map empty with the inline notice
``"Failed to load map data."``. Missing optional tables only drop the
choropleth colours or the overlay.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import ipywidgets as widgets
from IPython.display import display

from .choropleth import (
    ChoroplethResult,
    YearLookup,
    build_event_count_lookup,
    build_year_lookup,
    feature_key,
    population_years,
    render_choropleth,
)
from .config import ViewConfig
from .data_loader import BoundaryLoadError, Dataset, load_boundaries
from .debouncing import LatestCallThrottle
from .draw_surface import AxisSpec, DrawSurface, PathShape, PlotlySurface, PointShape
from .event_categories import CategoryFilter
from .event_overlay import EventRecord, OverlayPoint, overlay_points, parse_events
from .geo import NaturalEarthProjection, graticule_lines, project_feature, project_lines
from .layout import OneShotOutput, ViewLayout
from .legend import CategoryLegend, decile_legend_html
from .pan_zoom import PanZoomController
from .playback import PlaybackController, PlaybackTimer, available_years, default_start_year
from .preferences import PreferenceStore
from .view_state import MapViewState, ZoomTransform

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

LOAD_FAILED_MESSAGE = "Failed to load map data."
GRATICULE_LAYER = "graticule"
COUNTRY_LAYER = "countries"
EVENT_LAYER = "events"
EVENT_SIZE = 6.0
RELAYOUT_THROTTLE_MS = 500
MAP_MARGIN = dict(t=10, r=10, b=10, l=10)

Range = Tuple[float, float]


class MapView:
    """Animated world choropleth with an event overlay.

    Parameters
    ----------
    boundaries : dict, optional
        GeoJSON ``FeatureCollection``. When omitted it is loaded from
        ``config.world_geojson_url`` with ``boundary_loader``.
    population : Dataset, optional
        Wide table with ``iso``, ``country`` and ``POP.raw.YYYY`` columns.
    events : Dataset, optional
        One row per event (``year``, ``latitude``, ``longitude``,
        ``disastertype``, ``geolocation``, ``iso3``).
    store : PreferenceStore, optional
        Where the category toggles are kept.
    config : ViewConfig, optional
        Sizes, playback timing, decay and zoom extent.
    surface : DrawSurface, optional
        Rendering target; a :class:`PlotlySurface` is created when omitted.
    timer : PlaybackTimer, optional
        Timer driving playback (injected by tests).
    boundary_loader : callable, optional
        ``loader(source) -> FeatureCollection``; defaults to
        :func:`~viewkit.data_loader.load_boundaries`.
    """

    def __init__(
        self,
        boundaries: Optional[Mapping[str, Any]] = None,
        population: Optional[Dataset] = None,
        events: Optional[Dataset] = None,
        store: Optional[PreferenceStore] = None,
        *,
        config: Optional[ViewConfig] = None,
        surface: Optional[DrawSurface] = None,
        timer: Optional[PlaybackTimer] = None,
        boundary_loader: Callable[[str], Mapping[str, Any]] = load_boundaries,
    ) -> None:
        self.config = config if config is not None else ViewConfig.from_env()
        self._store = store if store is not None else PreferenceStore(self.config.prefs_path)
        self._population = population
        self._events: List[EventRecord] = parse_events(events.records) if events is not None else []
        self._event_records = events.records if events is not None else []
        self._filter = CategoryFilter(self._store)
        width, height = self.config.map_size
        self._pan_zoom = PanZoomController((width, height), zoom_extent=self.config.zoom_extent)
        self._projection = NaturalEarthProjection(translate=(width / 2, height / 2))
        self._surface = (
            surface if surface is not None else PlotlySurface(width=width, height=height, margin=MAP_MARGIN)
        )
        self._render_info_last_log_t = 0.0
        self._suspend_slider = False
        self._last_result: Optional[ChoroplethResult] = None

        columns = population.fields if population is not None else ()
        self._years = available_years(
            columns,
            self._event_records,
            anchor_year=self.config.anchor_year,
            max_year=self.config.max_year,
        )
        start = default_start_year(self._years, self.config.anchor_year)
        self._state = MapViewState(year=start, disabled_categories=self._filter.disabled)
        self._playback = PlaybackController(
            self._years,
            self._on_playback_step,
            on_state_change=self._on_playback_state,
            total_ms=self.config.playback_total_ms,
            anchor_year=self.config.anchor_year,
            timer=timer,
            current_year=start,
        )

        self._layout = ViewLayout()
        self.year_slider = widgets.SelectionSlider(
            options=self._years, value=start, description="Year", continuous_update=True
        )
        self.year_label = widgets.HTML(value=f"<b>{start}</b>")
        self.play_button = widgets.Button(description=self._playback.button_label)
        self.decile_legend = widgets.HTML(value="")
        self.category_legend = CategoryLegend(self._filter, on_change=self._on_filter_change)
        self.year_slider.observe(self._on_slider, names="value")
        self.play_button.on_click(lambda _button: self.toggle_playback())
        self._layout.set_controls([self.year_slider, self.year_label, self.play_button])
        self._layout.set_legend([self.decile_legend, *self.category_legend.row_widgets])
        if isinstance(self._surface, PlotlySurface):
            self._layout.set_plot_widget(self._surface.figure)

        self._relayout_throttle = LatestCallThrottle(
            self._on_viewport, interval_ms=RELAYOUT_THROTTLE_MS
        )
        self._surface.on_viewport_change(self._relayout_throttle)

        self._features: List[Mapping[str, Any]] = []
        self._event_xy: Dict[str, Tuple[float, float]] = {}
        self._setup_axes()
        if boundaries is None:
            try:
                boundaries = boundary_loader(self.config.world_geojson_url)
            except BoundaryLoadError as exc:
                logger.error("Boundary load failed: %s", exc)
                self._show_failure()
                return
        self._features = list(boundaries.get("features") or [])
        self._draw_base_map()
        self.render(reason="init")

    # --- public API ---

    @property
    def state(self) -> MapViewState:
        return self._state

    @property
    def years(self) -> List[int]:
        return list(self._years)

    @property
    def surface(self) -> DrawSurface:
        return self._surface

    @property
    def layout(self) -> ViewLayout:
        return self._layout

    @property
    def playback(self) -> PlaybackController:
        return self._playback

    @property
    def category_filter(self) -> CategoryFilter:
        return self._filter

    @property
    def last_choropleth(self) -> Optional[ChoroplethResult]:
        return self._last_result

    @property
    def loaded(self) -> bool:
        return bool(self._features)

    def set_year(self, year: int) -> None:
        """Show ``year``; ignored while playback drives the year.

        Raises
        ------
        ValueError
            If ``year`` is not one of :attr:`years`.
        """
        if self._state.playing:
            return
        year = int(year)
        if year not in self._years:
            raise ValueError(f"Year {year} is not available; choose one of {self._years}")
        self._playback.seek(year)
        self._state = replace(self._state, year=int(year))
        self._sync_slider()
        self.render(reason="year")

    def toggle_playback(self) -> None:
        self._playback.toggle()

    def set_transform(self, transform: ZoomTransform) -> ZoomTransform:
        """Clamp ``transform``, store it and move the viewport there."""
        clamped = self._pan_zoom.clamp(transform)
        self._state = replace(self._state, transform=clamped)
        self._push_viewport(clamped)
        return clamped

    def reset_zoom(self) -> None:
        self.set_transform(ZoomTransform())

    def visible_points(self) -> List[OverlayPoint]:
        return overlay_points(
            self._events,
            self._state.year,
            playing=self._state.playing,
            category_filter=self._filter,
            decay=self.config.decay_per_year,
            window=self.config.playback_window,
        )

    def lookup(self, year: int) -> YearLookup:
        """Region values for ``year`` from the population table, else event counts."""
        return self._lookup_with_label(year)[0]

    def _lookup_with_label(self, year: int) -> Tuple[YearLookup, str]:
        if self._population is not None and population_years(self._population.fields):
            return build_year_lookup(self._population.records, year), "POP"
        return build_event_count_lookup(self._event_records, year), "Events"

    def render(self, reason: str = "manual") -> None:
        """Restyle countries and redraw the overlay for the current year."""
        if not self._features:
            return
        self._log_render(reason)
        year = self._state.year
        lookup, value_label = self._lookup_with_label(year)
        result = render_choropleth(self._features, lookup, value_label=value_label)
        self._last_result = result
        self._surface.update_path_fills(COUNTRY_LAYER, result.fills, result.hovers)
        self.decile_legend.value = decile_legend_html(result.legend) if result.legend else ""
        self.year_label.value = f"<b>{year}</b>"
        self._surface.draw_points(EVENT_LAYER, self._event_shapes(self.visible_points()))

    @property
    def output_widget(self) -> OneShotOutput:
        return self._layout.output_widget

    def _ipython_display_(self, **kwargs: Any) -> None:
        display(self._layout.output_widget)

    # --- setup ---

    def _setup_axes(self) -> None:
        width, height = self.config.map_size
        self._surface.set_axis("x", AxisSpec(domain=(0.0, float(width)), animate=False, visible=False))
        self._surface.set_axis(
            "y", AxisSpec(domain=(0.0, float(height)), animate=False, visible=False, reversed=True)
        )
        self._surface.set_drag_mode(self._pan_zoom.drag_mode(self._state.transform))

    def _show_failure(self) -> None:
        self._surface.show_message(LOAD_FAILED_MESSAGE)
        self._layout.show_message(LOAD_FAILED_MESSAGE)

    def _draw_base_map(self) -> None:
        graticule = project_lines(self._projection, graticule_lines())
        self._surface.draw_paths(
            GRATICULE_LAYER,
            [PathShape(key=f"g{i}", rings=(line,), stroke="#ccc", stroke_width=0.5) for i, line in enumerate(graticule)],
        )
        countries = []
        for i, feature in enumerate(self._features):
            rings = project_feature(self._projection, feature)
            if rings:
                countries.append(PathShape(key=feature_key(i, feature), rings=rings, fill="#eee"))
        self._surface.draw_paths(COUNTRY_LAYER, countries)
        for event in self._events:
            xy = self._projection(event.lon, event.lat)
            if xy is not None:
                self._event_xy[event.key] = xy
        logger.info("Drew %d countries and projected %d events", len(countries), len(self._event_xy))

    def _event_shapes(self, points: Sequence[OverlayPoint]) -> List[PointShape]:
        shapes = []
        for point in points:
            xy = self._event_xy.get(point.event.key)
            if xy is None:
                continue
            shapes.append(
                PointShape(
                    key=point.event.key,
                    x=xy[0],
                    y=xy[1],
                    color=point.color,
                    opacity=point.opacity,
                    size=EVENT_SIZE,
                    hover=point.hover,
                )
            )
        return shapes

    # --- callbacks ---

    def _on_slider(self, change: Dict[str, Any]) -> None:
        if self._suspend_slider:
            return
        self.set_year(change["new"])

    def _sync_slider(self) -> None:
        self._suspend_slider = True
        try:
            self.year_slider.value = self._state.year
        finally:
            self._suspend_slider = False

    def _on_playback_step(self, year: int) -> None:
        self._state = replace(self._state, year=year)
        self._sync_slider()
        self.render(reason="playback")

    def _on_playback_state(self, playing: bool) -> None:
        self._state = replace(self._state, playing=playing)
        self.year_slider.disabled = playing
        self.play_button.description = self._playback.button_label
        if not playing:
            self.render(reason="playback_stopped")

    def _on_filter_change(self) -> None:
        self._state = replace(self._state, disabled_categories=self._filter.disabled)
        self.render(reason="categories")

    def _on_viewport(self, x_range: Range, y_range: Range) -> None:
        transform = self._pan_zoom.update_from_ranges(x_range, y_range)
        self._state = replace(self._state, transform=transform)
        cx, cy = self._pan_zoom.to_ranges(transform)
        if not (_ranges_close(x_range, cx) and _ranges_close(y_range, cy)):
            self._push_viewport(transform)
        else:
            self._surface.set_drag_mode(self._pan_zoom.drag_mode(transform))

    def _push_viewport(self, transform: ZoomTransform) -> None:
        x_range, (y0, y1) = self._pan_zoom.to_ranges(transform)
        # y grows downward in map space, so the axis runs from y1 at the bottom to y0 at the top.
        self._surface.set_viewport(x_range, (y1, y0))
        self._surface.set_drag_mode(self._pan_zoom.drag_mode(transform))

    def _log_render(self, reason: str) -> None:
        now = time.monotonic()
        if logger.isEnabledFor(logging.INFO) and (now - self._render_info_last_log_t) > 1.0:
            self._render_info_last_log_t = now
            logger.info(
                "render(reason=%s) year=%s playing=%s disabled=%d",
                reason,
                self._state.year,
                self._state.playing,
                len(self._state.disabled_categories),
            )


def _ranges_close(a: Range, b: Range, eps: float = 1e-6) -> bool:
    lo_a, hi_a = sorted(a)
    lo_b, hi_b = sorted(b)
    return abs(lo_a - lo_b) < eps and abs(hi_a - hi_b) < eps
