"""Top-level public API for the ``viewkit`` package.

This module re-exports the notebook-facing views together with the loaders
and the state/controller building blocks, so one namespace is enough:

>>> from viewkit import MapView, ScatterView, load_dataset  # doctest: +SKIP
>>> ScatterView(load_dataset("phenology.csv"))  # doctest: +SKIP
"""

from .axis_selector import AxisSelector, ScatterPoint, restore_axis_fields
from .choropleth import (
    NO_DATA_FILL,
    ChoroplethResult,
    YearLookup,
    build_event_count_lookup,
    build_year_lookup,
    feature_region_code,
    render_choropleth,
)
from .config import ViewConfig
from .data_loader import BoundaryLoadError, Dataset, load_boundaries, load_dataset, load_optional_dataset
from .debouncing import LatestCallThrottle
from .drag_zoom import DragZoomController, ZoomOutcome
from .draw_surface import AxisSpec, DrawSurface, PathShape, PlotlySurface, PointShape
from .event_categories import Category, CategoryFilter, classify
from .event_overlay import EventRecord, OverlayPoint, overlay_points, parse_events
from .layout import OneShotOutput, ViewLayout
from .legend import CategoryLegend
from .map_view import MapView
from .pan_zoom import PanZoomController
from .playback import PlaybackController, PlaybackTimer, available_years
from .preferences import PreferenceStore
from .scales import LinearScale, QuantileScale
from .scatter_view import ScatterView
from .view_state import MapViewState, ScatterViewState, ZoomTransform

__all__ = [
    "AxisSelector",
    "AxisSpec",
    "BoundaryLoadError",
    "Category",
    "CategoryFilter",
    "CategoryLegend",
    "ChoroplethResult",
    "Dataset",
    "DragZoomController",
    "DrawSurface",
    "EventRecord",
    "LinearScale",
    "MapView",
    "MapViewState",
    "NO_DATA_FILL",
    "OneShotOutput",
    "OverlayPoint",
    "PanZoomController",
    "PathShape",
    "PlaybackController",
    "PlaybackTimer",
    "PlotlySurface",
    "PointShape",
    "PreferenceStore",
    "QuantileScale",
    "LatestCallThrottle",
    "ScatterPoint",
    "ScatterView",
    "ScatterViewState",
    "ViewConfig",
    "ViewLayout",
    "YearLookup",
    "ZoomOutcome",
    "ZoomTransform",
    "available_years",
    "build_event_count_lookup",
    "build_year_lookup",
    "classify",
    "feature_region_code",
    "load_boundaries",
    "load_dataset",
    "load_optional_dataset",
    "overlay_points",
    "parse_events",
    "render_choropleth",
    "restore_axis_fields",
]
