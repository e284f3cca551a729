"""Shared constants and the ``ViewConfig`` bundle.

Every tunable used by the scatter and map views lives here so tests and
notebooks can construct views with explicit settings instead of patching
module globals.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

# Scatter view geometry (plot area, margins excluded).
SCATTER_MARGIN = dict(t=40, r=30, b=60, l=60)
SCATTER_WIDTH = 800 - SCATTER_MARGIN["l"] - SCATTER_MARGIN["r"]
SCATTER_HEIGHT = 500 - SCATTER_MARGIN["t"] - SCATTER_MARGIN["b"]

DEFAULT_X_FIELD = "year"
DEFAULT_Y_FIELD = "leaf_drop_doy"
YEAR_FIELD = "year"

DOMAIN_PADDING = 1.0
CLICK_THRESHOLD_PX = 5.0
TRANSITION_MS = 750
Y_TICK_COUNT = 10
X_TICK_COUNT = 10
DOMAIN_EPS = 1e-10

# Map view
MAP_WIDTH = 960
MAP_HEIGHT = 600
PROJECTION_SCALE = 160.0
MIN_ZOOM = 1.0
MAX_ZOOM = 8.0

DECILE_BINS = 10
DECAY_PER_YEAR = 0.2
PLAYBACK_WINDOW = 5
PLAYBACK_TOTAL_MS = 6000
ANCHOR_YEAR = 1960
MAX_YEAR = 2020

WORLD_GEOJSON_URL = (
    "https://raw.githubusercontent.com/holtzy/D3-graph-gallery/master/DATA/world.geojson"
)
DEFAULT_PREFS_PATH = Path.home() / ".viewkit" / "preferences.json"

PREFS_ENV = "VIEWKIT_PREFS"
GEOJSON_ENV = "VIEWKIT_WORLD_GEOJSON"


@dataclass(frozen=True)
class ViewConfig:
    """Tunables for both views.

    Parameters
    ----------
    scatter_size : tuple[int, int]
        Plot-area width and height of the scatter view in pixels.
    map_size : tuple[int, int]
        Viewport width and height of the map view in pixels.
    padding : float
        Units added on both sides of a freshly computed axis domain.
    click_threshold_px : float
        Drag selections no larger than this (both sides) count as clicks.
    transition_ms : int
        Duration of animated axis/point transitions.
    decay_per_year : float
        Opacity lost per year of age during playback.
    playback_window : int
        Number of trailing years (including the current one) kept during playback.
    playback_total_ms : int
        Total duration of one playback run; divided evenly across the years.
    anchor_year : int
        Year that is always offered by the slider and used as default start.
    max_year : int
        Latest year taken from the data.
    zoom_extent : tuple[float, float]
        Allowed map zoom factor range.
    world_geojson_url : str
        Location of the country boundary file (URL or local path).
    prefs_path : pathlib.Path
        JSON file backing the preference store.
    """

    scatter_size: tuple[int, int] = (SCATTER_WIDTH, SCATTER_HEIGHT)
    map_size: tuple[int, int] = (MAP_WIDTH, MAP_HEIGHT)
    padding: float = DOMAIN_PADDING
    click_threshold_px: float = CLICK_THRESHOLD_PX
    transition_ms: int = TRANSITION_MS
    decay_per_year: float = DECAY_PER_YEAR
    playback_window: int = PLAYBACK_WINDOW
    playback_total_ms: int = PLAYBACK_TOTAL_MS
    anchor_year: int = ANCHOR_YEAR
    max_year: int = MAX_YEAR
    zoom_extent: tuple[float, float] = (MIN_ZOOM, MAX_ZOOM)
    world_geojson_url: str = WORLD_GEOJSON_URL
    prefs_path: Path = field(default=DEFAULT_PREFS_PATH)

    @classmethod
    def from_env(cls, **overrides) -> "ViewConfig":
        """Build a config honouring ``VIEWKIT_PREFS`` and ``VIEWKIT_WORLD_GEOJSON``."""
        config = cls(**overrides)
        prefs = os.environ.get(PREFS_ENV)
        if prefs and "prefs_path" not in overrides:
            config = replace(config, prefs_path=Path(prefs).expanduser())
        url = os.environ.get(GEOJSON_ENV)
        if url and "world_geojson_url" not in overrides:
            config = replace(config, world_geojson_url=url)
        return config
