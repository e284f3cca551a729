from __future__ import annotations

from unittest.mock import patch

import pytest

from recording_surface import ManualTimer, RecordingSurface
from viewkit.choropleth import NO_DATA_FILL, bin_color
from viewkit.config import ViewConfig
from viewkit.data_loader import BoundaryLoadError, Dataset
from viewkit.event_categories import Category
from viewkit.map_view import LOAD_FAILED_MESSAGE, MapView
from viewkit.playback import PAUSE_LABEL, PLAY_LABEL
from viewkit.preferences import PreferenceStore
from viewkit.view_state import IDENTITY, ZoomTransform


def _square(lon: float, lat: float, size: float) -> dict:
    ring = [[lon, lat], [lon + size, lat], [lon + size, lat + size], [lon, lat + size], [lon, lat]]
    return {"type": "Polygon", "coordinates": [ring]}


WORLD = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "id": "FRA", "properties": {"name": "France"}, "geometry": _square(0, 43, 5)},
        {"type": "Feature", "id": "SDS", "properties": {"name": "South Sudan"}, "geometry": _square(25, 5, 8)},
        {"type": "Feature", "properties": {"name": "Nowhere"}, "geometry": _square(-60, -20, 4)},
    ],
}

POPULATION = Dataset(
    fields=["iso", "country", "POP.raw.1960", "POP.raw.1970"],
    records=[
        {"iso": "FRA", "country": "France", "POP.raw.1960": "10", "POP.raw.1970": "20"},
        {"iso": "SSD", "country": "South Sudan", "POP.raw.1960": "30", "POP.raw.1970": "40"},
    ],
)

EVENTS = Dataset(
    fields=["year", "latitude", "longitude", "disastertype", "geolocation"],
    records=[
        {"year": "1960", "latitude": "45", "longitude": "2", "disastertype": "Flood", "geolocation": "Loire"},
        {"year": "1970", "latitude": "7", "longitude": "30", "disastertype": "Storm", "geolocation": "Juba"},
    ],
)


def _view(**kwargs) -> tuple[MapView, RecordingSurface, ManualTimer]:
    surface = RecordingSurface()
    timer = ManualTimer()
    params = dict(
        boundaries=WORLD,
        population=POPULATION,
        events=EVENTS,
        store=PreferenceStore(),
        config=ViewConfig(),
        surface=surface,
        timer=timer,
    )
    params.update(kwargs)
    return MapView(**params), surface, timer


def test_initial_render_colours_countries_by_decile() -> None:
    view, surface, _ = _view()

    assert view.years == [1960, 1970]
    assert view.state.year == 1960
    assert [p.key for p in surface.paths["countries"]] == ["0:FRA", "1:SSD", "2:Nowhere"]
    assert surface.paths["graticule"]
    fills = surface.fills["countries"]
    assert fills["0:FRA"] == bin_color(0)
    assert fills["1:SSD"] == bin_color(9)
    assert fills["2:Nowhere"] == NO_DATA_FILL
    assert "POP 1960: 30" in surface.hovers["countries"]["1:SSD"]
    assert [p.hover.split("<br>")[0] for p in surface.points["events"]] == ["<b>Flood</b>"]
    assert "rgb" in view.decile_legend.value


def test_projected_points_fall_inside_viewport() -> None:
    _, surface, _ = _view()

    point = surface.points["events"][0]
    assert 0 < point.x < 960
    assert 0 < point.y < 300


def test_slider_changes_year() -> None:
    view, surface, _ = _view()

    view.year_slider.value = 1970

    assert view.state.year == 1970
    assert view.year_label.value == "<b>1970</b>"
    assert [p.hover.split("<br>")[0] for p in surface.points["events"]] == ["<b>Storm</b>"]


def test_playback_disables_slider_and_fades_events() -> None:
    view, surface, timer = _view()

    view.play_button.click()
    assert view.state.playing is True
    assert view.year_slider.disabled is True
    assert view.play_button.description == PAUSE_LABEL

    timer.tick()
    assert view.year_slider.value == 1970
    opacities = sorted(p.opacity for p in surface.points["events"])
    assert opacities == [1.0]

    view.set_year(1960)
    assert view.state.year == 1970

    timer.tick()
    assert view.state.playing is False
    assert view.year_slider.disabled is False
    assert view.play_button.description == PLAY_LABEL


def test_toggling_a_swatch_hides_its_events_and_persists() -> None:
    store = PreferenceStore()
    view, surface, _ = _view(store=store)

    view.category_legend.rows[Category.FLOOD].toggle.value = False

    assert Category.FLOOD in view.state.disabled_categories
    assert surface.points["events"] == []
    assert store.get_json("swatchState")["flood"] == 1

    reopened, reopened_surface, _ = _view(store=store)
    assert reopened.category_filter.is_enabled(Category.FLOOD) is False
    assert reopened_surface.points["events"] == []


def test_event_counts_colour_map_without_population() -> None:
    events = Dataset(
        fields=["year", "latitude", "longitude", "disastertype", "iso3"],
        records=[
            {"year": "1960", "latitude": "45", "longitude": "2", "disastertype": "Flood", "iso3": "FRA"},
            {"year": "1960", "latitude": "46", "longitude": "3", "disastertype": "Flood", "iso3": "FRA"},
            {"year": "1960", "latitude": "7", "longitude": "30", "disastertype": "Storm", "iso3": "SSD"},
        ],
    )
    view, surface, _ = _view(population=None, events=events)

    assert view.years == [1960]
    assert view.last_choropleth.values["0:FRA"] == 2.0
    assert "Events 1960: 2" in surface.hovers["countries"]["0:FRA"]


def test_boundary_failure_is_reported_inline() -> None:
    def _fail(_source):
        raise BoundaryLoadError("offline")

    view, surface, _ = _view(boundaries=None, boundary_loader=_fail)

    assert view.loaded is False
    assert surface.messages == [LOAD_FAILED_MESSAGE]
    assert LOAD_FAILED_MESSAGE in view.layout.message_html.value
    assert "countries" not in surface.paths


def test_set_transform_clamps_and_switches_to_pan() -> None:
    view, surface, _ = _view()

    clamped = view.set_transform(ZoomTransform(-5000.0, 0.0, 2.0))

    assert clamped == ZoomTransform(-960.0, 0.0, 2.0)
    assert surface.viewports[-1] == ((480.0, 960.0), (300.0, 0.0))
    assert surface.drag_modes[-1] == "pan"

    view.reset_zoom()
    assert view.state.transform == IDENTITY
    assert surface.drag_modes[-1] == "zoom"


class _FakeLoopHandle:
    def __init__(self, callback):
        self._callback = callback

    def fire(self) -> None:
        self._callback()


class _FakeAsyncLoop:
    def __init__(self) -> None:
        self.handles: list[_FakeLoopHandle] = []

    def call_later(self, _delay: float, callback):
        handle = _FakeLoopHandle(callback)
        self.handles.append(handle)
        return handle


def test_relayout_is_throttled_and_clamped() -> None:
    view, surface, _ = _view()
    fake_loop = _FakeAsyncLoop()

    with patch("viewkit.debouncing.asyncio.get_running_loop", return_value=fake_loop):
        surface.viewport_callbacks[0]((100.0, 580.0), (400.0, 100.0))
        surface.viewport_callbacks[0]((0.0, 1920.0), (1200.0, 0.0))
        assert len(fake_loop.handles) == 1
        fake_loop.handles[0].fire()

    assert view.state.transform == IDENTITY
    assert surface.viewports[-1] == ((0.0, 960.0), (600.0, 0.0))


def test_unknown_year_is_rejected_without_changing_the_view() -> None:
    view, _, _ = _view()

    with pytest.raises(ValueError):
        view.set_year(1965)

    assert view.state.year == 1960
    assert view.playback.current_year == 1960
    assert view.year_slider.value == 1960


def test_population_without_year_columns_labels_event_counts() -> None:
    population = Dataset(fields=["iso", "country"], records=[{"iso": "FRA", "country": "France"}])
    events = Dataset(
        fields=["year", "latitude", "longitude", "disastertype", "iso3"],
        records=[{"year": "1960", "latitude": "45", "longitude": "2", "disastertype": "Flood", "iso3": "FRA"}],
    )
    _, surface, _ = _view(population=population, events=events)

    hover = surface.hovers["countries"]["0:FRA"]
    assert "Events 1960: 1" in hover
    assert "POP" not in hover
