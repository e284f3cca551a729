from __future__ import annotations

import sys
from unittest.mock import patch

from recording_surface import RecordingSurface
from viewkit.config import ViewConfig
from viewkit.data_loader import Dataset
from viewkit.drag_zoom import ZoomOutcome
from viewkit.layout import OneShotOutput
from viewkit.preferences import PreferenceStore
from viewkit.scatter_view import ScatterView


def _dataset() -> Dataset:
    return Dataset(
        fields=["year", "leaf_drop_doy", "temp_mean"],
        records=[
            {"year": "2000", "leaf_drop_doy": "280", "temp_mean": "1.5"},
            {"year": "2001", "leaf_drop_doy": "285", "temp_mean": ""},
            {"year": "2002", "leaf_drop_doy": "290", "temp_mean": "2.5"},
            {"year": "2003", "leaf_drop_doy": "295", "temp_mean": "x"},
            {"year": "2004", "leaf_drop_doy": "300", "temp_mean": "3.5"},
        ],
    )


def _view(store: PreferenceStore | None = None) -> tuple[ScatterView, RecordingSurface]:
    surface = RecordingSurface()
    view = ScatterView(_dataset(), store or PreferenceStore(), config=ViewConfig(), surface=surface)
    return view, surface


def test_initial_render_draws_defaults_without_animation() -> None:
    view, surface = _view()

    assert surface.title == "leaf drop doy vs year"
    assert surface.axes["x"].tick_values == (2000.0, 2001.0, 2002.0, 2003.0, 2004.0)
    assert surface.axis_durations == {"x": 0, "y": 0}
    assert len(surface.points["points"]) == 5
    assert surface.drag_modes == ["select"]
    hover = surface.points["points"][0].hover
    assert hover == "Year: 2000<br>year: 2000<br>leaf drop doy: 280"


def test_drag_zooms_then_click_resets() -> None:
    view, surface = _view()
    original = view.state

    assert view.drag((10, 20), (300, 200)) is ZoomOutcome.ZOOMED
    assert view.state.x_domain != original.x_domain
    assert surface.selection_boxes[-1] is None
    assert surface.axis_durations["x"] == 0
    assert surface.axis_durations["y"] == 750
    assert surface.point_durations["points"] == 750

    assert view.click() is ZoomOutcome.RESET
    assert view.state.x_domain == original.x_domain
    assert view.state.y_domain == original.y_domain
    assert view.click() is ZoomOutcome.NOOP


def test_tiny_drag_at_original_domains_changes_nothing() -> None:
    view, surface = _view()
    title_before = surface.title
    state = view.state

    assert view.drag((100, 100), (104, 103)) is ZoomOutcome.NOOP
    assert view.state == state
    assert surface.title == title_before


def test_box_select_shows_only_years_in_view() -> None:
    view, surface = _view()

    surface.box_select_callbacks[0]((2000.5, 2002.5), (285.0, 295.0))

    assert surface.axes["x"].tick_values == (2001.0, 2002.0)
    surface.deselect_callbacks[0]()
    assert view.state.x_domain == view.state.original_x_domain


def test_dropdown_change_persists_and_redraws() -> None:
    store = PreferenceStore()
    view, surface = _view(store)

    view.x_dropdown.value = "temp_mean"

    assert store.get("xFeat") == "temp_mean"
    assert surface.title == "leaf drop doy vs temp mean"
    assert [p.key for p in surface.points["points"]] == [0, 2, 4]

    reopened, _ = _view(store)
    assert reopened.state.x_field == "temp_mean"
    assert reopened.x_dropdown.value == "temp_mean"


def test_select_field_syncs_dropdown() -> None:
    view, _ = _view()

    view.select_field("y", "temp_mean")

    assert view.y_dropdown.value == "temp_mean"
    assert view.state.y_field == "temp_mean"


def test_hover_raises_point_opacity() -> None:
    _, surface = _view()

    surface.hover_callbacks[0]("points", "2")

    opacities = {p.key: p.opacity for p in surface.points["points"]}
    assert opacities[2] == 1.0
    assert opacities[0] == 0.7

    surface.hover_callbacks[0]("points", None)
    assert all(p.opacity == 0.7 for p in surface.points["points"])


def test_ipython_display_shows_one_shot_output() -> None:
    view, _ = _view()
    module = sys.modules[ScatterView.__module__]

    with patch.object(module, "display") as mocked_display:
        view._ipython_display_()

    mocked_display.assert_called_once()
    assert isinstance(mocked_display.call_args.args[0], OneShotOutput)
