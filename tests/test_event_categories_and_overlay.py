from __future__ import annotations

import pytest

from viewkit.event_categories import DISABLED_SWATCH_COLOR, Category, CategoryFilter, classify
from viewkit.event_overlay import age_opacity, overlay_points, parse_events
from viewkit.preferences import PreferenceStore

RECORDS = [
    {"year": "2000", "latitude": "10", "longitude": "20", "disastertype": "Flood", "geolocation": "A"},
    {"year": "1998", "latitude": "11", "longitude": "21", "disastertype": "Storm", "geolocation": "B"},
    {"year": "1995", "latitude": "12", "longitude": "22", "disastertype": "Flood"},
    {"year": "2000", "latitude": "", "longitude": "22", "disastertype": "Flood"},
]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Flood", Category.FLOOD),
        ("Mass movement (dry)", Category.MASS_MOVEMENT),
        ("Extreme temperature ", Category.TEMPERATURE),
        ("volcanic activity", Category.VOLCANO),
        ("EARTHQUAKE", Category.EARTHQUAKE),
        ("", Category.OTHER),
        ("meteor", Category.OTHER),
    ],
)
def test_classify(text: str, expected: Category) -> None:
    assert classify(text) is expected


def test_first_matching_rule_wins() -> None:
    assert classify("storm surge flood") is Category.STORM


def test_toggle_persists_swatch_state() -> None:
    store = PreferenceStore()
    category_filter = CategoryFilter(store)

    assert category_filter.toggle(Category.FLOOD) is False

    state = store.get_json("swatchState")
    assert state["flood"] == 1
    assert state["storm"] == 0
    assert CategoryFilter(store).disabled == frozenset({Category.FLOOD})
    assert category_filter.swatch_color(Category.FLOOD) == DISABLED_SWATCH_COLOR


def test_stored_state_ignores_unknown_and_malformed_entries() -> None:
    store = PreferenceStore()
    store.set_json("swatchState", {"bogus": 1, "storm": 1, "flood": 0})
    assert CategoryFilter(store).disabled == frozenset({Category.STORM})

    store.set_json("swatchState", [1, 2])
    assert CategoryFilter(store).disabled == frozenset()


def test_disabled_category_hides_every_keyword_match() -> None:
    category_filter = CategoryFilter(PreferenceStore())
    category_filter.set_enabled(Category.FLOOD, False)

    assert category_filter.hides("Flood") is True
    assert category_filter.hides("storm surge flood") is True
    assert category_filter.hides("Storm") is False


def test_disabled_other_hides_unmatched_text() -> None:
    category_filter = CategoryFilter(PreferenceStore())
    category_filter.set_enabled(Category.OTHER, False)

    assert category_filter.hides("meteor") is True
    assert category_filter.hides("Flood") is False


def test_parse_drops_rows_without_coordinates() -> None:
    events = parse_events(RECORDS)

    assert [e.index for e in events] == [0, 1, 2]
    assert events[0].category is Category.FLOOD


def test_steady_mode_shows_only_selected_year() -> None:
    points = overlay_points(parse_events(RECORDS), 2000)

    assert [p.event.index for p in points] == [0]
    assert points[0].opacity == 1.0
    assert points[0].color == Category.FLOOD.color
    assert points[0].hover == "<b>Flood</b><br>Year: 2000<br>Location: A<br>Coords: 10.000, 20.000"


def test_playback_keeps_trailing_years_with_decay() -> None:
    points = overlay_points(parse_events(RECORDS), 2000, playing=True)

    by_index = {p.event.index: p.opacity for p in points}
    assert by_index[0] == 1.0
    assert by_index[1] == pytest.approx(0.6)
    assert 2 not in by_index


def test_category_filter_removes_and_restores_points() -> None:
    events = parse_events(RECORDS)
    category_filter = CategoryFilter(PreferenceStore())

    category_filter.set_enabled(Category.FLOOD, False)
    hidden = overlay_points(events, 2000, playing=True, category_filter=category_filter)
    category_filter.set_enabled(Category.FLOOD, True)
    restored = overlay_points(events, 2000, playing=True, category_filter=category_filter)

    assert [p.event.index for p in hidden] == [1]
    assert [p.event.index for p in restored] == [0, 1]


def test_age_opacity_is_clamped() -> None:
    assert age_opacity(0) == 1.0
    assert age_opacity(7) == 0.0
    assert age_opacity(-3) == 1.0
