from __future__ import annotations

from viewkit.choropleth import (
    NO_DATA_FILL,
    bin_color,
    bin_label,
    build_event_count_lookup,
    build_year_lookup,
    feature_region_code,
    population_years,
    render_choropleth,
)

FEATURES = [
    {"id": "SDS", "properties": {"name": "South Sudan"}},
    {"properties": {"name": "Atlantis"}},
    {"properties": {"iso_a3": "fra", "name": "France"}},
]

RECORDS = [
    {"iso": "SSD", "country": "South Sudan", "POP.raw.2000": "100"},
    {"iso": "XAT", "country": "Atlantis", "POP.raw.2000": "50"},
    {"iso": "FRA", "country": "France", "POP.raw.2000": "-5"},
]


def test_region_code_candidates_and_alias() -> None:
    assert feature_region_code(FEATURES[0]) == "SSD"
    assert feature_region_code(FEATURES[2]) == "FRA"
    assert feature_region_code(FEATURES[1]) is None
    assert feature_region_code({"id": "12", "properties": {"ADM0_A3": "deu"}}) == "DEU"


def test_population_years_reads_wide_columns() -> None:
    assert population_years(["iso", "POP.raw.1990", "POP.raw.1960", "POP.raw.x"]) == [1960, 1990]


def test_negative_values_are_invalid() -> None:
    lookup = build_year_lookup(RECORDS, 2000)

    assert lookup.by_code["FRA"] is None
    assert sorted(lookup.values) == [50.0, 100.0]


def test_render_resolves_alias_and_name_fallback() -> None:
    result = render_choropleth(FEATURES, build_year_lookup(RECORDS, 2000))

    assert result.values["0:SSD"] == 100.0
    assert result.bins["0:SSD"] == 9
    assert result.values["1:Atlantis"] == 50.0
    assert result.bins["1:Atlantis"] == 0
    assert result.fills["2:FRA"] == NO_DATA_FILL
    assert result.fills["0:SSD"] == bin_color(9)
    assert "POP 2000: 100" in result.hovers["0:SSD"]
    assert "Decile: 90-100%" in result.hovers["0:SSD"]
    assert "Decile: No data" in result.hovers["2:FRA"]
    assert len(result.legend) == 10


def test_year_without_values_leaves_everything_uncoloured() -> None:
    result = render_choropleth(FEATURES, build_year_lookup(RECORDS, 1960))

    assert set(result.fills.values()) == {NO_DATA_FILL}
    assert result.legend == []


def test_event_counts_per_region() -> None:
    records = [
        {"year": "2000", "iso3": "FRA", "country": "France"},
        {"year": "2000", "iso3": "FRA", "country": "France"},
        {"year": "2001", "iso3": "SSD", "country": "South Sudan"},
    ]

    lookup = build_event_count_lookup(records, 2000)

    assert lookup.by_code == {"FRA": 2.0}
    assert lookup.resolve(FEATURES[2]) == 2.0
    assert lookup.resolve(FEATURES[0]) is None


def test_bin_labels_and_colours() -> None:
    assert bin_label(3) == "30-40%"
    assert bin_label(None) == "No data"
    assert bin_color(0) != bin_color(9)
    assert bin_color(0).startswith("rgb")
