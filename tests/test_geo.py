from __future__ import annotations

import math

import pytest

from viewkit.geo import NaturalEarthProjection, graticule_lines, project_feature, project_lines


def test_origin_maps_to_viewport_centre() -> None:
    projection = NaturalEarthProjection()

    x, y = projection(0.0, 0.0)

    assert x == pytest.approx(480.0)
    assert y == pytest.approx(300.0)


def test_equator_edge_uses_unit_sphere_scale() -> None:
    projection = NaturalEarthProjection()

    x, y = projection(180.0, 0.0)

    assert x == pytest.approx(480.0 + 160.0 * 0.8707 * math.pi, rel=1e-3)
    assert y == pytest.approx(300.0)


def test_north_is_up_and_whole_world_fits() -> None:
    projection = NaturalEarthProjection()

    _, north = projection(0.0, 60.0)
    _, south = projection(0.0, -60.0)
    assert north < 300.0 < south

    for line in project_lines(projection, graticule_lines()):
        for x, y in line:
            assert 0.0 <= x <= 960.0
            assert 0.0 <= y <= 600.0


def test_non_finite_coordinates_are_not_projected() -> None:
    assert NaturalEarthProjection()(float("nan"), 10.0) is None


def test_project_feature_keeps_polygon_rings() -> None:
    square = [[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]
    feature = {"type": "Feature", "geometry": {"type": "MultiPolygon", "coordinates": [[square], [square]]}}

    rings = project_feature(NaturalEarthProjection(), feature)

    assert len(rings) == 2
    assert len(rings[0]) == 5
