"""Natural Earth projection and GeoJSON geometry helpers.

``NaturalEarthProjection`` wraps a pyproj transformer for the spherical
Natural Earth projection and then scales/translates into viewport pixels
with y growing downward, so map shapes and event points share one pixel
space with the pan/zoom transform.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from pyproj import Transformer

from .config import MAP_HEIGHT, MAP_WIDTH, PROJECTION_SCALE

CRS_WGS84 = "EPSG:4326"
EARTH_RADIUS_M = 6371008.8
CRS_NATURAL_EARTH = f"+proj=natearth +R={EARTH_RADIUS_M} +no_defs"

Point = Tuple[float, float]
Ring = Tuple[Point, ...]


class NaturalEarthProjection:
    """Project longitude/latitude to viewport pixels.

    Parameters
    ----------
    scale : float
        Pixels per unit-sphere radian.
    translate : tuple[float, float]
        Pixel position of (0°, 0°); defaults to the viewport centre.
    """

    def __init__(
        self,
        scale: float = PROJECTION_SCALE,
        translate: Tuple[float, float] = (MAP_WIDTH / 2, MAP_HEIGHT / 2),
    ) -> None:
        self.scale = float(scale)
        self.translate = (float(translate[0]), float(translate[1]))
        self._transformer = Transformer.from_crs(CRS_WGS84, CRS_NATURAL_EARTH, always_xy=True)

    def project_many(self, lons: Sequence[float], lats: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
        x, y = self._transformer.transform(np.asarray(lons, dtype=float), np.asarray(lats, dtype=float))
        # metres on the Earth sphere -> unit-sphere radians
        ux = np.asarray(x) / EARTH_RADIUS_M
        uy = np.asarray(y) / EARTH_RADIUS_M
        px = ux * self.scale + self.translate[0]
        py = -uy * self.scale + self.translate[1]
        return px, py

    def __call__(self, lon: float, lat: float) -> Optional[Point]:
        """Project one coordinate; ``None`` when it cannot be projected."""
        if not (math.isfinite(lon) and math.isfinite(lat)):
            return None
        px, py = self.project_many([lon], [lat])
        x, y = float(px[0]), float(py[0])
        if not (math.isfinite(x) and math.isfinite(y)):
            return None
        return (x, y)

    def project_ring(self, ring: Sequence[Sequence[float]]) -> Ring:
        if not ring:
            return ()
        coords = np.asarray([(c[0], c[1]) for c in ring], dtype=float)
        px, py = self.project_many(coords[:, 0], coords[:, 1])
        return tuple(
            (float(x), float(y)) for x, y in zip(px, py) if math.isfinite(x) and math.isfinite(y)
        )


def iter_polygons(geometry: Optional[Dict[str, Any]]) -> Iterator[List[Sequence[Sequence[float]]]]:
    """Yield the ring lists of a Polygon/MultiPolygon geometry; other types yield nothing."""
    if not geometry:
        return
    kind = geometry.get("type")
    coords = geometry.get("coordinates") or []
    if kind == "Polygon":
        yield coords
    elif kind == "MultiPolygon":
        for polygon in coords:
            yield polygon
    elif kind == "GeometryCollection":
        for part in geometry.get("geometries") or []:
            yield from iter_polygons(part)


def project_feature(projection: NaturalEarthProjection, feature: Dict[str, Any]) -> Tuple[Ring, ...]:
    """Project every ring of a feature's polygons."""
    rings: List[Ring] = []
    for polygon in iter_polygons(feature.get("geometry")):
        for ring in polygon:
            projected = projection.project_ring(ring)
            if len(projected) >= 3:
                rings.append(projected)
    return tuple(rings)


def graticule_lines(step: float = 10.0, precision: float = 2.5) -> List[List[Point]]:
    """Meridians and parallels every ``step`` degrees as lon/lat polylines.

    Meridians stop at ±80° except every 90°, which reach the poles.
    """
    lines: List[List[Point]] = []
    lon = -180.0
    while lon <= 180.0:
        limit = 90.0 if lon % 90 == 0 else 80.0
        lines.append([(lon, lat) for lat in _frange(-limit, limit, precision)])
        lon += step
    lat = -80.0
    while lat <= 80.0:
        lines.append([(lon_, lat) for lon_ in _frange(-180.0, 180.0, precision)])
        lat += step
    return lines


def project_lines(projection: NaturalEarthProjection, lines: Iterable[Sequence[Point]]) -> Tuple[Ring, ...]:
    return tuple(projection.project_ring(line) for line in lines)


def _frange(start: float, stop: float, step: float) -> List[float]:
    count = int(round((stop - start) / step))
    return [start + i * step for i in range(count + 1)]
