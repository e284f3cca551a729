"""Year-filtered event points for the map overlay.

Steady mode shows only the events of the selected year. During playback the
selected year and the ``window - 1`` years before it stay visible, fading by
``decay`` per year of age.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from .config import DECAY_PER_YEAR, PLAYBACK_WINDOW
from .convert import first_present, to_number, to_year
from .event_categories import Category, CategoryFilter, classify

LON_FIELDS = ("longitude", "Longitude", "lon", "Long", "LONG")
LAT_FIELDS = ("latitude", "Latitude", "lat", "Lat", "LAT")
YEAR_FIELDS = ("year", "Year", "YEAR")
TYPE_FIELDS = ("disastertype", "disaster_type", "disasterType")
LOCATION_FIELDS = ("geolocation", "Geolocation", "location")
KEY_FIELDS = ("id", "iso3")


@dataclass(frozen=True)
class EventRecord:
    """An event row with parsed coordinates and year."""

    index: int
    lon: float
    lat: float
    year: Optional[int]
    type_text: str
    location: str
    key: str

    @property
    def category(self) -> Category:
        return classify(self.type_text)


@dataclass(frozen=True)
class OverlayPoint:
    event: EventRecord
    opacity: float
    color: str

    @property
    def hover(self) -> str:
        e = self.event
        year = e.year if e.year is not None else "N/A"
        return (
            f"<b>{e.type_text or 'Unknown'}</b><br>Year: {year}<br>"
            f"Location: {e.location or 'Unknown location'}<br>"
            f"Coords: {e.lat:.3f}, {e.lon:.3f}"
        )


def parse_events(records: Iterable[Mapping[str, str]]) -> List[EventRecord]:
    """Parse rows into events, dropping rows without finite coordinates."""
    events = []
    for i, row in enumerate(records):
        lon = to_number(first_present(row, *LON_FIELDS))
        lat = to_number(first_present(row, *LAT_FIELDS))
        if not (math.isfinite(lon) and math.isfinite(lat)):
            continue
        key = first_present(row, *KEY_FIELDS)
        events.append(
            EventRecord(
                index=i,
                lon=lon,
                lat=lat,
                year=to_year(first_present(row, *YEAR_FIELDS)),
                type_text=str(first_present(row, *TYPE_FIELDS) or ""),
                location=str(first_present(row, *LOCATION_FIELDS) or ""),
                key=f"{key}:{i}" if key else str(i),
            )
        )
    return events


def age_opacity(age: int, decay: float = DECAY_PER_YEAR) -> float:
    """``1 - age * decay`` clamped to ``[0, 1]``."""
    return max(0.0, min(1.0, 1.0 - age * decay))


def overlay_points(
    events: Iterable[EventRecord],
    year: int,
    *,
    playing: bool = False,
    category_filter: Optional[CategoryFilter] = None,
    decay: float = DECAY_PER_YEAR,
    window: int = PLAYBACK_WINDOW,
) -> List[OverlayPoint]:
    """Return the events visible for ``year`` with their opacity and colour."""
    points = []
    for event in events:
        if event.year is None:
            continue
        age = year - event.year
        if playing:
            if not 0 <= age < window:
                continue
        elif age != 0:
            continue
        if category_filter is not None and category_filter.hides(event.type_text):
            continue
        points.append(OverlayPoint(event=event, opacity=age_opacity(age, decay), color=event.category.color))
    return points
