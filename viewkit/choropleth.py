"""Time-indexed choropleth: region resolution, decile bins and colours.

Resolution
----------
A boundary feature is joined to tabular values by its three-letter region
code first. The code is taken from the first of :data:`REGION_CODE_PROPERTIES`
holding exactly three letters, upper-cased and passed through
:data:`REGION_ALIASES` (boundary and table sources disagree on a few codes).
Features whose code finds no value fall back to a case-insensitive match on
the country name.

Binning
-------
All valid values present for the year (finite, non-negative) feed a
:class:`~viewkit.scales.QuantileScale` with ten bins; each resolved region is
coloured by its bin, everything else gets :data:`NO_DATA_FILL`.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from plotly.colors import sample_colorscale, sequential

from .config import DECILE_BINS
from .convert import first_present, to_number, to_year
from .scales import QuantileScale

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

NO_DATA_FILL = "#eee"
POP_COLUMN_TEMPLATE = "POP.raw.{year}"
POP_COLUMN_PATTERN = re.compile(r"^POP\.raw\.(\d{4})$")

REGION_CODE_PROPERTIES = ("iso_a3", "ISO_A3", "iso3", "ISO3", "adm0_a3", "ADM0_A3", "iso", "ISO")
REGION_NAME_PROPERTIES = ("name", "ADMIN", "NAME")

# Boundary code -> table code.
REGION_ALIASES: Dict[str, str] = {
    "SDS": "SSD",  # South Sudan
}

_THREE_LETTERS = re.compile(r"^[A-Za-z]{3}$")


def feature_region_code(feature: Mapping[str, Any]) -> Optional[str]:
    """Return the normalized region code of a GeoJSON feature, or ``None``."""
    props = feature.get("properties") or {}
    candidates = [feature.get("id")] + [props.get(name) for name in REGION_CODE_PROPERTIES]
    for candidate in candidates:
        if not candidate:
            continue
        text = str(candidate).strip()
        if _THREE_LETTERS.match(text):
            code = text.upper()
            return REGION_ALIASES.get(code, code)
    return None


def feature_name(feature: Mapping[str, Any], default: str = "") -> str:
    props = feature.get("properties") or {}
    for name in REGION_NAME_PROPERTIES:
        value = props.get(name)
        if value:
            return str(value)
    return default


def _valid(value: float) -> Optional[float]:
    return value if math.isfinite(value) and value >= 0 else None


@dataclass
class YearLookup:
    """Per-year values keyed by region code and by lower-case name."""

    year: int
    by_code: Dict[str, Optional[float]] = field(default_factory=dict)
    by_name: Dict[str, Optional[float]] = field(default_factory=dict)

    @property
    def values(self) -> List[float]:
        """Valid values used for binning (one per region code)."""
        return [v for v in self.by_code.values() if v is not None]

    def resolve(self, feature: Mapping[str, Any]) -> Optional[float]:
        code = feature_region_code(feature)
        value = self.by_code.get(code) if code else None
        if value is None:
            name = feature_name(feature).lower()
            if name:
                value = self.by_name.get(name)
        return value


def population_years(columns: Iterable[str]) -> List[int]:
    """Years encoded in ``POP.raw.YYYY`` column names, sorted."""
    years = []
    for column in columns:
        match = POP_COLUMN_PATTERN.match(str(column))
        if match:
            years.append(int(match.group(1)))
    return sorted(years)


def build_year_lookup(
    records: Iterable[Mapping[str, str]],
    year: int,
    *,
    code_field: str = "iso",
    name_field: str = "country",
    column_template: str = POP_COLUMN_TEMPLATE,
) -> YearLookup:
    """Lookup for a wide table with one value column per year."""
    lookup = YearLookup(year=year)
    column = column_template.format(year=year)
    for row in records:
        code = str(row.get(code_field) or "").strip()
        name = str(row.get(name_field) or "").strip()
        value = _valid(to_number(row.get(column)))
        if code:
            lookup.by_code[code.upper()] = value
        if name:
            lookup.by_name[name.lower()] = value
    return lookup


def build_event_count_lookup(
    records: Iterable[Mapping[str, str]],
    year: int,
    *,
    code_fields: Sequence[str] = ("iso3", "iso", "ISO3"),
    name_fields: Sequence[str] = ("country", "Country"),
) -> YearLookup:
    """Lookup for a long table (one row per event): events per region in ``year``."""
    lookup = YearLookup(year=year)
    for row in records:
        if to_year(first_present(row, "year", "Year", "YEAR")) != year:
            continue
        code = str(first_present(row, *code_fields) or "").strip().upper()
        name = str(first_present(row, *name_fields) or "").strip().lower()
        if code:
            lookup.by_code[code] = (lookup.by_code.get(code) or 0.0) + 1.0
        if name:
            lookup.by_name[name] = (lookup.by_name.get(name) or 0.0) + 1.0
    return lookup


def bin_color(index: int, bins: int = DECILE_BINS) -> str:
    """Colour of bin ``index`` sampled from the green sequential scale."""
    t = 0.15 + (index / max(1, bins - 1)) * 0.8
    return sample_colorscale(sequential.Greens, [t])[0]


def bin_label(index: Optional[int], bins: int = DECILE_BINS) -> str:
    """Percentile band label such as ``"30-40%"``; ``"No data"`` for ``None``."""
    if index is None:
        return "No data"
    width = 100 // bins
    return f"{index * width}-{(index + 1) * width}%"


def format_value(value: Optional[float]) -> str:
    if value is None:
        return "No data"
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,}"


@dataclass(frozen=True)
class LegendBin:
    low: float
    high: float
    color: str

    @property
    def title(self) -> str:
        return f"{round(self.low):,} – {round(self.high):,}"


@dataclass
class ChoroplethResult:
    """Per-feature fills and tooltip data for one year."""

    year: int
    fills: Dict[str, str]
    hovers: Dict[str, str]
    bins: Dict[str, Optional[int]]
    values: Dict[str, Optional[float]]
    legend: List[LegendBin]


def feature_key(index: int, feature: Mapping[str, Any]) -> str:
    """Stable key of a boundary feature within one boundary file."""
    return f"{index}:{feature_region_code(feature) or feature_name(feature, 'unknown')}"


def render_choropleth(
    features: Sequence[Mapping[str, Any]],
    lookup: YearLookup,
    *,
    bins: int = DECILE_BINS,
    value_label: str = "POP",
) -> ChoroplethResult:
    """Colour every feature for ``lookup.year``."""
    scale = QuantileScale(lookup.values, bins=bins)
    fills: Dict[str, str] = {}
    hovers: Dict[str, str] = {}
    bin_of: Dict[str, Optional[int]] = {}
    value_of: Dict[str, Optional[float]] = {}
    for i, feature in enumerate(features):
        key = feature_key(i, feature)
        value = lookup.resolve(feature)
        index = scale(value) if value is not None else None
        fills[key] = bin_color(index, bins) if index is not None else NO_DATA_FILL
        bin_of[key] = index
        value_of[key] = value
        hovers[key] = (
            f"<b>{feature_name(feature, 'Unknown')}</b><br>"
            f"{value_label} {lookup.year}: {format_value(value)}<br>"
            f"Decile: {bin_label(index, bins)}"
        )

    legend: List[LegendBin] = []
    edges = scale.bin_edges()
    if edges:
        for i in range(bins):
            legend.append(LegendBin(low=edges[i], high=edges[i + 1], color=bin_color(i, bins)))
    else:
        logger.debug("No valid values for %s; choropleth left uncoloured", lookup.year)
    return ChoroplethResult(
        year=lookup.year, fills=fills, hovers=hovers, bins=bin_of, values=value_of, legend=legend
    )
