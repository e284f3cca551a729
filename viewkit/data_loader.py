"""Loading of tabular records and country boundaries.

Purpose
-------
Views consume two kinds of input:

- delimited tables (one row per observation) read into a :class:`Dataset`
  whose cells stay strings until a view coerces them;
- a GeoJSON ``FeatureCollection`` of country polygons, fetched over HTTP or
  read from disk.

Error modes
-----------
A missing optional table is logged and reported as ``None`` so the map can
still render without overlays. A boundary file that cannot be fetched or
parsed raises :class:`BoundaryLoadError`; without boundaries there is nothing
to draw.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
import requests

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

Record = Dict[str, str]
PathLike = Union[str, Path]


class BoundaryLoadError(RuntimeError):
    """Raised when the country boundary file cannot be fetched or parsed."""


@dataclass
class Dataset:
    """String-valued rows of one delimited file.

    Parameters
    ----------
    fields : list[str]
        Column names in file order. They double as field identifiers.
    records : list[dict[str, str]]
        One mapping per row; blank cells are empty strings.
    source : str
        Where the rows came from, for log messages.
    """

    fields: List[str]
    records: List[Record] = field(default_factory=list)
    source: str = ""

    def __len__(self) -> int:
        return len(self.records)

    def has_field(self, name: str) -> bool:
        """Return ``True`` when ``name`` is one of the dataset's columns."""
        return name in self.fields

    def column(self, name: str) -> List[str]:
        """Return the raw cells of column ``name`` (``KeyError`` if absent)."""
        if name not in self.fields:
            raise KeyError(f"Unknown field: {name}")
        return [row.get(name, "") for row in self.records]

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, *, source: str = "") -> "Dataset":
        """Build a dataset from a DataFrame, stringifying every cell."""
        fields = [str(c) for c in frame.columns]
        text = frame.astype(str)
        records = [dict(zip(fields, row)) for row in text.itertuples(index=False, name=None)]
        return cls(fields=fields, records=records, source=source)


def load_dataset(path: PathLike, *, sep: str = ",") -> Dataset:
    """Read a delimited file into a :class:`Dataset`.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    ValueError
        If the file has no header row.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Data file not found: {p}")
    try:
        frame = pd.read_csv(p, sep=sep, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as exc:
        raise ValueError(f"Data file has no header row: {p}") from exc
    dataset = Dataset.from_frame(frame, source=str(p))
    logger.info("Loaded %d rows from %s", len(dataset), p.name)
    return dataset


def load_optional_dataset(path: Optional[PathLike], *, sep: str = ",") -> Optional[Dataset]:
    """Like :func:`load_dataset` but returns ``None`` (with a warning) on failure."""
    if path is None:
        return None
    try:
        return load_dataset(path, sep=sep)
    except (OSError, ValueError, pd.errors.ParserError) as exc:
        logger.warning("CSV not loaded (optional for the map): %s", exc)
        return None


def load_boundaries(
    source: PathLike,
    *,
    timeout: float = 60.0,
    cache_path: Optional[PathLike] = None,
) -> Dict[str, Any]:
    """Return a GeoJSON ``FeatureCollection`` from a URL or a local file.

    When ``cache_path`` is given and exists it is read instead of the network;
    a successful download is written there.
    """
    if cache_path is not None and Path(cache_path).exists():
        return _read_boundary_file(Path(cache_path))

    text = str(source)
    if text.startswith(("http://", "https://")):
        try:
            response = requests.get(text, timeout=timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise BoundaryLoadError(f"Failed to fetch boundaries from {text}: {exc}") from exc
    else:
        data = _read_boundary_file(Path(text))

    _validate_feature_collection(data, text)
    if cache_path is not None:
        cache = Path(cache_path)
        cache.parent.mkdir(parents=True, exist_ok=True)
        cache.write_text(json.dumps(data), encoding="utf-8")
        logger.info("Saved boundaries to %s", cache)
    return data


def _read_boundary_file(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise BoundaryLoadError(f"Failed to read boundaries from {path}: {exc}") from exc
    _validate_feature_collection(data, str(path))
    return data


def _validate_feature_collection(data: Any, source: str) -> None:
    if not isinstance(data, dict) or not isinstance(data.get("features"), list):
        raise BoundaryLoadError(f"Boundary source {source} is not a GeoJSON FeatureCollection")
