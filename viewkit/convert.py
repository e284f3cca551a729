# === SECTION: convert [id: convert]===
"""Lenient conversion of string-valued record cells.

Records keep every cell as loaded text; views coerce at use. A cell that does
not parse never raises here: numbers become ``nan`` and years become ``None``
so callers can filter them out with ``math.isfinite`` / ``is None``.
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def to_number(obj: Any) -> float:
    """
    Convert ``obj`` to a float, or ``nan`` when that is not possible.

    Rules:
    - ``None`` and blank strings become ``nan``.
    - Booleans are rejected (``nan``), other real numbers are cast.
    - Strings are stripped and parsed with ``float``; infinities are
      treated as unparseable.

    Examples
    --------
    >>> to_number(" 12.5 ")
    12.5
    >>> math.isnan(to_number("n/a"))
    True
    """
    if obj is None or isinstance(obj, bool):
        return math.nan
    if isinstance(obj, (int, float)):
        value = float(obj)
    elif isinstance(obj, str):
        s = obj.strip()
        if s == "":
            return math.nan
        try:
            value = float(s)
        except ValueError:
            return math.nan
    else:
        try:
            value = float(obj)
        except (TypeError, ValueError):
            return math.nan
    return value if math.isfinite(value) else math.nan


def to_year(obj: Any) -> Optional[int]:
    """
    Parse the leading integer of ``obj`` as a year.

    ``"1998"`` and ``"1998.0"`` both give ``1998``; text without a leading
    integer gives ``None``.
    """
    if obj is None or isinstance(obj, bool):
        return None
    if isinstance(obj, int):
        return obj
    if isinstance(obj, float):
        return int(obj) if math.isfinite(obj) else None
    match = _LEADING_INT.match(str(obj))
    if match is None:
        return None
    return int(match.group(1))


def first_present(record: dict, *names: str) -> Any:
    """Return the first value in ``record`` under any of ``names`` that is not ``None``."""
    for name in names:
        value = record.get(name)
        if value is not None:
            return value
    return None

# === END OF SECTION: convert [id: convert]===
