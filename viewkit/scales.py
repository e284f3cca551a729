"""Numeric scales shared by the views.

Plotly draws axes from explicit ranges and tick values, so the views compute
those themselves. The helpers here follow the conventions of the usual
charting scales so the numbers match what users expect from such plots:

- ``tick_increment``/``ticks``: 1-2-5 tick steps for ~``count`` ticks;
- ``nice_domain``: extend a domain outward to round step multiples;
- ``QuantileScale``: equal-frequency bins over observed values.
"""

from __future__ import annotations

import bisect
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


def _tick_spec(start: float, stop: float, count: float) -> Tuple[int, int, float]:
    step = (stop - start) / max(0.0, count)
    if not (step > 0) or not math.isfinite(step):
        return (0, -1, 0.0)
    power = math.floor(math.log10(step))
    error = step / 10**power
    factor = 10 if error >= _E10 else 5 if error >= _E5 else 2 if error >= _E2 else 1
    if power < 0:
        inc = 10 ** (-power) / factor
        i1 = round(start * inc)
        i2 = round(stop * inc)
        if i1 / inc < start:
            i1 += 1
        if i2 / inc > stop:
            i2 -= 1
        inc = -inc
    else:
        inc = 10**power * factor
        i1 = round(start / inc)
        i2 = round(stop / inc)
        if i1 * inc < start:
            i1 += 1
        if i2 * inc > stop:
            i2 -= 1
    if i2 < i1 and 0.5 <= count < 2:
        return _tick_spec(start, stop, count * 2)
    return (int(i1), int(i2), float(inc))


def tick_increment(start: float, stop: float, count: float) -> float:
    """Return the tick step for ``count`` ticks; negative values encode ``1/step``."""
    return _tick_spec(start, stop, count)[2]


def ticks(start: float, stop: float, count: int = 10) -> List[float]:
    """Return round tick values covering ``[start, stop]``."""
    if not count > 0:
        return []
    if start == stop:
        return [float(start)]
    reverse = stop < start
    i1, i2, inc = _tick_spec(stop, start, count) if reverse else _tick_spec(start, stop, count)
    if not i2 >= i1:
        return []
    n = i2 - i1 + 1
    if reverse:
        if inc < 0:
            return [(i2 - i) / -inc for i in range(n)]
        return [(i2 - i) * inc for i in range(n)]
    if inc < 0:
        return [(i1 + i) / -inc for i in range(n)]
    return [(i1 + i) * inc for i in range(n)]


def extent(values: Iterable[float]) -> Optional[Tuple[float, float]]:
    """Return ``(min, max)`` of the finite values or ``None`` when there are none."""
    finite = [float(v) for v in values if v is not None and math.isfinite(v)]
    if not finite:
        return None
    return (min(finite), max(finite))


def nice_domain(domain: Sequence[float], count: int = 10) -> Tuple[float, float]:
    """Extend ``domain`` outward so both ends land on tick multiples."""
    d0, d1 = float(domain[0]), float(domain[-1])
    reverse = d1 < d0
    start, stop = (d1, d0) if reverse else (d0, d1)
    prestep = None
    for _ in range(10):
        step = tick_increment(start, stop, count)
        if step == prestep:
            break
        if step > 0:
            start = math.floor(start / step) * step
            stop = math.ceil(stop / step) * step
        elif step < 0:
            start = math.ceil(start * step) / step
            stop = math.floor(stop * step) / step
        else:
            break
        prestep = step
    return (stop, start) if reverse else (start, stop)


@dataclass(frozen=True)
class LinearScale:
    """Linear map from a data ``domain`` to a pixel ``range``."""

    domain: Tuple[float, float]
    range: Tuple[float, float]

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        t = 0.5 if d1 == d0 else (value - d0) / (d1 - d0)
        return r0 + t * (r1 - r0)

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        t = 0.5 if r1 == r0 else (pixel - r0) / (r1 - r0)
        return d0 + t * (d1 - d0)


class QuantileScale:
    """Equal-frequency binning of observed values.

    Parameters
    ----------
    values : Iterable[float]
        Observations; non-finite entries are ignored.
    bins : int
        Number of output bins.

    Examples
    --------
    >>> q = QuantileScale(range(1, 101), bins=10)
    >>> q(1), q(100)
    (0, 9)
    """

    def __init__(self, values: Iterable[float], bins: int = 10) -> None:
        if bins <= 0:
            raise ValueError("bins must be > 0")
        data = np.asarray([v for v in values if v is not None and math.isfinite(v)], dtype=float)
        self._bins = int(bins)
        self._values = np.sort(data)
        if self._values.size:
            probs = [i / self._bins for i in range(1, self._bins)]
            self._thresholds = [float(q) for q in np.quantile(self._values, probs)]
        else:
            self._thresholds = []

    @property
    def bins(self) -> int:
        return self._bins

    @property
    def empty(self) -> bool:
        return self._values.size == 0

    def quantiles(self) -> List[float]:
        """Return the ``bins - 1`` inner thresholds."""
        return list(self._thresholds)

    def __call__(self, value: float) -> Optional[int]:
        if self.empty or value is None or not math.isfinite(value):
            return None
        return bisect.bisect_right(self._thresholds, float(value))

    def bin_edges(self) -> List[float]:
        """Return ``[min, *thresholds, max]`` over the observed values."""
        if self.empty:
            return []
        return [float(self._values[0]), *self._thresholds, float(self._values[-1])]
