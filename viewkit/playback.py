"""Year playback for the map view.

Purpose
-------
``PlaybackController`` walks the available years on a fixed total-duration
timer: ``interval = total / len(years)``. Each tick advances one year and
invokes the step callback; past the last year playback stops by itself.

Concurrency
-----------
``PlaybackTimer`` is the only recurring timer in the package. It owns a single
handle: ``start`` cancels whatever was scheduled before, ``cancel`` is
idempotent, and a tick from a cancelled schedule is ignored via a generation
counter, so two sessions can never advance the year at the same time.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

from .choropleth import population_years
from .config import ANCHOR_YEAR, MAX_YEAR, PLAYBACK_TOTAL_MS
from .convert import first_present, to_year
from .debouncing import schedule_later

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

PLAY_LABEL = "Play ▶"
PAUSE_LABEL = "Pause ❚❚"


def available_years(
    columns: Sequence[str] = (),
    records: Iterable[Mapping[str, str]] = (),
    *,
    anchor_year: int = ANCHOR_YEAR,
    max_year: int = MAX_YEAR,
) -> List[int]:
    """Sorted distinct years the slider offers.

    ``POP.raw.YYYY`` columns win; otherwise the rows' ``year`` values are
    used. Years after ``max_year`` are dropped and ``anchor_year`` is always
    included.
    """
    years = [y for y in population_years(columns) if y <= max_year]
    if not years:
        for row in records:
            year = to_year(first_present(row, "year", "Year", "YEAR"))
            if year and year <= max_year:
                years.append(year)
    years.append(anchor_year)
    return sorted(set(years))


def default_start_year(years: Sequence[int], anchor_year: int = ANCHOR_YEAR) -> int:
    if not years:
        return anchor_year
    return anchor_year if anchor_year in years else years[0]


class PlaybackTimer:
    """Recurring timer with one always-valid, cancellable handle."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handle: Optional[Any] = None
        self._generation = 0
        self._interval_s = 0.0
        self._callback: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        with self._lock:
            return self._callback is not None

    def start(self, interval_s: float, callback: Callable[[], None]) -> None:
        """Cancel any running schedule and call ``callback`` every ``interval_s``."""
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        with self._lock:
            self._cancel_locked()
            self._interval_s = float(interval_s)
            self._callback = callback
            self._schedule_locked(self._generation)

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        self._generation += 1
        self._callback = None
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule_locked(self, generation: int) -> None:
        self._handle = schedule_later(self._interval_s, lambda: self._on_tick(generation))

    def _on_tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._callback is None:
                return
            self._handle = None
            callback = self._callback
        try:
            callback()
        except Exception:
            logger.exception("Playback step failed; stopping playback")
            self.cancel()
            return
        with self._lock:
            if generation == self._generation and self._callback is not None:
                self._schedule_locked(generation)


class PlaybackController:
    """Advance through ``years`` and report each step.

    Parameters
    ----------
    years : Sequence[int]
        Sorted years to walk.
    on_step : Callable[[int], None]
        Called with each year shown, including the start year.
    on_state_change : Callable[[bool], None], optional
        Called with the new ``playing`` flag on play and pause.
    total_ms : int
        Duration of a full run.
    timer : PlaybackTimer, optional
        Injected for tests.
    """

    def __init__(
        self,
        years: Sequence[int],
        on_step: Callable[[int], None],
        *,
        on_state_change: Optional[Callable[[bool], None]] = None,
        total_ms: int = PLAYBACK_TOTAL_MS,
        anchor_year: int = ANCHOR_YEAR,
        timer: Optional[PlaybackTimer] = None,
        current_year: Optional[int] = None,
    ) -> None:
        if not years:
            raise ValueError("years must not be empty")
        self._years = list(years)
        self._on_step = on_step
        self._on_state_change = on_state_change
        self._total_ms = int(total_ms)
        self._timer = timer if timer is not None else PlaybackTimer()
        self._playing = False
        self._current = current_year if current_year is not None else default_start_year(self._years, anchor_year)
        self._index = 0

    @property
    def years(self) -> List[int]:
        return list(self._years)

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def current_year(self) -> int:
        return self._current

    @property
    def interval_ms(self) -> int:
        # half-up rounding, not round-half-even
        return max(1, int(math.floor(self._total_ms / len(self._years) + 0.5)))

    @property
    def button_label(self) -> str:
        return PAUSE_LABEL if self._playing else PLAY_LABEL

    def seek(self, year: int) -> None:
        """Set the current year from user input; ignored while playing."""
        if self._playing:
            logger.debug("Ignoring seek to %s during playback", year)
            return
        self._current = int(year)

    def play(self) -> None:
        if self._playing:
            return
        if self._current in self._years:
            self._index = self._years.index(self._current)
        else:
            self._index = 0
            self._current = self._years[0]
        self._playing = True
        logger.info("playback start at %s (step %d ms)", self._current, self.interval_ms)
        if self._on_state_change is not None:
            self._on_state_change(True)
        self._on_step(self._current)
        self._timer.start(self.interval_ms / 1000.0, self._advance)

    def pause(self) -> None:
        self._timer.cancel()
        if not self._playing:
            return
        self._playing = False
        logger.info("playback stopped at %s", self._current)
        if self._on_state_change is not None:
            self._on_state_change(False)

    def toggle(self) -> None:
        if self._playing:
            self.pause()
        else:
            self.play()

    def _advance(self) -> None:
        self._index += 1
        if self._index >= len(self._years):
            self.pause()
            return
        self._current = self._years[self._index]
        self._on_step(self._current)
