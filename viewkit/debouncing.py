"""Throttling for high-frequency widget events.

The map view receives a relayout event for every wheel step and drag frame.
``LatestCallThrottle`` collapses a burst into one clamp-and-redraw per
cadence tick, run with the newest arguments only.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Tuple
import asyncio
import logging
import threading

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


def schedule_later(delay_s: float, callback: Callable[[], None]) -> Any:
    """Run ``callback`` after ``delay_s`` on the running asyncio loop, else on a daemon timer.

    The returned handle has a ``cancel()`` method in both cases.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        timer = threading.Timer(delay_s, callback)
        timer.daemon = True
        timer.start()
        return timer
    return loop.call_later(delay_s, callback)


class LatestCallThrottle:
    """Call ``callback`` at most once per cadence tick with the latest arguments.

    Parameters
    ----------
    callback:
        Callable receiving the arguments of the most recent call.
    interval_ms:
        Minimum delay between the first call of a burst and its execution.

    Notes
    -----
    Calls arriving while a tick is pending replace the stored arguments and do
    not reschedule. Exceptions from ``callback`` are logged so later bursts
    still run.
    """

    def __init__(self, callback: Callable[..., Any], *, interval_ms: int) -> None:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be > 0")
        self._callback = callback
        self._interval_s = interval_ms / 1000.0
        self._latest: Optional[Tuple[Tuple[Any, ...], Dict[str, Any]]] = None
        self._lock = threading.Lock()
        self._handle: Optional[Any] = None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            self._latest = (args, dict(kwargs))
            if self._handle is None:
                self._handle = schedule_later(self._interval_s, self._on_tick)

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._latest is not None

    def _on_tick(self) -> None:
        with self._lock:
            self._handle = None
            latest, self._latest = self._latest, None
        if latest is None:
            return
        args, kwargs = latest
        try:
            self._callback(*args, **kwargs)
        except Exception:
            logger.exception("Throttled callback failed")
