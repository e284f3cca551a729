from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from viewkit.debouncing import LatestCallThrottle


class _FakeThreadTimer:
    created: list["_FakeThreadTimer"] = []

    def __init__(self, delay: float, callback):
        self.delay = delay
        self.callback = callback
        self.daemon = False
        self.started = False
        _FakeThreadTimer.created.append(self)

    def start(self) -> None:
        self.started = True


class _FakeLoopHandle:
    def __init__(self, callback):
        self._callback = callback

    def fire(self) -> None:
        self._callback()


class _FakeAsyncLoop:
    def __init__(self) -> None:
        self.handles: list[_FakeLoopHandle] = []

    def call_later(self, _delay: float, callback):
        handle = _FakeLoopHandle(callback)
        self.handles.append(handle)
        return handle


def test_throttle_logs_and_keeps_processing_after_callback_error_threading(caplog) -> None:
    state = {"n": 0}

    def _callback(_payload):
        state["n"] += 1
        if state["n"] == 1:
            raise RuntimeError("boom")

    _FakeThreadTimer.created.clear()

    with patch("viewkit.debouncing.threading.Timer", _FakeThreadTimer):
        throttle = LatestCallThrottle(_callback, interval_ms=1)
        with caplog.at_level(logging.ERROR, logger="viewkit.debouncing"):
            throttle("first")
            assert len(_FakeThreadTimer.created) == 1
            assert _FakeThreadTimer.created[0].daemon is True
            assert _FakeThreadTimer.created[0].delay == pytest.approx(0.001)
            _FakeThreadTimer.created[0].callback()

            throttle("second")
            assert len(_FakeThreadTimer.created) == 2
            _FakeThreadTimer.created[1].callback()

    assert state["n"] == 2
    assert "Throttled callback failed" in caplog.text


def test_throttle_runs_only_latest_viewport_of_a_burst() -> None:
    seen: list[tuple] = []
    fake_loop = _FakeAsyncLoop()

    with patch("viewkit.debouncing.asyncio.get_running_loop", return_value=fake_loop):
        throttle = LatestCallThrottle(lambda x, y: seen.append((x, y)), interval_ms=500)
        throttle((0, 960), (600, 0))
        throttle((100, 580), (400, 100))
        throttle((200, 680), (450, 150))
        assert throttle.pending is True
        assert len(fake_loop.handles) == 1

        fake_loop.handles[0].fire()

    assert seen == [((200, 680), (450, 150))]
    assert throttle.pending is False


def test_stray_tick_without_pending_call_does_nothing() -> None:
    seen: list[int] = []
    fake_loop = _FakeAsyncLoop()

    with patch("viewkit.debouncing.asyncio.get_running_loop", return_value=fake_loop):
        throttle = LatestCallThrottle(lambda v: seen.append(v), interval_ms=10)
        throttle(1)
        fake_loop.handles[0].fire()
        fake_loop.handles[0].fire()

    assert seen == [1]


def test_throttle_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError, match="interval_ms"):
        LatestCallThrottle(lambda: None, interval_ms=0)
