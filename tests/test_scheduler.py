from __future__ import annotations

import threading
import time

import pytest

from obstacle_guide.scheduler import ManualScheduler, ThreadingScheduler


def test_manual_scheduler_fires_once_per_elapsed_interval() -> None:
    scheduler = ManualScheduler()
    calls: list[int] = []
    scheduler.schedule_periodic(1000, lambda: calls.append(scheduler.now_ms))

    assert scheduler.advance(999) == 0
    assert scheduler.advance(1) == 1
    assert scheduler.advance(3500) == 3

    assert calls == [1000, 2000, 3000, 4000]
    assert scheduler.now_ms == 4500


def test_manual_scheduler_interleaves_schedules_by_due_time() -> None:
    scheduler = ManualScheduler()
    calls: list[str] = []
    scheduler.schedule_periodic(300, lambda: calls.append("fast"))
    scheduler.schedule_periodic(500, lambda: calls.append("slow"))

    scheduler.advance(1000)

    assert calls == ["fast", "slow", "fast", "fast", "slow"]


def test_manual_cancel_stops_future_calls() -> None:
    scheduler = ManualScheduler()
    calls: list[int] = []
    handle = scheduler.schedule_periodic(100, lambda: calls.append(1))

    scheduler.advance(250)
    handle.cancel()
    handle.cancel()
    scheduler.advance(1000)

    assert len(calls) == 2
    assert handle.cancelled is True
    assert scheduler.pending == 0


def test_manual_callback_can_cancel_its_own_schedule() -> None:
    scheduler = ManualScheduler()
    calls: list[int] = []
    handles = []

    def _once() -> None:
        calls.append(scheduler.now_ms)
        handles[0].cancel()

    handles.append(scheduler.schedule_periodic(100, _once))
    scheduler.advance(1000)

    assert calls == [100]


def test_schedulers_reject_invalid_intervals() -> None:
    with pytest.raises(ValueError, match="interval_ms"):
        ManualScheduler().schedule_periodic(0, lambda: None)
    with pytest.raises(ValueError, match="interval_ms"):
        ThreadingScheduler().schedule_periodic(-5, lambda: None)
    with pytest.raises(ValueError, match="backwards"):
        ManualScheduler().advance(-1)


def test_threading_scheduler_runs_until_cancelled() -> None:
    fired = threading.Event()
    calls: list[float] = []

    def _callback() -> None:
        calls.append(time.monotonic())
        if len(calls) >= 3:
            fired.set()

    handle = ThreadingScheduler().schedule_periodic(10, _callback)
    try:
        assert fired.wait(timeout=5.0)
    finally:
        handle.cancel()

    count_after_cancel = len(calls)
    time.sleep(0.05)
    assert len(calls) == count_after_cancel
    assert handle.cancelled is True


def test_threading_scheduler_survives_failing_callback(caplog: pytest.LogCaptureFixture) -> None:
    fired = threading.Event()
    calls: list[int] = []

    def _callback() -> None:
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        fired.set()

    handle = ThreadingScheduler().schedule_periodic(10, _callback)
    try:
        assert fired.wait(timeout=5.0)
    finally:
        handle.cancel()

    assert "periodic callback failed" in caplog.text
