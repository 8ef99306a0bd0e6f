from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class CancelHandle:
    """Handle returned by :meth:`Scheduler.schedule_periodic`."""

    def cancel(self) -> None:
        raise NotImplementedError

    @property
    def cancelled(self) -> bool:
        raise NotImplementedError


class Scheduler:
    """Periodic timer abstraction used by the detection controller."""

    def schedule_periodic(self, interval_ms: int, fn: Callable[[], object]) -> CancelHandle:
        raise NotImplementedError


def _check_interval(interval_ms: int) -> None:
    if interval_ms <= 0:
        raise ValueError("interval_ms must be positive")


class _ThreadHandle(CancelHandle):
    def __init__(self, thread: threading.Thread, stop_event: threading.Event) -> None:
        self._thread = thread
        self._stop_event = stop_event

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    def cancel(self) -> None:
        self._stop_event.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)


class ThreadingScheduler(Scheduler):
    """Runs each schedule on its own daemon thread.

    Calls of one schedule never overlap: the thread waits for the interval,
    runs the callback to completion, then waits again.
    """

    def schedule_periodic(self, interval_ms: int, fn: Callable[[], object]) -> CancelHandle:
        _check_interval(interval_ms)
        stop_event = threading.Event()
        interval_s = interval_ms / 1000.0

        def _worker() -> None:
            while not stop_event.wait(interval_s):
                try:
                    fn()
                except Exception:
                    logger.exception("periodic callback failed")

        thread = threading.Thread(target=_worker, name="obstacle-guide-timer", daemon=True)
        thread.start()
        return _ThreadHandle(thread, stop_event)


@dataclass
class _ManualEntry(CancelHandle):
    interval_ms: int
    fn: Callable[[], object]
    next_due_ms: int
    is_cancelled: bool = field(default=False)

    @property
    def cancelled(self) -> bool:
        return self.is_cancelled

    def cancel(self) -> None:
        self.is_cancelled = True


class ManualScheduler(Scheduler):
    """Virtual-clock scheduler; time only moves when :meth:`advance` is called."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._entries: list[_ManualEntry] = []

    @property
    def pending(self) -> int:
        return sum(1 for entry in self._entries if not entry.is_cancelled)

    def schedule_periodic(self, interval_ms: int, fn: Callable[[], object]) -> CancelHandle:
        _check_interval(interval_ms)
        entry = _ManualEntry(
            interval_ms=interval_ms,
            fn=fn,
            next_due_ms=self.now_ms + interval_ms,
        )
        self._entries.append(entry)
        return entry

    def advance(self, ms: int) -> int:
        """Move the clock forward by ``ms``; return the number of callbacks fired."""
        if ms < 0:
            raise ValueError("cannot move the clock backwards")
        target_ms = self.now_ms + ms
        fired = 0
        while True:
            self._entries = [entry for entry in self._entries if not entry.is_cancelled]
            due = [entry for entry in self._entries if entry.next_due_ms <= target_ms]
            if not due:
                break
            entry = min(due, key=lambda item: item.next_due_ms)
            self.now_ms = entry.next_due_ms
            entry.next_due_ms += entry.interval_ms
            entry.fn()
            fired += 1
        self.now_ms = target_ms
        return fired
