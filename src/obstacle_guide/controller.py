from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from .classifier import Verdict
from .edges import check_sensitivity
from .feedback import FeedbackSink
from .frames import FrameSource
from .pipeline import DetectionPipeline
from .regions import RegionFilter
from .scheduler import CancelHandle, Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 1000
DEFAULT_SENSITIVITY = 50


class AlreadyActiveError(RuntimeError):
    """Raised when detection is started while a session is already running."""


@dataclass(frozen=True)
class DetectionConfig:
    """Parameters supplied when a detection session starts."""

    interval_ms: int = DEFAULT_INTERVAL_MS
    sensitivity: float = DEFAULT_SENSITIVITY

    def __post_init__(self) -> None:
        if self.interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        check_sensitivity(self.sensitivity)


@dataclass
class DetectionSession:
    """Mutable state of one start/stop lifetime. Guarded by the controller lock."""

    sensitivity: float
    interval_ms: int
    active: bool = True
    cancelled: bool = False
    last_verdict: Verdict | None = None
    cancel_handle: CancelHandle | None = None
    ticks_run: int = 0
    ticks_skipped: int = 0
    verdicts_emitted: int = 0


class DetectionController:
    """Drives the detection pipeline on a periodic schedule.

    Idle -> ``start()`` -> Active -> ``stop()`` -> Idle. Every tick pulls the
    current frame, runs edge map -> regions -> classification and forwards
    obstacle verdicts to the feedback sink.
    """

    def __init__(
        self,
        frame_source: FrameSource,
        feedback_sink: FeedbackSink,
        scheduler: Scheduler | None = None,
        region_filter: RegionFilter | None = None,
    ) -> None:
        self._frame_source = frame_source
        self._feedback_sink = feedback_sink
        self._scheduler = scheduler or ThreadingScheduler()
        self._pipeline = DetectionPipeline(region_filter)
        self._state_lock = threading.Lock()
        self._tick_lock = threading.Lock()
        # Held while a verdict is delivered; stop() waits on it. Reentrant so a
        # sink may stop the controller from inside on_verdict.
        self._emit_lock = threading.RLock()
        self._session: DetectionSession | None = None

    def __enter__(self) -> DetectionController:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    @property
    def session(self) -> DetectionSession | None:
        with self._state_lock:
            return self._session

    @property
    def last_verdict(self) -> Verdict | None:
        with self._state_lock:
            return self._session.last_verdict if self._session else None

    def is_active(self) -> bool:
        with self._state_lock:
            return self._session is not None and self._session.active

    def start(self, config: DetectionConfig | None = None) -> DetectionSession:
        cfg = config or DetectionConfig()
        with self._state_lock:
            if self._session is not None and self._session.active:
                raise AlreadyActiveError("detection is already active")
            session = DetectionSession(sensitivity=cfg.sensitivity, interval_ms=cfg.interval_ms)
            self._session = session

        # Scheduled outside the lock: a scheduler may fire the first tick synchronously.
        try:
            handle = self._scheduler.schedule_periodic(cfg.interval_ms, self._scheduled_tick)
        except Exception:
            with self._state_lock:
                session.active = False
                session.cancelled = True
                if self._session is session:
                    self._session = None
            raise

        with self._state_lock:
            session.cancel_handle = handle
            stopped_meanwhile = session.cancelled
        if stopped_meanwhile:
            handle.cancel()
            return session

        logger.info(
            "detection started (interval=%sms, sensitivity=%s)",
            cfg.interval_ms,
            cfg.sensitivity,
        )
        self._feedback_sink.on_detection_started()
        return session

    def stop(self) -> None:
        with self._state_lock:
            session = self._session
            if session is None or not session.active:
                return
            session.cancelled = True
            session.active = False
            handle = session.cancel_handle

        if handle is not None:
            handle.cancel()
        # Wait for a verdict already being delivered.
        with self._emit_lock:
            pass
        logger.info(
            "detection stopped after %d ticks (%d skipped, %d verdicts)",
            session.ticks_run,
            session.ticks_skipped,
            session.verdicts_emitted,
        )

    def set_sensitivity(self, sensitivity: float) -> None:
        """Update sensitivity of the running session; applied from the next tick."""
        check_sensitivity(sensitivity)
        with self._state_lock:
            if self._session is not None and self._session.active:
                self._session.sensitivity = sensitivity

    def tick(self) -> Verdict | None:
        """Run one detection cycle; return the verdict forwarded to the sink, if any."""
        if not self._tick_lock.acquire(blocking=False):
            logger.debug("previous tick still running; skipping")
            with self._state_lock:
                if self._session is not None:
                    self._session.ticks_skipped += 1
            return None

        try:
            with self._state_lock:
                session = self._session
                if session is None or not session.active:
                    return None
                sensitivity = session.sensitivity

            frame = self._frame_source.current_frame()
            if frame is None:
                with self._state_lock:
                    session.ticks_skipped += 1
                return None

            result = self._pipeline.run(frame, sensitivity)
            verdict = result.verdict

            with self._emit_lock:
                with self._state_lock:
                    session.ticks_run += 1
                    if session.cancelled or not verdict.is_obstacle:
                        return None
                    session.last_verdict = verdict
                    session.verdicts_emitted += 1

                logger.debug(
                    "verdict %s from %d regions", verdict.direction.value, len(result.regions)
                )
                self._feedback_sink.on_verdict(verdict)
            return verdict
        finally:
            self._tick_lock.release()

    def _scheduled_tick(self) -> None:
        try:
            self.tick()
        except Exception:
            logger.exception("detection cycle failed; skipping")
