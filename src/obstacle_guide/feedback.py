from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal

from .classifier import HapticSegment, Verdict
from .regions import Region

logger = logging.getLogger(__name__)

VOLUME_LEVEL = Literal["high", "medium", "low"]
VOLUME_GAIN: dict[str, float] = {"high": 1.0, "medium": 0.6, "low": 0.3}
DETECTION_STARTED_MESSAGE = "Edge detection started"
HIGHLIGHT_PADDING_PX = 10


@dataclass(frozen=True)
class FeedbackPreferences:
    """User-facing feedback switches."""

    voice_enabled: bool = True
    vibration_enabled: bool = True
    volume: VOLUME_LEVEL = "high"
    speech_rate: float = 0.9
    speech_pitch: float = 1.0

    def __post_init__(self) -> None:
        if self.volume not in VOLUME_GAIN:
            raise ValueError("volume must be one of: " + ", ".join(sorted(VOLUME_GAIN)))
        if self.speech_rate <= 0:
            raise ValueError("speech_rate must be positive")
        if self.speech_pitch <= 0:
            raise ValueError("speech_pitch must be positive")

    @property
    def speech_volume(self) -> float:
        return VOLUME_GAIN[self.volume]


@dataclass(frozen=True)
class SpeechRequest:
    """One utterance; ``interrupt`` asks the engine to drop any pending speech first."""

    text: str
    volume: float
    rate: float
    pitch: float
    interrupt: bool = True


class FeedbackSink:
    """Renders detection events to the user."""

    def on_detection_started(self) -> None:
        raise NotImplementedError

    def on_verdict(self, verdict: Verdict) -> None:
        raise NotImplementedError


class RecordingFeedbackSink(FeedbackSink):
    """Sink that keeps every event it receives, for tests and dry runs."""

    def __init__(self) -> None:
        self.started_count = 0
        self.verdicts: list[Verdict] = []
        self._lock = threading.Lock()

    def on_detection_started(self) -> None:
        with self._lock:
            self.started_count += 1

    def on_verdict(self, verdict: Verdict) -> None:
        with self._lock:
            self.verdicts.append(verdict)

    @property
    def messages(self) -> list[str]:
        with self._lock:
            return [verdict.message for verdict in self.verdicts]


class ChannelFeedbackSink(FeedbackSink):
    """Splits verdicts into speech and vibration callbacks.

    ``speak`` receives a :class:`SpeechRequest`; ``vibrate`` receives a flat
    alternating on/off millisecond list. Either channel is skipped when the
    matching preference is disabled.
    """

    def __init__(
        self,
        speak: Callable[[SpeechRequest], None],
        vibrate: Callable[[list[int]], None],
        preferences: FeedbackPreferences | None = None,
    ) -> None:
        self._speak = speak
        self._vibrate = vibrate
        self._lock = threading.Lock()
        self._preferences = preferences or FeedbackPreferences()

    @property
    def preferences(self) -> FeedbackPreferences:
        with self._lock:
            return self._preferences

    def update_preferences(self, preferences: FeedbackPreferences) -> None:
        with self._lock:
            self._preferences = preferences

    def _say(self, text: str, preferences: FeedbackPreferences) -> None:
        if not preferences.voice_enabled or not text:
            return
        self._speak(
            SpeechRequest(
                text=text,
                volume=preferences.speech_volume,
                rate=preferences.speech_rate,
                pitch=preferences.speech_pitch,
            )
        )

    def on_detection_started(self) -> None:
        self._say(DETECTION_STARTED_MESSAGE, self.preferences)

    def on_verdict(self, verdict: Verdict) -> None:
        preferences = self.preferences
        self._say(verdict.message, preferences)
        if preferences.vibration_enabled and verdict.haptic_pattern:
            self._vibrate(vibration_pattern(verdict.haptic_pattern))
        logger.debug("feedback rendered: %s", verdict.direction.value)


def vibration_pattern(segments: Sequence[HapticSegment]) -> list[int]:
    """Flatten segments to ``[on, off, on, ...]`` with the trailing pause dropped."""
    flat: list[int] = []
    for segment in segments:
        flat.append(segment.on_ms)
        flat.append(segment.off_ms)
    while flat and flat[-1] == 0:
        flat.pop()
    return flat


def highlight_boxes(
    regions: Sequence[Region], padding: int = HIGHLIGHT_PADDING_PX
) -> list[tuple[int, int, int, int]]:
    """Overlay rectangles ``(x, y, width, height)`` padded around each region."""
    return [
        (
            region.min_x - padding,
            region.min_y - padding,
            region.width + padding * 2,
            region.height + padding * 2,
        )
        for region in regions
    ]
