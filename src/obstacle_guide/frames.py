from __future__ import annotations

import threading
from dataclasses import dataclass

import numpy as np

SUPPORTED_CHANNELS = (3, 4)


@dataclass(frozen=True)
class Frame:
    """Immutable raster snapshot, row-major, RGB or RGBA bytes per pixel."""

    width: int
    height: int
    pixels: bytes
    channels: int = 4

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("frame dimensions must be non-negative")
        if self.channels not in SUPPORTED_CHANNELS:
            raise ValueError("channels must be 3 (RGB) or 4 (RGBA)")
        expected = self.width * self.height * self.channels
        if len(self.pixels) != expected:
            raise ValueError(
                f"pixel buffer has {len(self.pixels)} bytes, expected {expected}"
            )

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def to_array(self) -> np.ndarray:
        """Return a read-only ``(height, width, channels)`` uint8 view."""
        return np.frombuffer(self.pixels, dtype=np.uint8).reshape(
            self.height, self.width, self.channels
        )

    @classmethod
    def from_array(cls, array: np.ndarray) -> Frame:
        if array.ndim != 3 or array.shape[2] not in SUPPORTED_CHANNELS:
            raise ValueError("array must have shape (height, width, 3|4)")
        if array.dtype != np.uint8:
            raise ValueError(f"array dtype must be uint8, got {array.dtype}")
        height, width, channels = array.shape
        data = np.ascontiguousarray(array)
        return cls(width=width, height=height, pixels=data.tobytes(), channels=channels)


class FrameSource:
    """Supplier of the most recent camera frame."""

    def current_frame(self) -> Frame | None:
        raise NotImplementedError


class StaticFrameSource(FrameSource):
    """Frame source returning a fixed frame, or ``None`` until one is set."""

    def __init__(self, frame: Frame | None = None) -> None:
        self._frame = frame
        self._lock = threading.Lock()

    def set_frame(self, frame: Frame | None) -> None:
        with self._lock:
            self._frame = frame

    def current_frame(self) -> Frame | None:
        with self._lock:
            return self._frame


class QueueFrameSource(FrameSource):
    """Frame source that hands out a prepared sequence of frames in order.

    Once the sequence is exhausted every call returns ``None``; ``None``
    entries in the sequence simulate a camera that is not ready yet.
    """

    def __init__(self, frames: list[Frame | None]) -> None:
        self._frames = list(frames)
        self._index = 0
        self._lock = threading.Lock()

    @property
    def remaining(self) -> int:
        with self._lock:
            return len(self._frames) - self._index

    def current_frame(self) -> Frame | None:
        with self._lock:
            if self._index >= len(self._frames):
                return None
            frame = self._frames[self._index]
            self._index += 1
            return frame
