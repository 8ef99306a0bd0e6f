from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from .controller import DEFAULT_INTERVAL_MS, DEFAULT_SENSITIVITY
from .edges import check_sensitivity
from .frames import Frame, FrameSource
from .pipeline import DetectionPipeline, DetectionResult

logger = logging.getLogger(__name__)


def _require_cv2() -> Any:
    try:
        import cv2
    except ModuleNotFoundError as error:
        raise RuntimeError(
            "opencv-python is required for video input. Install with: pip install -e '.[video]'"
        ) from error
    return cv2


@dataclass(frozen=True)
class VideoDetectionConfig:
    """Configuration for running detection over a recorded video."""

    sensitivity: float = DEFAULT_SENSITIVITY
    interval_ms: int = DEFAULT_INTERVAL_MS
    resize_width: int | None = None

    def __post_init__(self) -> None:
        check_sensitivity(self.sensitivity)
        if self.interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        if self.resize_width is not None and self.resize_width <= 0:
            raise ValueError("resize_width must be positive")


@dataclass(frozen=True)
class VideoSample:
    frame_index: int
    timestamp_s: float
    result: DetectionResult


def _resize_to_width(image: np.ndarray, resize_width: int | None) -> np.ndarray:
    """Downscale ``image`` to ``resize_width`` columns, keeping the aspect ratio."""
    if not resize_width or image.shape[1] <= resize_width:
        return image
    cv2 = _require_cv2()
    scale = resize_width / image.shape[1]
    resized_height = int(image.shape[0] * scale)
    return cv2.resize(image, (resize_width, resized_height), interpolation=cv2.INTER_AREA)


def bgr_to_frame(image: np.ndarray, resize_width: int | None = None) -> Frame:
    """Convert an OpenCV BGR(A) or grayscale image into an RGB(A) :class:`Frame`."""
    cv2 = _require_cv2()
    image = _resize_to_width(image, resize_width)

    if image.ndim == 2:
        rgb = cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    elif image.shape[2] == 4:
        rgb = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    else:
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    return Frame.from_array(rgb)


def load_image_frame(path: str | Path, resize_width: int | None = None) -> Frame:
    """Load a still image; ``.npy`` arrays are read with numpy and used as RGB(A).

    ``.npy`` input only needs OpenCV when it is wider than ``resize_width``.
    """
    image_path = Path(path)
    if not image_path.exists():
        raise FileNotFoundError(image_path)

    if image_path.suffix.lower() == ".npy":
        array = np.load(image_path)
        if array.dtype != np.uint8:
            raise ValueError(f"{image_path} must hold a uint8 array, got {array.dtype}")
        return Frame.from_array(_resize_to_width(array, resize_width))

    cv2 = _require_cv2()
    image = cv2.imread(str(image_path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise RuntimeError(f"failed to read image: {image_path}")
    return bgr_to_frame(image, resize_width)


class CaptureFrameSource(FrameSource):
    """Frame source backed by ``cv2.VideoCapture`` (camera index or file path).

    A failed read is reported as "not ready" (``None``), never as an error.
    """

    def __init__(self, device: int | str | Path = 0, resize_width: int | None = None) -> None:
        cv2 = _require_cv2()
        target = str(device) if isinstance(device, Path) else device
        self._capture = cv2.VideoCapture(target)
        if not self._capture.isOpened():
            raise RuntimeError(f"failed to open video source: {device}")
        self._resize_width = resize_width
        self._lock = threading.Lock()

    def current_frame(self) -> Frame | None:
        with self._lock:
            ok, image = self._capture.read()
        if not ok:
            logger.debug("capture returned no frame")
            return None
        return bgr_to_frame(image, self._resize_width)

    def close(self) -> None:
        with self._lock:
            self._capture.release()

    def __enter__(self) -> CaptureFrameSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def analyze_video(
    video_path: str | Path, config: VideoDetectionConfig | None = None
) -> tuple[list[VideoSample], float]:
    """Run detection on frames sampled every ``interval_ms`` of video time.

    Returns the samples and the video frame rate.
    """
    cv2 = _require_cv2()
    cfg = config or VideoDetectionConfig()
    path = Path(video_path)
    if not path.exists():
        raise FileNotFoundError(path)

    capture = cv2.VideoCapture(str(path))
    if not capture.isOpened():
        raise RuntimeError(f"failed to open video: {path}")

    fps = capture.get(cv2.CAP_PROP_FPS)
    if fps <= 0:
        fps = 30.0
    dt = 1.0 / fps
    interval_s = cfg.interval_ms / 1000.0

    pipeline = DetectionPipeline()
    samples: list[VideoSample] = []
    next_sample_s = 0.0
    frame_index = 0

    try:
        while True:
            ok, image = capture.read()
            if not ok:
                break

            timestamp_s = frame_index * dt
            if timestamp_s + 1e-9 >= next_sample_s:
                frame = bgr_to_frame(image, cfg.resize_width)
                result = pipeline.run(frame, cfg.sensitivity)
                samples.append(
                    VideoSample(frame_index=frame_index, timestamp_s=timestamp_s, result=result)
                )
                next_sample_s += interval_s
            frame_index += 1
    finally:
        capture.release()

    if not samples:
        raise RuntimeError("video contains no readable frames")
    logger.info("analyzed %d samples from %s", len(samples), path)
    return samples, fps
