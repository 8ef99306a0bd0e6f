from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from obstacle_guide.video import VideoDetectionConfig, bgr_to_frame, load_image_frame


def test_load_image_frame_reads_numpy_arrays(tmp_path: Path) -> None:
    array = np.zeros((4, 6, 3), dtype=np.uint8)
    array[:, 2, 0] = 255
    path = tmp_path / "frame.npy"
    np.save(path, array)

    frame = load_image_frame(path)

    assert (frame.width, frame.height, frame.channels) == (6, 4, 3)
    assert np.array_equal(frame.to_array(), array)


def test_load_image_frame_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_image_frame(tmp_path / "missing.png")


@pytest.mark.parametrize(
    "kwargs",
    [{"sensitivity": 120}, {"interval_ms": 0}, {"resize_width": 0}],
)
def test_video_config_validation(kwargs: dict[str, int]) -> None:
    with pytest.raises(ValueError):
        VideoDetectionConfig(**kwargs)


def test_bgr_to_frame_swaps_channels_and_resizes() -> None:
    pytest.importorskip("cv2")
    image = np.zeros((40, 200, 3), dtype=np.uint8)
    image[..., 0] = 255

    frame = bgr_to_frame(image, resize_width=100)

    assert (frame.width, frame.height, frame.channels) == (100, 20, 3)
    rgb = frame.to_array()
    assert int(rgb[0, 0, 2]) == 255
    assert int(rgb[0, 0, 0]) == 0


def test_bgr_to_frame_expands_grayscale() -> None:
    pytest.importorskip("cv2")
    image = np.full((5, 7), 90, dtype=np.uint8)

    frame = bgr_to_frame(image)

    assert frame.channels == 3
    assert frame.to_array().shape == (5, 7, 3)


def test_load_image_frame_rejects_float_arrays(tmp_path: Path) -> None:
    path = tmp_path / "float.npy"
    np.save(path, np.full((4, 6, 3), 0.5, dtype=np.float64))

    with pytest.raises(ValueError, match="uint8"):
        load_image_frame(path)


def test_load_image_frame_resizes_numpy_arrays(tmp_path: Path) -> None:
    path = tmp_path / "wide.npy"
    np.save(path, np.zeros((40, 200, 4), dtype=np.uint8))

    narrow = load_image_frame(path, resize_width=400)
    assert (narrow.width, narrow.height) == (200, 40)

    pytest.importorskip("cv2")
    resized = load_image_frame(path, resize_width=100)
    assert (resized.width, resized.height, resized.channels) == (100, 20, 4)
