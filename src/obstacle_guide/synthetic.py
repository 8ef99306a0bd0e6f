from __future__ import annotations

import random
from dataclasses import dataclass

import numpy as np

from .frames import Frame

LIGHT = 230
DARK = 20
SUPPORTED_FILLS = ("solid", "stripes")


@dataclass(frozen=True)
class SyntheticBox:
    """Axis-aligned dark box; bounds are inclusive pixel coordinates."""

    x0: int
    y0: int
    x1: int
    y1: int
    fill: str = "stripes"


@dataclass(frozen=True)
class SyntheticScene:
    """Boxes placed on a light background, in fractions of the frame size."""

    boxes: tuple[tuple[float, float, float, float], ...]
    fill: str = "stripes"
    noise_level: int = 0


@dataclass(frozen=True)
class SyntheticFrameConfig:
    scene: str = "left_obstacle"
    width: int = 160
    height: int = 120
    channels: int = 4
    seed: int = 42


SCENES: dict[str, SyntheticScene] = {
    "clear_path": SyntheticScene(boxes=()),
    "left_obstacle": SyntheticScene(boxes=((0.08, 0.2, 0.38, 0.7),)),
    "right_obstacle": SyntheticScene(boxes=((0.62, 0.2, 0.92, 0.7),)),
    "both_sides": SyntheticScene(boxes=((0.08, 0.2, 0.38, 0.7), (0.62, 0.2, 0.92, 0.7))),
    "solid_wall": SyntheticScene(boxes=((0.08, 0.2, 0.38, 0.7),), fill="solid"),
    "sensor_noise": SyntheticScene(boxes=((0.08, 0.2, 0.38, 0.7),), noise_level=6),
}


def available_scenes() -> tuple[str, ...]:
    return tuple(sorted(SCENES))


def _check_fill(fill: str) -> None:
    if fill not in SUPPORTED_FILLS:
        raise ValueError(f"unsupported fill: {fill}")


def paint_box(canvas: np.ndarray, box: SyntheticBox) -> None:
    """Paint ``box`` into an ``(H, W, C)`` canvas in place.

    ``stripes`` alternates dark and light one-pixel columns starting with a
    dark column at ``x0``, so every column of the box is a horizontal edge.
    """
    _check_fill(box.fill)
    height, width = canvas.shape[:2]
    if not (0 <= box.x0 <= box.x1 < width and 0 <= box.y0 <= box.y1 < height):
        raise ValueError("box is outside frame bounds")

    for x in range(box.x0, box.x1 + 1):
        dark = box.fill == "solid" or (x - box.x0) % 2 == 0
        canvas[box.y0 : box.y1 + 1, x, :3] = DARK if dark else LIGHT


def blank_canvas(width: int, height: int, channels: int = 4, value: int = LIGHT) -> np.ndarray:
    if width < 0 or height < 0:
        raise ValueError("frame dimensions must be non-negative")
    canvas = np.full((height, width, channels), value, dtype=np.uint8)
    if channels == 4:
        canvas[..., 3] = 255
    return canvas


def uniform_frame(width: int, height: int, value: int = LIGHT, channels: int = 4) -> Frame:
    return Frame.from_array(blank_canvas(width, height, channels, value))


def frame_with_boxes(
    width: int, height: int, boxes: list[SyntheticBox], channels: int = 4
) -> Frame:
    canvas = blank_canvas(width, height, channels)
    for box in boxes:
        paint_box(canvas, box)
    return Frame.from_array(canvas)


def _scene_boxes(scene: SyntheticScene, width: int, height: int) -> list[SyntheticBox]:
    boxes: list[SyntheticBox] = []
    for fx0, fy0, fx1, fy1 in scene.boxes:
        boxes.append(
            SyntheticBox(
                x0=int(fx0 * (width - 1)),
                y0=int(fy0 * (height - 1)),
                x1=int(fx1 * (width - 1)),
                y1=int(fy1 * (height - 1)),
                fill=scene.fill,
            )
        )
    return boxes


def generate_scene_frame(config: SyntheticFrameConfig) -> Frame:
    if config.scene not in SCENES:
        raise ValueError(f"unsupported scene: {config.scene}")
    if config.width <= 0 or config.height <= 0:
        raise ValueError("width and height must be positive")

    scene = SCENES[config.scene]
    canvas = blank_canvas(config.width, config.height, config.channels)
    for box in _scene_boxes(scene, config.width, config.height):
        paint_box(canvas, box)

    if scene.noise_level > 0:
        rng = random.Random(config.seed)
        noise = np.array(
            [
                rng.randint(-scene.noise_level, scene.noise_level)
                for _ in range(config.width * config.height)
            ],
            dtype=np.int16,
        ).reshape(config.height, config.width, 1)
        noisy = canvas[..., :3].astype(np.int16) + noise
        canvas[..., :3] = np.clip(noisy, 0, 255).astype(np.uint8)

    return Frame.from_array(canvas)
