from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from .regions import Region


class Direction(str, Enum):
    NO_OBSTACLE = "no_obstacle"
    OBSTACLE_LEFT = "obstacle_left"
    OBSTACLE_RIGHT = "obstacle_right"
    OBSTACLE_CENTER = "obstacle_center"


@dataclass(frozen=True)
class HapticSegment:
    """One vibration pulse followed by a pause."""

    on_ms: int
    off_ms: int = 0


@dataclass(frozen=True)
class Verdict:
    """Per-cycle directional classification plus its feedback payload."""

    direction: Direction
    message: str
    haptic_pattern: tuple[HapticSegment, ...] = ()
    regions: tuple[Region, ...] = ()

    @property
    def is_obstacle(self) -> bool:
        return self.direction is not Direction.NO_OBSTACLE


MESSAGE_RIGHT = "Don't go right"
MESSAGE_LEFT = "Don't go left"
MESSAGE_CENTER = "Obstacle detected ahead"

PATTERN_RIGHT = (HapticSegment(200),)
PATTERN_LEFT = (HapticSegment(200, 100), HapticSegment(200))
PATTERN_CENTER = (HapticSegment(100, 50), HapticSegment(100))

NO_OBSTACLE = Verdict(direction=Direction.NO_OBSTACLE, message="")


def count_sides(regions: Sequence[Region], frame_width: int) -> tuple[int, int]:
    """Return ``(left_count, right_count)`` relative to the frame centre."""
    frame_center_x = frame_width / 2
    left_count = sum(1 for region in regions if region.center_x < frame_center_x)
    return left_count, len(regions) - left_count


def classify(regions: Sequence[Region], frame_width: int) -> Verdict:
    if not regions:
        return NO_OBSTACLE

    left_count, right_count = count_sides(regions, frame_width)
    found = tuple(regions)

    if right_count > left_count:
        return Verdict(Direction.OBSTACLE_RIGHT, MESSAGE_RIGHT, PATTERN_RIGHT, found)
    if left_count > right_count:
        return Verdict(Direction.OBSTACLE_LEFT, MESSAGE_LEFT, PATTERN_LEFT, found)
    # Equal counts cover both-sides and dead-centre scenes alike.
    return Verdict(Direction.OBSTACLE_CENTER, MESSAGE_CENTER, PATTERN_CENTER, found)
