from __future__ import annotations

from dataclasses import dataclass

import numpy as np

# Neighbour visiting order: right, left, down, up, then the four diagonals.
_NEIGHBOUR_OFFSETS = (
    (1, 0),
    (-1, 0),
    (0, 1),
    (0, -1),
    (1, 1),
    (-1, -1),
    (1, -1),
    (-1, 1),
)


@dataclass(frozen=True)
class Region:
    """Bounding box and size of one connected component of edge pixels."""

    min_x: int
    min_y: int
    max_x: int
    max_y: int
    pixel_count: int

    @property
    def center_x(self) -> float:
        return (self.min_x + self.max_x) / 2

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y


@dataclass(frozen=True)
class RegionFilter:
    """Noise filter; a component survives only if it beats every threshold."""

    min_pixels: int = 100
    min_width: int = 20
    min_height: int = 20

    def accepts(self, region: Region) -> bool:
        return (
            region.pixel_count > self.min_pixels
            and region.width > self.min_width
            and region.height > self.min_height
        )


DEFAULT_REGION_FILTER = RegionFilter()


class RegionExtractor:
    """Groups 8-connected edge pixels into regions.

    The visited grid is allocated once and reused while the frame size stays
    the same, so a long-running detection loop does not reallocate it every
    cycle.
    """

    def __init__(self, region_filter: RegionFilter | None = None) -> None:
        self.region_filter = region_filter or DEFAULT_REGION_FILTER
        self._visited = bytearray()
        self._blank = b""

    def _reset_visited(self, size: int) -> bytearray:
        if len(self._visited) != size:
            self._visited = bytearray(size)
            self._blank = bytes(size)
        else:
            self._visited[:] = self._blank
        return self._visited

    def extract(self, edge_map: np.ndarray) -> list[Region]:
        if edge_map.ndim != 2:
            raise ValueError("edge map must be a 2-D array")
        height, width = edge_map.shape
        if width == 0 or height == 0:
            return []

        edges = edge_map.ravel().tolist()
        visited = self._reset_visited(width * height)
        regions: list[Region] = []

        for start in np.flatnonzero(edge_map).tolist():
            if visited[start]:
                continue
            region = self._flood_fill(start, edges, visited, width, height)
            if self.region_filter.accepts(region):
                regions.append(region)
        return regions

    @staticmethod
    def _flood_fill(
        start: int,
        edges: list[bool],
        visited: bytearray,
        width: int,
        height: int,
    ) -> Region:
        start_y, start_x = divmod(start, width)
        min_x = max_x = start_x
        min_y = max_y = start_y
        pixel_count = 0

        stack = [(start_x, start_y)]
        while stack:
            x, y = stack.pop()
            index = y * width + x
            if visited[index] or not edges[index]:
                continue

            visited[index] = 1
            pixel_count += 1
            if x < min_x:
                min_x = x
            elif x > max_x:
                max_x = x
            if y < min_y:
                min_y = y
            elif y > max_y:
                max_y = y

            for dx, dy in _NEIGHBOUR_OFFSETS:
                nx = x + dx
                ny = y + dy
                if 0 <= nx < width and 0 <= ny < height:
                    stack.append((nx, ny))

        return Region(
            min_x=min_x,
            min_y=min_y,
            max_x=max_x,
            max_y=max_y,
            pixel_count=pixel_count,
        )


def extract_regions(
    edge_map: np.ndarray, region_filter: RegionFilter | None = None
) -> list[Region]:
    """Return filtered regions in row-major discovery order."""
    return RegionExtractor(region_filter).extract(edge_map)
