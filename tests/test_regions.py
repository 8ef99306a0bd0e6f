from __future__ import annotations

import numpy as np
import pytest

from obstacle_guide.regions import Region, RegionExtractor, RegionFilter, extract_regions

KEEP_ALL = RegionFilter(min_pixels=0, min_width=-1, min_height=-1)


def _edge_map(width: int, height: int, boxes: list[tuple[int, int, int, int]]) -> np.ndarray:
    edge_map = np.zeros((height, width), dtype=bool)
    for x0, y0, x1, y1 in boxes:
        edge_map[y0 : y1 + 1, x0 : x1 + 1] = True
    return edge_map


def test_single_block_becomes_one_region() -> None:
    edge_map = _edge_map(50, 50, [(5, 5, 34, 34)])

    regions = extract_regions(edge_map)

    assert regions == [Region(min_x=5, min_y=5, max_x=34, max_y=34, pixel_count=900)]
    assert regions[0].center_x == 19.5
    assert (regions[0].width, regions[0].height) == (29, 29)


def test_noise_filter_drops_small_and_thin_components() -> None:
    edge_map = _edge_map(
        120,
        80,
        [
            (0, 0, 9, 9),  # 100 pixels, not more than 100
            (20, 0, 40, 60),  # width exactly 20
            (50, 0, 110, 20),  # height exactly 20
            (60, 40, 81, 61),  # 22 x 22, survives
        ],
    )

    regions = extract_regions(edge_map)

    assert [(r.min_x, r.min_y, r.max_x, r.max_y) for r in regions] == [(60, 40, 81, 61)]


def _diagonal(size: int, length: int) -> np.ndarray:
    edge_map = np.zeros((size, size), dtype=bool)
    for i in range(length):
        edge_map[i, i] = True
    return edge_map


def test_wide_but_sparse_component_is_noise() -> None:
    edge_map = _diagonal(40, 30)

    assert extract_regions(edge_map) == []
    assert extract_regions(edge_map, RegionFilter(min_pixels=0)) == [
        Region(min_x=0, min_y=0, max_x=29, max_y=29, pixel_count=30)
    ]


def test_pixel_count_threshold_is_strict() -> None:
    assert extract_regions(_diagonal(110, 100)) == []
    assert extract_regions(_diagonal(110, 101)) == [
        Region(min_x=0, min_y=0, max_x=100, max_y=100, pixel_count=101)
    ]


def test_diagonal_neighbours_are_connected() -> None:
    edge_map = _edge_map(60, 60, [(0, 0, 29, 29), (30, 30, 59, 59)])

    regions = extract_regions(edge_map)

    assert len(regions) == 1
    assert regions[0] == Region(min_x=0, min_y=0, max_x=59, max_y=59, pixel_count=1800)


def test_regions_come_out_in_row_major_discovery_order() -> None:
    edge_map = _edge_map(100, 100, [(5, 40, 35, 80), (60, 2, 95, 30)])

    regions = extract_regions(edge_map)

    assert [region.min_x for region in regions] == [60, 5]


def test_pixels_are_never_assigned_twice() -> None:
    rng = np.random.default_rng(5)
    edge_map = rng.random((40, 60)) < 0.45

    regions = extract_regions(edge_map, KEEP_ALL)

    assert sum(region.pixel_count for region in regions) == int(edge_map.sum())


def test_filtered_regions_respect_bounds_and_thresholds() -> None:
    rng = np.random.default_rng(17)
    edge_map = rng.random((90, 120)) < 0.6

    for region in extract_regions(edge_map):
        assert 0 <= region.min_x <= region.max_x < 120
        assert 0 <= region.min_y <= region.max_y < 90
        assert region.pixel_count > 100
        assert region.width > 20
        assert region.height > 20


def test_large_component_does_not_hit_recursion_limits() -> None:
    edge_map = np.ones((300, 300), dtype=bool)

    regions = extract_regions(edge_map)

    assert regions == [Region(min_x=0, min_y=0, max_x=299, max_y=299, pixel_count=90000)]


def test_extractor_reuses_visited_buffer_across_calls() -> None:
    extractor = RegionExtractor()
    edge_map = _edge_map(50, 50, [(5, 5, 34, 34)])

    first = extractor.extract(edge_map)
    second = extractor.extract(edge_map)
    resized = extractor.extract(_edge_map(80, 40, [(40, 5, 70, 35)]))

    assert first == second
    assert resized == [Region(min_x=40, min_y=5, max_x=70, max_y=35, pixel_count=961)]


def test_empty_maps_yield_no_regions() -> None:
    assert extract_regions(np.zeros((0, 0), dtype=bool)) == []
    assert extract_regions(np.zeros((10, 10), dtype=bool)) == []


def test_extractor_rejects_non_2d_input() -> None:
    with pytest.raises(ValueError, match="2-D"):
        extract_regions(np.zeros((2, 2, 2), dtype=bool))
