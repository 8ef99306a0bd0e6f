from __future__ import annotations

from dataclasses import dataclass

from .classifier import Verdict, classify
from .edges import build_edge_map, count_edges
from .feedback import highlight_boxes, vibration_pattern
from .frames import Frame
from .regions import Region, RegionExtractor, RegionFilter


@dataclass(frozen=True)
class DetectionResult:
    """Outputs of one pass of the detection pipeline over a single frame."""

    frame_width: int
    frame_height: int
    sensitivity: float
    edge_pixel_count: int
    regions: tuple[Region, ...]
    verdict: Verdict


class DetectionPipeline:
    """Frame -> edge map -> regions -> verdict."""

    def __init__(self, region_filter: RegionFilter | None = None) -> None:
        self.extractor = RegionExtractor(region_filter)

    def run(self, frame: Frame, sensitivity: float) -> DetectionResult:
        edge_map = build_edge_map(frame, sensitivity)
        regions = self.extractor.extract(edge_map)
        verdict = classify(regions, frame.width)
        return DetectionResult(
            frame_width=frame.width,
            frame_height=frame.height,
            sensitivity=sensitivity,
            edge_pixel_count=count_edges(edge_map),
            regions=tuple(regions),
            verdict=verdict,
        )


def detect_obstacles(
    frame: Frame,
    sensitivity: float,
    region_filter: RegionFilter | None = None,
) -> DetectionResult:
    return DetectionPipeline(region_filter).run(frame, sensitivity)


def result_to_dict(result: DetectionResult) -> dict[str, object]:
    verdict = result.verdict
    return {
        "frame": {"width": result.frame_width, "height": result.frame_height},
        "sensitivity": result.sensitivity,
        "edge_pixel_count": result.edge_pixel_count,
        "direction": verdict.direction.value,
        "message": verdict.message,
        "haptic_pattern": [
            {"on_ms": segment.on_ms, "off_ms": segment.off_ms}
            for segment in verdict.haptic_pattern
        ],
        "vibration_pattern": vibration_pattern(verdict.haptic_pattern),
        "regions": [
            {
                "min_x": region.min_x,
                "min_y": region.min_y,
                "max_x": region.max_x,
                "max_y": region.max_y,
                "pixel_count": region.pixel_count,
                "center_x": region.center_x,
            }
            for region in result.regions
        ],
        "highlight_boxes": [list(box) for box in highlight_boxes(result.regions)],
    }
