from __future__ import annotations

import base64
import binascii
import logging
from typing import Literal

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .controller import DEFAULT_SENSITIVITY
from .edges import check_sensitivity
from .feedback import highlight_boxes, vibration_pattern
from .frames import Frame
from .pipeline import DetectionPipeline, DetectionResult

logger = logging.getLogger(__name__)

DIRECTION = Literal["no_obstacle", "obstacle_left", "obstacle_right", "obstacle_center"]


class FrameUpload(BaseModel):
    width: int = Field(ge=0)
    height: int = Field(ge=0)
    channels: Literal[3, 4] = 4
    pixels_b64: str
    sensitivity: float | None = Field(default=None, ge=0, le=100)


class HapticSegmentOut(BaseModel):
    on_ms: int = Field(ge=0)
    off_ms: int = Field(ge=0)


class RegionOut(BaseModel):
    min_x: int
    min_y: int
    max_x: int
    max_y: int
    pixel_count: int
    center_x: float


class DetectionOut(BaseModel):
    direction: DIRECTION
    message: str
    sensitivity: float
    haptic_pattern: list[HapticSegmentOut]
    vibration_pattern: list[int]
    edge_pixel_count: int
    regions: list[RegionOut]
    highlight_boxes: list[tuple[int, int, int, int]]


def _decode_frame(upload: FrameUpload) -> Frame:
    try:
        pixels = base64.b64decode(upload.pixels_b64, validate=True)
    except (binascii.Error, ValueError) as error:
        raise HTTPException(status_code=422, detail="pixels_b64 is not valid base64") from error
    try:
        return Frame(
            width=upload.width,
            height=upload.height,
            pixels=pixels,
            channels=upload.channels,
        )
    except ValueError as error:
        raise HTTPException(status_code=422, detail=str(error)) from error


def _result_to_model(result: DetectionResult) -> DetectionOut:
    verdict = result.verdict
    return DetectionOut(
        direction=verdict.direction.value,
        message=verdict.message,
        sensitivity=result.sensitivity,
        haptic_pattern=[
            HapticSegmentOut(on_ms=segment.on_ms, off_ms=segment.off_ms)
            for segment in verdict.haptic_pattern
        ],
        vibration_pattern=vibration_pattern(verdict.haptic_pattern),
        edge_pixel_count=result.edge_pixel_count,
        regions=[
            RegionOut(
                min_x=region.min_x,
                min_y=region.min_y,
                max_x=region.max_x,
                max_y=region.max_y,
                pixel_count=region.pixel_count,
                center_x=region.center_x,
            )
            for region in result.regions
        ],
        highlight_boxes=highlight_boxes(result.regions),
    )


def create_detection_app(default_sensitivity: float = DEFAULT_SENSITIVITY) -> FastAPI:
    check_sensitivity(default_sensitivity)

    app = FastAPI(
        title="Obstacle Guide Detection API",
        version="0.1.0",
        description="One-shot edge-based obstacle detection on uploaded frames.",
    )
    app.state.default_sensitivity = default_sensitivity

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/v1/detections", response_model=DetectionOut)
    def create_detection(payload: FrameUpload) -> DetectionOut:
        frame = _decode_frame(payload)
        sensitivity = (
            payload.sensitivity
            if payload.sensitivity is not None
            else app.state.default_sensitivity
        )
        result = DetectionPipeline().run(frame, sensitivity)
        logger.info(
            "detection %dx%d -> %s",
            frame.width,
            frame.height,
            result.verdict.direction.value,
        )
        return _result_to_model(result)

    return app
