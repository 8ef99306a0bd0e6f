"""Edge-based obstacle detection core for assistive navigation."""

from .classifier import Direction, HapticSegment, Verdict, classify, count_sides
from .controller import (
    AlreadyActiveError,
    DetectionConfig,
    DetectionController,
    DetectionSession,
)
from .edges import build_edge_map, count_edges, threshold_for
from .feedback import (
    ChannelFeedbackSink,
    FeedbackPreferences,
    FeedbackSink,
    RecordingFeedbackSink,
    SpeechRequest,
    highlight_boxes,
    vibration_pattern,
)
from .frames import Frame, FrameSource, QueueFrameSource, StaticFrameSource
from .pipeline import DetectionPipeline, DetectionResult, detect_obstacles
from .regions import Region, RegionExtractor, RegionFilter, extract_regions
from .scheduler import CancelHandle, ManualScheduler, Scheduler, ThreadingScheduler
from .settings import DetectorSettings, load_settings
from .synthetic import (
    SCENES,
    SyntheticBox,
    SyntheticFrameConfig,
    available_scenes,
    frame_with_boxes,
    generate_scene_frame,
    uniform_frame,
)
from .video import CaptureFrameSource, VideoDetectionConfig, analyze_video, load_image_frame

__all__ = [
    "Frame",
    "FrameSource",
    "StaticFrameSource",
    "QueueFrameSource",
    "build_edge_map",
    "count_edges",
    "threshold_for",
    "Region",
    "RegionFilter",
    "RegionExtractor",
    "extract_regions",
    "Direction",
    "HapticSegment",
    "Verdict",
    "classify",
    "count_sides",
    "DetectionPipeline",
    "DetectionResult",
    "detect_obstacles",
    "FeedbackSink",
    "RecordingFeedbackSink",
    "ChannelFeedbackSink",
    "FeedbackPreferences",
    "SpeechRequest",
    "vibration_pattern",
    "highlight_boxes",
    "Scheduler",
    "CancelHandle",
    "ThreadingScheduler",
    "ManualScheduler",
    "AlreadyActiveError",
    "DetectionConfig",
    "DetectionSession",
    "DetectionController",
    "DetectorSettings",
    "load_settings",
    "SCENES",
    "SyntheticBox",
    "SyntheticFrameConfig",
    "available_scenes",
    "frame_with_boxes",
    "generate_scene_frame",
    "uniform_frame",
    "CaptureFrameSource",
    "VideoDetectionConfig",
    "analyze_video",
    "load_image_frame",
]
