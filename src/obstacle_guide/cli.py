from __future__ import annotations

import argparse
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import numpy as np

from .controller import DetectionConfig, DetectionController
from .feedback import ChannelFeedbackSink, SpeechRequest, vibration_pattern
from .frames import QueueFrameSource
from .pipeline import DetectionPipeline, DetectionResult, result_to_dict
from .scheduler import ManualScheduler
from .settings import DetectorSettings, load_settings, settings_to_dict
from .synthetic import SyntheticFrameConfig, available_scenes, generate_scene_frame

logger = logging.getLogger("obstacle_guide")


def setup_logging(debug: bool = False, log_file: str | None = None) -> None:
    level = logging.DEBUG if debug else logging.INFO
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(
            RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")
        )
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
    )


def _sensitivity_arg(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as error:
        raise argparse.ArgumentTypeError("sensitivity must be a number") from error
    if not 0.0 <= parsed <= 100.0:
        raise argparse.ArgumentTypeError("sensitivity must be in [0, 100]")
    return parsed


def _resolve_settings(args: argparse.Namespace) -> DetectorSettings:
    settings = load_settings(args.settings) if args.settings else DetectorSettings()
    overrides: dict[str, float | int] = {}
    if getattr(args, "sensitivity", None) is not None:
        overrides["sensitivity"] = args.sensitivity
    if getattr(args, "interval_ms", None) is not None:
        overrides["interval_ms"] = args.interval_ms
    if not overrides:
        return settings
    detection = DetectionConfig(
        interval_ms=int(overrides.get("interval_ms", settings.detection.interval_ms)),
        sensitivity=overrides.get("sensitivity", settings.detection.sensitivity),
    )
    return DetectorSettings(detection=detection, feedback=settings.feedback)


def _print_result(result: DetectionResult) -> None:
    verdict = result.verdict
    print(f"Frame: {result.frame_width}x{result.frame_height}")
    print(f"Sensitivity: {result.sensitivity:g}")
    print(f"Edge pixels: {result.edge_pixel_count}")
    print(f"Regions: {len(result.regions)}")
    print(f"Verdict: {verdict.direction.value}")
    if verdict.is_obstacle:
        print(f"Message: {verdict.message}")
        print(f"Vibration: {vibration_pattern(verdict.haptic_pattern)}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="obstacle-guide",
        description="Edge-based obstacle detection with directional feedback.",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_frame = subparsers.add_parser(
        "analyze-frame",
        help="Detect obstacles in a single image (.npy arrays need no OpenCV).",
    )
    analyze_frame.add_argument("image_path", help="Path to image or .npy RGB(A) array.")
    analyze_frame.add_argument("--sensitivity", type=_sensitivity_arg, default=None)
    analyze_frame.add_argument("--settings", default=None, help="Settings JSON/YAML document.")
    analyze_frame.add_argument("--resize-width", type=int, default=None)
    analyze_frame.add_argument(
        "--output-json",
        help="Path for output detection JSON. Default: <image_stem>_detection.json",
    )

    analyze_video = subparsers.add_parser(
        "analyze-video",
        help="Run detection on a recording, sampled at the detection interval.",
    )
    analyze_video.add_argument("video_path", help="Path to recording.")
    analyze_video.add_argument("--sensitivity", type=_sensitivity_arg, default=None)
    analyze_video.add_argument("--interval-ms", type=int, default=None)
    analyze_video.add_argument("--settings", default=None, help="Settings JSON/YAML document.")
    analyze_video.add_argument("--resize-width", type=int, default=480)
    analyze_video.add_argument(
        "--output-json",
        help="Path for output detections JSON. Default: <video_stem>_detections.json",
    )

    synth = subparsers.add_parser(
        "generate-synthetic-frame",
        help="Write a synthetic bench frame as a .npy RGBA array.",
    )
    synth.add_argument("--scene", choices=available_scenes(), default="left_obstacle")
    synth.add_argument("--width", type=int, default=160)
    synth.add_argument("--height", type=int, default=120)
    synth.add_argument("--seed", type=int, default=42)
    synth.add_argument(
        "--output", help="Path for output .npy frame. Default: synthetic_<scene>.npy"
    )

    session = subparsers.add_parser(
        "simulate-session",
        help="Drive the detection controller over synthetic scenes on a virtual clock.",
    )
    session.add_argument(
        "--scenes",
        default="clear_path,left_obstacle,right_obstacle,both_sides",
        help="Comma-separated scene names, one per tick; 'none' simulates a missing frame.",
    )
    session.add_argument("--sensitivity", type=_sensitivity_arg, default=None)
    session.add_argument("--interval-ms", type=int, default=None)
    session.add_argument("--settings", default=None, help="Settings JSON/YAML document.")
    session.add_argument("--output-json", default=None, help="Optional path for the event log.")

    return parser


def _handle_analyze_frame(args: argparse.Namespace) -> int:
    from .video import load_image_frame

    image_path = Path(args.image_path)
    settings = _resolve_settings(args)
    frame = load_image_frame(image_path, resize_width=args.resize_width)
    result = DetectionPipeline().run(frame, settings.detection.sensitivity)

    output_json = Path(args.output_json) if args.output_json else image_path.with_name(
        f"{image_path.stem}_detection.json"
    )
    output_json.write_text(
        json.dumps(
            {"image_path": str(image_path), **result_to_dict(result)},
            ensure_ascii=False,
            indent=2,
        ),
        encoding="utf-8",
    )

    print(f"Image analyzed: {image_path}")
    _print_result(result)
    print(f"Detection JSON: {output_json}")
    return 0


def _handle_analyze_video(args: argparse.Namespace) -> int:
    from .video import VideoDetectionConfig, analyze_video

    video_path = Path(args.video_path)
    if not video_path.exists():
        raise FileNotFoundError(video_path)

    settings = _resolve_settings(args)
    config = VideoDetectionConfig(
        sensitivity=settings.detection.sensitivity,
        interval_ms=settings.detection.interval_ms,
        resize_width=args.resize_width,
    )
    samples, fps = analyze_video(video_path, config=config)

    output_json = Path(args.output_json) if args.output_json else video_path.with_name(
        f"{video_path.stem}_detections.json"
    )
    output_json.write_text(
        json.dumps(
            {
                "video_path": str(video_path),
                "fps": fps,
                "config": {
                    "sensitivity": config.sensitivity,
                    "interval_ms": config.interval_ms,
                    "resize_width": config.resize_width,
                },
                "samples": [
                    {
                        "frame_index": sample.frame_index,
                        "timestamp_s": sample.timestamp_s,
                        **result_to_dict(sample.result),
                    }
                    for sample in samples
                ],
            },
            ensure_ascii=False,
            indent=2,
        ),
        encoding="utf-8",
    )

    alerts = [sample for sample in samples if sample.result.verdict.is_obstacle]
    print(f"Video analyzed: {video_path}")
    print(f"Samples: {len(samples)}")
    print(f"Alerts: {len(alerts)}")
    for sample in alerts:
        print(f"  t={sample.timestamp_s:.2f}s {sample.result.verdict.message}")
    print(f"Detections JSON: {output_json}")
    return 0


def _handle_generate_synthetic_frame(args: argparse.Namespace) -> int:
    config = SyntheticFrameConfig(
        scene=args.scene,
        width=args.width,
        height=args.height,
        seed=args.seed,
    )
    frame = generate_scene_frame(config)
    output = Path(args.output) if args.output else Path(f"synthetic_{args.scene}.npy")
    np.save(output, frame.to_array())

    print(f"Synthetic frame generated: scene={config.scene}, {frame.width}x{frame.height}")
    print(f"Frame array: {output}")
    return 0


def _handle_simulate_session(args: argparse.Namespace) -> int:
    settings = _resolve_settings(args)
    scene_names = [name.strip() for name in args.scenes.split(",") if name.strip()]
    if not scene_names:
        raise ValueError("at least one scene is required")
    frames = [
        None if name == "none" else generate_scene_frame(SyntheticFrameConfig(scene=name))
        for name in scene_names
    ]

    events: list[dict[str, object]] = []
    scheduler = ManualScheduler()

    def _speak(request: SpeechRequest) -> None:
        events.append({"t_ms": scheduler.now_ms, "type": "speech", "text": request.text})
        print(f"[{scheduler.now_ms:>6} ms] say: {request.text}")

    def _vibrate(pattern: list[int]) -> None:
        events.append({"t_ms": scheduler.now_ms, "type": "vibration", "pattern": pattern})
        print(f"[{scheduler.now_ms:>6} ms] vibrate: {pattern}")

    sink = ChannelFeedbackSink(_speak, _vibrate, settings.feedback)
    controller = DetectionController(QueueFrameSource(frames), sink, scheduler=scheduler)
    with controller:
        controller.start(settings.detection)
        scheduler.advance(settings.detection.interval_ms * len(frames))
        session = controller.session

    if args.output_json:
        Path(args.output_json).write_text(
            json.dumps(
                {
                    "settings": settings_to_dict(settings),
                    "scenes": scene_names,
                    "events": events,
                },
                ensure_ascii=False,
                indent=2,
            ),
            encoding="utf-8",
        )
        print(f"Event log JSON: {args.output_json}")

    if session is not None:
        print(
            f"Ticks: {session.ticks_run} run, {session.ticks_skipped} skipped, "
            f"{session.verdicts_emitted} verdicts"
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(debug=args.debug, log_file=args.log_file)
    logger.debug("running command %s", args.command)

    if args.command == "analyze-frame":
        return _handle_analyze_frame(args)
    if args.command == "analyze-video":
        return _handle_analyze_video(args)
    if args.command == "generate-synthetic-frame":
        return _handle_generate_synthetic_frame(args)
    if args.command == "simulate-session":
        return _handle_simulate_session(args)

    parser.error(f"unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
