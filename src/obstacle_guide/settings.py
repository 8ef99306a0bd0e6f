from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .controller import DetectionConfig
from .feedback import FeedbackPreferences

_DETECTION_KEYS = {"sensitivity", "interval_ms"}
_FEEDBACK_KEYS = {"voice_enabled", "vibration_enabled", "volume", "speech_rate", "speech_pitch"}


@dataclass(frozen=True)
class DetectorSettings:
    """Detection parameters plus feedback preferences from one settings document."""

    detection: DetectionConfig = field(default_factory=DetectionConfig)
    feedback: FeedbackPreferences = field(default_factory=FeedbackPreferences)


def _read_document(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)

    suffix = path.suffix.strip().lower()
    raw_text = path.read_text(encoding="utf-8")

    if suffix == ".json":
        payload = json.loads(raw_text)
    else:
        try:
            import yaml
        except ModuleNotFoundError as error:
            raise ModuleNotFoundError(
                "PyYAML is required for YAML settings. Install with: pip install -e '.[yaml]'"
            ) from error
        payload = yaml.safe_load(raw_text)

    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError("settings document must be an object")
    return payload


def _expect_bool(payload: dict[str, Any], key: str) -> None:
    if key in payload and not isinstance(payload[key], bool):
        raise ValueError(f"{key} must be boolean")


def _expect_number(payload: dict[str, Any], key: str) -> None:
    value = payload.get(key)
    if key in payload and (not isinstance(value, (int, float)) or isinstance(value, bool)):
        raise ValueError(f"{key} must be a number")


def settings_from_dict(payload: dict[str, Any]) -> DetectorSettings:
    unknown = set(payload) - _DETECTION_KEYS - _FEEDBACK_KEYS
    if unknown:
        raise ValueError("unknown settings keys: " + ", ".join(sorted(unknown)))

    for key in ("sensitivity", "interval_ms", "speech_rate", "speech_pitch"):
        _expect_number(payload, key)
    for key in ("voice_enabled", "vibration_enabled"):
        _expect_bool(payload, key)
    if "interval_ms" in payload and not isinstance(payload["interval_ms"], int):
        raise ValueError("interval_ms must be an integer")

    detection = DetectionConfig(
        **{key: payload[key] for key in _DETECTION_KEYS if key in payload}
    )
    feedback = FeedbackPreferences(
        **{key: payload[key] for key in _FEEDBACK_KEYS if key in payload}
    )
    return DetectorSettings(detection=detection, feedback=feedback)


def load_settings(path: str | Path) -> DetectorSettings:
    """Load detector settings from a JSON (or, with PyYAML, YAML) document."""
    return settings_from_dict(_read_document(Path(path)))


def settings_to_dict(settings: DetectorSettings) -> dict[str, Any]:
    return {
        "sensitivity": settings.detection.sensitivity,
        "interval_ms": settings.detection.interval_ms,
        "voice_enabled": settings.feedback.voice_enabled,
        "vibration_enabled": settings.feedback.vibration_enabled,
        "volume": settings.feedback.volume,
        "speech_rate": settings.feedback.speech_rate,
        "speech_pitch": settings.feedback.speech_pitch,
    }
