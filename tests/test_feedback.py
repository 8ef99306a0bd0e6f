from __future__ import annotations

import pytest

from obstacle_guide.classifier import NO_OBSTACLE, Verdict, classify
from obstacle_guide.feedback import (
    ChannelFeedbackSink,
    FeedbackPreferences,
    SpeechRequest,
    highlight_boxes,
    vibration_pattern,
)
from obstacle_guide.regions import Region


def _left_verdict() -> Verdict:
    return classify([Region(min_x=5, min_y=5, max_x=30, max_y=30, pixel_count=400)], 100)


def _channel_sink(
    preferences: FeedbackPreferences | None = None,
) -> tuple[ChannelFeedbackSink, list[SpeechRequest], list[list[int]]]:
    spoken: list[SpeechRequest] = []
    vibrations: list[list[int]] = []
    sink = ChannelFeedbackSink(spoken.append, vibrations.append, preferences)
    return sink, spoken, vibrations


def test_vibration_pattern_drops_trailing_pause() -> None:
    assert vibration_pattern(classify([], 10).haptic_pattern) == []
    assert vibration_pattern(_left_verdict().haptic_pattern) == [200, 100, 200]


def test_highlight_boxes_pad_each_region() -> None:
    regions = [Region(min_x=20, min_y=30, max_x=50, max_y=70, pixel_count=300)]

    assert highlight_boxes(regions) == [(10, 20, 50, 60)]
    assert highlight_boxes(regions, padding=0) == [(20, 30, 30, 40)]


def test_channel_sink_speaks_and_vibrates() -> None:
    sink, spoken, vibrations = _channel_sink()

    sink.on_detection_started()
    sink.on_verdict(_left_verdict())

    assert [request.text for request in spoken] == ["Edge detection started", "Don't go left"]
    assert spoken[0].volume == 1.0
    assert spoken[0].rate == 0.9
    assert all(request.interrupt for request in spoken)
    assert vibrations == [[200, 100, 200]]


def test_channel_sink_honours_disabled_channels() -> None:
    sink, spoken, vibrations = _channel_sink(
        FeedbackPreferences(voice_enabled=False, vibration_enabled=True)
    )
    sink.on_verdict(_left_verdict())
    assert spoken == []
    assert vibrations == [[200, 100, 200]]

    sink.update_preferences(FeedbackPreferences(voice_enabled=True, vibration_enabled=False))
    sink.on_verdict(_left_verdict())
    assert [request.text for request in spoken] == ["Don't go left"]
    assert len(vibrations) == 1


def test_channel_sink_ignores_empty_verdict_payload() -> None:
    sink, spoken, vibrations = _channel_sink()

    sink.on_verdict(NO_OBSTACLE)

    assert spoken == []
    assert vibrations == []


@pytest.mark.parametrize(("volume", "gain"), [("high", 1.0), ("medium", 0.6), ("low", 0.3)])
def test_volume_levels_map_to_speech_gain(volume: str, gain: float) -> None:
    assert FeedbackPreferences(volume=volume).speech_volume == gain


def test_preferences_reject_invalid_values() -> None:
    with pytest.raises(ValueError, match="volume"):
        FeedbackPreferences(volume="loud")
    with pytest.raises(ValueError, match="speech_rate"):
        FeedbackPreferences(speech_rate=0)
