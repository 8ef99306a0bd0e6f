from obstacle_guide.feedback import highlight_boxes, vibration_pattern
from obstacle_guide.pipeline import detect_obstacles
from obstacle_guide.synthetic import SyntheticFrameConfig, available_scenes, generate_scene_frame


def main() -> None:
    print("Obstacle detection on synthetic scenes")
    for scene in available_scenes():
        frame = generate_scene_frame(SyntheticFrameConfig(scene=scene))
        result = detect_obstacles(frame, sensitivity=50)
        verdict = result.verdict

        print(f"{scene}:")
        print(f"  Edge pixels: {result.edge_pixel_count}")
        print(f"  Regions: {len(result.regions)}")
        print(f"  Verdict: {verdict.direction.value}")
        if verdict.is_obstacle:
            print(f"  Message: {verdict.message}")
            print(f"  Vibration: {vibration_pattern(verdict.haptic_pattern)}")
            print(f"  Highlights: {highlight_boxes(result.regions)}")


if __name__ == "__main__":
    main()
