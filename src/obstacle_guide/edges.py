from __future__ import annotations

import numpy as np

from .frames import Frame

MIN_SENSITIVITY = 0
MAX_SENSITIVITY = 100


def check_sensitivity(sensitivity: float) -> None:
    if not MIN_SENSITIVITY <= sensitivity <= MAX_SENSITIVITY:
        raise ValueError(
            f"sensitivity must be in [{MIN_SENSITIVITY}, {MAX_SENSITIVITY}], got {sensitivity}"
        )


def threshold_for(sensitivity: float) -> float:
    """Luminance-difference threshold; higher sensitivity means a lower threshold."""
    check_sensitivity(sensitivity)
    return MAX_SENSITIVITY - sensitivity


def luminance(frame: Frame) -> np.ndarray:
    """Unweighted mean of the R, G and B channels, alpha ignored."""
    rgb = frame.to_array()[..., :3].astype(np.float64)
    return rgb.sum(axis=2) / 3.0


def build_edge_map(frame: Frame, sensitivity: float) -> np.ndarray:
    """Mark pixels whose luminance differs from their right neighbour.

    Returns a boolean array of shape ``(height, width)``. The last column has
    no right neighbour and is always ``False``. This is deliberately a 1-D
    horizontal difference, not a 2-D gradient operator.
    """
    threshold = threshold_for(sensitivity)
    edge_map = np.zeros((frame.height, frame.width), dtype=bool)
    if frame.is_empty:
        return edge_map

    lum = luminance(frame)
    diff = np.abs(lum[:, :-1] - lum[:, 1:])
    edge_map[:, :-1] = diff > threshold
    return edge_map


def count_edges(edge_map: np.ndarray) -> int:
    return int(np.count_nonzero(edge_map))
