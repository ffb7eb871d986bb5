"""Apparent-size distance heuristic."""

import math
from typing import Optional

from .types import Detection
from smartstick.config.settings import GuidanceConfig


def estimate_distance(
    width_px: Optional[float],
    config: Optional[GuidanceConfig] = None,
    frame_width: Optional[float] = None
) -> float:
    """
    Estimate distance in meters from a bounding box width.

    The ratio falls back to 0 for a missing or degenerate width before
    clamping, so such boxes report the minimum distance.

    Args:
        width_px: Box width in pixels.
        config: Calibration constants. Defaults are used if None.
        frame_width: Width of the frame the box came from. The reference
            width is calibrated at reference_frame_width_px and scales
            with the frame; None keeps it unscaled.

    Returns:
        Distance clamped to [min_distance_m, max_distance_m], one decimal.
    """
    if config is None:
        config = GuidanceConfig()

    if width_px is None or not math.isfinite(width_px) or width_px <= 0:
        distance = 0.0
    else:
        reference = config.reference_object_width_px
        if frame_width is not None and math.isfinite(frame_width) and frame_width > 0:
            reference *= frame_width / config.reference_frame_width_px
        distance = reference / width_px

    clamped = max(config.min_distance_m, min(distance, config.max_distance_m))
    return round(clamped, 1)


def distance_phrase(detection: Detection, distance_m: float) -> str:
    return f"{detection.class_name} detected, {distance_m:.1f} meters ahead."
