"""Obstacle guidance: frame classification, distance and alert arbitration."""

from .types import BoundingBox, Detection, Direction, FrameAnalysis
from .classifier import analyze_frame, classify_direction, is_hazard
from .distance import estimate_distance
from .arbiter import Alert, AlertArbiter, AnnouncementState

__all__ = [
    "BoundingBox",
    "Detection",
    "Direction",
    "FrameAnalysis",
    "analyze_frame",
    "classify_direction",
    "is_hazard",
    "estimate_distance",
    "Alert",
    "AlertArbiter",
    "AnnouncementState",
]
