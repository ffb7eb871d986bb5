"""Detection classifier: frame zones, hazard flag and closest object."""

from collections import Counter
from typing import Iterable, Optional, Sequence

from .distance import estimate_distance
from .types import Detection, Direction, FrameAnalysis
from smartstick.config.settings import DEFAULT_HAZARD_CLASSES, GuidanceConfig


def zone_of(detection: Detection, frame_width: float) -> Direction:
    """
    Assign a detection to the left, center or right third of the frame.

    A box is left only if it ends before the first third and right only if it
    starts after the second third; anything touching the middle is center.
    """
    box = detection.bbox
    if box.x + box.width < frame_width / 3:
        return Direction.LEFT
    if box.x > 2 * frame_width / 3:
        return Direction.RIGHT
    return Direction.CENTER


def classify_direction(detections: Sequence[Detection], frame_width: float) -> Direction:
    """
    Reduce a frame to one direction label.

    Center obstacles win outright since they block forward motion; otherwise
    the side with more obstacles wins, and a tie (including no detections)
    is clear.
    """
    counts = Counter(zone_of(d, frame_width) for d in detections)

    if counts[Direction.CENTER] > 0:
        return Direction.CENTER
    if counts[Direction.LEFT] > counts[Direction.RIGHT]:
        return Direction.LEFT
    if counts[Direction.RIGHT] > counts[Direction.LEFT]:
        return Direction.RIGHT
    return Direction.CLEAR


def is_hazard(
    detections: Iterable[Detection],
    hazard_classes: Iterable[str] = DEFAULT_HAZARD_CLASSES
) -> bool:
    """True if any detection is a vehicle or traffic object."""
    classes = set(hazard_classes)
    return any(d.class_name in classes for d in detections)


def closest_detection(detections: Sequence[Detection]) -> Optional[Detection]:
    """Widest box is taken as nearest; the first one wins ties."""
    closest = None
    for detection in detections:
        if closest is None or detection.bbox.width > closest.bbox.width:
            closest = detection
    return closest


def objects_signature(detections: Sequence[Detection]) -> str:
    """Class names in frame order, used to recognize a repeated scene."""
    return ", ".join(d.class_name for d in detections)


def analyze_frame(
    detections: Sequence[Detection],
    frame_width: float,
    config: Optional[GuidanceConfig] = None
) -> FrameAnalysis:
    """
    Classify one detection frame.

    Args:
        detections: Detections for the frame (possibly empty).
        frame_width: Frame width in pixels.
        config: Guidance calibration. Defaults are used if None.

    Returns:
        FrameAnalysis with direction, hazard flag, closest object and its distance.
    """
    if config is None:
        config = GuidanceConfig()

    closest = closest_detection(detections)
    distance = estimate_distance(closest.bbox.width, config, frame_width) if closest else None

    return FrameAnalysis(
        direction=classify_direction(detections, frame_width),
        hazard=is_hazard(detections, config.hazard_classes),
        closest=closest,
        distance_m=distance,
        signature=objects_signature(detections),
    )
