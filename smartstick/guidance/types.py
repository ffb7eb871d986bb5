"""Data types for per-frame obstacle guidance."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Direction(str, Enum):
    """Where the obstacles in a frame sit, as seen by the camera."""
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"
    CLEAR = "clear"


@dataclass(frozen=True)
class BoundingBox:
    """Pixel box in (x, y, width, height) form, origin at top-left."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class Detection:
    """One recognized object in a frame."""
    class_name: str
    bbox: BoundingBox
    confidence: float = 1.0


@dataclass(frozen=True)
class FrameAnalysis:
    """Derived per-frame guidance signal."""
    direction: Direction
    hazard: bool
    closest: Optional[Detection] = None
    distance_m: Optional[float] = None
    signature: str = ""
