"""Data types for walking routes."""

import itertools
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from smartstick.utils.logger import get_logger

logger = get_logger(__name__)

_plan_ids = itertools.count(1)


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 position."""
    lon: float
    lat: float

    def is_valid(self) -> bool:
        return (
            math.isfinite(self.lat) and math.isfinite(self.lon)
            and -90.0 <= self.lat <= 90.0
            and -180.0 <= self.lon <= 180.0
        )

    @classmethod
    def from_lon_lat(cls, pair: Sequence[float]) -> Optional["Coordinate"]:
        """Build from a GeoJSON [lon, lat] pair; None if malformed."""
        try:
            lon, lat = float(pair[0]), float(pair[1])
        except (TypeError, ValueError, IndexError):
            return None
        return cls(lon=lon, lat=lat)


@dataclass(frozen=True)
class LocationSample:
    """One position fix from the location source."""
    lat: float
    lon: float
    timestamp: float

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lon=self.lon, lat=self.lat)


@dataclass(frozen=True)
class RawStep:
    """A step as returned by the directions provider, before anchoring."""
    instruction: str
    way_point: Optional[int] = None


@dataclass(frozen=True)
class RawRoute:
    """Directions provider output."""
    steps: Tuple[RawStep, ...] = ()
    geometry: Tuple[Coordinate, ...] = ()


@dataclass(frozen=True)
class RouteStep:
    """A navigation step anchored to a coordinate on the route."""
    index: int  # position in the provider's step list
    instruction: str
    anchor: Coordinate


@dataclass(frozen=True)
class RoutePlan:
    """An accepted walking route. Never mutated after construction."""
    origin: Coordinate
    destination: Coordinate
    steps: Tuple[RouteStep, ...]
    geometry: Tuple[Coordinate, ...]
    plan_id: int = field(default_factory=lambda: next(_plan_ids))


@dataclass
class NavigationCursor:
    """Progress along a plan; next_step_index == len(steps) means awaiting arrival."""
    plan_id: int
    next_step_index: int = 0
    arrived: bool = False


class StepEventType(str, Enum):
    STEP_REACHED = "step_reached"
    ARRIVED = "arrived"


@dataclass(frozen=True)
class StepEvent:
    """Emitted by the step matcher when a step anchor is reached or on arrival."""
    type: StepEventType
    plan_id: int
    step_index: Optional[int] = None
    instruction: str = ""


def resolve_anchor(
    step_position: int,
    raw_step: RawStep,
    geometry: Sequence[Coordinate]
) -> Optional[Coordinate]:
    """
    Pick the coordinate a step is matched against.

    Tries the step's own way-point index, then the geometry point at the
    step's position, then the final geometry point; the first valid one wins.
    """
    candidates: List[Coordinate] = []
    if raw_step.way_point is not None and 0 <= raw_step.way_point < len(geometry):
        candidates.append(geometry[raw_step.way_point])
    if 0 <= step_position < len(geometry):
        candidates.append(geometry[step_position])
    if geometry:
        candidates.append(geometry[-1])

    for candidate in candidates:
        if candidate is not None and candidate.is_valid():
            return candidate
    return None


def build_route_plan(origin: Coordinate, destination: Coordinate, route: RawRoute) -> RoutePlan:
    """
    Anchor every step once and freeze the result.

    Steps without a resolvable anchor are dropped.
    """
    steps = []
    for position, raw_step in enumerate(route.steps):
        anchor = resolve_anchor(position, raw_step, route.geometry)
        if anchor is None:
            logger.debug(f"Dropping step {position} without a valid anchor: {raw_step.instruction!r}")
            continue
        steps.append(RouteStep(index=position, instruction=raw_step.instruction, anchor=anchor))

    plan = RoutePlan(
        origin=origin,
        destination=destination,
        steps=tuple(steps),
        geometry=tuple(route.geometry),
    )
    logger.info(
        f"Route plan {plan.plan_id}: {len(plan.steps)}/{len(route.steps)} steps anchored, "
        f"{len(plan.geometry)} geometry points"
    )
    return plan
