"""Walking navigation: route plans, step matching and sessions."""

from .route_types import (
    Coordinate,
    LocationSample,
    NavigationCursor,
    RawRoute,
    RawStep,
    RoutePlan,
    RouteStep,
    StepEvent,
    StepEventType,
    build_route_plan,
)
from .step_matcher import RouteStepMatcher
from .session import NavigationSession

__all__ = [
    "Coordinate",
    "LocationSample",
    "NavigationCursor",
    "RawRoute",
    "RawStep",
    "RoutePlan",
    "RouteStep",
    "StepEvent",
    "StepEventType",
    "build_route_plan",
    "RouteStepMatcher",
    "NavigationSession",
]
