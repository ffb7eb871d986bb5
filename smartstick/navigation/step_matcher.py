"""Live proximity matching of location samples against route steps."""

import threading
from typing import Callable, List, Optional

from .geo import equirectangular_distance_m
from .route_types import (
    Coordinate,
    LocationSample,
    NavigationCursor,
    RoutePlan,
    StepEvent,
    StepEventType,
)
from smartstick.utils.logger import get_logger

logger = get_logger(__name__)


class RouteStepMatcher:
    """
    Advances a cursor through a plan's steps as the user walks.

    Each sample can advance the cursor by at most one step, even when it is
    also close to later anchors. The sample that consumes the last step also
    emits the single arrival event; after that the matcher is silent.
    """

    def __init__(
        self,
        plan: RoutePlan,
        on_event: Callable[[StepEvent], None],
        on_position: Optional[Callable[[Coordinate], None]] = None,
        proximity_m: float = 20.0,
        meters_per_degree: float = 111_000.0
    ):
        """
        Args:
            plan: Route to follow.
            on_event: Called with each StepEvent.
            on_position: Called with every sample's position (map marker).
            proximity_m: Distance at which a step anchor counts as reached.
            meters_per_degree: Scale for the equirectangular approximation.
        """
        self.plan = plan
        self.on_event = on_event
        self.on_position = on_position
        self.proximity_m = proximity_m
        self.meters_per_degree = meters_per_degree
        self.cursor = NavigationCursor(plan_id=plan.plan_id)
        self._lock = threading.Lock()

    @property
    def awaiting_arrival(self) -> bool:
        return self.cursor.next_step_index >= len(self.plan.steps)

    @property
    def has_steps(self) -> bool:
        return len(self.plan.steps) > 0

    def update(self, sample: LocationSample) -> List[StepEvent]:
        """
        Process one location sample.

        The sample that reaches the final anchor also emits the arrival.

        Returns:
            Events emitted for this sample, in order (possibly empty).
        """
        if self.on_position is not None:
            self.on_position(sample.coordinate)

        if not self.has_steps:
            return []

        with self._lock:
            events = self._advance(sample)

        for event in events:
            self.on_event(event)
        return events

    def _advance(self, sample: LocationSample) -> List[StepEvent]:
        cursor = self.cursor
        if cursor.arrived:
            return []

        events = []
        if not self.awaiting_arrival:
            step = self.plan.steps[cursor.next_step_index]
            distance = equirectangular_distance_m(
                sample.lat, sample.lon,
                step.anchor.lat, step.anchor.lon,
                self.meters_per_degree
            )
            if distance > self.proximity_m:
                return []

            cursor.next_step_index += 1
            logger.info(
                f"Plan {self.plan.plan_id}: reached step {cursor.next_step_index}/"
                f"{len(self.plan.steps)} ({distance:.1f}m) - {step.instruction}"
            )
            events.append(StepEvent(
                type=StepEventType.STEP_REACHED,
                plan_id=self.plan.plan_id,
                step_index=step.index,
                instruction=step.instruction,
            ))

        if self.awaiting_arrival:
            cursor.arrived = True
            logger.info(f"Plan {self.plan.plan_id}: arrived")
            events.append(StepEvent(type=StepEventType.ARRIVED, plan_id=self.plan.plan_id))

        return events
