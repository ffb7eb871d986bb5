"""Navigation session: destination lookup, route acquisition and step announcements."""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional

from .geo import haversine_m
from .providers import ProviderError
from .route_types import Coordinate, RoutePlan, StepEvent, StepEventType, build_route_plan
from .step_matcher import RouteStepMatcher
from smartstick.config.settings import NavigationConfig
from smartstick.utils.logger import get_logger

logger = get_logger(__name__)

MSG_NO_LOCATION = "Unable to get your location."
MSG_NOT_FOUND = "Destination not found."
MSG_NO_DIRECTIONS = "Directions could not be found."
MSG_FAILED = "Navigation failed. Please try again."
MSG_NO_STEPS = "No valid steps found for this route."
MSG_ARRIVED = "You have arrived at your destination."
MSG_STOPPED = "Navigation stopped."


def nearest_candidate(origin: Coordinate, candidates: List[Coordinate]) -> Optional[Coordinate]:
    """Candidate with the smallest great-circle distance from origin."""
    if not candidates:
        return None
    return min(candidates, key=lambda c: haversine_m(origin.lat, origin.lon, c.lat, c.lon))


class NavigationSession:
    """
    Turns a spoken destination into an active, matched walking route.

    Only one plan is active at a time. Starting a new one cancels the old
    location subscription before the new matcher subscribes, and requests
    that were overtaken by a newer one are discarded when they complete.
    Provider failures become spoken notices and never reach the caller of
    start_async(), so the obstacle pipeline keeps running.
    """

    def __init__(
        self,
        geocoder,
        directions,
        location_source,
        announcer,
        map_renderer=None,
        config: Optional[NavigationConfig] = None
    ):
        """
        Args:
            geocoder: GeocodingProvider with search(text).
            directions: DirectionsProvider with route(origin, destination).
            location_source: LocationSource, or None if no location is available.
            announcer: Sink with announce(message, haptic_pattern=None).
            map_renderer: MapRenderer for route and position display.
            config: Navigation thresholds.
        """
        self.geocoder = geocoder
        self.directions = directions
        self.location_source = location_source
        self.announcer = announcer
        self.map_renderer = map_renderer
        self.config = config or NavigationConfig()

        self.plan: Optional[RoutePlan] = None
        self.matcher: Optional[RouteStepMatcher] = None
        self.destination_text: Optional[str] = None
        self._subscription = None

        self._generation = 0
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="navigation")

    @property
    def active(self) -> bool:
        return self.plan is not None

    def start_async(self, destination_text: str) -> Future:
        """Run navigate_to() in the background so the frame loop never waits on it."""
        with self._lock:
            self._generation += 1
            generation = self._generation
        return self._executor.submit(self._run, destination_text, generation)

    def _run(self, destination_text: str, generation: int) -> Optional[RoutePlan]:
        try:
            return self.navigate_to(destination_text, generation)
        except Exception as e:
            logger.error(f"Navigation to '{destination_text}' crashed: {e}")
            self._say(MSG_FAILED)
            return None

    def navigate_to(self, destination_text: str, generation: Optional[int] = None) -> Optional[RoutePlan]:
        """
        Resolve a destination, fetch a walking route and start following it.

        Args:
            destination_text: Place description, e.g. "central station".
            generation: Request number from start_async(); stale requests are dropped.

        Returns:
            The activated RoutePlan, or None if navigation was aborted.
        """
        if generation is None:
            with self._lock:
                self._generation += 1
                generation = self._generation

        logger.info(f"Navigation requested to '{destination_text}'")

        origin = self.location_source.current_position() if self.location_source else None
        if origin is None:
            logger.warning("Navigation aborted: no current position")
            self._say(MSG_NO_LOCATION)
            return None

        try:
            candidates = self.geocoder.search(destination_text)
        except ProviderError as e:
            logger.error(f"Geocoding failed: {e}")
            self._say(MSG_FAILED)
            return None

        destination = nearest_candidate(origin, candidates)
        if destination is None:
            logger.warning(f"No geocoding results for '{destination_text}'")
            self._say(MSG_NOT_FOUND)
            return None

        try:
            raw_route = self.directions.route(origin, destination)
        except ProviderError as e:
            logger.error(f"Directions failed: {e}")
            self._say(MSG_FAILED)
            return None

        if raw_route is None or not raw_route.geometry:
            logger.warning("Directions empty or malformed")
            self._say(MSG_NO_DIRECTIONS)
            return None

        plan = build_route_plan(origin, destination, raw_route)

        with self._lock:
            if generation != self._generation:
                logger.info(f"Discarding route to '{destination_text}' (superseded)")
                return None
            self._activate(plan, destination_text)

        if plan.steps:
            self._say(f"Route to {destination_text} found. {len(plan.steps)} steps.")
        else:
            self._say(MSG_NO_STEPS)
        return plan

    def _activate(self, plan: RoutePlan, destination_text: str) -> None:
        # Old subscription goes first so two matchers never run at once
        self._cancel_subscription()

        self.plan = plan
        self.destination_text = destination_text
        self.matcher = RouteStepMatcher(
            plan,
            on_event=self._on_step_event,
            on_position=self._on_position,
            proximity_m=self.config.proximity_threshold_m,
            meters_per_degree=self.config.meters_per_degree,
        )

        if self.map_renderer is not None:
            self.map_renderer.draw_route(plan.origin, plan.destination, plan.geometry)

        self._subscription = self.location_source.subscribe(self.matcher.update)
        logger.info(f"Navigation active: plan {plan.plan_id} to '{destination_text}'")

    def _on_position(self, position: Coordinate) -> None:
        if self.map_renderer is None:
            return
        try:
            self.map_renderer.update_position(position)
        except Exception as e:
            logger.warning(f"Map update failed: {e}")

    def _on_step_event(self, event: StepEvent) -> None:
        plan = self.plan
        if plan is None or event.plan_id != plan.plan_id:
            # Sample delivered to a cancelled matcher
            return
        if event.type == StepEventType.ARRIVED:
            self._say(MSG_ARRIVED)
        elif event.instruction:
            self._say(event.instruction)

    def stop(self, announce: bool = True) -> None:
        """Cancel the active route, if any."""
        with self._lock:
            self._generation += 1
            was_active = self.plan is not None
            self._cancel_subscription()
            self.plan = None
            self.matcher = None
            self.destination_text = None

        if was_active and announce:
            self._say(MSG_STOPPED)

    def _cancel_subscription(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def status(self) -> dict:
        """Current navigation state for logging."""
        if self.plan is None or self.matcher is None:
            return {"active": False}
        cursor = self.matcher.cursor
        return {
            "active": True,
            "destination": self.destination_text,
            "plan_id": self.plan.plan_id,
            "next_step_index": cursor.next_step_index,
            "steps": len(self.plan.steps),
            "arrived": cursor.arrived,
        }

    def _say(self, message: str) -> None:
        self.announcer.announce(message)

    def close(self) -> None:
        self.stop(announce=False)
        self._executor.shutdown(wait=False)
