"""Tests for live proximity matching along a route."""

from __future__ import annotations

from smartstick.navigation.geo import equirectangular_distance_m, haversine_m
from smartstick.navigation.route_types import (
    Coordinate,
    LocationSample,
    RoutePlan,
    RouteStep,
    StepEventType,
)
from smartstick.navigation.step_matcher import RouteStepMatcher
from smartstick.sources.location import ReplayLocationSource

# 0.001 degrees is 111 m with the matcher's scale
A = Coordinate(lon=13.400, lat=52.500)
B = Coordinate(lon=13.400, lat=52.501)
C = Coordinate(lon=13.400, lat=52.502)


def _plan(*anchors: Coordinate) -> RoutePlan:
    steps = tuple(
        RouteStep(index=i, instruction=f"step {i}", anchor=anchor)
        for i, anchor in enumerate(anchors)
    )
    return RoutePlan(origin=anchors[0] if anchors else A, destination=C, steps=steps, geometry=anchors)


def _sample(coordinate: Coordinate, lat_offset: float = 0.0) -> LocationSample:
    return LocationSample(lat=coordinate.lat + lat_offset, lon=coordinate.lon, timestamp=0.0)


def _matcher(plan: RoutePlan):
    events = []
    positions = []
    matcher = RouteStepMatcher(plan, on_event=events.append, on_position=positions.append)
    return matcher, events, positions


def test_walk_through_three_steps_then_arrive_once() -> None:
    matcher, events, _ = _matcher(_plan(A, B, C))
    indices = []

    for anchor in (A, B, C):
        # Approach from 50 m away, then pass 11 m from the anchor
        matcher.update(_sample(anchor, -0.00045))
        matcher.update(_sample(anchor, -0.0001))
        indices.append(matcher.cursor.next_step_index)
    assert matcher.cursor.arrived is True
    matcher.update(_sample(C))
    matcher.update(_sample(C))

    assert [e.type for e in events] == [StepEventType.STEP_REACHED] * 3 + [StepEventType.ARRIVED]
    assert [e.instruction for e in events[:3]] == ["step 0", "step 1", "step 2"]
    assert indices == [1, 2, 3]
    assert matcher.cursor.arrived is True
    assert matcher.cursor.next_step_index == 3


def test_sample_near_two_anchors_advances_one_step() -> None:
    near_a = Coordinate(lon=A.lon, lat=A.lat + 0.0001)  # 11 m from A
    matcher, events, _ = _matcher(_plan(A, near_a, C))

    matcher.update(_sample(A))

    assert matcher.cursor.next_step_index == 1
    assert len(events) == 1

    matcher.update(_sample(A))

    assert matcher.cursor.next_step_index == 2
    assert len(events) == 2


def test_far_sample_does_not_advance() -> None:
    matcher, events, _ = _matcher(_plan(A, B))

    result = matcher.update(_sample(A, 0.0005))  # 55 m away

    assert result == []
    assert events == []
    assert matcher.cursor.next_step_index == 0


def test_steps_must_be_reached_in_order() -> None:
    matcher, events, _ = _matcher(_plan(A, B, C))

    matcher.update(_sample(C))

    assert events == []
    assert matcher.cursor.next_step_index == 0


def test_position_is_reported_for_every_sample() -> None:
    matcher, _, positions = _matcher(_plan(A))

    matcher.update(_sample(B))
    matcher.update(_sample(C))

    assert positions == [B, C]


def test_plan_without_steps_only_tracks_position() -> None:
    matcher, events, positions = _matcher(_plan())

    for _ in range(3):
        matcher.update(_sample(A))

    assert events == []
    assert len(positions) == 3
    assert matcher.cursor.arrived is False


def test_last_step_and_arrival_share_one_sample() -> None:
    matcher, events, _ = _matcher(_plan(A, B))

    matcher.update(_sample(A))
    result = matcher.update(_sample(B))

    assert [e.type for e in result] == [StepEventType.STEP_REACHED, StepEventType.ARRIVED]
    assert result[0].instruction == "step 1"
    assert events == [events[0]] + result
    assert matcher.cursor.arrived is True


def test_no_events_after_arrival() -> None:
    matcher, events, _ = _matcher(_plan(A))

    matcher.update(_sample(A))
    assert [e.type for e in events] == [StepEventType.STEP_REACHED, StepEventType.ARRIVED]
    for _ in range(5):
        matcher.update(_sample(A))

    assert [e.type for e in events] == [StepEventType.STEP_REACHED, StepEventType.ARRIVED]


def test_custom_proximity_threshold() -> None:
    events = []
    matcher = RouteStepMatcher(_plan(A), on_event=events.append, proximity_m=5.0)

    matcher.update(_sample(A, 0.0001))  # 11 m

    assert events == []


def test_distance_helpers() -> None:
    assert abs(equirectangular_distance_m(A.lat, A.lon, B.lat, B.lon) - 111.0) < 1e-6
    assert abs(haversine_m(A.lat, A.lon, B.lat, B.lon) - 111.19) < 0.1
    assert haversine_m(A.lat, A.lon, A.lat, A.lon) == 0.0


def test_replayed_walk_arrives_on_final_sample() -> None:
    events = []
    matcher = RouteStepMatcher(_plan(A, B), on_event=events.append)
    source = ReplayLocationSource(samples=[_sample(A, -0.001), _sample(A), _sample(B)], interval_s=0.0)
    source.subscribe(matcher.update)

    source.start()
    source._thread.join(timeout=2.0)
    source.stop()

    assert [e.type for e in events] == [
        StepEventType.STEP_REACHED,
        StepEventType.STEP_REACHED,
        StepEventType.ARRIVED,
    ]
    assert matcher.cursor.arrived is True
