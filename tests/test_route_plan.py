"""Tests for anchor resolution and plan construction."""

from __future__ import annotations

import dataclasses

import pytest

from smartstick.navigation.route_types import (
    Coordinate,
    RawRoute,
    RawStep,
    build_route_plan,
    resolve_anchor,
)

ORIGIN = Coordinate(lon=13.4000, lat=52.5000)
DESTINATION = Coordinate(lon=13.4030, lat=52.5030)
GEOMETRY = (
    Coordinate(lon=13.4000, lat=52.5000),
    Coordinate(lon=13.4010, lat=52.5010),
    Coordinate(lon=13.4020, lat=52.5020),
    Coordinate(lon=13.4030, lat=52.5030),
)


def test_way_point_reference_is_preferred() -> None:
    assert resolve_anchor(0, RawStep("Head north", way_point=2), GEOMETRY) == GEOMETRY[2]


def test_out_of_range_way_point_falls_back_to_step_position() -> None:
    assert resolve_anchor(1, RawStep("Turn left", way_point=99), GEOMETRY) == GEOMETRY[1]
    assert resolve_anchor(1, RawStep("Turn left"), GEOMETRY) == GEOMETRY[1]


def test_falls_back_to_last_geometry_point() -> None:
    assert resolve_anchor(10, RawStep("Arrive"), GEOMETRY) == GEOMETRY[-1]


def test_invalid_candidate_is_skipped() -> None:
    geometry = (Coordinate(lon=500.0, lat=52.5), GEOMETRY[1])

    assert resolve_anchor(0, RawStep("Head north", way_point=0), geometry) == GEOMETRY[1]


def test_step_without_anchor_is_dropped() -> None:
    route = RawRoute(steps=(RawStep("Head north"), RawStep("Arrive")), geometry=())

    plan = build_route_plan(ORIGIN, DESTINATION, route)

    assert plan.steps == ()


def test_plan_keeps_order_and_provider_indices() -> None:
    route = RawRoute(
        steps=(RawStep("Head north", 0), RawStep("Turn right", 2), RawStep("Arrive", 3)),
        geometry=GEOMETRY,
    )

    plan = build_route_plan(ORIGIN, DESTINATION, route)

    assert [s.instruction for s in plan.steps] == ["Head north", "Turn right", "Arrive"]
    assert [s.index for s in plan.steps] == [0, 1, 2]
    assert plan.steps[1].anchor == GEOMETRY[2]
    assert plan.geometry == GEOMETRY
    assert plan.origin == ORIGIN and plan.destination == DESTINATION


def test_plans_are_immutable_and_uniquely_identified() -> None:
    route = RawRoute(steps=(RawStep("Head north", 0),), geometry=GEOMETRY)
    first = build_route_plan(ORIGIN, DESTINATION, route)
    second = build_route_plan(ORIGIN, DESTINATION, route)

    assert first.plan_id != second.plan_id
    with pytest.raises(dataclasses.FrozenInstanceError):
        first.steps = ()


def test_coordinate_from_lon_lat() -> None:
    assert Coordinate.from_lon_lat([13.4, 52.5]) == Coordinate(lon=13.4, lat=52.5)
    assert Coordinate.from_lon_lat([13.4]) is None
    assert Coordinate.from_lon_lat(["x", 1]) is None
