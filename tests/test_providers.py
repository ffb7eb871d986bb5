"""Tests for the geocoding and directions providers."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
import requests
from geopy.exc import GeocoderServiceError

from smartstick.navigation.providers import (
    NominatimGeocoder,
    OpenRouteServiceDirections,
    ProviderError,
    parse_ors_geojson,
)
from smartstick.navigation.route_types import Coordinate, RawRoute, RawStep

ORIGIN = Coordinate(lon=13.4, lat=52.5)
DESTINATION = Coordinate(lon=13.402, lat=52.501)

RESPONSE = {
    "type": "FeatureCollection",
    "features": [
        {
            "geometry": {
                "type": "LineString",
                "coordinates": [[13.4, 52.5], [13.401, 52.5005], [13.402, 52.501]],
            },
            "properties": {
                "segments": [
                    {
                        "distance": 150.0,
                        "steps": [
                            {"instruction": "Head east on Main Street", "way_points": [0, 1]},
                            {"instruction": "Turn left", "way_points": [1, 2]},
                            {"instruction": "Arrive at your destination", "way_points": [2, 2]},
                        ],
                    }
                ]
            },
        }
    ],
}


def test_parse_steps_and_geometry() -> None:
    route = parse_ors_geojson(RESPONSE)

    assert route is not None
    assert route.geometry[0] == Coordinate(lon=13.4, lat=52.5)
    assert len(route.geometry) == 3
    assert route.steps[1] == RawStep(instruction="Turn left", way_point=1)


def test_empty_or_malformed_responses() -> None:
    assert parse_ors_geojson({}) is None
    assert parse_ors_geojson({"features": []}) is None
    assert parse_ors_geojson({"features": [{"geometry": {"coordinates": []}, "properties": {}}]}) is None


def test_steps_without_way_points_keep_no_reference() -> None:
    response = {
        "features": [
            {
                "geometry": {"coordinates": [[13.4, 52.5], [13.41, 52.51]]},
                "properties": {"segments": [{"steps": [{"instruction": "Walk"}]}]},
            }
        ]
    }

    route = parse_ors_geojson(response)

    assert route.steps == (RawStep(instruction="Walk", way_point=None),)


class FakeResponse:
    def __init__(self, status_code: int, body=None):
        self.status_code = status_code
        self._body = body if body is not None else {"error": "status " + str(status_code)}
        self.text = str(self._body)
        self.headers = {}
        self.request = None

    def json(self):
        return self._body


class FakeSession:
    """Stands in for the requests session inside the ORS client."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = 0

    def _send(self, url, **kwargs):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.response

    post = _send
    get = _send


def _directions(session: FakeSession) -> OpenRouteServiceDirections:
    directions = OpenRouteServiceDirections(api_key="test-key", timeout=1)
    directions.client._session = session
    return directions


def test_directions_success_returns_route() -> None:
    session = FakeSession(FakeResponse(200, RESPONSE))

    route = _directions(session).route(ORIGIN, DESTINATION)

    assert isinstance(route, RawRoute)
    assert len(route.steps) == 3
    assert session.calls == 1


def test_directions_client_error_means_no_route() -> None:
    session = FakeSession(FakeResponse(404))

    assert _directions(session).route(ORIGIN, DESTINATION) is None
    assert session.calls == 1


@pytest.mark.parametrize("status", [429, 500, 503])
def test_directions_service_failure_is_single_attempt(status: int) -> None:
    session = FakeSession(FakeResponse(status))

    with pytest.raises(ProviderError):
        _directions(session).route(ORIGIN, DESTINATION)

    assert session.calls == 1


@pytest.mark.parametrize("error", [requests.ConnectionError("down"), requests.Timeout("slow")])
def test_directions_transport_errors_raise(error: Exception) -> None:
    session = FakeSession(error=error)

    with pytest.raises(ProviderError):
        _directions(session).route(ORIGIN, DESTINATION)

    assert session.calls == 1


def test_geocoder_no_match_is_empty(monkeypatch) -> None:
    geocoder = NominatimGeocoder(user_agent="smartstick-tests")
    monkeypatch.setattr(geocoder.geolocator, "geocode", lambda *args, **kwargs: None)

    assert geocoder.search("nowhere") == []


def test_geocoder_service_error_raises(monkeypatch) -> None:
    geocoder = NominatimGeocoder(user_agent="smartstick-tests")

    def fail(*args, **kwargs):
        raise GeocoderServiceError("503")

    monkeypatch.setattr(geocoder.geolocator, "geocode", fail)

    with pytest.raises(ProviderError):
        geocoder.search("bakery")


def test_geocoder_drops_invalid_coordinates(monkeypatch) -> None:
    geocoder = NominatimGeocoder(user_agent="smartstick-tests", limit=3)
    calls = []

    def geocode(text, **kwargs):
        calls.append((text, kwargs))
        return [
            SimpleNamespace(latitude=52.5, longitude=13.4),
            SimpleNamespace(latitude=95.0, longitude=13.4),
            SimpleNamespace(latitude=48.1, longitude=11.6),
        ]

    monkeypatch.setattr(geocoder.geolocator, "geocode", geocode)

    assert geocoder.search("bakery") == [
        Coordinate(lon=13.4, lat=52.5),
        Coordinate(lon=11.6, lat=48.1),
    ]
    assert calls == [("bakery", {"exactly_one": False, "limit": 3})]
