"""Geocoding and walking-directions providers."""

from typing import List, Optional, Protocol

import openrouteservice
import requests
from geopy.exc import GeopyError
from geopy.geocoders import Nominatim
from openrouteservice import exceptions as ors_exceptions

from .route_types import Coordinate, RawRoute, RawStep
from smartstick.utils.logger import get_logger

logger = get_logger(__name__)


class ProviderError(Exception):
    """Transport or service failure talking to a navigation provider."""
    pass


class GeocodingProvider(Protocol):
    def search(self, text: str) -> List[Coordinate]:
        ...


class DirectionsProvider(Protocol):
    def route(self, origin: Coordinate, destination: Coordinate) -> Optional[RawRoute]:
        ...


class NominatimGeocoder:
    """Destination search through OpenStreetMap Nominatim (geopy)."""

    def __init__(self, user_agent: str = "smartstick-navigation", limit: int = 5, timeout: int = 10):
        self.limit = limit
        self.geolocator = Nominatim(user_agent=user_agent, timeout=timeout)
        logger.info(f"Nominatim geocoder ready (limit={limit})")

    def search(self, text: str) -> List[Coordinate]:
        """
        Look up candidate coordinates for a place description.

        Returns:
            Candidates in provider order; empty if nothing matched.

        Raises:
            ProviderError: On network or service failure.
        """
        try:
            locations = self.geolocator.geocode(text, exactly_one=False, limit=self.limit)
        except (GeopyError, requests.RequestException) as e:
            raise ProviderError(f"Geocoding failed for '{text}': {e}") from e

        candidates = []
        for location in locations or []:
            coordinate = Coordinate(lon=float(location.longitude), lat=float(location.latitude))
            if coordinate.is_valid():
                candidates.append(coordinate)

        logger.debug(f"Geocoded '{text}' -> {len(candidates)} candidates")
        return candidates


def parse_ors_geojson(response: dict) -> Optional[RawRoute]:
    """
    Convert an OpenRouteService GeoJSON directions response.

    Returns:
        RawRoute, or None if the response has no usable route.
    """
    features = (response or {}).get("features") or []
    if not features:
        return None

    feature = features[0]
    coordinates = (feature.get("geometry") or {}).get("coordinates") or []
    geometry = []
    for pair in coordinates:
        coordinate = Coordinate.from_lon_lat(pair)
        if coordinate is not None:
            geometry.append(coordinate)

    steps = []
    for segment in (feature.get("properties") or {}).get("segments") or []:
        for step in segment.get("steps") or []:
            way_points = step.get("way_points") or []
            way_point = way_points[0] if way_points and isinstance(way_points[0], int) else None
            steps.append(RawStep(instruction=str(step.get("instruction", "")), way_point=way_point))

    if not geometry or not steps:
        return None
    return RawRoute(steps=tuple(steps), geometry=tuple(geometry))


class SingleAttemptClient(openrouteservice.Client):
    """
    OpenRouteService client that never retries.

    The stock client re-sends 503 responses with backoff for up to
    retry_timeout seconds; here the first retriable response becomes an
    ApiError carrying its status.
    """

    def request(self, url, get_params=None, first_request_time=None, retry_counter=0, *args, **kwargs):
        if retry_counter > 0:
            raise ors_exceptions.ApiError(503, "retry suppressed")
        return super().request(url, get_params, first_request_time, retry_counter, *args, **kwargs)


class OpenRouteServiceDirections:
    """Walking directions from OpenRouteService, one attempt per request."""

    def __init__(self, api_key: str, profile: str = "foot-walking", timeout: int = 10):
        self.profile = profile
        self.client = SingleAttemptClient(
            key=api_key,
            timeout=timeout,
            retry_over_query_limit=False
        )
        logger.info(f"OpenRouteService directions ready (profile={profile})")

    def route(self, origin: Coordinate, destination: Coordinate) -> Optional[RawRoute]:
        """
        Request a walking route.

        Returns:
            RawRoute, or None if the service returned no usable route.

        Raises:
            ProviderError: On network or service failure.
        """
        coords = ((origin.lon, origin.lat), (destination.lon, destination.lat))
        try:
            response = self.client.directions(
                coords,
                profile=self.profile,
                format="geojson",
                instructions=True
            )
        except ors_exceptions.ApiError as e:
            status = getattr(e, "status", None)
            if status == 429 or (isinstance(status, int) and status >= 500):
                raise ProviderError(f"Directions service unavailable ({status})") from e
            # "no route between points" comes back as a 4xx API error
            logger.warning(f"Directions API error: {e}")
            return None
        except (ors_exceptions.HTTPError, ors_exceptions.Timeout, requests.RequestException) as e:
            raise ProviderError(f"Directions request failed: {e}") from e

        return parse_ors_geojson(response)
