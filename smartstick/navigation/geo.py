"""Distance helpers for route matching and destination selection."""

import math

EARTH_RADIUS_M = 6_371_000.0


def equirectangular_distance_m(
    lat1: float, lon1: float, lat2: float, lon2: float,
    meters_per_degree: float = 111_000.0
) -> float:
    """
    Planar distance with both axes scaled by a fixed meters-per-degree.

    Only good for short local distances; longitude is not corrected for
    latitude, matching the proximity threshold calibration.
    """
    dlat = (lat2 - lat1) * meters_per_degree
    dlon = (lon2 - lon1) * meters_per_degree
    return math.hypot(dlat, dlon)


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))
