"""Input sources: detection frames and location samples."""

from .location import (
    LocationSource,
    LocationSourceError,
    LocationSubscription,
    ReplayLocationSource,
    load_samples,
)

__all__ = [
    "LocationSource",
    "LocationSourceError",
    "LocationSubscription",
    "ReplayLocationSource",
    "load_samples",
]
