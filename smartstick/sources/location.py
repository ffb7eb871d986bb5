"""Location sources with cancellable subscriptions."""

import csv
import json
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol

from smartstick.navigation.route_types import Coordinate, LocationSample
from smartstick.utils.logger import get_logger

logger = get_logger(__name__)

LocationCallback = Callable[[LocationSample], None]


class LocationSourceError(Exception):
    """Raised when a location source cannot start."""
    pass


class LocationSubscription:
    """Handle returned by subscribe(); cancel() stops further callbacks."""

    def __init__(self, source: "ReplayLocationSource", subscription_id: int):
        self._source = source
        self.subscription_id = subscription_id
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self._source._unsubscribe(self.subscription_id)
            self.active = False


class LocationSource(Protocol):
    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def subscribe(self, callback: LocationCallback) -> LocationSubscription:
        ...

    def current_position(self) -> Optional[Coordinate]:
        ...


def load_samples(path: Path) -> List[LocationSample]:
    """
    Read samples from a .json list or a lat,lon[,timestamp] CSV.

    Raises:
        LocationSourceError: If the file is missing or malformed.
    """
    path = Path(path)
    if not path.exists():
        raise LocationSourceError(f"Location file not found: {path}")

    try:
        if path.suffix.lower() == ".json":
            with open(path) as f:
                rows = json.load(f)
            samples = [
                LocationSample(
                    lat=float(row["lat"]),
                    lon=float(row["lon"]),
                    timestamp=float(row.get("timestamp", i))
                )
                for i, row in enumerate(rows)
            ]
        else:
            samples = []
            with open(path, newline="") as f:
                for i, row in enumerate(csv.reader(f)):
                    if not row or row[0].strip().lower() in ("lat", "#"):
                        continue
                    timestamp = float(row[2]) if len(row) > 2 and row[2].strip() else float(i)
                    samples.append(LocationSample(lat=float(row[0]), lon=float(row[1]), timestamp=timestamp))
    except (ValueError, KeyError, TypeError, IndexError, json.JSONDecodeError) as e:
        raise LocationSourceError(f"Malformed location file {path}: {e}") from e

    if not samples:
        raise LocationSourceError(f"Location file has no samples: {path}")
    return samples


class ReplayLocationSource:
    """
    Replays recorded samples on a background thread.

    Stands in for a GPS subscription: the first sample is available as the
    current position as soon as the source starts.
    """

    def __init__(self, path: Optional[str] = None, samples: Optional[List[LocationSample]] = None, interval_s: float = 1.0):
        """
        Args:
            path: CSV or JSON file with recorded samples.
            samples: Samples to replay directly (overrides path).
            interval_s: Delay between samples.
        """
        self.path = Path(path) if path else None
        self.interval_s = interval_s
        self._samples: List[LocationSample] = list(samples) if samples else []

        self._callbacks: Dict[int, LocationCallback] = {}
        self._next_id = 1
        self._lock = threading.Lock()
        self._position: Optional[Coordinate] = None

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def start(self) -> None:
        """
        Load samples and begin replay.

        Raises:
            LocationSourceError: If there is nothing to replay.
        """
        if not self._samples:
            if self.path is None:
                raise LocationSourceError("No location file configured")
            self._samples = load_samples(self.path)

        self._position = self._samples[0].coordinate
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._replay, daemon=True)
        self._thread.start()
        logger.info(f"Location replay started ({len(self._samples)} samples, every {self.interval_s}s)")

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None

    def subscribe(self, callback: LocationCallback) -> LocationSubscription:
        with self._lock:
            subscription_id = self._next_id
            self._next_id += 1
            self._callbacks[subscription_id] = callback
        return LocationSubscription(self, subscription_id)

    def _unsubscribe(self, subscription_id: int) -> None:
        with self._lock:
            self._callbacks.pop(subscription_id, None)

    def current_position(self) -> Optional[Coordinate]:
        return self._position

    def _replay(self) -> None:
        for sample in self._samples:
            if self._stop_event.wait(self.interval_s):
                break
            self.publish(sample)
        logger.info("Location replay finished")

    def publish(self, sample: LocationSample) -> None:
        """Record a sample as the current position and deliver it to subscribers."""
        self._position = sample.coordinate
        with self._lock:
            callbacks = list(self._callbacks.values())

        for callback in callbacks:
            try:
                callback(sample)
            except Exception as e:
                logger.error(f"Location callback failed: {e}")
