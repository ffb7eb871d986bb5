"""Route map rendering: route polyline, endpoints and live position marker."""

import threading
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple

import cv2
import numpy as np

from .route_types import Coordinate
from smartstick.utils.logger import get_logger

logger = get_logger(__name__)

# BGR colors
ROUTE_COLOR = (255, 160, 0)
ORIGIN_COLOR = (0, 200, 0)
DESTINATION_COLOR = (0, 0, 230)
POSITION_COLOR = (0, 220, 255)
BACKGROUND_COLOR = (40, 40, 40)


class MapRenderer(Protocol):
    def draw_route(self, origin: Coordinate, destination: Coordinate, geometry: Sequence[Coordinate]) -> None:
        ...

    def update_position(self, position: Coordinate) -> None:
        ...


class RouteMapRenderer:
    """
    Draws the active route on a square canvas.

    The view is fitted to the route's bounding box. Position updates only
    move the marker; the route layer is drawn once per route.
    """

    def __init__(self, size_px: int = 480, snapshot_path: Optional[str] = None, margin_px: int = 24):
        """
        Args:
            size_px: Canvas width and height.
            snapshot_path: If set, the map is written here as PNG after each update.
            margin_px: Border kept free around the route.
        """
        self.size_px = size_px
        self.snapshot_path = Path(snapshot_path) if snapshot_path else None
        self.margin_px = margin_px

        self._lock = threading.Lock()
        self._route_layer: Optional[np.ndarray] = None
        self._bounds: Optional[Tuple[float, float, float, float]] = None
        self._position: Optional[Coordinate] = None

    def draw_route(self, origin: Coordinate, destination: Coordinate, geometry: Sequence[Coordinate]) -> None:
        points = [origin, destination, *geometry]
        with self._lock:
            self._bounds = self._fit_bounds(points)
            layer = np.full((self.size_px, self.size_px, 3), BACKGROUND_COLOR, dtype=np.uint8)

            if len(geometry) >= 2:
                polyline = np.array([self._project(c) for c in geometry], dtype=np.int32)
                cv2.polylines(layer, [polyline], isClosed=False, color=ROUTE_COLOR, thickness=3, lineType=cv2.LINE_AA)

            cv2.circle(layer, self._project(origin), 7, ORIGIN_COLOR, -1, lineType=cv2.LINE_AA)
            cv2.circle(layer, self._project(destination), 7, DESTINATION_COLOR, -1, lineType=cv2.LINE_AA)
            self._route_layer = layer
            self._position = None

        logger.debug(f"Route drawn ({len(geometry)} points)")
        self._write_snapshot()

    def update_position(self, position: Coordinate) -> None:
        with self._lock:
            self._position = position
        self._write_snapshot()

    def clear(self) -> None:
        with self._lock:
            self._route_layer = None
            self._bounds = None
            self._position = None

    def render(self) -> np.ndarray:
        """Compose the route layer and the position marker into a new image."""
        with self._lock:
            if self._route_layer is None:
                canvas = np.full((self.size_px, self.size_px, 3), BACKGROUND_COLOR, dtype=np.uint8)
            else:
                canvas = self._route_layer.copy()

            if self._position is not None and self._bounds is not None:
                center = self._project(self._position)
                cv2.circle(canvas, center, 9, POSITION_COLOR, 2, lineType=cv2.LINE_AA)
                cv2.circle(canvas, center, 3, POSITION_COLOR, -1, lineType=cv2.LINE_AA)

        return canvas

    def _write_snapshot(self) -> None:
        if self.snapshot_path is None:
            return
        try:
            self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            cv2.imwrite(str(self.snapshot_path), self.render())
        except (OSError, cv2.error) as e:
            logger.warning(f"Could not write map snapshot: {e}")

    @staticmethod
    def _fit_bounds(points: List[Coordinate]) -> Tuple[float, float, float, float]:
        lons = [p.lon for p in points]
        lats = [p.lat for p in points]
        min_lon, max_lon = min(lons), max(lons)
        min_lat, max_lat = min(lats), max(lats)

        # Square span so the map is not stretched
        span = max(max_lon - min_lon, max_lat - min_lat, 1e-5)
        center_lon = (min_lon + max_lon) / 2
        center_lat = (min_lat + max_lat) / 2
        return (center_lon - span / 2, center_lat - span / 2, center_lon + span / 2, center_lat + span / 2)

    def _project(self, coordinate: Coordinate) -> Tuple[int, int]:
        min_lon, min_lat, max_lon, max_lat = self._bounds
        usable = self.size_px - 2 * self.margin_px
        x = self.margin_px + (coordinate.lon - min_lon) / (max_lon - min_lon) * usable
        y = self.margin_px + (max_lat - coordinate.lat) / (max_lat - min_lat) * usable

        # Positions off the route view are pinned to the border
        x = int(round(min(max(x, 0), self.size_px - 1)))
        y = int(round(min(max(y, 0), self.size_px - 1)))
        return x, y


class NullMapRenderer:
    """Used when the map is disabled."""

    def draw_route(self, origin, destination, geometry) -> None:
        pass

    def update_position(self, position) -> None:
        pass
