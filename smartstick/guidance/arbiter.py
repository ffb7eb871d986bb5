"""Per-frame alert decisions with de-duplication."""

import threading
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .classifier import analyze_frame
from .distance import distance_phrase
from .types import Detection, Direction, FrameAnalysis
from smartstick.config.settings import GuidanceConfig
from smartstick.utils.logger import get_logger

logger = get_logger(__name__)

HAZARD_TEMPLATE = "Caution! Vehicle or traffic detected. {phrase}"
DIRECTION_TEMPLATES = {
    Direction.LEFT: "Obstacle left. Move right. {phrase}",
    Direction.RIGHT: "Obstacle right. Move left. {phrase}",
    Direction.CENTER: "Obstacle ahead. Scan left and right. {phrase}",
    Direction.CLEAR: "Path clear. Go forward.",
}
PATH_NOW_CLEAR = "Path is now clear. You can move forward."


@dataclass
class AnnouncementState:
    """What was last announced; the baseline is an empty, clear scene."""
    last_signature: str = ""
    last_direction: Direction = Direction.CLEAR
    last_announced_at: float = 0.0

    def is_clear_baseline(self) -> bool:
        return self.last_signature == "" and self.last_direction == Direction.CLEAR

    def matches(self, signature: str, direction: Direction) -> bool:
        return self.last_signature == signature and self.last_direction == direction

    def commit(self, signature: str, direction: Direction, announced_at: float) -> None:
        self.last_signature = signature
        self.last_direction = direction
        self.last_announced_at = max(self.last_announced_at, announced_at)


@dataclass(frozen=True)
class Alert:
    """A spoken message plus the haptic pattern to play with it."""
    message: str
    haptic_pattern: List[int]
    kind: str  # "hazard", "obstacle", "clear", "now_clear"


class AlertArbiter:
    """
    Decides, frame by frame, whether to speak and what to say.

    Hazards are always announced. Other frames are announced only when the
    (objects, direction) pair differs from the last announcement. An empty
    frame after a non-clear announcement yields a single "path now clear".

    The read-decide-commit sequence runs under a lock so location callbacks
    on another thread never observe a half-updated state.
    """

    def __init__(
        self,
        config: Optional[GuidanceConfig] = None,
        announcer=None,
        clock=time.monotonic
    ):
        """
        Args:
            config: Guidance calibration and haptic patterns.
            announcer: Sink with announce(message, haptic_pattern). Optional.
            clock: Timestamp source for last_announced_at.
        """
        self.config = config or GuidanceConfig()
        self.announcer = announcer
        self.clock = clock
        self.state = AnnouncementState()
        self._lock = threading.Lock()

    def process_frame(
        self,
        detections: Sequence[Detection],
        frame_width: float,
        now: Optional[float] = None
    ) -> Optional[Alert]:
        """
        Analyze one frame, update state and announce if warranted.

        Args:
            detections: Detections for this frame (possibly empty).
            frame_width: Frame width in pixels.
            now: Frame timestamp. Uses the arbiter clock if None.

        Returns:
            The emitted Alert, or None when the frame stays silent.
        """
        analysis = analyze_frame(tuple(detections), frame_width, self.config)
        if now is None:
            now = self.clock()

        with self._lock:
            alert = self._decide(analysis)
            if alert is None:
                return None

            if alert.kind == "now_clear":
                self.state.commit("", Direction.CLEAR, now)
            else:
                self.state.commit(analysis.signature, analysis.direction, now)

        logger.debug(f"Alert [{alert.kind}] {alert.message} (objects='{analysis.signature}')")
        if self.announcer is not None:
            self.announcer.announce(alert.message, alert.haptic_pattern)
        return alert

    def _decide(self, analysis: FrameAnalysis) -> Optional[Alert]:
        haptics = self.config.haptics

        if analysis.closest is None:
            if self.state.is_clear_baseline():
                return None
            return Alert(PATH_NOW_CLEAR, list(haptics.short), "now_clear")

        phrase = distance_phrase(analysis.closest, analysis.distance_m)

        if analysis.hazard:
            return Alert(HAZARD_TEMPLATE.format(phrase=phrase), list(haptics.strong), "hazard")

        if self.state.matches(analysis.signature, analysis.direction):
            return None

        message = DIRECTION_TEMPLATES[analysis.direction].format(phrase=phrase)
        if analysis.direction == Direction.CLEAR:
            return Alert(message, list(haptics.short), "clear")
        return Alert(message, list(haptics.normal), "obstacle")

    def reset(self) -> None:
        """Return to the clear baseline without announcing."""
        with self._lock:
            last = self.state.last_announced_at
            self.state = AnnouncementState(last_announced_at=last)
