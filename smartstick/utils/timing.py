"""Frame loop pacing."""

import time
from collections import deque
from typing import Optional


class FPSController:
    """Sleeps between detection ticks to hold a target rate."""

    def __init__(self, target_fps: float):
        """
        Args:
            target_fps: Target detection ticks per second.
        """
        self.target_fps = target_fps
        self.target_interval = 1.0 / target_fps
        self.last_tick: Optional[float] = None
        self._intervals = deque(maxlen=30)

    def wait(self) -> None:
        """Sleep off whatever is left of the current tick interval."""
        now = time.monotonic()

        if self.last_tick is not None:
            elapsed = now - self.last_tick
            sleep_time = self.target_interval - elapsed
            if sleep_time > 0:
                time.sleep(sleep_time)

        tick = time.monotonic()
        if self.last_tick is not None:
            self._intervals.append(tick - self.last_tick)
        self.last_tick = tick

    def average_fps(self) -> Optional[float]:
        """Average achieved rate over the last 30 ticks, or None."""
        if not self._intervals:
            return None
        avg = sum(self._intervals) / len(self._intervals)
        return 1.0 / avg if avg > 0 else None

    def reset(self) -> None:
        self.last_tick = None
        self._intervals.clear()
