"""Haptic output."""

from typing import Callable, Optional, Sequence

from smartstick.utils.logger import get_logger

logger = get_logger(__name__)


class HapticOutput:
    """
    Forwards vibration patterns to a motor driver.

    Without a driver the pattern is only logged, which is how the app runs on
    a laptop.
    """

    def __init__(self, driver: Optional[Callable[[Sequence[int]], None]] = None, enabled: bool = True):
        self.driver = driver
        self.enabled = enabled

    def vibrate(self, pattern: Sequence[int]) -> None:
        if not self.enabled or not pattern:
            return
        logger.debug(f"Haptic pattern {list(pattern)}")
        if self.driver is not None:
            self.driver(list(pattern))
