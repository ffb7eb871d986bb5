"""The single announcement sink shared by obstacle alerts and navigation."""

import threading
from typing import List, Optional, Sequence

from smartstick.utils.logger import get_logger

logger = get_logger(__name__)


class Announcer:
    """
    Serializes speech and haptic requests from both pipelines.

    Holds the last spoken message so it can be repeated on request. Output
    failures are logged and never raised back into the caller's pipeline.
    """

    def __init__(self, tts=None, haptics=None):
        """
        Args:
            tts: Object with speak(message).
            haptics: Object with vibrate(pattern).
        """
        self.tts = tts
        self.haptics = haptics
        self.last_message: Optional[str] = None
        self.history: List[str] = []
        self._lock = threading.Lock()

    def announce(self, message: str, haptic_pattern: Optional[Sequence[int]] = None) -> None:
        """Speak a message and optionally play a vibration pattern."""
        if not message:
            return

        with self._lock:
            self.last_message = message
            self.history.append(message)
            del self.history[:-50]

            logger.info(f"Announce: {message}")
            try:
                if haptic_pattern and self.haptics is not None:
                    self.haptics.vibrate(haptic_pattern)
                if self.tts is not None:
                    self.tts.speak(message)
            except Exception as e:
                logger.error(f"Announcement output failed: {e}")

    def repeat_last(self) -> bool:
        """Repeat the last message. Returns False if nothing was said yet."""
        message = self.last_message
        if message is None:
            return False
        self.announce(message)
        return True
