"""Text-to-speech output using the platform speech command."""

import shutil
import subprocess
import threading
from typing import List, Optional

from smartstick.utils.logger import get_logger

logger = get_logger(__name__)


class TTSOutput:
    """
    Speaks through macOS `say` or `espeak`.

    A new message cancels whatever is still being spoken, so the user always
    hears the latest guidance rather than a backlog.
    """

    def __init__(
        self,
        engine: str = "auto",
        voice: Optional[str] = None,
        rate: int = 200,
        enabled: bool = True
    ):
        """
        Args:
            engine: "say", "espeak", "auto" (first one found) or "none".
            voice: Voice name passed to the engine, if any.
            rate: Speech rate in words per minute.
            enabled: Whether TTS is enabled.
        """
        self.voice = voice
        self.rate = rate
        self.engine = self._resolve_engine(engine) if enabled else None
        self.enabled = self.engine is not None

        self._current_process: Optional[subprocess.Popen] = None
        self._lock = threading.Lock()

        if self.enabled:
            logger.info(f"TTS initialized (engine={self.engine}, voice={voice}, rate={rate})")
        else:
            logger.info("TTS disabled")

    @staticmethod
    def _resolve_engine(engine: str) -> Optional[str]:
        if engine == "none":
            return None
        candidates = ["say", "espeak"] if engine == "auto" else [engine]
        for candidate in candidates:
            if shutil.which(candidate):
                return candidate
        logger.warning(f"No speech command found (tried {', '.join(candidates)})")
        return None

    def _build_command(self, message: str) -> List[str]:
        if self.engine == "say":
            cmd = ["say", "-r", str(self.rate)]
            if self.voice:
                cmd += ["-v", self.voice]
        else:
            cmd = ["espeak", "-s", str(self.rate)]
            if self.voice:
                cmd += ["-v", self.voice]
        return cmd + [message]

    def speak(self, message: str) -> bool:
        """
        Speak a message, interrupting any speech in progress.

        Returns:
            True if speech was started.
        """
        if not self.enabled or not message:
            return False

        with self._lock:
            self._stop_current()
            try:
                self._current_process = subprocess.Popen(
                    self._build_command(message),
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL
                )
            except FileNotFoundError:
                logger.warning(f"'{self.engine}' command not found, disabling TTS")
                self.enabled = False
                return False
            except OSError as e:
                logger.error(f"TTS error: {e}")
                return False

        logger.debug(f"TTS: {message}")
        return True

    def _stop_current(self) -> None:
        if self._current_process is None:
            return
        if self._current_process.poll() is None:
            self._current_process.terminate()
            try:
                self._current_process.wait(timeout=0.1)
            except subprocess.TimeoutExpired:
                self._current_process.kill()
        self._current_process = None

    def close(self) -> None:
        with self._lock:
            self._stop_current()
