"""Microphone listener feeding transcripts to the command handler."""

from threading import Event, Thread
from typing import Callable, Optional

import speech_recognition as sr

from smartstick.utils.logger import get_logger

logger = get_logger(__name__)


class VoiceCommandListener:
    """
    Continuously transcribes speech with the Google recognizer.

    Every non-empty transcript is passed to on_transcript on the listener
    thread.
    """

    def __init__(
        self,
        on_transcript: Callable[[str], object],
        device_index: Optional[int] = None,
        language: str = "en-US"
    ):
        self.on_transcript = on_transcript
        self.device_index = device_index
        self.language = language
        self.stop_event = Event()
        self._thread: Optional[Thread] = None
        self.last_heard = ""

    def start(self) -> None:
        self.stop_event.clear()
        self._thread = Thread(target=self._continuous_listen, daemon=True)
        self._thread.start()
        logger.info("Voice command listener started")

    def _continuous_listen(self) -> None:
        try:
            recognizer = sr.Recognizer()
            mic = sr.Microphone(device_index=self.device_index)
        except (OSError, AttributeError) as e:
            # AttributeError: PyAudio missing
            logger.error(f"Cannot access microphone: {e}")
            return

        recognizer.pause_threshold = 1.0
        try:
            with mic as source:
                recognizer.adjust_for_ambient_noise(source, duration=1.0)
        except OSError as e:
            logger.error(f"Mic calibration failed: {e}")
            return

        while not self.stop_event.is_set():
            try:
                with mic as source:
                    audio = recognizer.listen(source, timeout=2, phrase_time_limit=6)
            except sr.WaitTimeoutError:
                continue
            except OSError as e:
                logger.warning(f"Listen error: {e}")
                continue

            try:
                text = recognizer.recognize_google(audio, language=self.language)
            except sr.UnknownValueError:
                continue
            except sr.RequestError as e:
                logger.warning(f"Speech recognition error: {e}")
                continue

            if text:
                self.last_heard = text
                logger.debug(f"Heard: {text}")
                try:
                    self.on_transcript(text)
                except Exception as e:
                    logger.error(f"Command handling failed: {e}")

        logger.debug("Voice command listener stopped")

    def shutdown(self) -> None:
        self.stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=3.0)
        logger.info("Voice command listener shutdown")
