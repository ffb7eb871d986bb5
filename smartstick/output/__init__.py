"""Spoken and haptic output."""

from .announcer import Announcer
from .haptics import HapticOutput
from .tts_output import TTSOutput

__all__ = ["Announcer", "HapticOutput", "TTSOutput"]
