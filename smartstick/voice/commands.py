"""Spoken command parsing and dispatch."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from smartstick.utils.logger import get_logger

logger = get_logger(__name__)

STARTUP_NOTICE = "Smart stick activated. Please connect your earphones for best results."
ONBOARDING_TUTORIAL = (
    "Welcome to Smart Stick. This app will guide you using voice and vibration. "
    "Point your phone camera ahead and listen for instructions. "
    "You can use voice commands like 'scan left', 'scan right', or 'go forward'. "
    "To repeat the last message, say 'repeat'. "
    "To start navigation, say 'take me to' followed by your destination. "
    "You do not need to look at the screen. All feedback is provided by sound and vibration."
)

NAVIGATE_PATTERNS = [
    r"(?:take\s+me|navigate|directions|guide\s+me)\s+to\s+(?:the\s+)?(.+)",
    r"go\s+to\s+(?:the\s+)?(.+)",
]


class CommandType(str, Enum):
    SCAN_LEFT = "scan_left"
    SCAN_RIGHT = "scan_right"
    GO_FORWARD = "go_forward"
    HELP = "help"
    REPEAT = "repeat"
    NAVIGATE = "navigate"
    STOP_NAVIGATION = "stop_navigation"


@dataclass(frozen=True)
class Command:
    type: CommandType
    argument: str = ""


def _extract_destination(text: str) -> Optional[str]:
    for pattern in NAVIGATE_PATTERNS:
        match = re.search(pattern, text)
        if match:
            destination = re.sub(r'\s*(please|now|quickly)\.?$', '', match.group(1).strip())
            destination = destination.strip(' .,!?')
            if len(destination) > 1:
                return destination
    return None


def parse_command(transcript: str) -> Optional[Command]:
    """
    Map a transcript to a command.

    Navigation and stop phrases are checked before the single-word commands
    so "stop navigation" and "take me to the help desk" are not misread.
    """
    text = transcript.strip().lower()
    if not text:
        return None

    if re.search(r"\b(stop|cancel|end)\s+(navigation|navigating|route)\b", text):
        return Command(CommandType.STOP_NAVIGATION)

    destination = _extract_destination(text)
    if destination:
        return Command(CommandType.NAVIGATE, destination)

    if "scan left" in text:
        return Command(CommandType.SCAN_LEFT)
    if "scan right" in text:
        return Command(CommandType.SCAN_RIGHT)
    if "go forward" in text:
        return Command(CommandType.GO_FORWARD)
    if re.search(r"\bhelp\b", text):
        return Command(CommandType.HELP)
    if re.search(r"\brepeat\b", text):
        return Command(CommandType.REPEAT)
    return None


class CommandHandler:
    """Carries out spoken commands through the announcer and navigation session."""

    def __init__(self, announcer, navigation=None, location_source=None, emergency_pattern: Sequence[int] = (500, 200, 500)):
        self.announcer = announcer
        self.navigation = navigation
        self.location_source = location_source
        self.emergency_pattern = list(emergency_pattern)

    def handle_text(self, transcript: str) -> Optional[Command]:
        command = parse_command(transcript)
        if command is None:
            logger.debug(f"No command in '{transcript}'")
            return None
        self.handle(command)
        return command

    def handle(self, command: Command) -> None:
        logger.info(f"Command: {command.type.value} {command.argument}".rstrip())

        if command.type == CommandType.SCAN_LEFT:
            self.announcer.announce("Scanning left. Please move your camera to the left.")
        elif command.type == CommandType.SCAN_RIGHT:
            self.announcer.announce("Scanning right. Please move your camera to the right.")
        elif command.type == CommandType.GO_FORWARD:
            self.announcer.announce("Moving forward. Please proceed.")
        elif command.type == CommandType.REPEAT:
            if not self.announcer.repeat_last():
                self.announcer.announce("Nothing to repeat yet.")
        elif command.type == CommandType.HELP:
            self.announcer.announce("Emergency help activated.", self.emergency_pattern)
            self.announce_emergency_location()
        elif command.type == CommandType.NAVIGATE:
            if self.navigation is None:
                self.announcer.announce("Navigation is not available.")
            else:
                self.announcer.announce(f"Finding a route to {command.argument}.")
                self.navigation.start_async(command.argument)
        elif command.type == CommandType.STOP_NAVIGATION:
            if self.navigation is not None:
                self.navigation.stop()

    def announce_emergency_location(self) -> None:
        """Speak the current coordinates and log a shareable maps link."""
        position = self.location_source.current_position() if self.location_source else None
        if position is None:
            self.announcer.announce("Unable to get location.")
            return

        self.announcer.announce(
            f"Emergency! Your location is latitude {position.lat:.5f}, longitude {position.lon:.5f}."
        )
        logger.warning(f"Emergency location: https://maps.google.com/?q={position.lat},{position.lon}")
