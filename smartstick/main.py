"""
SmartStick - spoken walking guidance.

Runs the obstacle alert loop on webcam detections and, when a destination is
requested, follows a walking route against live location samples.
"""

import argparse
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from smartstick.config.settings import get_settings
from smartstick.guidance.arbiter import AlertArbiter
from smartstick.navigation.map_renderer import NullMapRenderer, RouteMapRenderer
from smartstick.navigation.providers import NominatimGeocoder, OpenRouteServiceDirections
from smartstick.navigation.session import NavigationSession
from smartstick.output.announcer import Announcer
from smartstick.output.haptics import HapticOutput
from smartstick.output.tts_output import TTSOutput
from smartstick.sources.camera import CameraDetectionSource, FrameSourceError
from smartstick.sources.location import LocationSourceError, ReplayLocationSource
from smartstick.utils.logger import setup_logger
from smartstick.utils.timing import FPSController
from smartstick.voice.commands import ONBOARDING_TUTORIAL, STARTUP_NOTICE, CommandHandler


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="SmartStick - spoken and haptic walking guidance"
    )
    parser.add_argument('--config', type=Path, default=None, help='Path to config.yaml')
    parser.add_argument('--locations', type=str, default=None, help='CSV/JSON file of location samples to replay')
    parser.add_argument('--destination', type=str, default=None, help='Start navigating to this place')
    parser.add_argument('--no-camera', action='store_true', help='Run navigation only, without obstacle alerts')
    parser.add_argument('--voice', action='store_true', help='Listen for spoken commands on the microphone')
    parser.add_argument('--typed-commands', action='store_true', help='Read commands from stdin')
    return parser.parse_args(argv)


class SmartStickApp:
    """Wires sources, the guidance engine and outputs together."""

    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.settings = get_settings(args.config)

        self.logger = setup_logger(
            "smartstick",
            level=self.settings.logging.level,
            fmt=self.settings.logging.format,
            use_colors=self.settings.logging.console_colors
        )

        self.logger.info("=" * 60)
        self.logger.info("SmartStick - walking guidance")
        self.logger.info("=" * 60)

        self.announcer: Optional[Announcer] = None
        self.arbiter: Optional[AlertArbiter] = None
        self.camera: Optional[CameraDetectionSource] = None
        self.location_source: Optional[ReplayLocationSource] = None
        self.navigation: Optional[NavigationSession] = None
        self.commands: Optional[CommandHandler] = None
        self.voice_listener = None

        self.running = False

    def setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, shutting down...")
            self.running = False

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def initialize(self) -> None:
        """Build every component. Sensor failures are spoken once and tolerated."""
        settings = self.settings

        tts = TTSOutput(
            engine=settings.tts.engine,
            voice=settings.tts.voice,
            rate=settings.tts.rate,
            enabled=settings.tts.enabled
        )
        self.announcer = Announcer(tts=tts, haptics=HapticOutput())
        self.announcer.announce(STARTUP_NOTICE)

        self.arbiter = AlertArbiter(config=settings.guidance, announcer=self.announcer)

        if not self.args.no_camera:
            self._initialize_camera()

        self._initialize_location()
        self._initialize_navigation()

        self.commands = CommandHandler(
            self.announcer,
            navigation=self.navigation,
            location_source=self.location_source,
            emergency_pattern=settings.guidance.haptics.strong
        )

        if self.args.voice or settings.voice.enabled:
            self._initialize_voice()

        if settings.voice.onboarding:
            self.announcer.announce(ONBOARDING_TUTORIAL)

    def _initialize_camera(self) -> None:
        cam = self.settings.camera
        camera = CameraDetectionSource(
            device_index=cam.device_index,
            width=cam.width,
            height=cam.height,
            model_path=cam.model_path,
            confidence_threshold=cam.confidence_threshold
        )
        try:
            camera.open()
            self.camera = camera
        except FrameSourceError as e:
            self.logger.error(f"Camera unavailable: {e}")
            self.announcer.announce("Camera not available. Obstacle alerts are off.")

    def _initialize_location(self) -> None:
        replay_file = self.args.locations or self.settings.location.replay_file
        if not replay_file:
            self.logger.warning("No location source configured - navigation disabled")
            return

        source = ReplayLocationSource(path=replay_file, interval_s=self.settings.location.interval_s)
        try:
            source.start()
            self.location_source = source
        except LocationSourceError as e:
            self.logger.error(f"Location unavailable: {e}")
            self.announcer.announce("Location not available.")

    def _initialize_navigation(self) -> None:
        nav = self.settings.navigation
        try:
            api_key = nav.api_key
        except ValueError as e:
            self.logger.warning(f"Navigation disabled: {e}")
            return

        map_cfg = self.settings.map
        if map_cfg.enabled:
            map_renderer = RouteMapRenderer(size_px=map_cfg.size_px, snapshot_path=map_cfg.snapshot_path)
        else:
            map_renderer = NullMapRenderer()

        self.navigation = NavigationSession(
            geocoder=NominatimGeocoder(nav.geocoder_user_agent, nav.geocoder_limit, nav.timeout_s),
            directions=OpenRouteServiceDirections(api_key, nav.profile, nav.timeout_s),
            location_source=self.location_source,
            announcer=self.announcer,
            map_renderer=map_renderer,
            config=nav
        )
        self.logger.info("Navigation ready")

    def _initialize_voice(self) -> None:
        try:
            from smartstick.voice.listener import VoiceCommandListener
        except ImportError as e:
            self.logger.warning(f"Voice commands not available: {e}")
            self.logger.warning("Install with: pip install smartstick[voice]")
            return

        self.voice_listener = VoiceCommandListener(
            self.commands.handle_text,
            device_index=self.settings.voice.device_index,
            language=self.settings.voice.language
        )
        self.voice_listener.start()

    def _read_typed_commands(self) -> None:
        for line in sys.stdin:
            if not self.running:
                break
            if line.strip():
                self.commands.handle_text(line)

    def run_loop(self) -> None:
        """Obstacle alert loop; navigation runs on its own threads."""
        self.running = True
        fps = FPSController(self.settings.camera.fps)
        frame_count = 0

        if self.args.destination:
            self.commands.handle_text(f"take me to {self.args.destination}")

        if self.args.typed_commands:
            threading.Thread(target=self._read_typed_commands, daemon=True).start()

        self.logger.info("Press Ctrl+C to stop")
        while self.running:
            fps.wait()

            if self.camera is None:
                time.sleep(0.2)
                continue

            try:
                frame = self.camera.read()
                if frame is None:
                    self.logger.warning("No frame received from camera")
                    continue

                detections, frame_width = frame
                self.arbiter.process_frame(detections, frame_width)
            except Exception as e:
                self.logger.error(f"Frame processing failed: {e}")

            frame_count += 1
            if frame_count % 100 == 0:
                avg = fps.average_fps()
                nav_status = self.navigation.status() if self.navigation else {"active": False}
                self.logger.info(
                    f"Frames: {frame_count}, FPS: {avg or 0:.1f}, navigation: {nav_status}"
                )

    def cleanup(self) -> None:
        """Cleanup all resources."""
        self.logger.info("Cleaning up resources...")

        if self.voice_listener:
            self.voice_listener.shutdown()
        if self.navigation:
            self.navigation.close()
        if self.location_source:
            self.location_source.stop()
        if self.camera:
            self.camera.close()
        if self.announcer and self.announcer.tts:
            self.announcer.tts.close()

        self.logger.info("Cleanup complete")

    def run(self) -> int:
        """
        Run the application.

        Returns:
            Exit code (0 = success, 1 = error).
        """
        self.setup_signal_handlers()

        try:
            self.initialize()
            self.run_loop()
        except Exception as e:
            self.logger.error(f"Unexpected error: {e}")
            return 1
        finally:
            self.cleanup()

        self.logger.info("SmartStick terminated")
        return 0


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    return SmartStickApp(args).run()


if __name__ == "__main__":
    sys.exit(main())
