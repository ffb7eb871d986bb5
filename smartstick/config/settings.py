"""Configuration management for SmartStick."""

import os
import yaml
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from dotenv import load_dotenv


DEFAULT_HAZARD_CLASSES = [
    "car", "bus", "truck", "motorcycle", "bicycle", "traffic light"
]


class CameraConfig(BaseModel):
    """Webcam and detector configuration."""
    device_index: int = Field(default=0, ge=0)
    width: int = Field(default=320, ge=160, le=3840)
    height: int = Field(default=240, ge=120, le=2160)
    fps: int = Field(default=10, ge=1, le=30)
    model_path: str = Field(default="yolov8n.pt")
    confidence_threshold: float = Field(default=0.5, ge=0.1, le=1.0)


class HapticPatterns(BaseModel):
    """Vibration patterns as on/off durations in milliseconds."""
    strong: List[int] = Field(default=[500, 200, 500])
    normal: List[int] = Field(default=[200, 100, 200])
    short: List[int] = Field(default=[100])

    @field_validator('strong', 'normal', 'short')
    @classmethod
    def validate_durations(cls, v):
        """Patterns must be non-empty and non-negative."""
        if not v or any(d < 0 for d in v):
            raise ValueError("haptic pattern must be a non-empty list of non-negative durations")
        return v


class GuidanceConfig(BaseModel):
    """
    Obstacle guidance calibration.

    The distance constants assume a 320x240 capture; recalibrate per device.
    """
    reference_frame_width_px: int = Field(default=320, ge=1)
    reference_object_width_px: float = Field(default=80.0, gt=0)
    min_distance_m: float = Field(default=0.5, ge=0.0)
    max_distance_m: float = Field(default=5.0, gt=0.0)
    hazard_classes: List[str] = Field(default_factory=lambda: list(DEFAULT_HAZARD_CLASSES))
    haptics: HapticPatterns = Field(default_factory=HapticPatterns)

    @model_validator(mode='after')
    def validate_distance_range(self):
        """Ensure the clamp range is ordered."""
        if self.min_distance_m > self.max_distance_m:
            raise ValueError("min_distance_m must not exceed max_distance_m")
        return self


class NavigationConfig(BaseModel):
    """Walking navigation configuration."""
    proximity_threshold_m: float = Field(default=20.0, gt=0.0, le=500.0)
    meters_per_degree: float = Field(default=111_000.0, gt=0.0)
    profile: str = Field(default="foot-walking")
    ors_api_key_env: str = Field(default="ORS_API_KEY")
    geocoder_user_agent: str = Field(default="smartstick-navigation")
    geocoder_limit: int = Field(default=5, ge=1, le=50)
    timeout_s: int = Field(default=10, ge=1, le=120)

    @property
    def api_key(self) -> str:
        """Get the OpenRouteService API key from the environment."""
        api_key = os.getenv(self.ors_api_key_env)
        if not api_key:
            raise ValueError(
                f"API key not found in environment variable '{self.ors_api_key_env}'. "
                f"Please set it in your .env file or environment."
            )
        return api_key


class LocationConfig(BaseModel):
    """Location source configuration."""
    replay_file: Optional[str] = Field(default=None)
    interval_s: float = Field(default=1.0, ge=0.0, le=60.0)


class TTSConfig(BaseModel):
    """Speech output configuration."""
    enabled: bool = Field(default=True)
    engine: str = Field(default="auto")
    voice: Optional[str] = Field(default=None)
    rate: int = Field(default=200, ge=80, le=400)

    @field_validator('engine')
    @classmethod
    def validate_engine(cls, v):
        """Validate speech engine."""
        allowed = ['auto', 'say', 'espeak', 'none']
        if v not in allowed:
            raise ValueError(f"engine must be one of {allowed}")
        return v


class VoiceConfig(BaseModel):
    """Spoken command configuration."""
    enabled: bool = Field(default=False)
    device_index: Optional[int] = Field(default=None)
    language: str = Field(default="en-US")
    onboarding: bool = Field(default=True)


class MapConfig(BaseModel):
    """Route map rendering configuration."""
    enabled: bool = Field(default=True)
    size_px: int = Field(default=480, ge=100, le=2000)
    snapshot_path: Optional[str] = Field(default=None)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO")
    console_colors: bool = Field(default=True)
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        """Validate logging level."""
        allowed = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v = v.upper()
        if v not in allowed:
            raise ValueError(f"level must be one of {allowed}")
        return v


class Settings(BaseModel):
    """Main application settings."""
    camera: CameraConfig = Field(default_factory=CameraConfig)
    guidance: GuidanceConfig = Field(default_factory=GuidanceConfig)
    navigation: NavigationConfig = Field(default_factory=NavigationConfig)
    location: LocationConfig = Field(default_factory=LocationConfig)
    tts: TTSConfig = Field(default_factory=TTSConfig)
    voice: VoiceConfig = Field(default_factory=VoiceConfig)
    map: MapConfig = Field(default_factory=MapConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """
        Load settings from YAML file and environment variables.

        Args:
            config_path: Path to config.yaml file. If None, uses default location.

        Returns:
            Settings instance with loaded configuration.
        """
        load_dotenv()

        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "config.yaml"

        config_path = Path(config_path)
        if config_path.exists():
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
        else:
            config_data = {}

        return cls(**config_data)


# Singleton instance
_settings: Optional[Settings] = None


def get_settings(config_path: Optional[Path] = None, reload: bool = False) -> Settings:
    """
    Get application settings (singleton pattern).

    Args:
        config_path: Path to config.yaml file. Only used on first call or when reload=True.
        reload: Force reload of settings.

    Returns:
        Settings instance.
    """
    global _settings

    if _settings is None or reload:
        _settings = Settings.load(config_path)

    return _settings
