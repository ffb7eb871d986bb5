"""Tests for configuration loading and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from smartstick.config.settings import GuidanceConfig, LoggingConfig, NavigationConfig, Settings


def test_defaults_match_calibration() -> None:
    settings = Settings()

    assert settings.guidance.reference_frame_width_px == 320
    assert settings.guidance.reference_object_width_px == 80
    assert settings.guidance.haptics.strong == [500, 200, 500]
    assert "traffic light" in settings.guidance.hazard_classes
    assert settings.navigation.proximity_threshold_m == 20
    assert settings.navigation.meters_per_degree == 111_000


def test_load_yaml_overrides(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "guidance:\n"
        "  reference_object_width_px: 120\n"
        "navigation:\n"
        "  proximity_threshold_m: 15\n"
        "logging:\n"
        "  level: debug\n"
    )

    settings = Settings.load(path)

    assert settings.guidance.reference_object_width_px == 120
    assert settings.navigation.proximity_threshold_m == 15
    assert settings.logging.level == "DEBUG"


def test_missing_file_uses_defaults(tmp_path) -> None:
    settings = Settings.load(tmp_path / "absent.yaml")

    assert settings.camera.width == 320


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        LoggingConfig(level="chatty")
    with pytest.raises(ValidationError):
        GuidanceConfig(min_distance_m=6.0, max_distance_m=5.0)
    with pytest.raises(ValidationError):
        GuidanceConfig(haptics={"strong": []})


def test_api_key_from_environment(monkeypatch) -> None:
    config = NavigationConfig(ors_api_key_env="SMARTSTICK_TEST_KEY")

    monkeypatch.delenv("SMARTSTICK_TEST_KEY", raising=False)
    with pytest.raises(ValueError):
        config.api_key

    monkeypatch.setenv("SMARTSTICK_TEST_KEY", "abc")
    assert config.api_key == "abc"
