"""Tests for rover simulation configuration."""

import math

import pytest
from pydantic import ValidationError

from rover.config import RoverSettings, get_rover_settings


class TestRoverSettingsDefaults:
    def test_kinematics(self):
        settings = RoverSettings()
        assert settings.max_speed == 4.0
        assert settings.cruise_speed == 2.7
        assert settings.acceleration == 0.8
        assert settings.deceleration == 1.2
        assert settings.turning_rate == 2.0

    def test_arrival(self):
        settings = RoverSettings()
        assert settings.arrival_threshold == 25.0
        assert settings.min_moving_speed == 0.5

    def test_avoidance(self):
        settings = RoverSettings()
        assert settings.vehicle_radius == 20.0
        assert settings.boundary_margin == 50.0
        assert settings.evasion_angle == pytest.approx(math.pi / 4)
        assert settings.evasion_error_penalty == 0.1

    def test_viewport(self):
        settings = RoverSettings()
        assert settings.viewport_width == 800.0
        assert settings.viewport_height == 600.0

    def test_battery_thresholds(self):
        settings = RoverSettings()
        assert settings.minimum_start_battery == 20.0
        assert settings.low_battery_warning == 20.0

    def test_frame_driver(self):
        settings = RoverSettings()
        assert settings.frame_rate == 60.0
        assert settings.max_frame_delta == pytest.approx(1 / 30)
        assert settings.telemetry_interval_seconds == 1.0
        assert settings.health_interval_seconds == 2.0
        assert settings.telemetry_window == 15

    def test_runtime_unset(self):
        settings = RoverSettings()
        assert settings.auto_start_profile is None
        assert settings.run_duration_seconds is None
        assert settings.random_seed is None

    def test_frame_interval(self):
        settings = RoverSettings(frame_rate=50.0)
        assert settings.frame_interval_seconds == pytest.approx(0.02)


class TestRoverSettingsEnvironment:
    def test_reads_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("ROVER_CRUISE_SPEED", "3.0")
        monkeypatch.setenv("ROVER_AUTO_START_PROFILE", "rescue")
        settings = RoverSettings()
        assert settings.cruise_speed == 3.0
        assert settings.auto_start_profile == "rescue"

    def test_ignores_unprefixed_variables(self, monkeypatch):
        monkeypatch.setenv("CRUISE_SPEED", "3.0")
        settings = RoverSettings()
        assert settings.cruise_speed == 2.7


class TestRoverSettingsValidation:
    def test_log_level_uppercased(self):
        settings = RoverSettings(log_level="debug")
        assert settings.log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            RoverSettings(log_level="VERBOSE")

    def test_cruise_above_max_speed(self):
        with pytest.raises(ValidationError, match="cruise_speed"):
            RoverSettings(max_speed=2.0, cruise_speed=2.5)

    def test_min_moving_above_max_speed(self):
        with pytest.raises(ValidationError, match="min_moving_speed"):
            RoverSettings(max_speed=2.0, cruise_speed=1.0, min_moving_speed=3.0)

    def test_negative_drain_rate(self):
        with pytest.raises(ValidationError):
            RoverSettings(idle_drain_rate=-0.1)

    def test_zero_telemetry_window(self):
        with pytest.raises(ValidationError):
            RoverSettings(telemetry_window=0)


class TestGetRoverSettings:
    def test_cached(self):
        assert get_rover_settings() is get_rover_settings()
