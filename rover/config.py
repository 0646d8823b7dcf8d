"""Rover simulation configuration using Pydantic BaseSettings.

All settings are loaded from environment variables prefixed with ``ROVER_``.
"""

import math
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RoverSettings(BaseSettings):
    """Simulation settings loaded from environment variables.

    Attributes:
        max_speed: Hard speed ceiling in units per second.
        cruise_speed: Speed commanded while travelling between waypoints.
        acceleration: Speed gain per second when below target speed.
        deceleration: Speed loss per second when above target speed.
        turning_rate: Maximum heading change in radians per second.
        arrival_threshold: Distance below which a waypoint counts as reached.
        min_moving_speed: Speed floor applied while the rover is driving.
        vehicle_radius: Collision buffer added to every obstacle radius.
        boundary_margin: Distance the rover keeps from the viewport edges.
        evasion_angle: Heading change applied when the path is blocked.
        evasion_error_penalty: Error count added for every evasion.
        viewport_width: Default drawable width when the caller supplies none.
        viewport_height: Default drawable height when the caller supplies none.
        minimum_start_battery: Battery percentage required to start a mission.
        low_battery_warning: Battery percentage that raises a warning alert.
        idle_drain_rate: Battery percent per second drained at rest.
        movement_drain_rate: Battery percent per second drained at max speed.
        sensor_drain_factor: Battery percent per second per active sensor watt.
        base_power_watts: Displayed power draw at rest.
        power_range_watts: Additional displayed power draw at max speed.
        dwell_time_scale: Multiplier converting task dwell into simulation seconds.
        track_history_limit: Maximum trail points kept for rendering.
        frame_rate: Target frames per second of the frame driver.
        max_frame_delta: Largest time step a single frame may advance.
        telemetry_interval_seconds: Interval between telemetry samples.
        health_interval_seconds: Interval between system health updates.
        telemetry_window: Samples kept per telemetry chart.
        auto_start_profile: Mission profile loaded and started on launch.
        run_duration_seconds: Stop the application after this many seconds.
        random_seed: Seed for evasion and health noise, for reproducible runs.
        log_level: Logging level.
    """

    model_config = SettingsConfigDict(
        env_prefix="ROVER_",
        case_sensitive=False,
        extra="ignore",
        str_strip_whitespace=True,
    )

    # Kinematics
    max_speed: float = Field(default=4.0, gt=0.0)
    cruise_speed: float = Field(default=2.7, gt=0.0)
    acceleration: float = Field(default=0.8, gt=0.0)
    deceleration: float = Field(default=1.2, gt=0.0)
    turning_rate: float = Field(default=2.0, gt=0.0)
    arrival_threshold: float = Field(default=25.0, gt=0.0)
    min_moving_speed: float = Field(default=0.5, ge=0.0)

    # Obstacle avoidance
    vehicle_radius: float = Field(default=20.0, ge=0.0)
    boundary_margin: float = Field(default=50.0, ge=0.0)
    evasion_angle: float = Field(default=math.pi / 4.0, gt=0.0, le=math.pi)
    evasion_error_penalty: float = Field(default=0.1, ge=0.0)

    # Viewport defaults
    viewport_width: float = Field(default=800.0, gt=0.0)
    viewport_height: float = Field(default=600.0, gt=0.0)

    # Power
    minimum_start_battery: float = Field(default=20.0, ge=0.0, le=100.0)
    low_battery_warning: float = Field(default=20.0, ge=0.0, le=100.0)
    idle_drain_rate: float = Field(default=0.001, ge=0.0)
    movement_drain_rate: float = Field(default=0.005, ge=0.0)
    sensor_drain_factor: float = Field(default=0.0001, ge=0.0)
    base_power_watts: float = Field(default=110.0, ge=0.0)
    power_range_watts: float = Field(default=200.0, ge=0.0)

    # Mission
    dwell_time_scale: float = Field(default=1.0, ge=0.0)
    track_history_limit: int = Field(default=500, ge=1)

    # Frame driver and telemetry
    frame_rate: float = Field(default=60.0, gt=0.0, le=240.0)
    max_frame_delta: float = Field(default=1.0 / 30.0, gt=0.0, le=1.0)
    telemetry_interval_seconds: float = Field(default=1.0, gt=0.0)
    health_interval_seconds: float = Field(default=2.0, gt=0.0)
    telemetry_window: int = Field(default=15, ge=1)

    # Runtime
    auto_start_profile: str | None = Field(default=None)
    run_duration_seconds: float | None = Field(default=None, gt=0.0)
    random_seed: int | None = Field(default=None)

    # Logging
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in allowed:
            error_message = f"log_level must be one of {allowed}, got '{value}'"
            raise ValueError(error_message)
        return upper_value

    @model_validator(mode="after")
    def validate_speeds(self) -> "RoverSettings":
        """Validate that commanded speeds fit under the speed ceiling."""
        if self.cruise_speed > self.max_speed:
            error_message = (
                f"cruise_speed ({self.cruise_speed}) must not exceed max_speed ({self.max_speed})"
            )
            raise ValueError(error_message)
        if self.min_moving_speed > self.max_speed:
            error_message = (
                f"min_moving_speed ({self.min_moving_speed}) must not exceed "
                f"max_speed ({self.max_speed})"
            )
            raise ValueError(error_message)
        return self

    @property
    def frame_interval_seconds(self) -> float:
        """Return the wall-clock interval between frames."""
        return 1.0 / self.frame_rate


@lru_cache
def get_rover_settings() -> RoverSettings:
    """Get cached rover settings instance.

    Returns:
        Cached RoverSettings instance.
    """
    return RoverSettings()
