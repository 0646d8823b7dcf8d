"""Simulation core: owns all simulation state and the operator commands.

Every command returns a ``CommandResult``; a rejected command leaves the
simulation unchanged and queues a blocking alert when the error is meant for
the operator.
"""

from __future__ import annotations

import logging
import random
from collections import deque
from typing import TYPE_CHECKING

from rover.exceptions import create_command_handler
from rover.mission.catalog import DEFAULT_PROFILE_KEY, get_profile
from rover.mission.models import Alert, AlertLevel
from rover.mission.state_machine import MissionStateMachine
from rover.obstacle_avoidance.avoidance import ObstacleAvoidance
from rover.obstacle_avoidance.models import Viewport
from rover.simulation.models import SimulationSnapshot
from rover.telemetry.models import EnvironmentConditions, TelemetrySample
from rover.telemetry.recorder import SystemHealthMonitor, TelemetryRecorder
from rover.vehicle.models import VehicleState
from rover.vehicle.power import PowerModel

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rover.config import RoverSettings
    from rover.exceptions import RoverError
    from rover.mission.models import MissionProfile
    from rover.obstacle_avoidance.models import Obstacle
    from rover.telemetry.models import SystemHealth

logger = logging.getLogger(__name__)

_ALERT_QUEUE_LIMIT: int = 50


class SimulationCore:
    """Single owner of the rover simulation.

    Holds the vehicle, the mission state machine and its collaborators, the
    telemetry buffers and the pending operator alerts. The simulation clock
    only advances through ``step``.
    """

    def __init__(
        self,
        settings: RoverSettings,
        *,
        obstacles: Iterable[Obstacle] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the simulation with the rover at rest and no mission.

        Args:
            settings: Simulation configuration.
            obstacles: Static obstacles. Defaults to the standard field.
            rng: Random source for evasion and health drift.
        """
        self._settings = settings
        self._rng = rng or random.Random(settings.random_seed)
        self._time = 0.0
        self._default_viewport = Viewport(
            width=settings.viewport_width,
            height=settings.viewport_height,
        )
        self._profile: MissionProfile | None = None
        self._alerts: deque[Alert] = deque(maxlen=_ALERT_QUEUE_LIMIT)

        self._vehicle = VehicleState()
        self._power = PowerModel(settings=settings)
        self._avoidance = ObstacleAvoidance(settings=settings, obstacles=obstacles, rng=self._rng)
        self._mission = MissionStateMachine(
            settings=settings,
            vehicle=self._vehicle,
            avoidance=self._avoidance,
            power=self._power,
            alert_sink=self._alerts.append,
        )
        self._telemetry = TelemetryRecorder(settings=settings)
        self._health_monitor = SystemHealthMonitor(rng=self._rng)
        self._environment = EnvironmentConditions()

    @property
    def time(self) -> float:
        """Return the simulation time in seconds."""
        return self._time

    @property
    def settings(self) -> RoverSettings:
        """Return the simulation configuration."""
        return self._settings

    @property
    def mission(self) -> MissionStateMachine:
        """Return the mission state machine."""
        return self._mission

    @property
    def vehicle(self) -> VehicleState:
        """Return the live vehicle state."""
        return self._vehicle

    @property
    def power(self) -> PowerModel:
        """Return the power model."""
        return self._power

    @property
    def avoidance(self) -> ObstacleAvoidance:
        """Return the obstacle avoidance checks."""
        return self._avoidance

    @property
    def telemetry(self) -> TelemetryRecorder:
        """Return the telemetry buffers."""
        return self._telemetry

    @property
    def health(self) -> SystemHealth:
        """Return the current system health readings."""
        return self._health_monitor.health

    @property
    def environment(self) -> EnvironmentConditions:
        """Return the ambient conditions."""
        return self._environment

    @property
    def profile(self) -> MissionProfile | None:
        """Return the most recently loaded mission profile."""
        return self._profile

    # ------------------------------------------------------------------
    # Frame update
    # ------------------------------------------------------------------

    def step(self, delta_seconds: float, viewport: Viewport | None = None) -> None:
        """Advance the simulation clock and run one mission update.

        Args:
            delta_seconds: Frame duration; negative values count as zero.
            viewport: Drawable area. Defaults to the configured viewport.
        """
        delta_seconds = max(0.0, delta_seconds)
        self._time += delta_seconds
        self._mission.step(self._time, delta_seconds, viewport or self._default_viewport)

    def snapshot(self) -> SimulationSnapshot:
        """Return a deep-copied view of the current simulation state."""
        return SimulationSnapshot(
            time=self._time,
            phase=self._mission.phase,
            vehicle=self._vehicle.model_copy(deep=True),
            mission=self._mission.state.model_copy(deep=True),
            obstacles=self._avoidance.obstacles,
            progress_percent=self._mission.progress_percent(),
            eta_seconds=self._mission.estimate_time_remaining(),
            current_task=self._mission.current_task(),
            health=self._health_monitor.health.model_copy(),
            environment=self._environment,
            summary=self._mission.summary,
        )

    def sample_telemetry(self) -> TelemetrySample:
        """Record one telemetry sample on every chart.

        Returns:
            The recorded sample.
        """
        health = self._health_monitor.health
        sample = TelemetrySample(
            label=_format_clock(self._time),
            distance=self._mission.state.total_distance,
            speed=self._vehicle.speed,
            cpu_percent=health.cpu_percent,
            memory_percent=health.memory_percent,
            temperature_celsius=health.temperature_celsius,
            communication_percent=health.communication_percent,
            battery=self._vehicle.battery,
            power_watts=self._vehicle.power_consumption_watts,
            environment_temperature=self._environment.temperature_celsius,
            solar_irradiance=self._environment.solar_irradiance,
        )
        self._telemetry.record(sample)
        return sample

    def update_health(self) -> SystemHealth:
        """Apply one drift step to the system health readings."""
        return self._health_monitor.update()

    def drain_alerts(self) -> list[Alert]:
        """Return and clear the pending operator alerts, oldest first."""
        alerts = list(self._alerts)
        self._alerts.clear()
        return alerts

    def on_command_error(self, command: str, error: RoverError) -> None:
        """Queue a blocking alert for a rejected operator command."""
        if not error.user_visible:
            return
        self._alerts.append(
            Alert(
                level=AlertLevel.WARNING,
                message=error.message,
                reason=error.error_code,
                timestamp=self._time,
            )
        )
        logger.debug("Queued alert for rejected command %s", command)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @create_command_handler
    def load_profile(self, profile_key: str) -> str:
        """Load a mission profile from the catalog."""
        profile = get_profile(profile_key)
        self._mission.load(profile)
        self._profile = profile
        return f"{profile.name} loaded with {len(profile.waypoints)} waypoints"

    @create_command_handler
    def start(self) -> str:
        """Start the loaded mission."""
        self._mission.start(self._time)
        return "Mission started"

    @create_command_handler
    def pause(self) -> str:
        """Pause the running mission, or resume it if paused."""
        paused = self._mission.toggle_pause(self._time)
        return "Mission paused" if paused else "Mission resumed"

    @create_command_handler
    def resume(self) -> str:
        """Resume a paused mission."""
        self._mission.resume(self._time)
        return "Mission resumed"

    @create_command_handler
    def stop(self) -> str:
        """Stop the running mission without scoring it."""
        stopped = self._mission.stop()
        return "Mission stopped" if stopped else "No mission running"

    @create_command_handler
    def emergency_stop(self) -> str:
        """Halt the rover immediately."""
        self._mission.emergency_stop(self._time)
        return "Emergency stop activated"

    @create_command_handler
    def reset(self) -> str:
        """Stop and reload the current mission profile."""
        self._mission.stop()
        profile = self._profile or get_profile(DEFAULT_PROFILE_KEY)
        self._mission.load(profile)
        self._profile = profile
        logger.info("Mission reset")
        return f"{profile.name} reset"

    @create_command_handler
    def clear_waypoints(self) -> str:
        """Remove all waypoints of the loaded mission."""
        self._mission.clear_waypoints()
        return "Waypoints cleared"

    @create_command_handler
    def optimize_path(self) -> str:
        """Reorder the waypoints by nearest-neighbour order."""
        self._mission.optimize()
        return "Path optimized"

    @create_command_handler
    def select_chart(self, chart_type: str) -> str:
        """Switch the telemetry chart shown on the dashboard."""
        selected = self._telemetry.select_chart(chart_type)
        return f"Showing {selected} chart"


def _format_clock(seconds: float) -> str:
    """Format simulation seconds as HH:MM:SS."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
