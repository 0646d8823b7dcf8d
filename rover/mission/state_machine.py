"""Mission state machine driving waypoint progression.

Advances the rover towards the current waypoint every frame, performs the
task dwell at each waypoint and scores the mission on completion. All
timing uses the simulation clock passed in by the caller, so a dwell is
cancelled simply by clearing its end time.

Phases and allowed transitions:

    IDLE -> ACTIVE                               start()
    ACTIVE -> DWELLING                           waypoint reached
    DWELLING -> ACTIVE                           dwell elapsed
    ACTIVE | DWELLING -> PAUSED                  pause()
    PAUSED -> ACTIVE | DWELLING                  pause() again / resume()
    ACTIVE | DWELLING -> COMPLETED               last waypoint done
    ACTIVE | DWELLING | PAUSED -> IDLE           stop() / emergency_stop()

Loading a profile or clearing waypoints replaces the mission state and
always lands in IDLE.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from types import MappingProxyType
from typing import TYPE_CHECKING

from rover.exceptions import (
    BoundaryBlockedError,
    InsufficientResourcesError,
    InsufficientWaypointsError,
    InvalidTransitionError,
    MissionActiveError,
    MissionInactiveError,
    NavigationError,
    NoMissionError,
    TargetNotFoundError,
)
from rover.geometry import (
    advance,
    clamp_turn,
    distance,
    heading_to,
    normalize_angle,
    shortest_turn,
    step_towards,
)
from rover.logging import generate_run_id
from rover.mission.models import (
    Alert,
    AlertLevel,
    MissionPhase,
    MissionState,
    MissionSummary,
    Waypoint,
)
from rover.mission.optimizer import MINIMUM_OPTIMIZABLE_WAYPOINTS, optimize_path
from rover.vehicle.models import TaskAnimation

if TYPE_CHECKING:
    from rover.config import RoverSettings
    from rover.exceptions import RoverError
    from rover.mission.models import MissionProfile
    from rover.obstacle_avoidance.avoidance import ObstacleAvoidance
    from rover.obstacle_avoidance.models import Viewport
    from rover.vehicle.models import VehicleState
    from rover.vehicle.power import PowerModel

logger = logging.getLogger(__name__)

AlertSink = Callable[[Alert], None]

_ALLOWED_TRANSITIONS: MappingProxyType[MissionPhase, frozenset[MissionPhase]] = MappingProxyType(
    {
        MissionPhase.IDLE: frozenset({MissionPhase.ACTIVE}),
        MissionPhase.ACTIVE: frozenset(
            {
                MissionPhase.DWELLING,
                MissionPhase.PAUSED,
                MissionPhase.COMPLETED,
                MissionPhase.IDLE,
            }
        ),
        MissionPhase.DWELLING: frozenset(
            {
                MissionPhase.ACTIVE,
                MissionPhase.PAUSED,
                MissionPhase.COMPLETED,
                MissionPhase.IDLE,
            }
        ),
        MissionPhase.PAUSED: frozenset(
            {MissionPhase.ACTIVE, MissionPhase.DWELLING, MissionPhase.IDLE}
        ),
        MissionPhase.COMPLETED: frozenset(),
    }
)

# Scoring
_ERROR_PENALTY_POINTS: float = 5.0
_MAX_EFFICIENCY: int = 100

# Minimum speed used for ETA estimates
_ETA_SPEED_FLOOR: float = 0.1

_EMERGENCY_MESSAGE = "Emergency stop activated. All rover systems halted."
_BATTERY_DEPLETED_MESSAGE = "Battery depleted. Mission aborted."
_LOW_BATTERY_MESSAGE = "Warning: Battery level critically low!"


def compute_efficiency(
    *,
    elapsed_seconds: float,
    expected_seconds: float,
    errors: float,
) -> int:
    """Score a finished mission from 0 to 100.

    Time efficiency loses one point per percent of overrun against the
    expected duration; every error then costs five points.

    Args:
        elapsed_seconds: Actual mission duration.
        expected_seconds: Expected mission duration from the profile.
        errors: Accumulated error count, fractional penalties included.

    Returns:
        Efficiency score rounded half up and clamped to [0, 100].
    """
    overrun_percent = 0.0
    if expected_seconds > 0.0:
        overrun_percent = max(0.0, (elapsed_seconds - expected_seconds) / expected_seconds * 100.0)
    time_efficiency = max(0.0, 100.0 - overrun_percent)
    score = math.floor(time_efficiency - errors * _ERROR_PENALTY_POINTS + 0.5)
    return min(_MAX_EFFICIENCY, max(0, score))


class MissionStateMachine:
    """Orchestrates waypoint progression, task dwell, completion and scoring.

    Owns the mission state and mutates the shared vehicle state. Obstacle
    checks and battery drain are delegated to the avoidance and power
    collaborators.
    """

    def __init__(
        self,
        settings: RoverSettings,
        vehicle: VehicleState,
        avoidance: ObstacleAvoidance,
        power: PowerModel,
        alert_sink: AlertSink | None = None,
    ) -> None:
        """Initialize the state machine.

        Args:
            settings: Simulation configuration.
            vehicle: Vehicle state driven by this machine.
            avoidance: Obstacle and boundary checks.
            power: Battery model run on every driving frame.
            alert_sink: Receives operator alerts.
        """
        self._settings = settings
        self._vehicle = vehicle
        self._avoidance = avoidance
        self._power = power
        self._alert_sink = alert_sink
        self._state = MissionState()
        self._summary: MissionSummary | None = None
        self._low_battery_warned = False

    @property
    def state(self) -> MissionState:
        """Return the live mission state."""
        return self._state

    @property
    def phase(self) -> MissionPhase:
        """Return the current mission phase."""
        return self._state.phase

    @property
    def vehicle(self) -> VehicleState:
        """Return the vehicle driven by this machine."""
        return self._vehicle

    @property
    def summary(self) -> MissionSummary | None:
        """Return the result of the last completed mission, if any."""
        return self._summary

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def load(self, profile: MissionProfile) -> None:
        """Load a mission profile and put the rover on its start waypoint.

        Raises:
            MissionActiveError: If a mission is running.
        """
        self._require_inactive("load a mission profile")

        self._state = MissionState(
            profile_key=profile.key,
            waypoints=[Waypoint.from_template(template) for template in profile.waypoints],
            expected_duration_seconds=profile.expected_duration_seconds,
            status_message=f"{profile.name} loaded.",
        )
        self._summary = None
        start = profile.waypoints[0]
        self._vehicle.place_at(start.x, start.y)
        self._vehicle.track_history.clear()

        logger.info(
            "Loaded mission profile %s (%d waypoints)",
            profile.name,
            len(profile.waypoints),
        )

    def clear_waypoints(self) -> None:
        """Remove all waypoints of the loaded mission.

        Raises:
            MissionActiveError: If a mission is running.
        """
        self._require_inactive("clear waypoints")

        self._state = MissionState(
            profile_key=self._state.profile_key,
            expected_duration_seconds=self._state.expected_duration_seconds,
            status_message="Waypoints cleared.",
        )
        self._summary = None
        logger.info("Waypoints cleared")

    def optimize(self) -> None:
        """Reorder the waypoints by nearest-neighbour order.

        Raises:
            MissionActiveError: If a mission is running.
            InsufficientWaypointsError: If fewer than three waypoints are loaded.
        """
        self._require_inactive("optimize the path")

        waypoint_count = len(self._state.waypoints)
        if waypoint_count < MINIMUM_OPTIMIZABLE_WAYPOINTS:
            raise InsufficientWaypointsError(
                f"Path optimization needs at least {MINIMUM_OPTIMIZABLE_WAYPOINTS} waypoints",
                context={"waypoint_count": waypoint_count},
            )

        self._state.waypoints = optimize_path(self._state.waypoints)
        logger.info("Waypoint order optimized (%d waypoints)", waypoint_count)

    def start(self, now: float) -> None:
        """Start the loaded mission.

        Waypoint 0 is the start position and counts as completed immediately.

        Args:
            now: Current simulation time.

        Raises:
            MissionActiveError: If a mission is already running.
            NoMissionError: If no waypoints are loaded.
            InsufficientResourcesError: If the battery is below the start minimum.
            InvalidTransitionError: If the mission already completed.
        """
        state = self._state
        if state.is_active:
            raise MissionActiveError("Mission is already running")

        if not state.waypoints:
            raise NoMissionError(
                "No mission waypoints loaded. Please load a mission profile first."
            )

        required = self._settings.minimum_start_battery
        if self._vehicle.battery < required:
            raise InsufficientResourcesError(
                "Battery too low to start mission. Please recharge.",
                battery_percent=self._vehicle.battery,
                required_percent=required,
            )

        self._transition(MissionPhase.ACTIVE)

        for waypoint in state.waypoints:
            waypoint.completed = False
            waypoint.task_start_time = None
        state.waypoints[0].completed = True
        state.completed_tasks = 1
        state.current_waypoint_index = 1
        state.start_time = now
        state.end_time = None
        state.total_distance = 0.0
        state.errors = 0.0
        state.efficiency = _MAX_EFFICIENCY
        state.task_end_time = None
        state.resume_phase = None
        state.paused_at = None
        state.status_message = "Mission started."
        self._summary = None
        self._low_battery_warned = False

        vehicle = self._vehicle
        vehicle.track_history.clear()
        vehicle.speed = 0.0
        vehicle.target_speed = self._settings.cruise_speed
        vehicle.is_moving = True
        vehicle.task_animation = None

        run = generate_run_id()
        logger.info(
            "Mission started with %d waypoints",
            len(state.waypoints),
            extra={"mission_run": run, "profile_key": state.profile_key},
        )

    def toggle_pause(self, now: float) -> bool:
        """Pause a running mission, or resume it if already paused.

        Args:
            now: Current simulation time.

        Returns:
            True if the mission is paused afterwards.

        Raises:
            MissionInactiveError: If no mission is running.
        """
        if self._state.is_paused:
            self.resume(now)
            return False

        if not self._state.is_active:
            raise MissionInactiveError("No running mission to pause")

        state = self._state
        state.resume_phase = state.phase
        state.paused_at = now
        self._transition(MissionPhase.PAUSED)
        self._vehicle.is_moving = False
        state.status_message = "Mission paused."
        logger.info("Mission paused at waypoint %d", state.current_waypoint_index)
        return True

    def resume(self, now: float) -> None:
        """Resume a paused mission.

        A dwell interrupted by the pause, and its task animation, are
        shifted by the paused time.

        Args:
            now: Current simulation time.

        Raises:
            MissionInactiveError: If the mission is not paused.
        """
        state = self._state
        if not state.is_paused:
            raise MissionInactiveError("Mission is not paused")

        target = state.resume_phase or MissionPhase.ACTIVE
        if state.task_end_time is not None and state.paused_at is not None:
            paused_seconds = max(0.0, now - state.paused_at)
            state.task_end_time += paused_seconds
            animation = self._vehicle.task_animation
            if animation is not None:
                self._vehicle.task_animation = animation.model_copy(
                    update={"start_time": animation.start_time + paused_seconds}
                )

        self._transition(target)
        state.resume_phase = None
        state.paused_at = None
        self._vehicle.is_moving = target == MissionPhase.ACTIVE
        logger.info("Mission resumed at waypoint %d", state.current_waypoint_index)

    def stop(self) -> bool:
        """Stop the running mission without scoring it.

        Returns:
            True if a running mission was stopped.
        """
        state = self._state
        if not state.is_active:
            self._vehicle.halt()
            return False

        self._transition(MissionPhase.IDLE)
        state.task_end_time = None
        state.resume_phase = None
        state.paused_at = None
        state.status_message = "Mission stopped."
        self._vehicle.halt()
        self._vehicle.task_animation = None

        logger.info("Mission stopped at waypoint %d", state.current_waypoint_index)
        return True

    def emergency_stop(self, now: float, error: RoverError | None = None) -> None:
        """Halt the rover immediately and raise a blocking alert.

        Counts as one mission error whether or not a mission was running,
        except after completion, whose score is already final.

        Args:
            now: Current simulation time.
            error: Fault that triggered the stop, if any.
        """
        if self._state.phase != MissionPhase.COMPLETED:
            self._state.errors += 1.0
        self.stop()
        message = error.message if error is not None else _EMERGENCY_MESSAGE
        self._state.status_message = message

        logger.warning(
            "Emergency stop: %s",
            message,
            extra={"reason": error.error_code if error is not None else "EMERGENCY_STOP"},
        )
        self._raise_alert(
            AlertLevel.CRITICAL,
            message,
            now=now,
            reason=error.error_code if error is not None else None,
        )

    # ------------------------------------------------------------------
    # Frame update
    # ------------------------------------------------------------------

    def step(self, now: float, delta_seconds: float, viewport: Viewport) -> None:
        """Advance the mission by one frame.

        Args:
            now: Simulation time at the end of this frame.
            delta_seconds: Frame duration.
            viewport: Drawable area the rover must stay inside.
        """
        phase = self._state.phase

        if phase == MissionPhase.ACTIVE:
            try:
                self._drive(now, delta_seconds, viewport)
            except TargetNotFoundError as error:
                logger.exception("Mission fault", extra={"error_code": error.error_code})
                self._state.errors += 1.0
                self.stop()
                self._state.status_message = error.message
                self._raise_alert(
                    AlertLevel.CRITICAL, error.message, now=now, reason=error.error_code
                )
            return

        if phase == MissionPhase.DWELLING:
            self._dwell(now)
            return

        self._coast(delta_seconds)

    def _drive(self, now: float, delta_seconds: float, viewport: Viewport) -> None:
        """Seek the current waypoint, then run the power model."""
        state = self._state
        if state.current_waypoint_index >= len(state.waypoints):
            self._complete(now)
            return

        target = self._require_target()
        vehicle = self._vehicle
        settings = self._settings
        distance_to_target = distance(vehicle.x, vehicle.y, target.x, target.y)

        if distance_to_target < settings.arrival_threshold:
            self._reach_waypoint(now, target)
            return

        desired_heading = heading_to(vehicle.x, vehicle.y, target.x, target.y)
        turn = clamp_turn(
            shortest_turn(vehicle.heading, desired_heading),
            settings.turning_rate * delta_seconds,
        )
        vehicle.heading = normalize_angle(vehicle.heading + turn)

        slowdown_radius = settings.arrival_threshold * 2.0
        approach_ratio = min(1.0, distance_to_target / slowdown_radius)
        vehicle.target_speed = settings.cruise_speed * approach_ratio
        speed = step_towards(
            vehicle.speed,
            vehicle.target_speed,
            settings.acceleration * delta_seconds,
            settings.deceleration * delta_seconds,
        )
        vehicle.speed = max(settings.min_moving_speed, min(settings.max_speed, max(0.0, speed)))

        status = (
            f"Moving to waypoint {state.current_waypoint_index + 1} ({target.task}). "
            f"Distance remaining: {distance_to_target:.0f}m."
        )

        travel = vehicle.speed * delta_seconds
        if travel > 0.0:
            new_x, new_y = advance(vehicle.x, vehicle.y, vehicle.heading, travel)
            try:
                self._avoidance.ensure_clear(new_x, new_y, viewport)
            except NavigationError as error:
                status = self._evade(error)
            else:
                vehicle.record_track(now, settings.track_history_limit)
                vehicle.x = new_x
                vehicle.y = new_y
                state.total_distance += travel

        state.status_message = status
        self._update_power(now, delta_seconds)

    def _evade(self, error: NavigationError) -> str:
        """Turn away from a blocked position; the rover holds this frame."""
        self._vehicle.heading = self._avoidance.evade(self._vehicle.heading)
        self._state.errors += self._settings.evasion_error_penalty

        logger.warning(
            "Navigation blocked: %s",
            error.message,
            extra={"error_code": error.error_code, "error_context": error.context},
        )
        if isinstance(error, BoundaryBlockedError):
            return "Adjusting course at boundary."
        return "Evading obstacle."

    def _update_power(self, now: float, delta_seconds: float) -> None:
        """Drain the battery and react to low or depleted charge."""
        battery = self._power.apply(self._vehicle, delta_seconds)

        if battery <= 0.0:
            self.emergency_stop(
                now,
                InsufficientResourcesError(_BATTERY_DEPLETED_MESSAGE, battery_percent=battery),
            )
            return

        if battery < self._settings.low_battery_warning and not self._low_battery_warned:
            self._low_battery_warned = True
            logger.warning("Battery low: %.1f%%", battery)
            self._raise_alert(AlertLevel.WARNING, _LOW_BATTERY_MESSAGE, now=now, blocking=False)

    def _reach_waypoint(self, now: float, waypoint: Waypoint) -> None:
        """Mark a waypoint done and start its task dwell."""
        state = self._state
        waypoint.completed = True
        waypoint.task_start_time = now
        state.completed_tasks = min(len(state.waypoints), state.completed_tasks + 1)

        dwell_seconds = waypoint.dwell_seconds * self._settings.dwell_time_scale
        state.task_end_time = now + dwell_seconds
        self._vehicle.task_animation = TaskAnimation(
            task_name=waypoint.task,
            start_time=now,
            duration_seconds=dwell_seconds,
        )
        self._vehicle.halt()
        self._transition(MissionPhase.DWELLING)
        state.status_message = f"Performing task: {waypoint.task}."

        logger.info(
            "Waypoint %d reached: %s at (%.0f, %.0f)",
            state.current_waypoint_index,
            waypoint.task,
            waypoint.x,
            waypoint.y,
        )

    def _dwell(self, now: float) -> None:
        """Wait for the current task to finish, then move on."""
        state = self._state
        if state.task_end_time is not None and now < state.task_end_time:
            return

        state.task_end_time = None
        self._vehicle.task_animation = None
        state.current_waypoint_index += 1

        if state.current_waypoint_index >= len(state.waypoints):
            self._complete(now)
            return

        self._transition(MissionPhase.ACTIVE)
        self._vehicle.is_moving = True
        self._vehicle.target_speed = self._settings.cruise_speed

    def _coast(self, delta_seconds: float) -> None:
        """Bleed off residual speed while the mission is not driving."""
        vehicle = self._vehicle
        if vehicle.speed > 0.0:
            vehicle.speed = max(0.0, vehicle.speed - self._settings.deceleration * delta_seconds)

        if self._state.phase == MissionPhase.PAUSED:
            self._state.status_message = "Mission paused."
        elif self._state.phase == MissionPhase.IDLE:
            self._state.status_message = "Mission idle."

    def _complete(self, now: float) -> None:
        """Finish the mission and compute its efficiency score."""
        state = self._state
        self._transition(MissionPhase.COMPLETED)
        self._vehicle.halt()
        self._vehicle.task_animation = None
        state.end_time = now
        state.task_end_time = None

        elapsed = now - (state.start_time if state.start_time is not None else now)
        state.efficiency = compute_efficiency(
            elapsed_seconds=elapsed,
            expected_seconds=state.expected_duration_seconds,
            errors=state.errors,
        )
        self._summary = MissionSummary(
            profile_key=state.profile_key,
            waypoint_count=len(state.waypoints),
            completed_tasks=state.completed_tasks,
            total_distance=state.total_distance,
            elapsed_seconds=max(0.0, elapsed),
            expected_seconds=state.expected_duration_seconds,
            errors=state.errors,
            efficiency=state.efficiency,
        )
        state.status_message = (
            f"Mission complete. Distance {state.total_distance:.0f}m, "
            f"time {elapsed:.0f}s, efficiency {state.efficiency}%."
        )

        logger.info(
            "Mission completed: distance=%.0f time=%.0fs efficiency=%d%%",
            state.total_distance,
            elapsed,
            state.efficiency,
        )
        self._raise_alert(AlertLevel.INFO, state.status_message, now=now, blocking=False)

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def progress_percent(self) -> float:
        """Return completed tasks as a percentage of all waypoints."""
        return self._state.completed_tasks / max(1, len(self._state.waypoints)) * 100.0

    def current_task(self) -> str | None:
        """Return the task of the current target waypoint.

        Returns:
            The task name, or None when no waypoint is left.
        """
        state = self._state
        if 0 <= state.current_waypoint_index < len(state.waypoints):
            return state.waypoints[state.current_waypoint_index].task
        return None

    def estimate_time_remaining(self) -> float | None:
        """Estimate seconds to finish the remaining route at the current speed.

        Returns:
            Estimated seconds, or None unless the mission is running and moving.
        """
        state = self._state
        vehicle = self._vehicle
        if not state.is_active or vehicle.speed <= 0.0:
            return None

        remaining = 0.0
        last_x, last_y = vehicle.x, vehicle.y
        for waypoint in state.waypoints[state.current_waypoint_index :]:
            remaining += distance(last_x, last_y, waypoint.x, waypoint.y)
            last_x, last_y = waypoint.x, waypoint.y

        return remaining / max(vehicle.speed, _ETA_SPEED_FLOOR)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _transition(self, target: MissionPhase) -> None:
        """Move to ``target`` if the transition table allows it.

        Raises:
            InvalidTransitionError: If the transition is not allowed.
        """
        source = self._state.phase
        if target not in _ALLOWED_TRANSITIONS[source]:
            raise InvalidTransitionError(
                f"Cannot move mission from {source} to {target}",
                source=source,
                target=target,
            )
        self._state.phase = target
        logger.debug("Mission phase %s -> %s", source, target)

    def _require_target(self) -> Waypoint:
        """Return the current target waypoint.

        Raises:
            TargetNotFoundError: If the index does not point at a waypoint.
        """
        state = self._state
        index = state.current_waypoint_index
        if not 0 <= index < len(state.waypoints):
            raise TargetNotFoundError(
                f"Target waypoint {index} not found",
                waypoint_index=index,
                waypoint_count=len(state.waypoints),
            )
        return state.waypoints[index]

    def _require_inactive(self, action: str) -> None:
        """Raise MissionActiveError if a mission is running."""
        if self._state.is_active:
            raise MissionActiveError(f"Cannot {action} while a mission is running")

    def _raise_alert(
        self,
        level: AlertLevel,
        message: str,
        *,
        now: float,
        reason: str | None = None,
        blocking: bool = True,
    ) -> None:
        if self._alert_sink is None:
            return
        self._alert_sink(
            Alert(level=level, message=message, reason=reason, timestamp=now, blocking=blocking)
        )
