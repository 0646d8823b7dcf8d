"""Tests for the mission state machine."""

import math
import random

import pytest

from rover.config import RoverSettings
from rover.exceptions import (
    InsufficientResourcesError,
    InsufficientWaypointsError,
    InvalidTransitionError,
    MissionActiveError,
    MissionInactiveError,
    NoMissionError,
)
from rover.geometry import heading_to, shortest_turn
from rover.logging import get_run_id
from rover.mission.catalog import get_profile
from rover.mission.models import AlertLevel, MissionPhase, MissionProfile, WaypointTemplate
from rover.mission.state_machine import MissionStateMachine, compute_efficiency
from rover.obstacle_avoidance.avoidance import ObstacleAvoidance
from rover.obstacle_avoidance.models import Obstacle, ObstacleCategory, Viewport
from rover.vehicle.models import VehicleState
from rover.vehicle.power import PowerModel

_VIEWPORT = Viewport(width=800, height=600)
_FRAME = 1 / 30


def _make_settings(**overrides):
    """Create RoverSettings for testing."""
    return RoverSettings(**overrides)


def _make_machine(settings=None, obstacles=(), battery=100.0):
    """Create a state machine with no obstacles and a list collecting alerts."""
    settings = settings or _make_settings()
    alerts = []
    machine = MissionStateMachine(
        settings=settings,
        vehicle=VehicleState(battery=battery),
        avoidance=ObstacleAvoidance(settings, obstacles=obstacles, rng=random.Random(7)),
        power=PowerModel(settings),
        alert_sink=alerts.append,
    )
    return machine, alerts


def _make_profile(*points, dwell=0.0, hours=1.0):
    """Create a mission profile through the given points."""
    return MissionProfile(
        key="test",
        name="Test Mission",
        expected_duration_hours=hours,
        expected_distance_meters=0.0,
        waypoints=tuple(
            WaypointTemplate(x=x, y=y, task=f"Task {index}", dwell_seconds=dwell)
            for index, (x, y) in enumerate(points)
        ),
    )


def _run(machine, now, seconds, delta=_FRAME):
    """Step the machine for ``seconds`` of simulation time and return the end time."""
    for _ in range(round(seconds / delta)):
        now += delta
        machine.step(now, delta, _VIEWPORT)
    return now


class TestComputeEfficiency:
    def test_on_time_without_errors(self):
        assert compute_efficiency(elapsed_seconds=3600, expected_seconds=3600, errors=0) == 100

    def test_four_errors(self):
        assert compute_efficiency(elapsed_seconds=3600, expected_seconds=3600, errors=4) == 80

    def test_early_finish_capped_at_100(self):
        assert compute_efficiency(elapsed_seconds=10, expected_seconds=3600, errors=0) == 100

    def test_overrun(self):
        assert compute_efficiency(elapsed_seconds=4500, expected_seconds=3600, errors=0) == 75

    def test_floored_at_zero(self):
        assert compute_efficiency(elapsed_seconds=3600, expected_seconds=3600, errors=50) == 0

    def test_rounds_half_up(self):
        assert compute_efficiency(elapsed_seconds=3600, expected_seconds=3600, errors=0.1) == 100
        assert compute_efficiency(elapsed_seconds=3600, expected_seconds=3600, errors=0.3) == 99

    def test_zero_expected_duration(self):
        assert compute_efficiency(elapsed_seconds=10, expected_seconds=0, errors=1) == 95


class TestLoad:
    def test_places_rover_on_first_waypoint(self):
        machine, _ = _make_machine()
        machine.vehicle.heading = 1.0
        machine.load(_make_profile((120, 130), (300, 130)))
        assert (machine.vehicle.x, machine.vehicle.y) == (120, 130)
        assert machine.vehicle.heading == 0.0
        assert machine.vehicle.speed == 0.0
        assert machine.phase == MissionPhase.IDLE

    def test_copies_waypoints(self):
        machine, _ = _make_machine()
        profile = get_profile("geological")
        machine.load(profile)
        machine.state.waypoints[1].completed = True
        assert len(machine.state.waypoints) == len(profile.waypoints)
        assert machine.state.profile_key == "geological"
        assert machine.state.expected_duration_seconds == 4.5 * 3600

    def test_refused_while_active(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100)))
        machine.start(0.0)
        with pytest.raises(MissionActiveError):
            machine.load(get_profile("rescue"))
        assert machine.state.profile_key == "test"


class TestStart:
    def test_no_waypoints(self):
        machine, _ = _make_machine()
        with pytest.raises(NoMissionError):
            machine.start(0.0)
        assert machine.phase == MissionPhase.IDLE
        assert machine.state.is_active is False

    def test_battery_below_minimum(self):
        machine, _ = _make_machine(battery=19.0)
        machine.load(_make_profile((100, 100), (300, 100)))
        with pytest.raises(InsufficientResourcesError) as exc_info:
            machine.start(0.0)
        assert machine.phase == MissionPhase.IDLE
        assert exc_info.value.context["required_percent"] == 20.0

    def test_battery_at_minimum(self):
        machine, _ = _make_machine(battery=20.0)
        machine.load(_make_profile((100, 100), (300, 100)))
        machine.start(0.0)
        assert machine.phase == MissionPhase.ACTIVE

    def test_initial_progress(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100), (300, 300)))
        machine.start(5.0)
        state = machine.state
        assert state.current_waypoint_index == 1
        assert state.completed_tasks == 1
        assert state.waypoints[0].completed is True
        assert not any(waypoint.completed for waypoint in state.waypoints[1:])
        assert state.start_time == 5.0
        assert state.efficiency == 100
        assert state.errors == 0

    def test_rover_commanded_to_cruise(self):
        settings = _make_settings()
        machine, _ = _make_machine(settings)
        machine.load(_make_profile((100, 100), (300, 100)))
        machine.start(0.0)
        assert machine.vehicle.speed == 0.0
        assert machine.vehicle.target_speed == settings.cruise_speed
        assert machine.vehicle.is_moving is True

    def test_already_active(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100)))
        machine.start(0.0)
        with pytest.raises(MissionActiveError):
            machine.start(1.0)

    def test_assigns_run_id(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100)))
        machine.start(0.0)
        assert get_run_id() != ""

    def test_restart_after_completion_needs_reload(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (110, 100)))
        machine.start(0.0)
        _run(machine, 0.0, 1.0)
        assert machine.phase == MissionPhase.COMPLETED
        with pytest.raises(InvalidTransitionError):
            machine.start(2.0)


class TestPause:
    def test_pause_twice_restores_active(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100)))
        machine.start(0.0)
        assert machine.toggle_pause(1.0) is True
        assert machine.phase == MissionPhase.PAUSED
        assert machine.vehicle.is_moving is False
        assert machine.toggle_pause(2.0) is False
        assert machine.phase == MissionPhase.ACTIVE
        assert machine.vehicle.is_moving is True

    def test_pause_twice_restores_dwelling(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (110, 100), (300, 100), dwell=10))
        machine.start(0.0)
        now = _run(machine, 0.0, _FRAME)
        assert machine.phase == MissionPhase.DWELLING
        machine.toggle_pause(now)
        machine.toggle_pause(now + 1)
        assert machine.phase == MissionPhase.DWELLING

    def test_pause_when_idle(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100)))
        with pytest.raises(MissionInactiveError):
            machine.toggle_pause(0.0)
        assert machine.phase == MissionPhase.IDLE

    def test_paused_rover_does_not_advance(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100)))
        machine.start(0.0)
        now = _run(machine, 0.0, 1.0)
        machine.toggle_pause(now)
        now = _run(machine, now, 3.0)
        x_after_coasting = machine.vehicle.x
        _run(machine, now, 1.0)
        assert machine.vehicle.x == x_after_coasting
        assert machine.vehicle.speed == 0.0
        assert machine.state.status_message == "Mission paused."

    def test_resume_when_not_paused(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100)))
        machine.start(0.0)
        with pytest.raises(MissionInactiveError):
            machine.resume(1.0)

    def test_pause_extends_dwell(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (110, 100), (300, 100), dwell=5))
        machine.start(0.0)
        machine.step(0.1, 0.1, _VIEWPORT)
        assert machine.state.task_end_time == pytest.approx(5.1)
        machine.toggle_pause(1.0)
        machine.resume(4.0)
        assert machine.state.task_end_time == pytest.approx(8.1)

    def test_pause_shifts_task_animation(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (110, 100), (300, 100), dwell=20))
        machine.start(0.0)
        machine.step(0.1, 0.1, _VIEWPORT)
        machine.toggle_pause(5.0)
        machine.resume(25.0)
        animation = machine.vehicle.task_animation
        assert animation.start_time == pytest.approx(20.1)
        assert animation.progress(25.0) == pytest.approx(0.245)


class TestStop:
    def test_stop_active_mission(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100)))
        machine.start(0.0)
        _run(machine, 0.0, 1.0)
        assert machine.stop() is True
        assert machine.phase == MissionPhase.IDLE
        assert machine.vehicle.speed == 0.0
        assert machine.vehicle.target_speed == 0.0
        assert machine.summary is None

    def test_stop_cancels_dwell(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (110, 100), (300, 100), dwell=5))
        machine.start(0.0)
        machine.step(0.1, 0.1, _VIEWPORT)
        machine.stop()
        assert machine.state.task_end_time is None
        assert machine.vehicle.task_animation is None

    def test_stop_is_idempotent(self):
        machine, _ = _make_machine()
        assert machine.stop() is False
        assert machine.stop() is False
        assert machine.phase == MissionPhase.IDLE

    def test_emergency_stop(self):
        machine, alerts = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100)))
        machine.start(0.0)
        machine.emergency_stop(1.0)
        assert machine.phase == MissionPhase.IDLE
        assert machine.state.errors == 1
        assert alerts[-1].level == AlertLevel.CRITICAL
        assert alerts[-1].blocking is True
        assert "Emergency stop" in alerts[-1].message

    def test_emergency_stop_after_completion_keeps_score(self):
        machine, _ = _make_machine(_make_settings(dwell_time_scale=0.0))
        machine.load(_make_profile((100, 100), (110, 100)))
        machine.start(0.0)
        _run(machine, 0.0, 1.0)
        assert machine.phase == MissionPhase.COMPLETED
        machine.emergency_stop(2.0)
        assert machine.state.errors == 0
        assert machine.summary.errors == 0

    def test_idle_frames_report_idle(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100)))
        machine.start(0.0)
        now = _run(machine, 0.0, 1.0)
        machine.stop()
        assert machine.state.status_message == "Mission stopped."
        _run(machine, now, 1.0)
        assert machine.state.status_message == "Mission idle."


class TestDriving:
    def test_heading_error_never_grows(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (100, 400)))
        machine.start(0.0)
        vehicle = machine.vehicle
        target = machine.state.waypoints[1]
        now = 0.0
        previous = abs(shortest_turn(vehicle.heading, heading_to(vehicle.x, vehicle.y, 100, 400)))
        for _ in range(90):
            now += _FRAME
            machine.step(now, _FRAME, _VIEWPORT)
            error = abs(
                shortest_turn(vehicle.heading, heading_to(vehicle.x, vehicle.y, target.x, target.y))
            )
            assert error <= previous + 1e-9
            previous = error
        assert previous == pytest.approx(0.0, abs=1e-6)

    def test_heading_always_normalized(self):
        settings = _make_settings(random_seed=3)
        machine, _ = _make_machine(settings, obstacles=None)
        machine.load(get_profile("rescue"))
        machine.start(0.0)
        now = 0.0
        for _ in range(3000):
            now += _FRAME
            machine.step(now, _FRAME, _VIEWPORT)
            assert -math.pi < machine.vehicle.heading <= math.pi

    def test_speed_ramps_and_distance_accumulates(self):
        settings = _make_settings()
        machine, _ = _make_machine(settings)
        machine.load(_make_profile((100, 100), (500, 100)))
        machine.start(0.0)
        _run(machine, 0.0, 2.0)
        vehicle = machine.vehicle
        assert settings.min_moving_speed <= vehicle.speed <= settings.max_speed
        assert vehicle.x > 100
        assert machine.state.total_distance == pytest.approx(vehicle.x - 100, rel=1e-6)
        assert machine.state.status_message.startswith("Moving to waypoint 2 (Task 1).")
        assert vehicle.track_history

    def test_track_history_bounded(self):
        machine, _ = _make_machine(_make_settings(track_history_limit=10))
        machine.load(_make_profile((100, 100), (500, 100)))
        machine.start(0.0)
        _run(machine, 0.0, 2.0)
        assert len(machine.vehicle.track_history) == 10

    def test_obstacle_evasion(self):
        obstacle = Obstacle(x=150, y=100, radius=10, category=ObstacleCategory.BOULDER)
        machine, _ = _make_machine(obstacles=[obstacle])
        machine.load(_make_profile((100, 100), (300, 100)))
        machine.start(0.0)
        now = 0.0
        while machine.state.errors == 0 and now < 30:
            x_before = machine.vehicle.x
            now += _FRAME
            machine.step(now, _FRAME, _VIEWPORT)
        assert machine.state.errors == pytest.approx(0.1)
        assert machine.vehicle.x == x_before
        assert abs(machine.vehicle.heading) == pytest.approx(math.pi / 4, abs=0.01)
        assert machine.state.status_message == "Evading obstacle."

    def test_boundary_evasion(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((60, 100), (0, 100)))
        machine.start(0.0)
        machine.vehicle.heading = math.pi
        now = 0.0
        while machine.state.errors == 0 and now < 30:
            now += _FRAME
            machine.step(now, _FRAME, _VIEWPORT)
        assert machine.state.errors == pytest.approx(0.1)
        assert machine.vehicle.x >= 50
        assert machine.state.status_message == "Adjusting course at boundary."


class TestWaypointArrival:
    def test_arrival_starts_dwell(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (110, 100), (300, 100), dwell=2))
        machine.start(0.0)
        machine.step(0.5, _FRAME, _VIEWPORT)
        state = machine.state
        assert machine.phase == MissionPhase.DWELLING
        assert state.completed_tasks == 2
        assert state.waypoints[1].completed is True
        assert state.waypoints[1].task_start_time == 0.5
        assert state.task_end_time == pytest.approx(2.5)
        assert state.status_message == "Performing task: Task 1."
        assert machine.vehicle.task_animation.task_name == "Task 1"
        assert machine.vehicle.speed == 0.0

    def test_dwell_scaled(self):
        machine, _ = _make_machine(_make_settings(dwell_time_scale=0.5))
        machine.load(_make_profile((100, 100), (110, 100), (300, 100), dwell=4))
        machine.start(0.0)
        machine.step(1.0, _FRAME, _VIEWPORT)
        assert machine.state.task_end_time == pytest.approx(3.0)

    def test_dwell_end_moves_on(self):
        settings = _make_settings()
        machine, _ = _make_machine(settings)
        machine.load(_make_profile((100, 100), (110, 100), (300, 100), dwell=2))
        machine.start(0.0)
        machine.step(0.5, _FRAME, _VIEWPORT)
        machine.step(2.0, _FRAME, _VIEWPORT)
        assert machine.phase == MissionPhase.DWELLING
        machine.step(2.5, _FRAME, _VIEWPORT)
        assert machine.phase == MissionPhase.ACTIVE
        assert machine.state.current_waypoint_index == 2
        assert machine.state.task_end_time is None
        assert machine.vehicle.task_animation is None
        assert machine.vehicle.target_speed == settings.cruise_speed


class TestCompletion:
    def test_completes_exactly_once(self):
        machine, alerts = _make_machine()
        machine.load(_make_profile((100, 100), (110, 100)))
        machine.start(0.0)
        _run(machine, 0.0, 0.5)
        assert machine.phase == MissionPhase.COMPLETED
        position = (machine.vehicle.x, machine.vehicle.y)
        end_time = machine.state.end_time

        _run(machine, 0.5, 2.0)
        completions = [alert for alert in alerts if alert.level == AlertLevel.INFO]
        assert len(completions) == 1
        assert completions[0].blocking is False
        assert machine.state.end_time == end_time
        assert (machine.vehicle.x, machine.vehicle.y) == position
        assert machine.vehicle.speed == 0.0

    def test_summary(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (110, 100)))
        machine.start(0.0)
        _run(machine, 0.0, 0.5)
        summary = machine.summary
        assert summary.waypoint_count == 2
        assert summary.completed_tasks == 2
        assert summary.efficiency == 100
        assert summary.errors == 0
        assert machine.state.status_message.startswith("Mission complete.")

    def test_errors_reduce_efficiency(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (110, 100), dwell=1))
        machine.start(0.0)
        machine.step(0.1, 0.1, _VIEWPORT)
        machine.state.errors = 4
        machine.step(2.0, 0.1, _VIEWPORT)
        assert machine.phase == MissionPhase.COMPLETED
        assert machine.state.efficiency == 80

    def test_progress_after_completion(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (110, 100)))
        machine.start(0.0)
        _run(machine, 0.0, 0.5)
        assert machine.progress_percent() == 100.0
        assert machine.current_task() is None
        assert machine.estimate_time_remaining() is None


class TestPowerEvents:
    def test_low_battery_warns_once(self):
        machine, alerts = _make_machine(battery=20.01)
        machine.load(_make_profile((100, 100), (500, 100)))
        machine.start(0.0)
        _run(machine, 0.0, 3.0)
        warnings = [alert for alert in alerts if alert.level == AlertLevel.WARNING]
        assert len(warnings) == 1
        assert warnings[0].blocking is False
        assert machine.phase == MissionPhase.ACTIVE

    def test_battery_depletion_aborts(self):
        settings = _make_settings(minimum_start_battery=0.0)
        machine, alerts = _make_machine(settings, battery=0.0001)
        machine.load(_make_profile((100, 100), (500, 100)))
        machine.start(0.0)
        machine.step(_FRAME, _FRAME, _VIEWPORT)
        assert machine.vehicle.battery == 0.0
        assert machine.phase == MissionPhase.IDLE
        assert machine.state.errors == 1
        assert alerts[-1].reason == "INSUFFICIENT_RESOURCES"
        assert alerts[-1].message == "Battery depleted. Mission aborted."


class TestMissionFault:
    def test_missing_target_stops_mission(self):
        machine, alerts = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100)))
        machine.start(0.0)
        machine.state.current_waypoint_index = -1
        machine.step(_FRAME, _FRAME, _VIEWPORT)
        assert machine.phase == MissionPhase.IDLE
        assert machine.state.errors == 1
        assert alerts[-1].reason == "TARGET_NOT_FOUND"


class TestWaypointEditing:
    def test_clear_waypoints(self):
        machine, _ = _make_machine()
        machine.load(get_profile("rescue"))
        machine.clear_waypoints()
        assert machine.state.waypoints == []
        assert machine.state.current_waypoint_index == 0
        with pytest.raises(NoMissionError):
            machine.start(0.0)

    def test_clear_refused_while_active(self):
        machine, _ = _make_machine()
        machine.load(get_profile("rescue"))
        machine.start(0.0)
        with pytest.raises(MissionActiveError):
            machine.clear_waypoints()

    def test_optimize(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100), (200, 100)))
        machine.optimize()
        assert [waypoint.x for waypoint in machine.state.waypoints] == [100, 200, 300]

    def test_optimize_needs_three_waypoints(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100)))
        with pytest.raises(InsufficientWaypointsError):
            machine.optimize()

    def test_optimize_refused_while_active(self):
        machine, _ = _make_machine()
        machine.load(get_profile("rescue"))
        machine.start(0.0)
        with pytest.raises(MissionActiveError):
            machine.optimize()


class TestProgress:
    def test_progress_percent(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (200, 100), (300, 100), (400, 100)))
        machine.start(0.0)
        assert machine.progress_percent() == 25.0
        assert machine.current_task() == "Task 1"

    def test_eta_requires_motion(self):
        machine, _ = _make_machine()
        machine.load(_make_profile((100, 100), (300, 100)))
        assert machine.estimate_time_remaining() is None
        machine.start(0.0)
        _run(machine, 0.0, 1.0)
        eta = machine.estimate_time_remaining()
        assert eta is not None
        assert eta > 0
