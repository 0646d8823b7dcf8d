"""Rover simulation exception hierarchy.

Architecture:
    RoverError (base)
    ├── CommandError (rejects a command, no state change)
    │   ├── NoMissionError
    │   ├── InsufficientResourcesError
    │   ├── ProfileNotFoundError
    │   ├── MissionActiveError
    │   ├── MissionInactiveError
    │   ├── InsufficientWaypointsError
    │   ├── UnknownChartError
    │   └── InvalidTransitionError
    ├── MissionFaultError (ends the current mission)
    │   └── TargetNotFoundError
    └── NavigationError (absorbed, efficiency penalty only)
        ├── ObstacleBlockedError
        └── BoundaryBlockedError

Usage:
    from rover.exceptions import NoMissionError, create_command_handler

    @create_command_handler
    def start(self) -> str:
        if not self._mission.waypoints:
            raise NoMissionError("No mission waypoints loaded")
        return "Mission started"
"""

from rover.exceptions.base import RoverError
from rover.exceptions.command_errors import (
    CommandError,
    InsufficientResourcesError,
    InsufficientWaypointsError,
    InvalidTransitionError,
    MissionActiveError,
    MissionInactiveError,
    NoMissionError,
    ProfileNotFoundError,
    UnknownChartError,
)
from rover.exceptions.handlers import (
    CommandErrorListener,
    CommandResult,
    create_command_handler,
    create_failure_result,
    create_success_result,
    get_reason_class,
)
from rover.exceptions.mission_errors import (
    BoundaryBlockedError,
    MissionFaultError,
    NavigationError,
    ObstacleBlockedError,
    TargetNotFoundError,
)

__all__ = [
    "BoundaryBlockedError",
    "CommandError",
    "CommandErrorListener",
    "CommandResult",
    "InsufficientResourcesError",
    "InsufficientWaypointsError",
    "InvalidTransitionError",
    "MissionActiveError",
    "MissionFaultError",
    "MissionInactiveError",
    "NavigationError",
    "NoMissionError",
    "ObstacleBlockedError",
    "ProfileNotFoundError",
    "RoverError",
    "TargetNotFoundError",
    "UnknownChartError",
    "create_command_handler",
    "create_failure_result",
    "create_success_result",
    "get_reason_class",
]
