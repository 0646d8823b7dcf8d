"""Errors raised while advancing a running mission."""

from typing import Any, ClassVar

from rover.exceptions.base import RoverError


class MissionFaultError(RoverError):
    """Base class for faults that end the current mission."""

    error_code: ClassVar[str] = "MISSION_FAULT"
    user_visible: ClassVar[bool] = True


class TargetNotFoundError(MissionFaultError):
    """Current waypoint index does not point at a loaded waypoint."""

    error_code: ClassVar[str] = "TARGET_NOT_FOUND"

    def __init__(
        self,
        message: str,
        *,
        waypoint_index: int | None = None,
        waypoint_count: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the inconsistent index.

        Args:
            message: Description of the fault.
            waypoint_index: Index that was looked up.
            waypoint_count: Number of waypoints loaded.
            context: Additional context information.
        """
        context_dict = context or {}
        if waypoint_index is not None:
            context_dict["waypoint_index"] = waypoint_index
        if waypoint_count is not None:
            context_dict["waypoint_count"] = waypoint_count
        super().__init__(message, context=context_dict)


class NavigationError(RoverError):
    """Base class for recoverable navigation errors.

    These are absorbed by the mission state machine and never reach the
    operator; they only count against the efficiency score.
    """

    error_code: ClassVar[str] = "NAVIGATION_ERROR"
    user_visible: ClassVar[bool] = False


class ObstacleBlockedError(NavigationError):
    """Proposed position collides with an obstacle."""

    error_code: ClassVar[str] = "OBSTACLE_BLOCKED"

    def __init__(
        self,
        message: str,
        *,
        category: str | None = None,
        clearance: float | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the blocking obstacle.

        Args:
            message: Description of the collision.
            category: Category tag of the blocking obstacle.
            clearance: Distance left between the rover buffer and the obstacle edge.
            context: Additional context information.
        """
        context_dict = context or {}
        if category is not None:
            context_dict["category"] = category
        if clearance is not None:
            context_dict["clearance"] = round(clearance, 2)
        super().__init__(message, context=context_dict)


class BoundaryBlockedError(NavigationError):
    """Proposed position leaves the drivable area."""

    error_code: ClassVar[str] = "BOUNDARY_BLOCKED"
