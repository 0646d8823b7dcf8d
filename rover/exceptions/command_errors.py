"""Command errors: preconditions that reject an operator command."""

from typing import Any, ClassVar

from rover.exceptions.base import RoverError


class CommandError(RoverError):
    """Base class for errors that reject a command without changing state."""

    error_code: ClassVar[str] = "COMMAND_REJECTED"
    user_visible: ClassVar[bool] = True


class NoMissionError(CommandError):
    """No waypoints are loaded."""

    error_code: ClassVar[str] = "NO_MISSION"


class InsufficientResourcesError(CommandError):
    """Battery is too low to start or continue the mission."""

    error_code: ClassVar[str] = "INSUFFICIENT_RESOURCES"

    def __init__(
        self,
        message: str,
        *,
        battery_percent: float | None = None,
        required_percent: float | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with optional battery readings.

        Args:
            message: Description of the resource shortfall.
            battery_percent: Battery level at the time of the failure.
            required_percent: Battery level the operation required.
            context: Additional context information.
        """
        context_dict = context or {}
        if battery_percent is not None:
            context_dict["battery_percent"] = round(battery_percent, 2)
        if required_percent is not None:
            context_dict["required_percent"] = required_percent
        super().__init__(message, context=context_dict)


class ProfileNotFoundError(CommandError):
    """Requested mission profile is not in the catalog."""

    error_code: ClassVar[str] = "PROFILE_NOT_FOUND"

    def __init__(
        self,
        message: str,
        *,
        profile_key: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the missing profile key.

        Args:
            message: Description of what was not found.
            profile_key: Key that was looked up.
            context: Additional context information.
        """
        context_dict = context or {}
        if profile_key is not None:
            context_dict["profile_key"] = profile_key
        super().__init__(message, context=context_dict)


class MissionActiveError(CommandError):
    """Command is not allowed while a mission is running."""

    error_code: ClassVar[str] = "MISSION_ACTIVE"


class MissionInactiveError(CommandError):
    """Command requires a running mission."""

    error_code: ClassVar[str] = "MISSION_INACTIVE"
    user_visible: ClassVar[bool] = False


class InsufficientWaypointsError(CommandError):
    """Too few waypoints for the requested operation."""

    error_code: ClassVar[str] = "INSUFFICIENT_WAYPOINTS"
    user_visible: ClassVar[bool] = False


class UnknownChartError(CommandError):
    """Requested telemetry chart type does not exist."""

    error_code: ClassVar[str] = "UNKNOWN_CHART"


class InvalidTransitionError(CommandError):
    """Mission phase transition is not allowed."""

    error_code: ClassVar[str] = "INVALID_TRANSITION"

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        target: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the rejected transition.

        Args:
            message: Description of the rejected transition.
            source: Phase the mission was in.
            target: Phase that was requested.
            context: Additional context information.
        """
        context_dict = context or {}
        if source is not None:
            context_dict["source"] = source
        if target is not None:
            context_dict["target"] = target
        super().__init__(message, context=context_dict)
