"""Exception handling utilities for the operator command surface.

Every command returns a ``CommandResult``; rover errors raised inside a
command are converted into failure results instead of propagating.
"""

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, ParamSpec, Protocol, TypeGuard, runtime_checkable

from pydantic import BaseModel, Field

from rover.exceptions.base import RoverError

logger = logging.getLogger(__name__)

P = ParamSpec("P")


class CommandResult(BaseModel):
    """Outcome of an operator command."""

    success: bool
    command: str
    reason: str | None = Field(default=None)
    message: str = Field(default="")
    context: dict[str, Any] = Field(default_factory=dict)


@runtime_checkable
class CommandErrorListener(Protocol):
    """Object notified when one of its commands fails."""

    def on_command_error(self, command: str, error: RoverError) -> None:
        """Handle a failed command."""
        ...


def create_success_result(command: str, message: str = "") -> CommandResult:
    """Create a successful command result.

    Args:
        command: Name of the command that ran.
        message: Optional human-readable outcome.

    Returns:
        Command result flagged as successful.
    """
    return CommandResult(success=True, command=command, message=message)


def create_failure_result(
    command: str,
    error: RoverError,
    *,
    include_context: bool = True,
) -> CommandResult:
    """Create a failed command result from an exception.

    Args:
        command: Name of the command that failed.
        error: The RoverError that rejected the command.
        include_context: Whether to include the error context.

    Returns:
        Command result carrying the error code as its reason.
    """
    return CommandResult(
        success=False,
        command=command,
        reason=error.error_code,
        message=error.message,
        context=dict(error.context) if include_context else {},
    )


def create_command_handler(
    func: Callable[P, str | None],
) -> Callable[P, CommandResult]:
    """Decorator that turns a command method into one returning CommandResult.

    The wrapped function returns an optional success message or raises a
    RoverError. Failures are logged and, when the first positional argument
    is a CommandErrorListener, reported to it.

    Args:
        func: The command function to wrap.

    Returns:
        Wrapped function that never raises RoverError.
    """

    @wraps(func)
    def handle_command(*args: P.args, **kwargs: P.kwargs) -> CommandResult:
        command = func.__name__
        try:
            message = func(*args, **kwargs)
        except RoverError as error:
            logger.warning(
                "Command %s rejected: %s",
                command,
                error.message,
                extra={"error_code": error.error_code, "error_context": error.context},
            )
            listener = _extract_listener(args)
            if listener is not None:
                listener.on_command_error(command, error)
            return create_failure_result(command, error)
        return create_success_result(command, message or "")

    return handle_command


def _is_listener(value: object) -> TypeGuard[CommandErrorListener]:
    """Type guard to check if value accepts command error notifications."""
    return isinstance(value, CommandErrorListener)


def _extract_listener(args: tuple[object, ...]) -> CommandErrorListener | None:
    """Extract the bound instance if it listens for command errors."""
    if not args:
        return None

    instance = args[0]
    if _is_listener(instance):
        return instance

    return None


def get_reason_class(reason: str) -> type[RoverError] | None:
    """Get the exception class behind a failure reason.

    Args:
        reason: The reason code of a failed CommandResult.

    Returns:
        The exception class, or None if the code is unknown.
    """
    return RoverError.get_by_error_code(reason)
