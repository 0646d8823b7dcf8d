"""Root of the rover error hierarchy.

Every subclass declares an ``error_code`` and is indexed by it, so a command
result reason can be mapped back to the exception class that produced it.
"""

from typing import Any, ClassVar


class RoverError(Exception):
    """Any failure raised by the simulation.

    Attributes:
        message: Text shown to the operator or written to the log.
        error_code: Stable identifier, reported as the command result reason.
        user_visible: Whether a failed command raises an operator alert.
        context: Values describing the situation that failed.
    """

    error_code: ClassVar[str] = "INTERNAL_ERROR"
    user_visible: ClassVar[bool] = True

    _by_code: ClassVar[dict[str, type["RoverError"]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        RoverError._by_code[cls.error_code] = cls

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context) if context else {}

    @classmethod
    def get_by_error_code(cls, error_code: str) -> type["RoverError"] | None:
        """Return the class registered for ``error_code``, if any."""
        return cls._by_code.get(error_code)

    def to_dict(self) -> dict[str, Any]:
        """Error payload carried by a failed command result."""
        return {"error_code": self.error_code, "message": self.message, "context": self.context}

    def to_log_dict(self) -> dict[str, Any]:
        """Error payload for log records, with the class name and visibility."""
        return {
            **self.to_dict(),
            "exception_type": type(self).__name__,
            "user_visible": self.user_visible,
        }

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
        return f"{self.message} [{details}]"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, error_code={self.error_code!r})"
