"""Log formatters for terminal and machine-readable output.

Both formatters append the mission run id, the bound context fields and
anything passed through ``extra=`` on the log call.
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any, ClassVar

from rover.logging.context import get_extra_context, get_run_id

# Attributes every LogRecord carries; anything else arrived through ``extra=``
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}

_NAME_WIDTH = 30


def _context_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Collect run id, bound context and per-call extras for a record."""
    fields: dict[str, Any] = {}

    current_run = get_run_id()
    if current_run:
        fields["run_id"] = current_run

    fields.update(get_extra_context())
    fields.update(
        (key, value)
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    )
    return fields


def _shorten(name: str) -> str:
    """Keep the tail of a dotted logger name that is too wide for a column."""
    if len(name) <= _NAME_WIDTH:
        return name
    return "..." + name[-(_NAME_WIDTH - 3) :]


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shipping and replay analysis."""

    def __init__(
        self,
        *,
        service_name: str = "rover-mission-sim",
        include_timestamp: bool = True,
        include_location: bool = True,
    ) -> None:
        """Initialize the JSON formatter.

        Args:
            service_name: Value of the ``service`` field.
            include_timestamp: Whether to emit the record creation time.
            include_location: Whether to emit module, function and line.
        """
        super().__init__()
        self._service_name = service_name
        self._include_timestamp = include_timestamp
        self._include_location = include_location

    def format(self, record: logging.LogRecord) -> str:
        """Serialize the record."""
        entry: dict[str, Any] = {}
        if self._include_timestamp:
            created = datetime.fromtimestamp(record.created, tz=UTC)
            entry["timestamp"] = created.isoformat(timespec="milliseconds")

        entry["level"] = record.levelname
        entry["logger"] = record.name
        entry["message"] = record.getMessage()
        entry["service"] = self._service_name

        if self._include_location:
            entry["module"] = record.module
            entry["function"] = record.funcName
            entry["line"] = record.lineno

        entry.update(_context_fields(record))

        if record.exc_info:
            error_type, error, _ = record.exc_info
            entry["exception"] = {
                "type": error_type.__name__ if error_type else "Unknown",
                "message": str(error) if error else "",
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Pipe-separated single-line records for a terminal."""

    LEVEL_COLORS: ClassVar[dict[int, str]] = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET: ClassVar[str] = "\033[0m"

    def __init__(self, *, use_colors: bool = True) -> None:
        """Initialize the terminal formatter.

        Args:
            use_colors: Whether to color the level column with ANSI codes.
        """
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")
        self._use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Render the record as one line, plus a traceback if present."""
        level = f"{record.levelname:<8}"
        if self._use_colors:
            level = f"{self.LEVEL_COLORS.get(record.levelno, '')}{level}{self.RESET}"

        line = " | ".join(
            [
                self.formatTime(record, self.datefmt),
                level,
                f"{_shorten(record.name):<{_NAME_WIDTH}}",
                record.getMessage(),
            ]
        )

        fields = _context_fields(record)
        if fields:
            line += " | " + " ".join(f"{key}={value}" for key, value in fields.items())

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line
