"""Root logger setup for the simulation process."""

import logging
import sys
from dataclasses import dataclass
from typing import TextIO

from rover.logging.config import LogFormat, LoggingConfig, get_logging_config
from rover.logging.formatters import HumanFormatter, JSONFormatter

# Third-party loggers kept at WARNING regardless of the configured level
_QUIET_LOGGERS: tuple[str, ...] = ("asyncio",)


@dataclass
class LoggingState:
    """Handler installed by the last ``setup_logging`` call."""

    handler: logging.Handler | None = None

    @property
    def configured(self) -> bool:
        return self.handler is not None


_state = LoggingState()


def _build_formatter(config: LoggingConfig, stream: TextIO | None) -> logging.Formatter:
    if config.log_format == LogFormat.JSON:
        return JSONFormatter(
            service_name=config.service_name,
            include_timestamp=config.include_timestamp,
            include_location=config.include_location,
        )

    use_colors = config.use_colors
    if use_colors is None:
        use_colors = stream is None and sys.stderr.isatty()
    return HumanFormatter(use_colors=use_colors)


def setup_logging(
    config: LoggingConfig | None = None,
    stream: TextIO | None = None,
    *,
    force: bool = False,
) -> None:
    """Route all records through a single stream handler on the root logger.

    Existing root handlers are replaced. Calling again is a no-op unless
    ``force`` is set.

    Args:
        config: Logging configuration. Read from the environment if omitted.
        stream: Destination stream. Defaults to sys.stderr.
        force: Reconfigure even if logging is already set up.
    """
    if _state.configured and not force:
        return

    config = config or get_logging_config()
    root_logger = logging.getLogger()
    _remove_handlers(root_logger)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(_build_formatter(config, stream))
    root_logger.addHandler(handler)
    root_logger.setLevel(config.log_level.value)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _state.handler = handler


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name``, usually the calling module's ``__name__``."""
    return logging.getLogger(name)


def reset_logging() -> None:
    """Undo ``setup_logging`` and drop the cached configuration. Used by tests."""
    _remove_handlers(logging.getLogger())
    _state.handler = None
    get_logging_config.cache_clear()


def _remove_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
