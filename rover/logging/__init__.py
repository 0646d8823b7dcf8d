"""Structured logging for the rover simulation.

Usage:
    from rover.logging import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("Waypoint reached", extra={"waypoint_index": 2})
"""

from rover.logging.config import LogFormat, LoggingConfig, LogLevel
from rover.logging.context import (
    clear_context,
    generate_run_id,
    get_extra_context,
    get_run_id,
    run_id,
    set_extra_context,
    set_run_id,
)
from rover.logging.formatters import HumanFormatter, JSONFormatter
from rover.logging.logger import get_logger, reset_logging, setup_logging

__all__ = [
    "HumanFormatter",
    "JSONFormatter",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "clear_context",
    "generate_run_id",
    "get_extra_context",
    "get_logger",
    "get_run_id",
    "reset_logging",
    "run_id",
    "set_extra_context",
    "set_run_id",
    "setup_logging",
]
