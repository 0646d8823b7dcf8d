"""Logging settings read from ``ROVER_*`` environment variables."""

from enum import StrEnum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(StrEnum):
    """Standard logging level names."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(StrEnum):
    """Output format of the root handler."""

    JSON = "json"
    HUMAN = "human"


class LoggingConfig(BaseSettings):
    """How the simulation process writes its logs.

    Attributes:
        log_level: Root logger level.
        log_format: ``human`` for a terminal, ``json`` for recorded runs.
        service_name: Value of the ``service`` field in JSON records.
        include_timestamp: Whether JSON records carry a timestamp.
        include_location: Whether JSON records carry module, function and line.
        use_colors: Force ANSI colors on or off; detected from the terminal if unset.
    """

    model_config = SettingsConfigDict(
        env_prefix="ROVER_",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: LogLevel = Field(default=LogLevel.INFO)
    log_format: LogFormat = Field(default=LogFormat.HUMAN)
    service_name: str = Field(default="rover-mission-sim")
    include_timestamp: bool = Field(default=True)
    include_location: bool = Field(default=False)
    use_colors: bool | None = Field(default=None)


@lru_cache
def get_logging_config() -> LoggingConfig:
    """Return the logging configuration, read once per process."""
    return LoggingConfig()
