"""Shared test fixtures."""

import logging
import os

import pytest

from rover.config import get_rover_settings
from rover.logging import clear_context, reset_logging


@pytest.fixture(autouse=True)
def _clear_environment(monkeypatch):
    """Clear environment variables that affect settings."""
    for var in [name for name in os.environ if name.upper().startswith("ROVER_")]:
        monkeypatch.delenv(var, raising=False)
    get_rover_settings.cache_clear()
    yield
    get_rover_settings.cache_clear()


@pytest.fixture(autouse=True)
def _reset_logging_state():
    """Leave no handlers or run ids behind between tests."""
    yield
    reset_logging()
    clear_context()
    logging.getLogger().setLevel(logging.WARNING)
