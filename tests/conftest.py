"""Pytest configuration and fixtures."""

import pytest

from clicktrace.api.traces import set_reader
from clicktrace.db.engine import reset_engine
from clicktrace.settings import get_settings


@pytest.fixture(autouse=True)
def reset_state():
    """Reset cached settings, engine and API reader around each test."""
    get_settings.cache_clear()
    reset_engine()
    set_reader(None)
    yield
    get_settings.cache_clear()
    reset_engine()
    set_reader(None)
