"""Shared pytest fixtures."""

import logging

import pytest

from personaengine.config import get_engine_settings
from personaengine.logging_config import NAMESPACE


@pytest.fixture(autouse=True)
def reset_package_logging():
    """Undo configure_logging() so caplog keeps seeing package records."""
    yield
    package_logger = logging.getLogger(NAMESPACE)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached per process; start every test from the environment."""
    get_engine_settings.cache_clear()
    yield
    get_engine_settings.cache_clear()
