"""Pytest fixtures for OpenTimeline tests."""

import logging
from collections.abc import Generator

import pytest

from opentimeline.memory.timeline_database import TimelineDatabase
from opentimeline.services.expression import clear_parse_cache
from opentimeline.settings import Settings


@pytest.fixture(autouse=True, scope="function")
def cleanup_production_log_handlers():
    """Remove file handlers pointing to the production log after each test."""
    yield

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        if isinstance(handler, logging.FileHandler) and "opentimeline.log" in getattr(
            handler, "baseFilename", ""
        ):
            handler.close()
            root_logger.removeHandler(handler)


@pytest.fixture(autouse=True)
def clear_settings_cache_per_test():
    """Clear Settings cache before each test to ensure isolation."""
    Settings.clear_cache()
    yield
    Settings.clear_cache()


@pytest.fixture(autouse=True)
def isolate_settings_file(tmp_path, monkeypatch):
    """Redirect the settings file so tests never touch the real settings.json."""
    import opentimeline.settings._settings as settings_module

    monkeypatch.setattr(settings_module, "SETTINGS_FILE", tmp_path / "settings.json")
    yield tmp_path / "settings.json"


@pytest.fixture(autouse=True)
def clear_expression_cache():
    """Start each test with an empty parse cache."""
    clear_parse_cache()
    yield
    clear_parse_cache()


@pytest.fixture
def db(tmp_path) -> Generator[TimelineDatabase]:
    """Create a test database that auto-closes after each test."""
    database = TimelineDatabase(tmp_path / "test.db")
    yield database
    database.close()


@pytest.fixture
def settings() -> Settings:
    """Default settings."""
    return Settings()
