"""Shared fixtures for masstimes tests."""

import logging
from collections.abc import Generator
from datetime import UTC, datetime
from typing import Any

import pytest

from masstimes.models import EventDefinition, Location, ResolutionWindow


def pytest_configure(config: Any) -> None:
    config.addinivalue_line("markers", "unit: fast, isolated tests")
    config.addinivalue_line("markers", "integration: tests crossing module boundaries")


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Clear MASSTIMES_* variables so host settings never leak into tests."""
    for name in (
        "MASSTIMES_TEST_TIME",
        "MASSTIMES_DEBUG",
        "MASSTIMES_LOG_LEVEL",
        "MASSTIMES_WINDOW_DAYS",
        "MASSTIMES_LIMIT",
        "MASSTIMES_LANGUAGES",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def restore_logging() -> Generator[None, Any, None]:
    """Restore logger levels and root handlers changed by a test."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_levels = {
        name: logging.getLogger(name).level
        for name in ["", *logging.root.manager.loggerDict.keys()]
    }
    yield
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
    for name, level in saved_levels.items():
        logging.getLogger(name).setLevel(level)


@pytest.fixture
def march_window() -> ResolutionWindow:
    """2025-03-10 00:00Z .. 2025-03-24 00:00Z."""
    return ResolutionWindow(
        from_=datetime(2025, 3, 10, tzinfo=UTC),
        to=datetime(2025, 3, 24, tzinfo=UTC),
    )


@pytest.fixture
def cathedral() -> Location:
    return Location(name="Cathedral of Our Lady", osm_id="node/123456789")


@pytest.fixture
def sunday_mass(cathedral: Location) -> EventDefinition:
    """Weekly Sunday 11:00 UTC Mass at the cathedral."""
    return EventDefinition(
        name="Sunday Mass",
        category="https://www.wikidata.org/wiki/Q132612",
        languages=["es"],
        location=cathedral,
        recurrence={"days_of_week": ["Sunday"], "start_time": "11:00", "end_time": "12:00"},
    )
