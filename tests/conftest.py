"""Shared fixtures for zonedate tests."""

from collections.abc import Callable, Generator
from typing import Any

import pytest

import zonedate.service
from zonedate.factory import InstantFactory
from zonedate.timezone_utils import TEST_TIME_ENV

ZONEDATE_ENV_VARS = (
    TEST_TIME_ENV,
    "ZONEDATE_CONFIG",
    "ZONEDATE_DEBUG",
    "ZONEDATE_LOG_LEVEL",
    "ZONEDATE_DEFAULT_LOCALE",
    "ZONEDATE_DEFAULT_TIMEZONE",
    "ZONEDATE_SYSTEM_TIMEZONE",
    "ZONEDATE_USE_SERVICE_TIMEZONE_BY_DEFAULT",
    "ZONEDATE_PRELOAD_TIMEZONES",
)


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")


@pytest.fixture(autouse=True)
def clean_test_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Any
) -> Generator[None, Any, None]:
    """Isolate tests from the host configuration.

    Clears ZONEDATE_* variables and runs each test in an empty directory with
    an empty home, so no .env or YAML file on the machine leaks in.
    """
    for name in ZONEDATE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    yield


@pytest.fixture(autouse=True)
def reset_global_factory() -> Generator[None, Any, None]:
    """Reset the process-wide factory so tests never share settings."""
    zonedate.service.reset_factory()
    yield
    zonedate.service.reset_factory()


@pytest.fixture
def freeze_time(monkeypatch: pytest.MonkeyPatch) -> Callable[[str], None]:
    """Freeze the zonedate clock at an ISO 8601 time.

    Example:
        freeze_time("2024-03-01T10:00:00Z")
    """

    def _freeze(iso_time: str) -> None:
        monkeypatch.setenv(TEST_TIME_ENV, iso_time)

    return _freeze


@pytest.fixture
def factory() -> InstantFactory:
    """A fresh factory with default settings (en, GMT, system mode)."""
    return InstantFactory()
