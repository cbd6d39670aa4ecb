"""Pytest configuration and shared fixtures."""

from collections.abc import Iterator

import pytest

import tendril

# The tendril testing plugin is registered via a ``pytest11`` entry
# point (pyproject.toml) for external consumers.  In our own test suite
# we disable it (``-p no:tendril``) and load it explicitly here instead,
# so that the tendril import chain is measured by coverage.
pytest_plugins = ["tendril.testing._plugin"]


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (exercise several components)"
    )


@pytest.fixture(autouse=True)
def _release_defaults() -> Iterator[None]:
    """Leave the process-wide registry and clock clean after every test."""
    yield
    tendril.deactivate_clock()
    tendril.release_all()
