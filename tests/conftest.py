"""Pytest configuration and fixtures for teststability tests."""

import sys
import tempfile
from pathlib import Path

import pytest

from teststability.core.log import ConsoleSink, setup_logger


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Log to the console only, at debug level, during tests."""
    setup_logger(
        log_root=Path(tempfile.gettempdir()) / "teststability-tests",
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture
def isolated_argv(monkeypatch, tmp_path):
    """Run with a bare command line from an empty working directory.

    Keeps pytest's own arguments and any teststability.yaml in the
    real working directory out of configuration loading.
    """
    monkeypatch.setattr(sys, "argv", ["teststability"])
    monkeypatch.chdir(tmp_path)
    return tmp_path
