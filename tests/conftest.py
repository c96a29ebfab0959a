"""Shared fixtures for the timelinegen test suite."""

import os
import tempfile

import pytest

# Keep the package's file log out of the user's home directory.
os.environ.setdefault("TIMELINEGEN_LOG_DIR", tempfile.mkdtemp(prefix="timelinegen-logs-"))

from timelinegen.history import HistoryManager
from timelinegen.models import starter_document


@pytest.fixture
def document():
    """A fresh starter document: a discovery range 1-2 and a bar 2-5 over 20 weeks."""
    return starter_document()


@pytest.fixture
def history(document):
    return HistoryManager(document)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point config lookup at a file that does not exist."""
    monkeypatch.setenv("TIMELINEGEN_CONFIG", str(tmp_path / "no-config.yml"))
