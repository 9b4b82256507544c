"""Shared test fixtures for Claude usage analytics."""

import os
import sys
from pathlib import Path

import pytest


@pytest.fixture(scope="session")
def qapp():
    """Create a QCoreApplication for tests that need Qt."""
    os.environ["QT_QPA_PLATFORM"] = "offscreen"
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication(sys.argv or ["test"])
    yield app


@pytest.fixture
def tmp_claude_dir(tmp_path) -> Path:
    """Create a temporary ~/.claude directory with projects/ and todos/."""
    claude_dir = tmp_path / ".claude"
    (claude_dir / "projects").mkdir(parents=True)
    (claude_dir / "todos").mkdir()
    return claude_dir


@pytest.fixture
def projects_root(tmp_claude_dir) -> Path:
    return tmp_claude_dir / "projects"


@pytest.fixture
def todos_dir(tmp_claude_dir) -> Path:
    return tmp_claude_dir / "todos"


@pytest.fixture
def pricing_cache_path(tmp_claude_dir) -> Path:
    return tmp_claude_dir / "pricing_cache.json"
