from __future__ import annotations

from pathlib import Path

import pytest

from pluginpack.logging import reset_logging
from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable plugin project rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _restore_logging():
    """Let caplog see pluginpack records even after a CLI test configured handlers."""
    yield
    reset_logging()
