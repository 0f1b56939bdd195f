# tests/conftest.py

"""Shared pytest fixtures for all relay tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def isolated_logs_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Point LOGS_DIR at a temp directory so tests never write to logs/."""
    logs_dir = tmp_path / "logs"
    with patch("ofertai.config.settings.Settings.LOGS_DIR", logs_dir):
        yield logs_dir
