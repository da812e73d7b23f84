"""Shared fixtures for cmdflow tests."""

from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def commands_dir(tmp_path: Path) -> Path:
    """Create an empty commands directory."""
    directory = tmp_path / "commands"
    directory.mkdir()
    return directory


@pytest.fixture
def write_command(commands_dir: Path) -> Callable[..., Path]:
    """Write a command file into the commands directory."""

    def _write(filename: str, content: str) -> Path:
        path = commands_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
