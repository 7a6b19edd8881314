"""Pytest configuration and fixtures for unibuild tests."""

import os
import time
from collections.abc import Callable
from pathlib import Path

import pytest

from unibuild.commands import CommandError
from unibuild.config import Settings


@pytest.fixture
def now() -> float:
    """Reference timestamp for setting file modification times."""
    return time.time()


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., Path]:
    """Create a file in tmp_path with given contents and modification time."""

    def _make_file(name: str, mtime: float | None = None, contents: str = "") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents, encoding="utf-8")
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _make_file


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment defaults that matter in tests."""
    return Settings(parallel=False, max_workers=4, fail_on_stderr=True)


class RecordingExecutor:
    """Command executor that records commands instead of running them."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.commands: list[str] = []
        self.fail_on = fail_on or set()

    def __call__(self, command: str) -> str:
        self.commands.append(command)
        if command in self.fail_on:
            raise CommandError(f'Command "{command}" failed', command=command, exit_code=1)
        return ""


@pytest.fixture
def recorder() -> RecordingExecutor:
    """A fresh recording command executor."""
    return RecordingExecutor()
