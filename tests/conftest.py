"""
Shared test fixtures: a throwaway cache dir, canonical dir and settings.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from rosenv.core.models.settings import Settings


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """Stand-in for ~/.pixi/envs."""
    path = tmp_path / "pixi" / "envs"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def canonical_dir(tmp_path: Path) -> Path:
    """Stand-in for /opt/ros."""
    path = tmp_path / "opt" / "ros"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def settings(cache_dir: Path, canonical_dir: Path) -> Settings:
    return Settings(canonical_dir=canonical_dir, cache_dir=cache_dir)


@pytest.fixture
def make_install(cache_dir: Path) -> Callable[..., Path]:
    """Factory: create ``<cache_dir>/<name>`` with marker files and subdirs."""

    def _make(
        name: str,
        markers: tuple[str, ...] = ("setup.bash",),
        dirs: tuple[str, ...] = (),
    ) -> Path:
        path = cache_dir / name
        path.mkdir(parents=True, exist_ok=True)
        for marker in markers:
            (path / marker).write_text(f"# {marker}\n")
        for d in dirs:
            (path / d).mkdir(parents=True, exist_ok=True)
        return path

    return _make


@pytest.fixture
def cli_env(tmp_path: Path, cache_dir: Path, canonical_dir: Path) -> dict[str, str | None]:
    """Environment for CliRunner: isolated dirs, no active distribution."""
    return {
        "ROSENV_CANONICAL_DIR": str(canonical_dir),
        "ROSENV_CACHE_DIR": str(cache_dir),
        "ROSENV_CONFIG": None,
        "XDG_CONFIG_HOME": str(tmp_path / "xdg"),
        "SHELL": "/bin/bash",
        "ROS_DISTRO": None,
        "ROS_VERSION": None,
        "ROS_PYTHON_VERSION": None,
        "AMENT_PREFIX_PATH": None,
    }


class Answers:
    """Scripted confirmation callback that records every question asked."""

    def __init__(self, *replies: bool) -> None:
        self.replies = list(replies)
        self.questions: list[str] = []

    def __call__(self, question: str) -> bool:
        self.questions.append(question)
        if not self.replies:
            raise AssertionError(f"Unexpected confirmation: {question}")
        return self.replies.pop(0)
