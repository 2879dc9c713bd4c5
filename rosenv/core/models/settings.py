"""
Settings model — where installations live and how they are recognised.

Loaded from ``config.yml`` by the config loader.  Every field has a
default, so an empty (or absent) config file yields a working setup for
pixi-global ROS 2 installs linked under ``/opt/ros``.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from rosenv.core.errors import VersionNotFoundError


def _default_cache_dir() -> Path:
    return Path.home() / ".pixi" / "envs"


# Variables cleared on every activation and deactivation.
DEFAULT_UNSET_VARS = [
    "ROS_DISTRO",
    "ROS_VERSION",
    "ROS_PYTHON_VERSION",
    "ROS_ETC_DIR",
    "AMENT_PREFIX_PATH",
    "AMENT_CURRENT_PREFIX",
    "CMAKE_PREFIX_PATH",
    "COLCON_PREFIX_PATH",
    "PYTHONPATH",
    "PKG_CONFIG_PATH",
]


class Settings(BaseModel):
    """Runtime settings for scanning, linking and script generation."""

    canonical_dir: Path = Path("/opt/ros")
    cache_dir: Path = Field(default_factory=_default_cache_dir)

    # Cache entries look like ``<prefix><version>-<variant>``
    prefix: str = "ros-"
    marker_files: list[str] = Field(default_factory=lambda: ["setup.bash", "setup.zsh"])
    setup_files: list[str] = Field(
        default_factory=lambda: ["setup.bash", "setup.zsh", "setup.sh"]
    )
    key_dirs: list[str] = Field(default_factory=lambda: ["bin", "lib", "share", "include"])

    version_var: str = "ROS_DISTRO"
    unset_vars: list[str] = Field(default_factory=lambda: list(DEFAULT_UNSET_VARS))
    path_vars: list[str] = Field(
        default_factory=lambda: ["PATH", "LD_LIBRARY_PATH", "DYLD_LIBRARY_PATH"]
    )

    known_versions: list[str] = Field(
        default_factory=lambda: ["humble", "iron", "jazzy", "rolling"]
    )

    @field_validator("canonical_dir", "cache_dir", mode="before")
    @classmethod
    def _expand_user(cls, value: object) -> object:
        if isinstance(value, str):
            return Path(value).expanduser()
        return value

    @field_validator("prefix")
    @classmethod
    def _prefix_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("prefix must not be empty")
        return value

    @field_validator("marker_files", "setup_files")
    @classmethod
    def _at_least_one(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one file name is required")
        return value

    def canonical_path(self, version: str) -> Path:
        """Path of the canonical entry for ``version``.

        Only plain entry names are accepted, so the result is always a
        direct child of ``canonical_dir``.

        Raises:
            VersionNotFoundError: ``version`` is empty, a dot entry, or
                contains a path separator.
        """
        if version in ("", ".", "..") or "/" in version or os.sep in version:
            raise VersionNotFoundError(
                f"Invalid distribution name '{version}'",
                hint="List available: rosenv list",
            )
        return self.canonical_dir / version

    @property
    def canonical_prefix(self) -> str:
        """Path prefix stripped from list-valued variables, with trailing slash."""
        return str(self.canonical_dir).rstrip("/") + "/"
