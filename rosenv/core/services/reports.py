"""
Reports — read-only views for ``list``, ``status`` and ``info``.

Each function returns a result object with ``to_dict()``; the CLI
renders it as text or JSON.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rosenv.core.errors import VersionNotFoundError
from rosenv.core.models.links import LinkEntry
from rosenv.core.models.settings import Settings
from rosenv.core.services.scanner import (
    current_version,
    list_canonical_entries,
    read_link_entry,
    validate_version,
)
from rosenv.core.services.scripts import select_setup_file

# Environment detail shown by ``status`` (the version variable is added in front)
_STATUS_VARS = ("ROS_VERSION", "ROS_PYTHON_VERSION", "AMENT_PREFIX_PATH")


@dataclass
class ListResult:
    """Canonical entries and which one is active."""

    versions: list[str] = field(default_factory=list)
    current: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"versions": self.versions, "current": self.current}


def get_list(settings: Settings, environ: Mapping[str, str]) -> ListResult:
    return ListResult(
        versions=list_canonical_entries(settings),
        current=current_version(settings, environ),
    )


@dataclass
class StatusResult:
    """The active version (if any) and its environment."""

    active: str | None = None
    environment: dict[str, str] = field(default_factory=dict)
    setup_file: Path | None = None
    available: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "active": self.active,
            "environment": self.environment,
            "setup_file": str(self.setup_file) if self.setup_file else None,
            "available": self.available,
        }


def get_status(settings: Settings, environ: Mapping[str, str], shell: str = "bash") -> StatusResult:
    """Describe the activation signalled by ``environ``."""
    result = StatusResult(available=list_canonical_entries(settings))
    active = current_version(settings, environ)
    if active is None:
        return result

    result.active = active
    for var in (settings.version_var, *_STATUS_VARS):
        if environ.get(var):
            result.environment[var] = environ[var]

    try:
        root = settings.canonical_path(active)
    except VersionNotFoundError:
        return result
    if root.exists():
        result.setup_file = select_setup_file(settings, root, shell)
    return result


@dataclass
class InfoResult:
    """Marker files and key directories of one canonical entry."""

    entry: LinkEntry
    setup_files: dict[str, bool] = field(default_factory=dict)
    # Present key directories → entry count (None when unreadable)
    key_dirs: dict[str, int | None] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.entry.to_dict(),
            "setup_files": self.setup_files,
            "key_dirs": self.key_dirs,
        }


def get_info(settings: Settings, version: str) -> InfoResult:
    """Inspect the canonical entry for ``version``.

    Raises:
        VersionNotFoundError: No resolvable entry for ``version``.
    """
    root = validate_version(settings, version)
    result = InfoResult(entry=read_link_entry(settings, version))

    for name in settings.setup_files:
        result.setup_files[name] = (root / name).is_file()

    for name in settings.key_dirs:
        path = root / name
        if not path.is_dir():
            continue
        try:
            result.key_dirs[name] = sum(1 for _ in path.iterdir())
        except OSError:
            result.key_dirs[name] = None

    return result
