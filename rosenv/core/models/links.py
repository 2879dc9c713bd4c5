"""
Installation and link models.

The filesystem is the state: these are snapshots taken while scanning
or reconciling, never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True, order=True)
class Installation:
    """A versioned installation discovered in the cache directory."""

    version: str
    path: Path


@dataclass(frozen=True)
class LinkEntry:
    """An entry of the canonical directory, as currently found on disk."""

    version: str
    path: Path
    is_symlink: bool = False
    target: Path | None = None

    @property
    def broken(self) -> bool:
        """A symlink whose target is gone."""
        return self.is_symlink and not self.path.exists()

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "path": str(self.path),
            "type": "symlink" if self.is_symlink else "directory",
            "target": str(self.target) if self.target else None,
            "broken": self.broken,
        }


# LinkResult.action values
CREATED = "created"
REPLACED = "replaced"
UP_TO_DATE = "up_to_date"
SKIPPED = "skipped"
REMOVED = "removed"
CANCELLED = "cancelled"
BROKEN = "broken"


@dataclass
class LinkResult:
    """Outcome of one reconcile step for a single version."""

    version: str
    action: str
    target: Path | None = None
    previous: Path | None = None
