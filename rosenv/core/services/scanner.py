"""
Installation scanner — discover versioned installs and canonical entries.

Read-only probes.  The cache directory is walked one level deep; a
child qualifies when its name is ``<prefix><version>[-<variant>...]``
and it contains at least one marker file.  Anything else is skipped
silently.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from rosenv.core.errors import CanonicalDirError, SymlinkReadError, VersionNotFoundError
from rosenv.core.models.links import Installation, LinkEntry
from rosenv.core.models.settings import Settings

logger = logging.getLogger(__name__)


def parse_install_name(name: str, prefix: str) -> tuple[str, str] | None:
    """Split a cache entry name into ``(version, variant)``.

    ``ros-humble-desktop`` with prefix ``ros-`` gives ``("humble", "desktop")``.
    Returns None when the name does not carry the prefix or a version token.
    """
    if not name.startswith(prefix):
        return None
    version, _, variant = name[len(prefix):].partition("-")
    if version in ("", ".", ".."):
        return None
    return version, variant


def has_marker(path: Path, marker_files: list[str]) -> bool:
    """True if any marker file exists directly under ``path``."""
    return any((path / marker).is_file() for marker in marker_files)


def scan_installations(settings: Settings) -> list[Installation]:
    """Enumerate installations in the cache directory.

    Results are deduplicated by version (the first entry in name order
    wins) and sorted by version.  A missing cache directory means
    nothing is installed; any other read failure propagates.
    """
    cache_dir = settings.cache_dir
    if not cache_dir.is_dir():
        logger.info("Cache directory %s does not exist", cache_dir)
        return []

    found: dict[str, Installation] = {}
    for entry in sorted(cache_dir.iterdir(), key=lambda p: p.name):
        if not entry.is_dir():
            continue

        parsed = parse_install_name(entry.name, settings.prefix)
        if parsed is None:
            continue
        version, _variant = parsed

        if not has_marker(entry, settings.marker_files):
            logger.debug("Skipping %s: no marker file", entry)
            continue

        if version in found:
            logger.debug("Skipping %s: %s already provided by %s",
                         entry, version, found[version].path)
            continue

        found[version] = Installation(version=version, path=entry)

    return sorted(found.values())


def find_installation(settings: Settings, version: str) -> Installation | None:
    """Return the cache installation for ``version``, if still present."""
    for inst in scan_installations(settings):
        if inst.version == version:
            return inst
    return None


def list_canonical_entries(settings: Settings) -> list[str]:
    """Names of the version entries in the canonical directory, sorted.

    Symlinks are listed even when broken.  Hidden files (such as the
    writability probe) are ignored.
    """
    root = settings.canonical_dir
    if not root.is_dir():
        return []

    try:
        children = list(root.iterdir())
    except OSError as e:
        raise CanonicalDirError(
            f"Cannot read {root}: {e.strerror or e}",
            hint=f"Check permissions: ls -ld {root}",
        ) from e

    names = [
        child.name
        for child in children
        if not child.name.startswith(".") and (child.is_symlink() or child.is_dir())
    ]
    return sorted(names)


def read_link_entry(settings: Settings, version: str) -> LinkEntry:
    """Snapshot the canonical entry for ``version``.

    Raises:
        VersionNotFoundError: No entry (not even a broken link) exists.
        SymlinkReadError: The entry is a symlink that cannot be read.
    """
    path = settings.canonical_path(version)
    if path.is_symlink():
        try:
            target = Path(os.readlink(path))
        except OSError as e:
            raise SymlinkReadError(
                f"Could not read symlink {path}: {e.strerror or e}",
                hint=f"rosenv remove {version} && rosenv setup",
            ) from e
        if not target.is_absolute():
            target = path.parent / target
        return LinkEntry(version=version, path=path, is_symlink=True, target=target)

    if path.is_dir():
        return LinkEntry(version=version, path=path)

    raise _not_found(settings, version)


def validate_version(settings: Settings, version: str) -> Path:
    """Return the canonical path for ``version`` if it resolves on disk."""
    path = settings.canonical_path(version)
    if not path.exists():
        raise _not_found(settings, version)
    return path


def current_version(settings: Settings, environ: Mapping[str, str]) -> str | None:
    """The active version as signalled by the environment, if any."""
    return environ.get(settings.version_var) or None


def _not_found(settings: Settings, version: str) -> VersionNotFoundError:
    return VersionNotFoundError(
        f"Distribution '{version}' not found in {settings.canonical_dir}",
        hint="List available: rosenv list   Link installs: rosenv setup",
    )
