"""
Symlink reconciler — keep the canonical directory in line with the cache.

One symlink per version: ``<canonical_dir>/<version> → <cache install>``.
Every destructive session probes writability once before touching any
entry.  Overwrites and removals ask ``confirm`` unless forced.  There is
no rollback: links created before a failure stay in place, and a re-run
picks up where the previous one stopped.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from rosenv.core.errors import (
    CanonicalDirError,
    NotWritableError,
    SymlinkReadError,
    VersionNotFoundError,
)
from rosenv.core.models.links import (
    BROKEN,
    CANCELLED,
    CREATED,
    REMOVED,
    REPLACED,
    SKIPPED,
    UP_TO_DATE,
    Installation,
    LinkResult,
)
from rosenv.core.models.settings import Settings
from rosenv.core.services.scanner import (
    find_installation,
    list_canonical_entries,
    scan_installations,
)

logger = logging.getLogger(__name__)

# Asked a yes/no question; returns True to proceed.
Confirm = Callable[[str], bool]

PROBE_FILE = ".rosenv-test"


def check_writable(settings: Settings) -> None:
    """Verify the canonical directory exists and accepts new entries.

    Raises:
        CanonicalDirError: The directory does not exist.
        NotWritableError: Creating and deleting a probe file failed.
    """
    root = settings.canonical_dir
    if not root.is_dir():
        raise CanonicalDirError(
            f"{root} does not exist",
            hint=(
                f"Run these commands first:\n"
                f"  sudo mkdir -p {root}\n"
                f"  sudo chown $USER {root}\n"
                f"Then: rosenv setup"
            ),
        )

    probe = root / PROBE_FILE
    try:
        probe.touch()
        probe.unlink()
    except OSError as e:
        raise NotWritableError(
            f"{root} is not writable ({e.strerror or e})",
            hint=f"Fix:\n  sudo chown $USER {root}\nThen: rosenv setup",
        ) from e
    logger.debug("%s is writable", root)


def _read_target(link_path: Path, version: str) -> Path:
    try:
        return Path(os.readlink(link_path))
    except OSError as e:
        raise SymlinkReadError(
            f"Could not read symlink {link_path}: {e.strerror or e}",
            hint=f"rosenv remove {version} && rosenv setup",
        ) from e


def _remove_entry(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def create_link(
    settings: Settings,
    version: str,
    target: Path,
    confirm: Confirm,
    force: bool = False,
) -> LinkResult:
    """Ensure ``<canonical_dir>/<version>`` points at ``target``.

    A link that already points at ``target`` is left alone without asking.
    Anything else at that path (another target, a broken link, a real
    directory) is replaced only after ``confirm`` agrees, or when forced.
    """
    link_path = settings.canonical_path(version)

    if not (link_path.is_symlink() or link_path.exists()):
        link_path.symlink_to(target, target_is_directory=True)
        logger.info("Linked %s → %s", link_path, target)
        return LinkResult(version=version, action=CREATED, target=target)

    previous: Path | None = None
    if link_path.is_symlink():
        previous = _read_target(link_path, version)
        if previous == target:
            return LinkResult(version=version, action=UP_TO_DATE, target=target)
        current = f"{link_path} → {previous}"
    elif link_path.is_dir():
        current = f"{link_path} (directory)"
    else:
        current = f"{link_path} (file)"

    if not force and not confirm(
        f"  ⚠ {link_path} already exists\n    Current: {current}\n    Overwrite?"
    ):
        logger.info("Kept existing %s", link_path)
        return LinkResult(version=version, action=SKIPPED, target=target, previous=previous)

    _remove_entry(link_path)
    link_path.symlink_to(target, target_is_directory=True)
    logger.info("Relinked %s → %s (was %s)", link_path, target, previous)
    return LinkResult(version=version, action=REPLACED, target=target, previous=previous)


def setup_links(
    settings: Settings,
    confirm: Confirm,
    force: bool = False,
    installations: list[Installation] | None = None,
) -> Iterator[LinkResult]:
    """Link every discovered installation, yielding one result per version.

    Writability is checked once, before the first link is touched.
    """
    if installations is None:
        installations = scan_installations(settings)
    if not installations:
        return

    check_writable(settings)
    for inst in installations:
        yield create_link(settings, inst.version, inst.path, confirm, force=force)


def remove_link(
    settings: Settings,
    version: str,
    confirm: Confirm,
    force: bool = False,
) -> tuple[LinkResult, Installation | None]:
    """Drop the canonical entry for ``version``.

    The cache installation is never touched; it is returned (when it
    still exists) so the caller can point the user at it.
    """
    link_path = settings.canonical_path(version)
    if not (link_path.is_symlink() or link_path.exists()):
        raise VersionNotFoundError(
            f"Distribution '{version}' not found in {settings.canonical_dir}",
            hint="List available: rosenv list",
        )

    check_writable(settings)

    previous = _read_target(link_path, version) if link_path.is_symlink() else None
    if not force and not confirm(f"Remove {link_path}?"):
        return LinkResult(version=version, action=CANCELLED, previous=previous), None

    _remove_entry(link_path)
    logger.info("Removed %s", link_path)

    # Removal is done; a failed rescan only drops the reinstall note
    try:
        install = find_installation(settings, version)
    except OSError as e:
        logger.debug("Cannot rescan %s: %s", settings.cache_dir, e)
        install = None

    return LinkResult(version=version, action=REMOVED, previous=previous), install


def cleanup_links(
    settings: Settings,
    confirm: Confirm,
    force: bool = False,
) -> list[LinkResult]:
    """Remove all canonical symlinks after a single confirmation.

    Real directories are reported as skipped and left in place.
    """
    versions = list_canonical_entries(settings)
    if not versions:
        return []

    check_writable(settings)

    if not force and not confirm("Remove all symlinks?"):
        return [LinkResult(version=v, action=CANCELLED) for v in versions]

    results: list[LinkResult] = []
    for version in versions:
        link_path = settings.canonical_path(version)
        if link_path.is_symlink():
            previous = _read_target(link_path, version)
            link_path.unlink()
            logger.info("Removed %s", link_path)
            results.append(LinkResult(version=version, action=REMOVED, previous=previous))
        else:
            results.append(LinkResult(version=version, action=SKIPPED))
    return results


@dataclass
class RefreshPlan:
    """What a refresh found: freshness of existing links and new installs."""

    existing: list[LinkResult] = field(default_factory=list)
    new: list[Installation] = field(default_factory=list)

    @property
    def broken(self) -> list[LinkResult]:
        return [r for r in self.existing if r.action == BROKEN]


def plan_refresh(settings: Settings) -> RefreshPlan:
    """Diff the cache against the canonical directory without writing."""
    plan = RefreshPlan()
    existing = list_canonical_entries(settings)

    for version in existing:
        link_path = settings.canonical_path(version)
        if not link_path.is_symlink():
            continue
        target = _read_target(link_path, version)
        action = UP_TO_DATE if link_path.exists() else BROKEN
        plan.existing.append(LinkResult(version=version, action=action, target=target))

    plan.new = [
        inst for inst in scan_installations(settings) if inst.version not in existing
    ]
    return plan


def apply_refresh(
    settings: Settings,
    plan: RefreshPlan,
    confirm: Confirm,
) -> Iterator[LinkResult]:
    """Create links for the new installations of ``plan`` only."""
    yield from setup_links(settings, confirm, installations=plan.new)
