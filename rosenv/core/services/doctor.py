"""
Doctor — run every setup check and collect a pass/fail/warn report.

Checks never raise: each failure becomes a ``fail`` or ``warn`` item
with a remediation hint.  The report is rendered by the CLI ``doctor``
command.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rosenv.core.errors import RosenvError
from rosenv.core.models.settings import Settings
from rosenv.core.services.links import check_writable
from rosenv.core.services.scanner import list_canonical_entries, read_link_entry

logger = logging.getLogger(__name__)

PASS = "pass"
FAIL = "fail"
WARN = "warn"

# Markers that show `rosenv init` output was added to an rc file
_INTEGRATION_MARKERS = ("ros-distro()", "rosenv")
_RC_FILES = (".zshrc", ".bashrc")


@dataclass
class CheckResult:
    """Outcome of a single check."""

    name: str
    status: str = PASS  # pass, fail, warn
    message: str = ""
    hint: str = ""
    section: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "message": self.message,
            "hint": self.hint,
            "section": self.section,
        }


@dataclass
class DoctorReport:
    """Aggregate of all checks."""

    checks: list[CheckResult] = field(default_factory=list)

    def add(self, check: CheckResult) -> None:
        self.checks.append(check)

    @property
    def errors(self) -> int:
        return sum(1 for c in self.checks if c.status == FAIL)

    @property
    def warnings(self) -> int:
        return sum(1 for c in self.checks if c.status == WARN)

    @property
    def ok(self) -> bool:
        return self.errors == 0 and self.warnings == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "errors": self.errors,
            "warnings": self.warnings,
            "checks": [c.to_dict() for c in self.checks],
        }


def check_canonical_dir(settings: Settings, report: DoctorReport) -> None:
    """Existence and writability of the canonical directory."""
    root = settings.canonical_dir
    if not root.is_dir():
        report.add(CheckResult(
            name="canonical_dir",
            status=FAIL,
            message=f"{root} directory does not exist",
            hint=f"sudo mkdir -p {root} && sudo chown $USER {root}",
        ))
        return

    report.add(CheckResult(name="canonical_dir", message=f"{root} directory exists"))
    try:
        check_writable(settings)
    except RosenvError:
        report.add(CheckResult(
            name="writable",
            status=FAIL,
            message=f"{root} is not writable",
            hint=f"sudo chown $USER {root}",
        ))
    else:
        report.add(CheckResult(name="writable", message=f"{root} is writable"))


def check_entry(settings: Settings, version: str, report: DoctorReport) -> None:
    """Link validity, target presence, setup files and key dirs for one entry."""
    try:
        entry = read_link_entry(settings, version)
    except RosenvError as e:
        report.add(CheckResult(
            name="symlink", status=FAIL, message=e.message, hint=e.hint, section=version,
        ))
        return

    if not entry.is_symlink:
        report.add(CheckResult(
            name="symlink",
            status=WARN,
            message="Not a symlink (regular directory)",
            section=version,
        ))
        return

    report.add(CheckResult(name="symlink", message="Symlink valid", section=version))

    target = entry.target
    assert target is not None  # always set for symlinks
    if target.exists():
        report.add(CheckResult(
            name="target", message=f"Target exists: {target}", section=version,
        ))
    else:
        report.add(CheckResult(
            name="target",
            status=FAIL,
            message=f"Target does not exist: {target}",
            hint=f"rosenv remove {version} && rosenv setup",
            section=version,
        ))

    if any((target / name).is_file() for name in settings.marker_files):
        report.add(CheckResult(name="setup_files", message="Setup files present", section=version))
    else:
        report.add(CheckResult(
            name="setup_files",
            status=FAIL,
            message="Setup files missing",
            hint=f"Reinstall the {settings.prefix}{version}-* environment",
            section=version,
        ))

    if (target / "bin").is_dir() and (target / "lib").is_dir():
        report.add(CheckResult(
            name="key_dirs", message="Binary and library directories exist", section=version,
        ))
    else:
        report.add(CheckResult(
            name="key_dirs", status=WARN, message="Some directories missing", section=version,
        ))


def check_shell_integration(home: Path, report: DoctorReport) -> None:
    """Look for ``rosenv init`` output in the user's rc files."""
    for rc_name in _RC_FILES:
        rc = home / rc_name
        if not rc.is_file():
            continue
        try:
            content = rc.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.debug("Cannot read %s: %s", rc, e)
            continue

        shell = rc_name.lstrip(".").removesuffix("rc")
        if any(marker in content for marker in _INTEGRATION_MARKERS):
            report.add(CheckResult(
                name="shell_integration",
                message=f"Shell integration detected in ~/{rc_name}",
            ))
        else:
            report.add(CheckResult(
                name="shell_integration",
                status=WARN,
                message=f"Shell integration not found in ~/{rc_name}",
                hint=f"rosenv init {shell} >> ~/{rc_name}",
            ))


def check_entries(settings: Settings, report: DoctorReport) -> None:
    """List the canonical directory and check every entry in it."""
    try:
        versions = list_canonical_entries(settings)
    except RosenvError as e:
        report.add(CheckResult(name="entries", status=FAIL, message=e.message, hint=e.hint))
        return

    if not versions:
        report.add(CheckResult(
            name="entries",
            status=WARN,
            message=f"No distributions found in {settings.canonical_dir}",
            hint="rosenv setup",
        ))
        return

    report.add(CheckResult(
        name="entries",
        message=f"Found {len(versions)} distributions in {settings.canonical_dir}",
    ))
    for version in versions:
        check_entry(settings, version, report)


def run_doctor(settings: Settings, home: Path | None = None) -> DoctorReport:
    """Run all checks and return the aggregate report."""
    report = DoctorReport()

    check_canonical_dir(settings, report)
    check_entries(settings, report)
    check_shell_integration(home or Path.home(), report)

    logger.info("Doctor: %d error(s), %d warning(s)", report.errors, report.warnings)
    return report
