"""
Pixi workspace activation — bridge a project-local pixi env with the global installs.

A pixi workspace may bring its own ROS packages in
``.pixi/envs/default``.  When the matching global install is linked in
the canonical directory, it is appended to the prefix paths so that
globally installed packages stay visible inside the workspace.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from rosenv.core.models.settings import Settings
from rosenv.core.services.scripts import HELPERS, render_template, strip_commands

logger = logging.getLogger(__name__)

CONDA_META = Path(".pixi") / "envs" / "default" / "conda-meta"

# Prefix-path variables that receive the global install
_APPEND_VARS = ("AMENT_PREFIX_PATH", "CMAKE_PREFIX_PATH")

WORKSPACE_BASE = """\
__HELPERS__
__STRIP__
export __VERSION_VAR__=__VERSION_Q__
"""

WORKSPACE_GLOBAL = """\
__APPEND__
_rosenv_append PATH __BIN_DIR__
"""

# Workspace build output, in preference order
_INSTALL_SETUP = ("install/setup.bash", "install/setup.sh")


def detect_workspace_version(workspace: Path, settings: Settings) -> str | None:
    """Identify the ROS version installed in the workspace's default pixi env.

    The ``ros2-distro-mutex`` package names the version explicitly and is
    checked first; ``ros-<version>-*`` packages are the fallback.
    """
    meta = workspace / CONDA_META
    if not meta.is_dir():
        return None

    names = sorted(entry.name for entry in meta.iterdir())

    for version in settings.known_versions:
        for name in names:
            if name.startswith("ros2-distro-mutex") and version in name:
                return version

    for version in settings.known_versions:
        for name in names:
            if name.startswith(f"{settings.prefix}{version}-"):
                return version

    return None


def generate_workspace_script(workspace: Path, settings: Settings) -> str:
    """Build the activation script for the pixi workspace at ``workspace``."""
    lines: list[str] = []
    version = detect_workspace_version(workspace, settings)

    if version is None:
        lines.append("# rosenv: no ROS detected in pixi environment")
    else:
        global_root = settings.canonical_path(version)
        has_global = global_root.exists()
        if has_global:
            lines.append(f"# rosenv: pixi has ROS {version}, appending global {global_root}")
        else:
            lines.append(f"# rosenv: pixi has ROS {version}, no matching global found")

        script = render_template(WORKSPACE_BASE, {
            "HELPERS": HELPERS.rstrip("\n"),
            "STRIP": strip_commands(settings, [*settings.path_vars, *_APPEND_VARS]),
            "VERSION_VAR": settings.version_var,
            "VERSION_Q": shlex.quote(version),
        })
        if has_global:
            root_q = shlex.quote(str(global_root))
            script += render_template(WORKSPACE_GLOBAL, {
                "APPEND": "\n".join(f"_rosenv_append {var} {root_q}" for var in _APPEND_VARS),
                "BIN_DIR": shlex.quote(str(global_root / "bin")),
            })
        script += "unset -f _rosenv_strip _rosenv_append\n"
        lines.append(script.rstrip("\n"))

    for rel in _INSTALL_SETUP:
        if (workspace / rel).is_file():
            logger.debug("Sourcing workspace overlay %s", rel)
            lines.append(f". {shlex.quote(rel)}")
            lines.append("unset LD_LIBRARY_PATH")
            lines.append("unset DYLD_LIBRARY_PATH")
            break

    return "\n".join(lines) + "\n"
