"""
Script generator — shell text that switches between installed versions.

Templates are plain shell with ``__PLACEHOLDER__`` markers, so the
``${VAR}`` braces of the shell code never clash with substitution.
Nothing here touches the environment: the output is printed and the
calling shell evaluates it.
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from pathlib import Path

from rosenv.core.errors import SetupFileMissingError
from rosenv.core.models.settings import Settings
from rosenv.core.services.scanner import validate_version

# ── Templates ───────────────────────────────────────────────────

# POSIX helpers, valid in bash and zsh (no reliance on word splitting).
HELPERS = """\
_rosenv_strip() {
    eval "_rosenv_rest=\\"\\${$1:-}\\""
    _rosenv_new=""
    while [ -n "$_rosenv_rest" ]; do
        _rosenv_entry="${_rosenv_rest%%:*}"
        case "$_rosenv_rest" in
            *:*) _rosenv_rest="${_rosenv_rest#*:}" ;;
            *) _rosenv_rest="" ;;
        esac
        case "$_rosenv_entry" in
            "$2"*|"") ;;
            *) _rosenv_new="${_rosenv_new:+$_rosenv_new:}$_rosenv_entry" ;;
        esac
    done
    if [ -n "$_rosenv_new" ]; then
        eval "export $1=\\"\\$_rosenv_new\\""
    else
        unset "$1"
    fi
    unset _rosenv_rest _rosenv_new _rosenv_entry
}
_rosenv_append() {
    eval "_rosenv_cur=\\"\\${$1:-}\\""
    case ":$_rosenv_cur:" in
        *":$2:"*) ;;
        *) eval "export $1=\\"\\${_rosenv_cur:+\\$_rosenv_cur:}\\$2\\"" ;;
    esac
    unset _rosenv_cur
}
"""

RESET = """\
__STRIP__
__UNSET__
"""

ACTIVATE = """\
# rosenv: activating __VERSION__ from __ROOT__
__HELPERS__
__RESET__
export __VERSION_VAR__=__VERSION_Q__
. __SETUP_FILE__
unset -f _rosenv_strip _rosenv_append
"""

DEACTIVATE = """\
# rosenv: deactivating
__HELPERS__
__RESET__
unset -f _rosenv_strip _rosenv_append
"""

INIT = """\
# rosenv shell integration for __SHELL__
# Add to your ~/.__SHELL__rc:
#   eval "$(rosenv init __SHELL__)"
# or append once with:
#   rosenv init __SHELL__ >> ~/.__SHELL__rc

rosenv() {
    case "$1" in
        activate)
            shift
            local _rosenv_script
            _rosenv_script="$(command rosenv activate "$@")" || return $?
            eval "$_rosenv_script"
            ;;
        deactivate)
            eval "$(command rosenv deactivate)"
            ;;
        status)
            command rosenv status
            ;;
        *)
            command rosenv "$@"
            ;;
    esac
}

ros-distro() {
    if [ -z "$1" ]; then
        if [ -n "${ROS_DISTRO:-}" ]; then
            echo "ROS 2 $ROS_DISTRO is active"
        else
            command rosenv list
        fi
        return 0
    fi
    rosenv activate "$1"
}
"""


def render_template(template: str, values: Mapping[str, str]) -> str:
    """Replace each ``__KEY__`` marker in ``template`` with ``values[KEY]``."""
    for key, value in values.items():
        template = template.replace(f"__{key}__", value)
    return template


def strip_commands(settings: Settings, variables: list[str]) -> str:
    """One ``_rosenv_strip`` call per variable, dropping canonical-directory entries."""
    prefix = shlex.quote(settings.canonical_prefix)
    return "\n".join(f"_rosenv_strip {var} {prefix}" for var in variables)


def _reset_block(settings: Settings) -> str:
    """Strip canonical paths from list variables, then unset the SDK variables."""
    strip = strip_commands(settings, settings.path_vars)
    unset = "\n".join(f"unset {var}" for var in settings.unset_vars)
    return render_template(RESET, {"STRIP": strip, "UNSET": unset}).rstrip("\n")


def select_setup_file(settings: Settings, root: Path, shell: str) -> Path | None:
    """Pick the setup script to source: ``setup.<shell>`` first, then the configured order."""
    candidates = [f"setup.{shell}"] if shell else []
    candidates += [name for name in settings.setup_files if name not in candidates]
    for name in candidates:
        path = root / name
        if path.is_file():
            return path
    return None


def generate_activation_script(settings: Settings, version: str, shell: str = "bash") -> str:
    """Build the script that activates ``version`` in the calling shell.

    Raises:
        VersionNotFoundError: No canonical entry for ``version``.
        SetupFileMissingError: The entry has none of the known setup files.
    """
    root = validate_version(settings, version)
    setup_file = select_setup_file(settings, root, shell)
    if setup_file is None:
        raise SetupFileMissingError(
            f"No setup file found in {root} (looked for {', '.join(settings.setup_files)})",
            hint=f"Check the installation: rosenv info {version}",
        )

    return render_template(ACTIVATE, {
        "HELPERS": HELPERS.rstrip("\n"),
        "RESET": _reset_block(settings),
        "VERSION_VAR": settings.version_var,
        "VERSION_Q": shlex.quote(version),
        "SETUP_FILE": shlex.quote(str(setup_file)),
        "VERSION": version,
        "ROOT": str(root),
    })


def generate_deactivation_script(settings: Settings) -> str:
    """Build the script that clears any activated version (idempotent)."""
    return render_template(DEACTIVATE, {
        "HELPERS": HELPERS.rstrip("\n"),
        "RESET": _reset_block(settings),
    })


def generate_shell_integration(shell: str) -> str:
    """Shell functions wrapping ``rosenv activate``/``deactivate`` with eval."""
    return render_template(INIT, {"SHELL": shell})
