"""
Logging for the rosenv CLI.

``activate``, ``deactivate``, ``init`` and ``pixi activate`` print shell
code that the caller runs through ``eval``, so stdout must carry nothing
else.  Every log record goes to stderr, and by default only warnings
and errors are shown, prefixed with ``rosenv:`` so they stand apart from
the shell's own messages.

The console level comes from the first of:
    --debug / --verbose / --quiet  >  ROSENV_LOG_LEVEL  >  WARNING

ROSENV_LOG_FILE adds a file handler with full detail, at
ROSENV_LOG_FILE_LEVEL (or the console level when unset).
"""

from __future__ import annotations

import logging
import sys

# Console format per tier: (format, datefmt), picked by the lowest level shown
_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s", "%H:%M:%S"),
    logging.INFO: ("rosenv [%(name)s] %(message)s", None),
    logging.WARNING: ("rosenv: %(message)s", None),
}

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the stderr handler (and optional file handler) on the root logger.

    Replaces any handlers already present, so calling it again (as
    repeated CLI invocations in one process do) does not duplicate output.
    """
    console_level = _parse_level(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_console_handler(console_level))

    lowest = console_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(handler)
        lowest = min(lowest, file_level)

    root.setLevel(lowest)

    # Handler errors are dropped, never printed over the script output
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    tier = max(t for t in _CONSOLE_FORMATS if t <= max(level, logging.DEBUG))
    fmt, datefmt = _CONSOLE_FORMATS[tier]

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def resolve_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env_level: str | None = None,
) -> str:
    """Pick the console level name from CLI flags, falling back to the env value."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return env_level or "WARNING"


def _parse_level(name: str | None) -> int:
    """Level name → numeric level; unknown or empty names mean WARNING."""
    numeric = logging.getLevelName(name.upper()) if name else None
    return numeric if isinstance(numeric, int) else logging.WARNING
