"""
Error kinds raised by the core services.

Every error carries a human-readable message and an optional remediation
hint.  The CLI catches ``RosenvError`` at the command boundary, prints
both, and exits with status 1.  Nothing is retried.
"""

from __future__ import annotations


class RosenvError(Exception):
    """Base class for all reportable rosenv failures."""

    def __init__(self, message: str, hint: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class CanonicalDirError(RosenvError):
    """The canonical directory is missing or cannot be read."""


class NotWritableError(RosenvError):
    """The canonical directory failed the writability probe."""


class VersionNotFoundError(RosenvError):
    """No canonical entry exists for the requested version."""


class SetupFileMissingError(RosenvError):
    """A canonical entry exposes none of the known setup files."""


class SymlinkReadError(RosenvError):
    """A canonical symlink could not be read."""
