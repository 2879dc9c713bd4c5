"""
Domain models for rosenv.

Re-exported here for convenient access:

    from rosenv.core.models import Settings, Installation, LinkEntry, LinkResult
"""

from rosenv.core.models.links import Installation, LinkEntry, LinkResult
from rosenv.core.models.settings import DEFAULT_UNSET_VARS, Settings

__all__ = [
    "DEFAULT_UNSET_VARS",
    "Installation",
    "LinkEntry",
    "LinkResult",
    "Settings",
]
