"""
Versioned design storage for Flowkit.

The AtomicStore owns the canonical copy of every bot's design and only
advances the draft when the patched design compiles cleanly.
"""

from .atomic import ApplyResult, AtomicStore
from .base import DesignRepository
from .memory import InMemoryDesignRepository
from .patcher import JsonPatcher, parse_patch
from .sqlite import SqliteDesignRepository
from .types import VersionedRecord, VersionStatus, VersionSummary
from .versions import new_version_id

__all__ = [
    "ApplyResult",
    "AtomicStore",
    "DesignRepository",
    "InMemoryDesignRepository",
    "JsonPatcher",
    "SqliteDesignRepository",
    "VersionStatus",
    "VersionSummary",
    "VersionedRecord",
    "new_version_id",
    "parse_patch",
]
