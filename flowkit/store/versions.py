"""
Version identifiers.

Versions are ULIDs: 26 characters, lexicographically sortable by creation
time, unique without coordination.
"""

from __future__ import annotations

import time

import ulid


def new_version_id() -> str:
    return str(ulid.new())


def now_ms() -> int:
    return int(time.time() * 1000)
