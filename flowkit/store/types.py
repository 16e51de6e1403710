"""
Version store data types.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class VersionStatus(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


@dataclass(frozen=True)
class VersionedRecord:
    """An immutable committed version of a bot's design.

    Attributes:
        version_id: Time-ordered unique id (ULID)
        status: Status at commit time (always development; the production
            pointer references records, it never rewrites them)
        checksum: Design checksum ('sha256:<hex>')
        data: Normalized document bytes (canonical JSON)
        created_at: Commit timestamp (Unix ms)
    """

    version_id: str
    status: VersionStatus
    checksum: str
    data: bytes
    created_at: int

    def document(self) -> Dict[str, Any]:
        return json.loads(self.data)

    def to_dict(self, include_document: bool = False) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "version_id": self.version_id,
            "status": self.status.value,
            "checksum": self.checksum,
            "created_at": self.created_at,
        }
        if include_document:
            result["document"] = self.document()
        return result


@dataclass(frozen=True)
class VersionSummary:
    """A committed version as seen from the bot's pointers."""

    version_id: str
    status: VersionStatus
    checksum: str
    created_at: int
    is_draft: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version_id": self.version_id,
            "status": self.status.value,
            "checksum": self.checksum,
            "created_at": self.created_at,
            "is_draft": self.is_draft,
        }
