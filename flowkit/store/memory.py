"""
In-memory design repository.

Used by unit and integration tests and by the CLI when no data directory
is wanted. Provides the same compare-and-swap guarantees as the SQLite
backend.

Invariants:
    - All data is lost on process exit
    - Mutations run under one asyncio lock, so a commit or promotion is
      all-or-nothing for concurrent coroutines
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import ConcurrencyConflictError, PromotionNotFoundError
from .types import VersionedRecord

logger = logging.getLogger(__name__)


@dataclass
class _BotState:
    records: Dict[str, VersionedRecord] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)
    draft_id: Optional[str] = None
    production_id: Optional[str] = None


class InMemoryDesignRepository:
    """Dict-backed DesignRepository.

    Example:
        >>> repo = InMemoryDesignRepository()
        >>> await repo.commit_draft("bot1", record, expected_version_id=None)
        >>> (await repo.get_draft("bot1")).version_id == record.version_id
        True
    """

    def __init__(self) -> None:
        self._bots: Dict[str, _BotState] = {}
        self._lock = asyncio.Lock()

    async def get_draft(self, bot_id: str) -> Optional[VersionedRecord]:
        async with self._lock:
            state = self._bots.get(bot_id)
            if state is None or state.draft_id is None:
                return None
            return state.records[state.draft_id]

    async def commit_draft(
        self,
        bot_id: str,
        record: VersionedRecord,
        expected_version_id: Optional[str],
    ) -> None:
        async with self._lock:
            state = self._bots.setdefault(bot_id, _BotState())
            if state.draft_id != expected_version_id:
                raise ConcurrencyConflictError(bot_id, expected_version_id, state.draft_id)
            state.records[record.version_id] = record
            state.order.append(record.version_id)
            state.draft_id = record.version_id
        logger.debug("Committed draft", extra={"bot_id": bot_id, "version_id": record.version_id})

    async def get_active_production(self, bot_id: str) -> Optional[VersionedRecord]:
        async with self._lock:
            state = self._bots.get(bot_id)
            if state is None or state.production_id is None:
                return None
            return state.records[state.production_id]

    async def promote(self, bot_id: str, version_id: str) -> None:
        async with self._lock:
            state = self._bots.get(bot_id)
            if state is None or version_id not in state.records:
                raise PromotionNotFoundError(bot_id, version_id)
            state.production_id = version_id

    async def get_version(self, bot_id: str, version_id: str) -> Optional[VersionedRecord]:
        async with self._lock:
            state = self._bots.get(bot_id)
            if state is None:
                return None
            return state.records.get(version_id)

    async def list_versions(self, bot_id: str) -> List[VersionedRecord]:
        async with self._lock:
            state = self._bots.get(bot_id)
            if state is None:
                return []
            return [state.records[v] for v in state.order]

