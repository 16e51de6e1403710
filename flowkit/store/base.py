"""
Design repository protocol.

The repository is the only component with side effects. It keeps, per
bot, an append-only list of committed records plus two pointers: the
draft (latest development record) and production.

Invariants:
    - commit_draft() is a compare-and-swap on the draft pointer: it fails
      with ConcurrencyConflictError unless the current draft id equals
      expected_version_id (None means "no draft yet")
    - promote() flips the production pointer atomically and only to an
      existing record; records are never rewritten
    - Readers never observe a half-applied commit or promotion

How to change safely:
    - New backends must pass the shared repository tests in
      tests/integration/test_repositories.py
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from .types import VersionedRecord


@runtime_checkable
class DesignRepository(Protocol):
    """Storage contract consumed by the AtomicStore."""

    async def get_draft(self, bot_id: str) -> Optional[VersionedRecord]:
        """Current draft record, or None if the bot has none."""
        ...

    async def commit_draft(
        self,
        bot_id: str,
        record: VersionedRecord,
        expected_version_id: Optional[str],
    ) -> None:
        """Append record and make it the draft.

        Raises:
            ConcurrencyConflictError: If the draft is not expected_version_id
        """
        ...

    async def get_active_production(self, bot_id: str) -> Optional[VersionedRecord]:
        """Record referenced by the production pointer, or None."""
        ...

    async def promote(self, bot_id: str, version_id: str) -> None:
        """Point production at an existing record.

        Raises:
            PromotionNotFoundError: If version_id is not a record of bot_id
        """
        ...

    async def get_version(self, bot_id: str, version_id: str) -> Optional[VersionedRecord]:
        ...

    async def list_versions(self, bot_id: str) -> List[VersionedRecord]:
        """All records of a bot, oldest first."""
        ...
