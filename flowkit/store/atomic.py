"""
Atomic versioning store.

The AtomicStore is the transactional core: it applies a JSON Patch to a
bot's draft, recompiles and validates the result, and only when no
error-severity issue exists commits the patched document as a new draft
record. Promotion repoints production to an existing record.

apply_atomic() flow:
    get_draft -> patch -> decode -> select adapter -> compile + validate
    -> (blocking issues? raise ValidationFailedError)
    -> normalize -> commit_draft (CAS on the draft id read in step 1)

Invariants:
    - Everything before commit_draft() is side-effect free; any failure
      leaves the stored state untouched
    - A commit only succeeds if the draft has not changed since it was
      read; otherwise ConcurrencyConflictError is raised and the caller
      retries against the fresh draft
    - Records are immutable; production is a pointer, never a copy

How to change safely:
    - Keep compile/validate before the commit; never commit then validate
    - New store operations go through DesignRepository, not around it
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..adapter.base import Adapter, AdapterRegistry
from ..compile.compiler import Compiler
from ..compile.plan import ExecutionPlan
from ..component.registry import ComponentRegistry
from ..config import Settings
from ..design.codec import DocumentInput, load_document, normalize_document
from ..design.types import DesignDoc
from ..errors import (
    BotExistsError,
    ConcurrencyConflictError,
    DraftNotFoundError,
    ValidationFailedError,
    VersionNotFoundError,
)
from ..template.policy import TemplatePolicy
from ..validate.issues import Issue, blocking_issues
from .base import DesignRepository
from .patcher import JsonPatcher, PatchInput
from .types import VersionedRecord, VersionStatus, VersionSummary
from .versions import new_version_id, now_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of a successful commit.

    Attributes:
        version_id: The new draft version id
        plan: Compiled plan of the committed document
        checksum: Design checksum of the committed document
        issues: Non-blocking issues (warnings and info)
    """

    version_id: str
    plan: ExecutionPlan
    checksum: str
    issues: Tuple[Issue, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version_id": self.version_id,
            "checksum": self.checksum,
            "plan": self.plan.to_dict(),
            "issues": [i.to_dict() for i in self.issues],
        }


class AtomicStore:
    """Applies patches to drafts and governs the version history.

    Example:
        >>> store = AtomicStore(InMemoryDesignRepository(), default_registry(), default_adapters())
        >>> await store.initialize("bot1", design_json)
        >>> result = await store.apply_atomic("bot1", b'[{"op": "replace", ...}]')
        >>> await store.promote("bot1", result.version_id)
    """

    def __init__(
        self,
        repository: DesignRepository,
        registry: ComponentRegistry,
        adapters: AdapterRegistry,
        compiler: Optional[Compiler] = None,
        settings: Optional[Settings] = None,
        patcher: Optional[JsonPatcher] = None,
    ) -> None:
        self.repository = repository
        self.registry = registry
        self.adapters = adapters
        self.settings = settings or Settings()
        self.compiler = compiler or Compiler(
            policy=TemplatePolicy.from_settings(self.settings),
            plan_schema=self.settings.plan_schema,
        )
        self.patcher = patcher or JsonPatcher()

    def select_adapter(self, design: DesignDoc, channel: Optional[str] = None) -> Adapter:
        """Pick the target adapter.

        An explicit channel must be registered. Otherwise the first of the
        design's channels with a registered adapter wins, then the
        configured default channel.

        Raises:
            AdapterNotFoundError: If no suitable adapter is registered
        """
        if channel:
            return self.adapters.get(channel)
        for name in design.bot.channels:
            adapter = self.adapters.find(name)
            if adapter is not None:
                return adapter
        return self.adapters.get(self.settings.default_channel)

    def _compile_record(
        self,
        bot_id: str,
        raw: Dict[str, Any],
        channel: Optional[str],
    ) -> Tuple[VersionedRecord, ExecutionPlan, str, List[Issue]]:
        design = DesignDoc.from_dict(raw)
        adapter = self.select_adapter(design, channel)
        version_id = new_version_id()
        result = self.compiler.compile(raw, self.registry, adapter, version_id=version_id)

        issues = list(result.issues)
        blocking = blocking_issues(issues)
        if blocking:
            logger.info(
                "Rejected design change",
                extra={"bot_id": bot_id, "blocking": len(blocking), "issues": len(issues)},
            )
            raise ValidationFailedError(blocking, issues)

        record = VersionedRecord(
            version_id=version_id,
            status=VersionStatus.DEVELOPMENT,
            checksum=result.checksum,
            data=normalize_document(raw),
            created_at=now_ms(),
        )
        return record, result.plan, result.checksum, issues

    async def initialize(
        self,
        bot_id: str,
        document: DocumentInput,
        channel: Optional[str] = None,
    ) -> ApplyResult:
        """Commit the first draft of a bot.

        Raises:
            BotExistsError: If the bot already has a draft
            DecodeError, CompileError, ValidationFailedError: As apply_atomic
        """
        if await self.repository.get_draft(bot_id) is not None:
            raise BotExistsError(bot_id)

        raw = load_document(document)
        record, plan, checksum, issues = self._compile_record(bot_id, raw, channel)
        await self.repository.commit_draft(bot_id, record, expected_version_id=None)

        logger.info("Initialized bot", extra={"bot_id": bot_id, "version_id": record.version_id})
        return ApplyResult(record.version_id, plan, checksum, tuple(issues))

    async def apply_atomic(
        self,
        bot_id: str,
        patch: PatchInput,
        channel: Optional[str] = None,
        expected_version_id: Optional[str] = None,
    ) -> ApplyResult:
        """Patch the draft, recompile, validate and commit atomically.

        Args:
            bot_id: Bot identifier
            patch: RFC 6902 patch (JSON bytes/text or list of operations)
            channel: Target adapter name (defaults from the design)
            expected_version_id: Draft id the caller based the patch on;
                when given, a different current draft is a conflict

        Returns:
            ApplyResult with the new version id and plan

        Raises:
            DraftNotFoundError: If the bot has no draft
            PatchError: If the patch is malformed or inapplicable
            DecodeError: If the patched document is not a valid design
            CompileError: On unknown kind, bad props or template errors
            ValidationFailedError: If validation found blocking issues
            ConcurrencyConflictError: If the draft changed concurrently
        """
        draft = await self.repository.get_draft(bot_id)
        if draft is None:
            raise DraftNotFoundError(bot_id)
        if expected_version_id is not None and expected_version_id != draft.version_id:
            raise ConcurrencyConflictError(bot_id, expected_version_id, draft.version_id)

        patched = self.patcher.apply(draft.data, patch)
        record, plan, checksum, issues = self._compile_record(bot_id, patched, channel)

        try:
            await self.repository.commit_draft(bot_id, record, expected_version_id=draft.version_id)
        except ConcurrencyConflictError:
            logger.warning(
                "Draft changed during apply",
                extra={"bot_id": bot_id, "expected": draft.version_id},
            )
            raise

        logger.info(
            "Committed draft",
            extra={
                "bot_id": bot_id,
                "version_id": record.version_id,
                "previous_version_id": draft.version_id,
                "issues": len(issues),
            },
        )
        return ApplyResult(record.version_id, plan, checksum, tuple(issues))

    async def promote(self, bot_id: str, version_id: str) -> None:
        """Point production at an existing version.

        Raises:
            PromotionNotFoundError: If the version does not exist
        """
        await self.repository.promote(bot_id, version_id)
        logger.info("Promoted version", extra={"bot_id": bot_id, "version_id": version_id})

    async def get_draft(self, bot_id: str) -> VersionedRecord:
        """Current draft.

        Raises:
            DraftNotFoundError: If the bot has no draft
        """
        draft = await self.repository.get_draft(bot_id)
        if draft is None:
            raise DraftNotFoundError(bot_id)
        return draft

    async def get_production(self, bot_id: str) -> Optional[VersionedRecord]:
        return await self.repository.get_active_production(bot_id)

    async def get_version(self, bot_id: str, version_id: str) -> Optional[VersionedRecord]:
        return await self.repository.get_version(bot_id, version_id)

    async def status_of(self, bot_id: str, version_id: str) -> Optional[VersionStatus]:
        """Effective status of a version (production if pointed at)."""
        record = await self.repository.get_version(bot_id, version_id)
        if record is None:
            return None
        production = await self.repository.get_active_production(bot_id)
        if production is not None and production.version_id == version_id:
            return VersionStatus.PRODUCTION
        return VersionStatus.DEVELOPMENT

    async def list_versions(self, bot_id: str) -> List[VersionSummary]:
        """All versions, oldest first, with their effective status."""
        records = await self.repository.list_versions(bot_id)
        draft = await self.repository.get_draft(bot_id)
        production = await self.repository.get_active_production(bot_id)
        production_id = production.version_id if production else None
        draft_id = draft.version_id if draft else None
        return [
            VersionSummary(
                version_id=r.version_id,
                status=VersionStatus.PRODUCTION if r.version_id == production_id else VersionStatus.DEVELOPMENT,
                checksum=r.checksum,
                created_at=r.created_at,
                is_draft=r.version_id == draft_id,
            )
            for r in records
        ]

    async def compile_version(
        self,
        bot_id: str,
        version_id: Optional[str] = None,
        channel: Optional[str] = None,
    ) -> ExecutionPlan:
        """Recompile a stored version (the draft by default) for a channel.

        Raises:
            DraftNotFoundError: If the bot has no draft
            VersionNotFoundError: If version_id does not exist
            AdapterNotFoundError: If channel is not registered
        """
        if version_id:
            record = await self.repository.get_version(bot_id, version_id)
            if record is None:
                raise VersionNotFoundError(bot_id, version_id)
        else:
            record = await self.get_draft(bot_id)
        raw = record.document()
        adapter = self.select_adapter(DesignDoc.from_dict(raw), channel)
        return self.compiler.compile(raw, self.registry, adapter, version_id=record.version_id).plan
