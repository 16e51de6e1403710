"""
Error types for Flowkit.

All fatal outcomes of compiling a design or mutating the version store are
raised as subclasses of FlowkitError. Validation findings are NOT errors:
they are returned as Issue values and only become a ValidationFailedError
when a caller decides error-severity issues block a commit.

Invariants:
    - All errors inherit from FlowkitError
    - Every error carries a stable machine-readable code
    - details holds the context a caller needs to render a precise message
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from .validate.issues import Issue


class FlowkitError(Exception):
    """Base exception for all Flowkit errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "FLOWKIT_ERROR"
        self.details = details or {}


class PatchError(FlowkitError):
    """JSON Patch could not be parsed or applied.

    Raised when:
    - Patch bytes are not a JSON array of operations
    - An operation is malformed
    - An operation cannot be applied (missing path, failed test op)
    """

    def __init__(self, message: str, operation: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="PATCH_ERROR", details={"operation": operation})
        self.operation = operation


class DecodeError(FlowkitError):
    """Stored or patched document is not a valid design document."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message, code="DECODE_ERROR", details={"path": path})
        self.path = path


class CompileError(FlowkitError):
    """Compilation of a design aborted.

    Attributes:
        node_id: Node being compiled when the failure happened
        path: Location in the design (e.g. "graph.nodes[2]")
    """

    def __init__(
        self,
        message: str,
        node_id: Optional[str] = None,
        path: Optional[str] = None,
        code: str = "COMPILE_ERROR",
    ) -> None:
        super().__init__(message, code=code, details={"node_id": node_id, "path": path})
        self.node_id = node_id
        self.path = path


class UnknownKindError(CompileError):
    """No factory is registered for a node kind."""

    def __init__(self, kind: str, node_id: Optional[str] = None, path: Optional[str] = None) -> None:
        super().__init__(
            f"unknown component kind: {kind}",
            node_id=node_id,
            path=path,
            code="UNKNOWN_KIND",
        )
        self.kind = kind


class TemplateParseError(CompileError):
    """Embedded text contains malformed template syntax."""

    def __init__(self, message: str, text: str = "", node_id: Optional[str] = None, path: Optional[str] = None) -> None:
        super().__init__(message, node_id=node_id, path=path, code="TEMPLATE_PARSE")
        self.text = text


class PropsError(CompileError):
    """A component configuration is missing a required field or is malformed."""

    def __init__(self, message: str, field_name: str, node_id: Optional[str] = None, path: Optional[str] = None) -> None:
        super().__init__(message, node_id=node_id, path=path, code="PROPS_ERROR")
        self.field_name = field_name
        self.details["field"] = field_name


class AdapterTransformError(CompileError):
    """A component spec cannot structurally fit the target channel."""

    def __init__(self, message: str, adapter: str, node_id: Optional[str] = None, path: Optional[str] = None) -> None:
        super().__init__(message, node_id=node_id, path=path, code="ADAPTER_TRANSFORM")
        self.adapter = adapter
        self.details["adapter"] = adapter


class ValidationFailedError(FlowkitError):
    """Validation produced at least one error-severity issue.

    Attributes:
        issues: The blocking (error-severity) issues
        all_issues: Every issue produced, including warnings and info
    """

    def __init__(self, issues: List["Issue"], all_issues: Optional[List["Issue"]] = None) -> None:
        super().__init__(
            f"validation failed with {len(issues)} blocking issue(s)",
            code="VALIDATION_FAILED",
            details={"issues": [i.to_dict() for i in issues]},
        )
        self.issues = issues
        self.all_issues = all_issues if all_issues is not None else list(issues)


class ConcurrencyConflictError(FlowkitError):
    """The draft changed between read and commit.

    Callers should reload the draft and retry; the concurrent edit is kept.
    """

    def __init__(self, bot_id: str, expected: Optional[str], actual: Optional[str]) -> None:
        super().__init__(
            f"draft of bot '{bot_id}' changed: expected {expected}, found {actual}",
            code="CONCURRENCY_CONFLICT",
            details={"bot_id": bot_id, "expected": expected, "actual": actual},
        )
        self.bot_id = bot_id
        self.expected = expected
        self.actual = actual


class PromotionNotFoundError(FlowkitError):
    """Promotion target version does not exist for the bot."""

    def __init__(self, bot_id: str, version_id: str) -> None:
        super().__init__(
            f"version '{version_id}' not found for bot '{bot_id}'",
            code="PROMOTION_NOT_FOUND",
            details={"bot_id": bot_id, "version_id": version_id},
        )
        self.bot_id = bot_id
        self.version_id = version_id


class VersionNotFoundError(FlowkitError):
    """Requested version does not exist for the bot."""

    def __init__(self, bot_id: str, version_id: str) -> None:
        super().__init__(
            f"version '{version_id}' not found for bot '{bot_id}'",
            code="VERSION_NOT_FOUND",
            details={"bot_id": bot_id, "version_id": version_id},
        )
        self.bot_id = bot_id
        self.version_id = version_id


class DraftNotFoundError(FlowkitError):
    """Bot has no draft (never initialized)."""

    def __init__(self, bot_id: str) -> None:
        super().__init__(
            f"no draft found for bot '{bot_id}'",
            code="DRAFT_NOT_FOUND",
            details={"bot_id": bot_id},
        )
        self.bot_id = bot_id


class BotExistsError(FlowkitError):
    """Bot is already initialized."""

    def __init__(self, bot_id: str) -> None:
        super().__init__(
            f"bot '{bot_id}' already has a draft",
            code="BOT_EXISTS",
            details={"bot_id": bot_id},
        )
        self.bot_id = bot_id


class AdapterNotFoundError(FlowkitError):
    """No adapter registered under the requested channel name."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"no adapter registered for channel '{name}'",
            code="ADAPTER_NOT_FOUND",
            details={"channel": name},
        )
        self.name = name


class RegistryFrozenError(FlowkitError):
    """Raised when attempting to modify a frozen registry."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="REGISTRY_FROZEN")


class DuplicateRegistrationError(FlowkitError):
    """Raised when attempting to register a name twice."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="DUPLICATE_REGISTRATION")
