"""
Channel-neutral component specification.

A ComponentSpec is what one node compiles to before channel adaptation:
parsed text, buttons, free-form metadata, and the optional behavior and
persistence attachments.

Invariants:
    - All types here are frozen; adapters derive new values with
      dataclasses.replace() instead of mutating
    - to_dict() omits unset attachments so plan output stays compact
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..template.detect import TemplateMeta


@dataclass(frozen=True)
class TextValue:
    """Text as written by the operator plus its template metadata."""

    raw: str
    template: bool = False
    meta: TemplateMeta = field(default_factory=TemplateMeta)

    def to_dict(self) -> dict[str, Any]:
        return {"raw": self.raw, "template": self.template, "meta": self.meta.to_dict()}


@dataclass(frozen=True)
class Button:
    """An interactive button.

    Attributes:
        label: Button title (may be templated)
        payload: Value sent back when pressed
        kind: reply | url | call
        url: Target for url buttons
    """

    label: TextValue
    payload: str = ""
    kind: str = "reply"
    url: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"label": self.label.to_dict(), "payload": self.payload, "kind": self.kind}
        if self.url:
            result["url"] = self.url
        return result


def _opt(result: dict[str, Any], key: str, value: Any) -> None:
    if value is None or value == "" or value == 0 or value is False:
        return
    result[key] = value.to_dict() if hasattr(value, "to_dict") else value


@dataclass(frozen=True)
class Escalation:
    action: str = ""  # transfer_human | end_conversation
    message: Optional[TextValue] = None
    trigger_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"action": self.action}
        _opt(result, "message", self.message)
        _opt(result, "trigger_at", self.trigger_at)
        return result


@dataclass(frozen=True)
class TimeoutBehavior:
    duration: int = 0  # seconds
    action: str = "retry"  # retry | escalate | continue
    max_attempts: int = 0
    message: Optional[TextValue] = None
    escalation: Optional[Escalation] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"duration": self.duration, "action": self.action}
        _opt(result, "max_attempts", self.max_attempts)
        _opt(result, "message", self.message)
        _opt(result, "escalation", self.escalation)
        return result


@dataclass(frozen=True)
class ValidationBehavior:
    on_invalid: str = "retry"  # retry | escalate | continue
    max_attempts: int = 0
    fallback_text: Optional[TextValue] = None
    escalation: Optional[Escalation] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"on_invalid": self.on_invalid}
        _opt(result, "max_attempts", self.max_attempts)
        _opt(result, "fallback_text", self.fallback_text)
        _opt(result, "escalation", self.escalation)
        return result


@dataclass(frozen=True)
class DelayBehavior:
    before: int = 0  # milliseconds
    after: int = 0
    show_typing: bool = False
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        _opt(result, "before", self.before)
        _opt(result, "after", self.after)
        _opt(result, "show_typing", self.show_typing)
        _opt(result, "reason", self.reason)
        return result


@dataclass(frozen=True)
class ExperimentVariant:
    id: str
    weight: int = 0
    target_node: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "weight": self.weight, "target_node": self.target_node}


@dataclass(frozen=True)
class ExperimentBehavior:
    enabled: bool = False
    sticky_key: str = ""
    variants: tuple[ExperimentVariant, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "sticky_key": self.sticky_key,
            "variants": [v.to_dict() for v in self.variants],
        }


@dataclass(frozen=True)
class Behavior:
    """Cross-cutting runtime behavior attached to a component."""

    timeout: Optional[TimeoutBehavior] = None
    validation: Optional[ValidationBehavior] = None
    delay: Optional[DelayBehavior] = None
    experiment: Optional[ExperimentBehavior] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        _opt(result, "timeout", self.timeout)
        _opt(result, "validation", self.validation)
        _opt(result, "delay", self.delay)
        _opt(result, "experiment", self.experiment)
        return result


@dataclass(frozen=True)
class PersistenceRule:
    """Where the user's answer to a component is stored.

    Attributes:
        enabled: Whether the answer is persisted
        scope: context (session) | state (user) | global (bot-wide)
        key: Storage key
        required: Whether an empty answer is rejected
        default_value: Value used when the answer is empty
        sanitization: Sanitizer configuration applied before storing
    """

    enabled: bool = False
    scope: str = "context"
    key: str = ""
    required: bool = False
    default_value: str = ""
    sanitization: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"enabled": self.enabled, "scope": self.scope, "key": self.key}
        _opt(result, "required", self.required)
        _opt(result, "default_value", self.default_value)
        _opt(result, "sanitization", self.sanitization)
        return result


@dataclass(frozen=True)
class ComponentSpec:
    """Channel-neutral output of compiling one node.

    Attributes:
        kind: Component kind tag
        text: Main text
        media_url: Attached media
        buttons: Interactive buttons, in display order
        hsm: Pre-approved template message reference ({"name": ...})
        behavior: Optional behavior attachment
        persistence: Optional persistence attachment
        meta: Free-form kind-specific metadata (list sections, cards, ...)
    """

    kind: str
    text: Optional[TextValue] = None
    media_url: str = ""
    buttons: tuple[Button, ...] = ()
    hsm: Optional[dict[str, Any]] = None
    behavior: Optional[Behavior] = None
    persistence: Optional[PersistenceRule] = None
    meta: dict[str, Any] = field(default_factory=dict)

    def texts(self) -> list[tuple[str, TextValue]]:
        """All texts in the spec with their view-relative path."""
        found: list[tuple[str, TextValue]] = []
        if self.text is not None:
            found.append(("text", self.text))
        for i, b in enumerate(self.buttons):
            found.append((f"buttons[{i}].label", b.label))
        return found

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation for serialization."""
        result: dict[str, Any] = {"kind": self.kind}
        if self.text is not None:
            result["text"] = self.text.to_dict()
        if self.media_url:
            result["media_url"] = self.media_url
        if self.buttons:
            result["buttons"] = [b.to_dict() for b in self.buttons]
        if self.hsm is not None:
            result["hsm"] = self.hsm
        if self.behavior is not None:
            result["behavior"] = self.behavior.to_dict()
        if self.persistence is not None:
            result["persistence"] = self.persistence.to_dict()
        if self.meta:
            result["meta"] = self.meta
        return result
