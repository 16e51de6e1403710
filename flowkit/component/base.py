"""
Component abstraction: protocol, validated props builder and attachments.

A Component turns its typed configuration into a ComponentSpec. Factories
build components from the loosely-typed props mapping of a design node,
through PropsReader so that a missing required field fails with a
PropsError naming that field instead of silently defaulting.

Cross-cutting behavior and persistence rules are attached by composition:
Attached wraps a base component and stamps the attachments on the spec it
produces.

Invariants:
    - spec() is deterministic for a given configuration and context
    - Template text is parsed in spec(), so malformed syntax surfaces as
      TemplateParseError at compile time
    - Attached never changes kind() or the base spec apart from the
      behavior/persistence fields
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol

from ..errors import PropsError
from ..template.detect import TemplateDetector
from .spec import (
    Behavior,
    ComponentSpec,
    DelayBehavior,
    Escalation,
    ExperimentBehavior,
    ExperimentVariant,
    PersistenceRule,
    TextValue,
    TimeoutBehavior,
    ValidationBehavior,
)

if TYPE_CHECKING:
    from ..compile.context import RuntimeContext

PERSISTENCE_SCOPES = ("context", "state", "global")


class Component(Protocol):
    """A conversational step variant."""

    def kind(self) -> str:
        ...

    def spec(self, context: RuntimeContext) -> ComponentSpec:
        ...


def parse_text(detector: TemplateDetector, raw: str, context: Optional[RuntimeContext] = None) -> TextValue:
    """Parse raw text into a TextValue using the detector."""
    scope = context.template_scope() if context is not None else None
    meta = detector.parse(raw, scope)
    return TextValue(raw=raw, template=meta.is_template, meta=meta)


class PropsReader:
    """Validated access to a node's props mapping.

    Example:
        >>> r = PropsReader({"text": "Hi"}, kind="message")
        >>> r.require_str("text")
        'Hi'
        >>> r.optional_int("max_attempts", 3)
        3
    """

    def __init__(self, props: Optional[Dict[str, Any]], kind: str, prefix: str = "props") -> None:
        self._props = props or {}
        self.kind = kind
        self.prefix = prefix

    def _fail(self, name: str, problem: str) -> PropsError:
        return PropsError(
            f"{self.kind}: field '{name}' {problem}",
            field_name=name,
            path=f"{self.prefix}.{name}",
        )

    def has(self, name: str) -> bool:
        return self._props.get(name) is not None

    def get(self, name: str, default: Any = None) -> Any:
        return self._props.get(name, default)

    def require_str(self, name: str) -> str:
        value = self._props.get(name)
        if value is None or value == "":
            raise self._fail(name, "is required")
        if not isinstance(value, str):
            raise self._fail(name, f"must be a string, got {type(value).__name__}")
        return value

    def optional_str(self, name: str, default: str = "") -> str:
        value = self._props.get(name)
        if value is None:
            return default
        if not isinstance(value, str):
            raise self._fail(name, f"must be a string, got {type(value).__name__}")
        return value

    def optional_int(self, name: str, default: int = 0) -> int:
        value = self._props.get(name)
        if value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self._fail(name, f"must be a number, got {type(value).__name__}")
        if isinstance(value, float) and not value.is_integer():
            raise self._fail(name, "must be a whole number")
        return int(value)

    def optional_float(self, name: str, default: float = 0.0) -> float:
        value = self._props.get(name)
        if value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self._fail(name, f"must be a number, got {type(value).__name__}")
        return float(value)

    def optional_bool(self, name: str, default: bool = False) -> bool:
        value = self._props.get(name)
        if value is None:
            return default
        if not isinstance(value, bool):
            raise self._fail(name, f"must be a boolean, got {type(value).__name__}")
        return value

    def optional_list(self, name: str) -> List[Any]:
        value = self._props.get(name)
        if value is None:
            return []
        if not isinstance(value, list):
            raise self._fail(name, f"must be a list, got {type(value).__name__}")
        return value

    def optional_dict(self, name: str) -> Optional[Dict[str, Any]]:
        value = self._props.get(name)
        if value is None:
            return None
        if not isinstance(value, dict):
            raise self._fail(name, f"must be an object, got {type(value).__name__}")
        return value

    def child(self, props: Any, name: str) -> PropsReader:
        """Reader over a nested object (e.g. one list item)."""
        if not isinstance(props, dict):
            raise self._fail(name, f"must be an object, got {type(props).__name__}")
        return PropsReader(props, self.kind, prefix=f"{self.prefix}.{name}")


@dataclass(frozen=True)
class Attached:
    """A base component plus behavior and persistence attachments."""

    base: Component
    behavior: Optional[Behavior] = None
    persistence: Optional[PersistenceRule] = None

    def kind(self) -> str:
        return self.base.kind()

    def spec(self, context: RuntimeContext) -> ComponentSpec:
        spec = self.base.spec(context)
        return dataclasses.replace(spec, behavior=self.behavior, persistence=self.persistence)


def _escalation(reader: PropsReader, detector: TemplateDetector) -> Optional[Escalation]:
    raw = reader.optional_dict("escalation")
    if raw is None:
        return None
    r = reader.child(raw, "escalation")
    message = r.optional_str("message")
    return Escalation(
        action=r.optional_str("action"),
        message=parse_text(detector, message) if message else None,
        trigger_at=r.optional_int("trigger_at"),
    )


def parse_behavior(props: Optional[Dict[str, Any]], kind: str, detector: TemplateDetector) -> Optional[Behavior]:
    """Extract the behavior attachment from node props.

    Recognized keys: timeout, validation, delay, experiment, and the legacy
    fallback {timeout, text, max_attempts}. Returns None when none is set.
    """
    reader = PropsReader(props, kind)
    timeout = validation = delay = experiment = None

    raw = reader.optional_dict("timeout")
    if raw is not None:
        r = reader.child(raw, "timeout")
        message = r.optional_str("message")
        timeout = TimeoutBehavior(
            duration=r.optional_int("duration"),
            action=r.optional_str("action", "retry"),
            max_attempts=r.optional_int("max_attempts"),
            message=parse_text(detector, message) if message else None,
            escalation=_escalation(r, detector),
        )

    raw = reader.optional_dict("validation")
    if raw is not None:
        r = reader.child(raw, "validation")
        fallback = r.optional_str("fallback_text")
        validation = ValidationBehavior(
            on_invalid=r.optional_str("on_invalid", "retry"),
            max_attempts=r.optional_int("max_attempts"),
            fallback_text=parse_text(detector, fallback) if fallback else None,
            escalation=_escalation(r, detector),
        )

    raw = reader.optional_dict("delay")
    if raw is not None:
        r = reader.child(raw, "delay")
        delay = DelayBehavior(
            before=r.optional_int("before"),
            after=r.optional_int("after"),
            show_typing=r.optional_bool("show_typing"),
            reason=r.optional_str("reason"),
        )

    raw = reader.optional_dict("experiment")
    if raw is not None:
        r = reader.child(raw, "experiment")
        variants = []
        for i, item in enumerate(r.optional_list("variants")):
            v = r.child(item, f"variants[{i}]")
            variants.append(ExperimentVariant(
                id=v.require_str("id"),
                weight=v.optional_int("weight"),
                target_node=v.optional_str("target_node"),
            ))
        experiment = ExperimentBehavior(
            enabled=r.optional_bool("enabled"),
            sticky_key=r.optional_str("sticky_key"),
            variants=tuple(variants),
        )

    # Legacy format: fallback {timeout, text, max_attempts}
    raw = reader.optional_dict("fallback")
    if raw is not None:
        r = reader.child(raw, "fallback")
        if r.has("timeout"):
            timeout = TimeoutBehavior(
                duration=r.optional_int("timeout"),
                max_attempts=r.optional_int("max_attempts"),
            )
        text = r.optional_str("text")
        if text:
            validation = ValidationBehavior(
                max_attempts=r.optional_int("max_attempts"),
                fallback_text=parse_text(detector, text),
            )

    if timeout is None and validation is None and delay is None and experiment is None:
        return None
    return Behavior(timeout=timeout, validation=validation, delay=delay, experiment=experiment)


def parse_persistence(props: Optional[Dict[str, Any]], kind: str) -> Optional[PersistenceRule]:
    """Extract the persistence attachment from node props, or None."""
    reader = PropsReader(props, kind)
    raw = reader.optional_dict("persistence")
    if raw is None:
        return None
    r = reader.child(raw, "persistence")
    rule = PersistenceRule(
        enabled=r.optional_bool("enabled"),
        scope=r.optional_str("scope", "context"),
        key=r.optional_str("key"),
        required=r.optional_bool("required"),
        default_value=r.optional_str("default_value"),
        sanitization=r.optional_dict("sanitization"),
    )
    if rule.scope not in PERSISTENCE_SCOPES:
        raise PropsError(
            f"{kind}: persistence scope must be one of {', '.join(PERSISTENCE_SCOPES)}",
            field_name="scope",
            path="props.persistence.scope",
        )
    if rule.enabled and not rule.key:
        raise PropsError(
            f"{kind}: persistence key is required when enabled",
            field_name="key",
            path="props.persistence.key",
        )
    return rule
