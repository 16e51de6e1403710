"""
Behavior step: sanity of timeout, validation and delay attachments.

Runs after the canonical four steps. Values that cannot work at runtime
(non-positive timeouts, unknown actions, negative counts or delays) are
errors; values that work but are likely mistakes (retry without a limit,
very long waits) are warnings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from .issues import Issue, Severity
from .pipeline import SpecStep

if TYPE_CHECKING:
    from ..adapter.base import Capabilities
    from ..component.spec import ComponentSpec, DelayBehavior, TimeoutBehavior, ValidationBehavior

BEHAVIOR_ACTIONS = frozenset({"retry", "escalate", "continue"})

MAX_TIMEOUT_SECONDS = 3600
MAX_DELAY_MS = 30000


class BehaviorStep(SpecStep):
    name = "behavior"

    def check(self, spec: ComponentSpec, caps: Capabilities, path: str) -> List[Issue]:
        behavior = spec.behavior
        if behavior is None:
            return []
        base = f"{path}.view.behavior"
        issues: List[Issue] = []
        if behavior.timeout is not None:
            issues.extend(_timeout(behavior.timeout, f"{base}.timeout"))
        if behavior.validation is not None:
            issues.extend(_validation(behavior.validation, f"{base}.validation"))
        if behavior.delay is not None:
            issues.extend(_delay(behavior.delay, f"{base}.delay"))
        return issues


def _timeout(timeout: TimeoutBehavior, path: str) -> List[Issue]:
    issues = []
    if timeout.duration <= 0:
        issues.append(Issue(
            Severity.ERROR,
            "behavior.timeout.invalid_duration",
            "timeout duration must be positive",
            f"{path}.duration",
        ))
    elif timeout.duration > MAX_TIMEOUT_SECONDS:
        issues.append(Issue(
            Severity.WARN,
            "behavior.timeout.duration_too_long",
            f"timeout duration exceeds {MAX_TIMEOUT_SECONDS} seconds",
            f"{path}.duration",
        ))
    if timeout.action not in BEHAVIOR_ACTIONS:
        issues.append(Issue(
            Severity.ERROR,
            "behavior.timeout.invalid_action",
            f"timeout action must be one of: {', '.join(sorted(BEHAVIOR_ACTIONS))}",
            f"{path}.action",
        ))
    issues.extend(_attempts(timeout.max_attempts, timeout.action, "timeout", path))
    return issues


def _validation(validation: ValidationBehavior, path: str) -> List[Issue]:
    issues = []
    if validation.on_invalid not in BEHAVIOR_ACTIONS:
        issues.append(Issue(
            Severity.ERROR,
            "behavior.validation.invalid_action",
            f"on_invalid action must be one of: {', '.join(sorted(BEHAVIOR_ACTIONS))}",
            f"{path}.on_invalid",
        ))
    issues.extend(_attempts(validation.max_attempts, validation.on_invalid, "validation", path))
    return issues


def _attempts(max_attempts: int, action: str, name: str, path: str) -> List[Issue]:
    if max_attempts < 0:
        return [Issue(
            Severity.ERROR,
            f"behavior.{name}.invalid_max_attempts",
            "max_attempts must be non-negative",
            f"{path}.max_attempts",
        )]
    if max_attempts == 0 and action == "retry":
        return [Issue(
            Severity.WARN,
            f"behavior.{name}.infinite_retry",
            "retry with max_attempts=0 never gives up",
            path,
        )]
    return []


def _delay(delay: DelayBehavior, path: str) -> List[Issue]:
    issues = []
    for field_name in ("before", "after"):
        value = getattr(delay, field_name)
        if value < 0:
            issues.append(Issue(
                Severity.ERROR,
                f"behavior.delay.invalid_{field_name}",
                f"{field_name} delay must be non-negative",
                f"{path}.{field_name}",
            ))
        elif value > MAX_DELAY_MS:
            issues.append(Issue(
                Severity.WARN,
                f"behavior.delay.{field_name}_too_long",
                f"{field_name} delay exceeds {MAX_DELAY_MS // 1000} seconds",
                f"{path}.{field_name}",
            ))
    return issues
