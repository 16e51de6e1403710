"""
Template policy step.

Lints every templated text of every route (body text and button labels)
against the TemplatePolicy. Context variables are checked against the
keys declared in profile.context plus keys persisted with scope
"context" anywhere in the design.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, FrozenSet, List, Optional

from ..template.policy import TemplatePolicy, lint_template
from .issues import Issue, Severity
from .pipeline import SpecStep, ValidationContext

if TYPE_CHECKING:
    from ..adapter.base import Capabilities
    from ..component.spec import ComponentSpec


def declared_context_keys(context: ValidationContext) -> FrozenSet[str]:
    keys = set(context.design.profile.context)
    for route in context.routes:
        rule = route.view.persistence
        if rule is not None and rule.enabled and rule.scope == "context" and rule.key:
            keys.add(rule.key)
    return frozenset(keys)


class TemplateStep(SpecStep):
    name = "template"

    def __init__(self, policy: Optional[TemplatePolicy] = None) -> None:
        self.policy = policy or TemplatePolicy.default()

    def check(
        self,
        spec: ComponentSpec,
        caps: Capabilities,
        path: str,
        declared: Optional[FrozenSet[str]] = None,
    ) -> List[Issue]:
        issues: List[Issue] = []
        for rel, text in spec.texts():
            for f in lint_template(text.meta, self.policy, declared):
                issues.append(Issue(Severity(f.severity), f.code, f.message, f"{path}.view.{rel}"))
        return issues

    def run(self, context: ValidationContext, caps: Capabilities) -> List[Issue]:
        declared = declared_context_keys(context)
        issues: List[Issue] = []
        for i, route in enumerate(context.routes):
            issues.extend(self.check(route.view, caps, f"routes[{i}]", declared))
        return issues
