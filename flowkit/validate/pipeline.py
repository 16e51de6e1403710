"""
Validation pipeline.

A Pipeline runs an ordered list of steps over a compiled route set and
concatenates their issues. Canonical order:

    1. TemplateStep  - template policy (filters, tags, depth, namespaces)
    2. TopologyStep  - whole-graph structure (entries, edges, reachability)
    3. SizeStep      - text/button/list lengths against Capabilities
    4. AdapterStep   - channel-only structural rules
    5. BehaviorStep  - timeout, validation and delay attachments

Every step receives a ValidationContext carrying the design and all
routes. Steps that look at one spec at a time subclass SpecStep and
implement check(spec, caps, path); graph-wide steps override run().

Invariants:
    - run() never raises for a malformed spec; a step that fails
      unexpectedly is reported as an error issue
    - Issues are ordered step-major, routes in document order within a step
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence

from ..template.policy import TemplatePolicy
from .issues import Issue, Severity

if TYPE_CHECKING:
    from ..adapter.base import Adapter, Capabilities
    from ..compile.plan import Route
    from ..component.spec import ComponentSpec
    from ..design.types import DesignDoc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationContext:
    """Everything a step may inspect.

    Attributes:
        design: The decoded design being compiled
        routes: Compiled routes in node document order
    """

    design: DesignDoc
    routes: Sequence[Route] = ()


class Step:
    """One validation check."""

    name: str = "step"

    def run(self, context: ValidationContext, caps: Capabilities) -> List[Issue]:
        raise NotImplementedError


class SpecStep(Step):
    """A step that checks each route's spec independently."""

    def check(self, spec: ComponentSpec, caps: Capabilities, path: str) -> List[Issue]:
        raise NotImplementedError

    def run(self, context: ValidationContext, caps: Capabilities) -> List[Issue]:
        issues: List[Issue] = []
        for i, route in enumerate(context.routes):
            issues.extend(self.check(route.view, caps, f"routes[{i}]"))
        return issues


class Pipeline:
    """Ordered validation steps.

    Example:
        >>> pipeline = Pipeline.for_adapter(WhatsAppAdapter())
        >>> issues = pipeline.run(ValidationContext(design, routes), adapter.capabilities())
    """

    def __init__(self, steps: Sequence[Step]) -> None:
        self.steps = list(steps)

    def run(self, context: ValidationContext, caps: Capabilities) -> List[Issue]:
        issues: List[Issue] = []
        for step in self.steps:
            try:
                issues.extend(step.run(context, caps))
            except Exception as e:
                logger.exception(f"Validation step '{step.name}' failed")
                issues.append(Issue(
                    Severity.ERROR,
                    "validate.step.failed",
                    f"validation step '{step.name}' failed: {e}",
                    "",
                ))
        return issues

    @classmethod
    def for_adapter(cls, adapter: Adapter, policy: Optional[TemplatePolicy] = None) -> Pipeline:
        """The canonical pipeline for a channel."""
        from .adapter_step import AdapterStep
        from .behavior import BehaviorStep
        from .size import SizeStep
        from .template_step import TemplateStep
        from .topology import TopologyStep

        return cls([
            TemplateStep(policy or TemplatePolicy.default()),
            TopologyStep(),
            SizeStep(),
            AdapterStep(adapter),
            BehaviorStep(),
        ])
