"""
Adapter step: channel support and channel-only structural rules.

Reports what the adapter transform did or could not express (dropped
buttons, unsupported list/carousel/HSM) and then delegates to
Adapter.check() for rules that only the channel knows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from ..adapter.base import DROPPED_BUTTONS_KEY
from .issues import Issue, Severity
from .pipeline import SpecStep

if TYPE_CHECKING:
    from ..adapter.base import Adapter, Capabilities
    from ..component.spec import ComponentSpec


class AdapterStep(SpecStep):
    name = "adapter"

    def __init__(self, adapter: Adapter) -> None:
        self.adapter = adapter

    def check(self, spec: ComponentSpec, caps: Capabilities, path: str) -> List[Issue]:
        issues: List[Issue] = []
        channel = self.adapter.name

        if spec.hsm is not None and not caps.supports_hsm:
            issues.append(Issue(
                Severity.ERROR,
                "adapter.hsm.unsupported",
                f"{channel} does not support HSM messages",
                f"{path}.view.hsm",
            ))

        dropped = spec.meta.get(DROPPED_BUTTONS_KEY, 0)
        if dropped:
            issues.append(Issue(
                Severity.WARN,
                "adapter.buttons.exceeded",
                f"{dropped} button(s) dropped to fit {channel}",
                f"{path}.view.buttons",
            ))

        if spec.kind == "listpicker" and not caps.supports_list_picker:
            issues.append(Issue(
                Severity.ERROR,
                "adapter.listpicker.unsupported",
                f"{channel} does not support list pickers",
                f"{path}.view",
            ))
        if spec.kind == "carousel" and not caps.supports_carousel:
            issues.append(Issue(
                Severity.ERROR,
                "adapter.carousel.unsupported",
                f"{channel} does not support carousels",
                f"{path}.view",
            ))

        issues.extend(self.adapter.check(spec, path))
        return issues
