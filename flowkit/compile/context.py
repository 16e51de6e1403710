"""
Runtime context supplied to components at compile time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from ..design.types import DesignDoc


@dataclass(frozen=True)
class RuntimeContext:
    """Variables visible to templates.

    Attributes:
        context: Session-scoped variables
        profile: User profile variables
    """

    context: Dict[str, Any] = field(default_factory=dict)
    profile: Dict[str, Any] = field(default_factory=dict)

    def template_scope(self) -> Dict[str, Any]:
        return {"context": self.context, "profile": self.profile}

    @classmethod
    def from_design(cls, design: DesignDoc) -> RuntimeContext:
        """Context seeded with the declared defaults of profile.context."""
        defaults = {
            name: var.default
            for name, var in design.profile.context.items()
            if var.default is not None
        }
        return cls(context=defaults)
