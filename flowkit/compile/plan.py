"""
Execution plan: the immutable, channel-specific compile output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..component.spec import ComponentSpec

PLAN_SCHEMA = "flowkit/1.0/plan"


@dataclass(frozen=True)
class Route:
    """A compiled node: its id and adapter-transformed spec."""

    node: str
    view: ComponentSpec

    def to_dict(self) -> Dict[str, Any]:
        return {"node": self.node, "view": self.view.to_dict()}


@dataclass(frozen=True)
class ExecutionPlan:
    """Compiled plan for one channel.

    Attributes:
        schema: Plan schema tag
        plan_id: "<version id>-<adapter name>"
        design_checksum: Checksum of the source design
        adapter: Adapter name
        routes: Routes in node document order
        constraints: Channel constraints snapshot (max_text_len, max_buttons)
    """

    schema: str
    plan_id: str
    design_checksum: str
    adapter: str
    routes: Tuple[Route, ...] = ()
    constraints: Optional[Dict[str, Any]] = None

    def route(self, node_id: str) -> Optional[Route]:
        for r in self.routes:
            if r.node == node_id:
                return r
        return None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "schema": self.schema,
            "plan_id": self.plan_id,
            "design_checksum": self.design_checksum,
            "adapter": self.adapter,
            "routes": [r.to_dict() for r in self.routes],
        }
        if self.constraints is not None:
            result["constraints"] = self.constraints
        return result
