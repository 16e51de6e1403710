"""
Compiler: design -> components -> adapter -> validation -> execution plan.

Algorithm:
    1. Decode the input (bytes, text, mapping or DesignDoc)
    2. For each node in document order:
       a. resolve its props (props_ref takes priority over inline props)
       b. build the component through the registry (kind dispatch)
       c. produce the channel-neutral spec
       d. localize it with the adapter's transform
    3. Run the validation pipeline once over all routes
    4. Assemble the ExecutionPlan

Invariants:
    - Compilation is pure: no I/O, no mutation of the inputs
    - Fatal errors (unknown kind, bad props, template parse failure,
      impossible adapter transform) abort with no partial plan
    - Validation findings never abort; they are returned as issues
    - The checksum covers the canonical form of the input document, so key
      order never changes it
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from ..adapter.base import Adapter
from ..component.registry import ComponentRegistry
from ..design.codec import DocumentInput, design_checksum, load_document
from ..design.types import DesignDoc
from ..errors import CompileError
from ..template.policy import TemplatePolicy
from ..validate.issues import Issue
from ..validate.pipeline import Pipeline, ValidationContext
from .context import RuntimeContext
from .plan import PLAN_SCHEMA, ExecutionPlan, Route

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompileResult:
    """Outcome of a successful compile.

    Attributes:
        plan: The execution plan
        checksum: Design checksum ('sha256:<hex>')
        issues: Validation findings (any severity)
    """

    plan: ExecutionPlan
    checksum: str
    issues: Tuple[Issue, ...] = field(default_factory=tuple)

    @property
    def has_errors(self) -> bool:
        return any(i.blocking for i in self.issues)


def _locate(error: CompileError, node_id: str, node_path: str) -> CompileError:
    """Attach the node being compiled to an error raised below the compiler."""
    if error.node_id is None:
        error.node_id = node_id
        error.details["node_id"] = node_id
    if error.path is None or not error.path.startswith("graph."):
        error.path = f"{node_path}.{error.path}" if error.path else node_path
        error.details["path"] = error.path
    return error


class Compiler:
    """Compiles design documents into execution plans.

    Example:
        >>> compiler = Compiler()
        >>> result = compiler.compile(design, default_registry(), WhatsAppAdapter())
        >>> result.plan.adapter
        'whatsapp'
    """

    def __init__(
        self,
        policy: Optional[TemplatePolicy] = None,
        plan_schema: str = PLAN_SCHEMA,
    ) -> None:
        self.policy = policy or TemplatePolicy.default()
        self.plan_schema = plan_schema

    def compile(
        self,
        design: Union[DesignDoc, DocumentInput],
        registry: ComponentRegistry,
        adapter: Adapter,
        context: Optional[RuntimeContext] = None,
        version_id: Optional[str] = None,
    ) -> CompileResult:
        """Compile a design for one channel.

        Args:
            design: DesignDoc, or raw document bytes/text/mapping
            registry: Component registry (kind -> factory)
            adapter: Target channel adapter
            context: Runtime context (defaults to declared profile defaults)
            version_id: Version used in plan_id (defaults to the document's)

        Returns:
            CompileResult with the plan, checksum and issues

        Raises:
            DecodeError: If a raw document is not a valid design
            CompileError: On unknown kind, bad props, template parse
                failure or impossible adapter transform
        """
        if isinstance(design, DesignDoc):
            doc = design
            checksum = design_checksum(design)
        else:
            raw = load_document(design)
            checksum = design_checksum(raw)
            doc = DesignDoc.from_dict(raw)

        runtime = context or RuntimeContext.from_design(doc)
        routes = tuple(self._build_routes(doc, registry, adapter, runtime))

        caps = adapter.capabilities()
        pipeline = Pipeline.for_adapter(adapter, self.policy)
        issues = tuple(pipeline.run(ValidationContext(design=doc, routes=routes), caps))

        plan = ExecutionPlan(
            schema=self.plan_schema,
            plan_id=f"{version_id or doc.version.id}-{adapter.name}",
            design_checksum=checksum,
            adapter=adapter.name,
            routes=routes,
            constraints=caps.constraints(),
        )
        logger.info(
            "Compiled design",
            extra={
                "bot_id": doc.bot.id,
                "adapter": adapter.name,
                "routes": len(routes),
                "issues": len(issues),
                "errors": sum(1 for i in issues if i.blocking),
            },
        )
        return CompileResult(plan=plan, checksum=checksum, issues=issues)

    def _build_routes(
        self,
        doc: DesignDoc,
        registry: ComponentRegistry,
        adapter: Adapter,
        runtime: RuntimeContext,
    ) -> List[Route]:
        routes: List[Route] = []
        for i, node in enumerate(doc.graph.nodes):
            node_path = f"graph.nodes[{i}]"
            props = doc.resolve_props(node)
            if props is None:
                raise CompileError(
                    f"node '{node.id}' references unknown shared props '{node.props_ref}'",
                    node_id=node.id,
                    path=f"{node_path}.props_ref",
                    code="PROPS_REF_NOT_FOUND",
                )
            try:
                component = registry.new(node.kind, props)
                spec = component.spec(runtime)
                view = adapter.transform(spec, runtime)
            except CompileError as e:
                _locate(e, node.id, node_path)
                raise
            routes.append(Route(node=node.id, view=view))
        return routes
