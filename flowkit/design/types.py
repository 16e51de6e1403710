"""
Core type definitions for the flow design document.

This module defines the editable design model:
- Node: one conversational step (kind selects a component variant)
- Edge: a transition between two nodes
- Entry: a named starting point into the graph
- Profile: declared context variables
- DesignDoc: the whole document (bot, entries, profile, graph, shared props)

Invariants:
    - Node ids are unique within a graph (checked by validation, not here)
    - Edge endpoints and entry targets are checked by validation, never assumed
    - Visual metadata (x, y, width, height) is carried but ignored by the compiler
    - to_dict() omits unset optional fields so serialization is deterministic

How to change safely:
    - Add new optional fields with defaults and omit them from to_dict() when unset
    - Never rename JSON keys; stored drafts are decoded with these names

Example:
    >>> doc = DesignDoc.from_dict({
    ...     "schema": "flowkit/1.0",
    ...     "bot": {"id": "b1", "channels": ["whatsapp"]},
    ...     "entries": [{"kind": "global_start", "target": "hello"}],
    ...     "graph": {"nodes": [{"id": "hello", "kind": "message",
    ...                          "props": {"text": "Hi"}}], "edges": []},
    ... })
    >>> doc.node("hello").kind
    'message'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..errors import DecodeError

DESIGN_SCHEMA = "flowkit/1.0"


class EntryKind(str, Enum):
    """Kinds of flow entry points."""

    GLOBAL_START = "global_start"  # default entry for every channel
    CHANNEL_START = "channel_start"  # entry for one channel
    FORCED = "forced"  # bypasses entry conditions


def _require(data: dict[str, Any], key: str, path: str) -> Any:
    if not isinstance(data, dict):
        raise DecodeError(f"expected an object at {path}", path=path)
    if key not in data or data[key] is None:
        raise DecodeError(f"missing required field '{key}' at {path}", path=f"{path}.{key}")
    return data[key]


def _as_list(value: Any, path: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise DecodeError(f"expected a list at {path}", path=path)
    return value


def _as_dict(value: Any, path: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise DecodeError(f"expected an object at {path}", path=path)
    return value


@dataclass(frozen=True)
class Guard:
    """Condition that must hold for an edge to fire."""

    expr: str

    def to_dict(self) -> dict[str, Any]:
        return {"expr": self.expr}


@dataclass(frozen=True)
class Node:
    """A conversational step in the flow graph.

    Attributes:
        id: Unique node identifier
        kind: Component kind (message, confirm, carousel, ...)
        title: Optional editor title
        props: Inline component configuration
        props_ref: Name of a shared configuration in DesignDoc.props
        final: Whether this node terminates the flow
        x, y, width, height: Visual editor metadata (ignored by the compiler)
        inputs, outputs: Declared input/output port names
    """

    id: str
    kind: str
    title: str = ""
    props: dict[str, Any] = field(default_factory=dict)
    props_ref: str = ""
    final: bool = False
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation for serialization."""
        result: dict[str, Any] = {"id": self.id, "kind": self.kind}
        if self.title:
            result["title"] = self.title
        if self.props:
            result["props"] = self.props
        if self.props_ref:
            result["props_ref"] = self.props_ref
        if self.final:
            result["final"] = True
        for name in ("x", "y", "width", "height"):
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        if self.inputs:
            result["inputs"] = list(self.inputs)
        if self.outputs:
            result["outputs"] = list(self.outputs)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "node") -> Node:
        """Create from dictionary representation."""
        props_ref = data.get("props_ref") if isinstance(data, dict) else None
        if props_ref is not None and not isinstance(props_ref, str):
            raise DecodeError(f"props_ref must be a string at {path}", path=f"{path}.props_ref")
        return cls(
            id=str(_require(data, "id", path)),
            kind=str(_require(data, "kind", path)),
            title=data.get("title") or "",
            props=_as_dict(data.get("props"), f"{path}.props"),
            props_ref=props_ref or "",
            final=bool(data.get("final", False)),
            x=data.get("x"),
            y=data.get("y"),
            width=data.get("width"),
            height=data.get("height"),
            inputs=tuple(_as_list(data.get("inputs"), f"{path}.inputs")),
            outputs=tuple(_as_list(data.get("outputs"), f"{path}.outputs")),
        )


@dataclass(frozen=True)
class Edge:
    """A transition between two nodes.

    Attributes:
        source: Source node id ("from" in JSON)
        target: Target node id ("to" in JSON)
        label: Optional label (output name)
        guard: Optional guard expression
        priority: Evaluation priority, lower first; 0 means unset
        metadata: Free-form transition metadata
    """

    source: str
    target: str
    label: str = ""
    guard: Optional[Guard] = None
    priority: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"from": self.source, "to": self.target}
        if self.label:
            result["label"] = self.label
        if self.guard is not None:
            result["guard"] = self.guard.to_dict()
        if self.priority:
            result["priority"] = self.priority
        if self.metadata:
            result["metadata"] = self.metadata
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "edge") -> Edge:
        guard_raw = data.get("guard") if isinstance(data, dict) else None
        guard = None
        if guard_raw:
            guard = Guard(expr=str(_as_dict(guard_raw, f"{path}.guard").get("expr", "")))
        priority = data.get("priority") or 0
        if not isinstance(priority, int) or isinstance(priority, bool):
            raise DecodeError(f"priority must be an integer at {path}", path=f"{path}.priority")
        return cls(
            source=str(_require(data, "from", path)),
            target=str(_require(data, "to", path)),
            label=data.get("label") or "",
            guard=guard,
            priority=priority,
            metadata=_as_dict(data.get("metadata"), f"{path}.metadata"),
        )


@dataclass(frozen=True)
class Entry:
    """A named starting point into the graph.

    kind is kept as the raw string so that validation can report unknown
    kinds instead of failing the decode.
    """

    kind: str
    target: str
    channel_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"kind": self.kind, "target": self.target}
        if self.channel_id:
            result["channel_id"] = self.channel_id
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "entry") -> Entry:
        return cls(
            kind=str(_require(data, "kind", path)),
            target=str(_require(data, "target", path)),
            channel_id=data.get("channel_id") or "",
        )


@dataclass(frozen=True)
class ProfileVariable:
    """A declared context variable."""

    type: str = "string"
    default: Any = None
    persist: bool = False
    required: bool = False

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type}
        if self.default is not None:
            result["default"] = self.default
        if self.persist:
            result["persist"] = True
        if self.required:
            result["required"] = True
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProfileVariable:
        return cls(
            type=data.get("type") or "string",
            default=data.get("default"),
            persist=bool(data.get("persist", False)),
            required=bool(data.get("required", False)),
        )


@dataclass(frozen=True)
class Profile:
    """Profile section: declared context variables keyed by name."""

    context: dict[str, ProfileVariable] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"context": {name: var.to_dict() for name, var in self.context.items()}}

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "profile") -> Profile:
        raw = _as_dict(_as_dict(data, path).get("context"), f"{path}.context")
        return cls(
            context={
                name: ProfileVariable.from_dict(_as_dict(value, f"{path}.context.{name}"))
                for name, value in raw.items()
            }
        )


@dataclass(frozen=True)
class BotInfo:
    """Bot identity and the channels it is published to."""

    id: str
    channels: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "channels": list(self.channels)}


@dataclass(frozen=True)
class VersionInfo:
    """Version stamp carried inside the document (informational)."""

    id: str = ""
    status: str = "development"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "status": self.status}


@dataclass(frozen=True)
class Graph:
    """Nodes and edges of a flow, in document order."""

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


@dataclass(frozen=True)
class DesignDoc:
    """The editable design of one bot's conversational flow.

    Attributes:
        schema: Schema tag (e.g. "flowkit/1.0")
        bot: Bot identity and channels
        version: Version stamp (informational)
        entries: Entry points
        profile: Declared context variables
        graph: Nodes and edges
        props: Shared configurations keyed by reference name
    """

    bot: BotInfo
    schema: str = DESIGN_SCHEMA
    version: VersionInfo = field(default_factory=VersionInfo)
    entries: tuple[Entry, ...] = ()
    profile: Profile = field(default_factory=Profile)
    graph: Graph = field(default_factory=Graph)
    props: dict[str, Any] = field(default_factory=dict)

    def node(self, node_id: str) -> Optional[Node]:
        """Find a node by id (first match in document order)."""
        for n in self.graph.nodes:
            if n.id == node_id:
                return n
        return None

    def resolve_props(self, node: Node) -> Optional[dict[str, Any]]:
        """Resolve the configuration of a node.

        A props_ref takes priority over inline props. Returns None when the
        node references a shared configuration that does not exist.
        """
        if node.props_ref:
            shared = self.props.get(node.props_ref)
            if isinstance(shared, dict):
                return shared
            return None
        return node.props

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation for serialization."""
        return {
            "schema": self.schema,
            "bot": self.bot.to_dict(),
            "version": self.version.to_dict(),
            "entries": [e.to_dict() for e in self.entries],
            "profile": self.profile.to_dict(),
            "graph": self.graph.to_dict(),
            "props": self.props,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DesignDoc:
        """Create from dictionary representation.

        Raises:
            DecodeError: If a required field is missing or has the wrong shape
        """
        if not isinstance(data, dict):
            raise DecodeError("design document must be a JSON object", path="$")

        bot_raw = _as_dict(_require(data, "bot", "$"), "bot")
        bot = BotInfo(
            id=str(_require(bot_raw, "id", "bot")),
            channels=tuple(str(c) for c in _as_list(bot_raw.get("channels"), "bot.channels")),
        )

        version_raw = _as_dict(data.get("version"), "version")
        version = VersionInfo(
            id=version_raw.get("id") or "",
            status=version_raw.get("status") or "development",
        )

        graph_raw = _as_dict(data.get("graph"), "graph")
        nodes = tuple(
            Node.from_dict(_as_dict(n, f"graph.nodes[{i}]"), f"graph.nodes[{i}]")
            for i, n in enumerate(_as_list(graph_raw.get("nodes"), "graph.nodes"))
        )
        edges = tuple(
            Edge.from_dict(_as_dict(e, f"graph.edges[{i}]"), f"graph.edges[{i}]")
            for i, e in enumerate(_as_list(graph_raw.get("edges"), "graph.edges"))
        )

        entries = tuple(
            Entry.from_dict(_as_dict(e, f"entries[{i}]"), f"entries[{i}]")
            for i, e in enumerate(_as_list(data.get("entries"), "entries"))
        )

        return cls(
            schema=data.get("schema") or DESIGN_SCHEMA,
            bot=bot,
            version=version,
            entries=entries,
            profile=Profile.from_dict(data.get("profile") or {}),
            graph=Graph(nodes=nodes, edges=edges),
            props=_as_dict(data.get("props"), "props"),
        )
