"""
Topology step: whole-graph structural checks.

Unlike the other steps this one needs adjacency over the entire design, so
it overrides run() and reads ValidationContext.design instead of checking
routes one at a time.

Checks, in order:
    - node ids are unique
    - exactly one global_start entry, channel_start entries carry a
      channel_id and are unique per channel, entry kinds are known
    - terminal (final) nodes have no outgoing edges
    - non-zero edge priorities are unique per source node
    - edge endpoints and entry targets reference existing nodes
    - cycles carry a guard, or are self-loops with a bounded label
    - the bot lists at least one non-empty channel
    - every node is reachable from some entry (warning)
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Dict, List, Set

from ..design.types import DesignDoc, EntryKind
from .issues import Issue, Severity
from .pipeline import Step, ValidationContext

if TYPE_CHECKING:
    from ..adapter.base import Capabilities

# Self-loops with these labels terminate by construction (bounded attempts)
SAFE_SELF_LOOP_LABELS = frozenset({"timeout", "retry", "fallback", "validation", "error"})

_ENTRY_KINDS = {k.value for k in EntryKind}


def _err(code: str, message: str, path: str) -> Issue:
    return Issue(Severity.ERROR, code, message, path)


class TopologyStep(Step):
    name = "topology"

    def run(self, context: ValidationContext, caps: Capabilities) -> List[Issue]:
        return self.check_design(context.design)

    def check_design(self, design: DesignDoc) -> List[Issue]:
        issues: List[Issue] = []
        issues.extend(self._unique_ids(design))
        issues.extend(self._entries(design))
        issues.extend(self._terminals(design))
        issues.extend(self._priorities(design))
        issues.extend(self._references(design))
        issues.extend(self._cycles(design))
        issues.extend(self._channels(design))
        issues.extend(self._reachability(design))
        return issues

    def _unique_ids(self, design: DesignDoc) -> List[Issue]:
        issues = []
        seen: Set[str] = set()
        for i, node in enumerate(design.graph.nodes):
            if node.id in seen:
                issues.append(_err(
                    "topology.node.duplicate_id",
                    f"node id '{node.id}' is used more than once",
                    f"graph.nodes[{i}].id",
                ))
            seen.add(node.id)
        return issues

    def _entries(self, design: DesignDoc) -> List[Issue]:
        issues = []
        global_starts = 0
        channel_starts: Dict[str, int] = {}

        for i, entry in enumerate(design.entries):
            path = f"entries[{i}]"
            if entry.kind == EntryKind.GLOBAL_START.value:
                global_starts += 1
                if entry.channel_id:
                    issues.append(_err(
                        "topology.start.global_with_channel",
                        "global_start entry must not have a channel_id",
                        f"{path}.channel_id",
                    ))
            elif entry.kind == EntryKind.CHANNEL_START.value:
                if not entry.channel_id:
                    issues.append(_err(
                        "topology.start.channel_missing_id",
                        "channel_start entry must have a channel_id",
                        f"{path}.channel_id",
                    ))
                else:
                    channel_starts[entry.channel_id] = channel_starts.get(entry.channel_id, 0) + 1
            elif entry.kind not in _ENTRY_KINDS:
                issues.append(_err(
                    "topology.entry.invalid_kind",
                    f"invalid entry kind: {entry.kind}",
                    f"{path}.kind",
                ))

        if global_starts == 0:
            issues.append(_err(
                "topology.start.global_missing",
                "design must have exactly one global_start entry",
                "entries",
            ))
        elif global_starts > 1:
            issues.append(_err(
                "topology.start.global_multiple",
                f"design must have exactly one global_start entry, found {global_starts}",
                "entries",
            ))

        for channel_id, count in channel_starts.items():
            if count > 1:
                issues.append(_err(
                    "topology.start.channel_multiple",
                    f"channel '{channel_id}' has {count} channel_start entries",
                    "entries",
                ))
        return issues

    def _terminals(self, design: DesignDoc) -> List[Issue]:
        terminal = {n.id for n in design.graph.nodes if n.final}
        return [
            _err(
                "topology.terminal.has_outgoing",
                f"terminal node '{edge.source}' cannot have outgoing edges",
                f"graph.edges[{i}]",
            )
            for i, edge in enumerate(design.graph.edges)
            if edge.source in terminal
        ]

    def _priorities(self, design: DesignDoc) -> List[Issue]:
        issues = []
        seen: Dict[str, Set[int]] = {}
        for i, edge in enumerate(design.graph.edges):
            if edge.priority == 0:
                continue
            used = seen.setdefault(edge.source, set())
            if edge.priority in used:
                issues.append(_err(
                    "topology.priority.duplicate",
                    f"node '{edge.source}' has duplicate priority {edge.priority}",
                    f"graph.edges[{i}].priority",
                ))
            used.add(edge.priority)
        return issues

    def _references(self, design: DesignDoc) -> List[Issue]:
        issues = []
        nodes = {n.id for n in design.graph.nodes}
        for i, edge in enumerate(design.graph.edges):
            if edge.source not in nodes:
                issues.append(_err(
                    "topology.reference.invalid_from",
                    f"edge references non-existent node: {edge.source}",
                    f"graph.edges[{i}].from",
                ))
            if edge.target not in nodes:
                issues.append(_err(
                    "topology.reference.invalid_to",
                    f"edge references non-existent node: {edge.target}",
                    f"graph.edges[{i}].to",
                ))
        for i, entry in enumerate(design.entries):
            if entry.target not in nodes:
                issues.append(_err(
                    "topology.reference.invalid_target",
                    f"entry references non-existent node: {entry.target}",
                    f"entries[{i}].target",
                ))
        return issues

    def _cycles(self, design: DesignDoc) -> List[Issue]:
        """Report back edges that close an unguarded cycle."""
        adjacency: Dict[str, List[int]] = {}
        for i, edge in enumerate(design.graph.edges):
            adjacency.setdefault(edge.source, []).append(i)

        issues = []
        visited: Set[str] = set()
        on_stack: Set[str] = set()

        for node in design.graph.nodes:
            if node.id in visited:
                continue
            visited.add(node.id)
            on_stack.add(node.id)
            stack = [(node.id, iter(adjacency.get(node.id, ())))]
            while stack:
                current, edges = stack[-1]
                edge_index = next(edges, None)
                if edge_index is None:
                    on_stack.discard(current)
                    stack.pop()
                    continue
                edge = design.graph.edges[edge_index]
                if edge.target in on_stack:
                    safe_self_loop = edge.source == edge.target and edge.label in SAFE_SELF_LOOP_LABELS
                    guarded = edge.guard is not None and bool(edge.guard.expr)
                    if not (safe_self_loop or guarded):
                        issues.append(Issue(
                            Severity.WARN,
                            "topology.cycle.no_guard",
                            f"cycle without guard condition: {edge.source} -> {edge.target}",
                            f"graph.edges[{edge_index}]",
                        ))
                elif edge.target not in visited:
                    visited.add(edge.target)
                    on_stack.add(edge.target)
                    stack.append((edge.target, iter(adjacency.get(edge.target, ()))))
        return issues

    def _channels(self, design: DesignDoc) -> List[Issue]:
        issues = []
        if not design.bot.channels:
            issues.append(_err("topology.channels.empty", "bot must have at least one channel", "bot.channels"))
        for i, channel in enumerate(design.bot.channels):
            if not channel.strip():
                issues.append(_err("topology.channel.empty", "channel cannot be empty", f"bot.channels[{i}]"))
        return issues

    def _reachability(self, design: DesignDoc) -> List[Issue]:
        nodes = {n.id for n in design.graph.nodes}
        roots = [e.target for e in design.entries if e.target in nodes]
        if not roots:
            return []

        adjacency: Dict[str, List[str]] = {}
        for edge in design.graph.edges:
            adjacency.setdefault(edge.source, []).append(edge.target)

        reached = set(roots)
        queue = deque(roots)
        while queue:
            for nxt in adjacency.get(queue.popleft(), ()):
                if nxt not in reached:
                    reached.add(nxt)
                    queue.append(nxt)

        return [
            Issue(
                Severity.WARN,
                "topology.node.unreachable",
                f"node '{node.id}' is not reachable from any entry",
                f"graph.nodes[{i}]",
            )
            for i, node in enumerate(design.graph.nodes)
            if node.id not in reached
        ]
