"""Ordering of manifest resources into an acyclic execution plan."""

from __future__ import annotations

import heapq
from dataclasses import dataclass, field

from dolly.parser import Manifest, RelationExpr, RelationOp, ResourceRef
from dolly.resources import Relation, Resource, resource_from_expr


class PlanError(ValueError):
    """Raised when a plan cannot be built or ordered."""


@dataclass(frozen=True)
class _Edge:
    source: int
    target: int
    relation: Relation


@dataclass
class Plan:
    """A directed acyclic graph of resources joined by relations."""

    _nodes: list[Resource] = field(default_factory=list)
    _edges: list[_Edge] = field(default_factory=list)
    _outgoing: dict[int, list[int]] = field(default_factory=dict)

    def add_node(self, resource: Resource) -> int:
        """Add a resource and return its node index."""
        index = len(self._nodes)
        self._nodes.append(resource)
        self._outgoing[index] = []
        return index

    def _check_index(self, index: int) -> None:
        if index not in self._outgoing:
            raise PlanError(f"Unknown node index: {index}")

    def _reaches(self, start: int, goal: int) -> bool:
        seen = {start}
        stack = [start]
        while stack:
            current = stack.pop()
            if current == goal:
                return True
            for edge_id in self._outgoing[current]:
                nxt = self._edges[edge_id].target
                if nxt not in seen:
                    seen.add(nxt)
                    stack.append(nxt)
        return False

    def try_add_edge(self, source: int, target: int, relation: Relation) -> None:
        """Add an edge unless it would close a cycle."""
        self._check_index(source)
        self._check_index(target)
        if self._reaches(target, source):
            raise PlanError(
                f"Edge {source} -> {target} would create a cycle"
            )
        self._outgoing[source].append(len(self._edges))
        self._edges.append(_Edge(source, target, relation))

    def node_count(self) -> int:
        return len(self._nodes)

    def edge_count(self) -> int:
        return len(self._edges)

    def node(self, index: int) -> Resource:
        """Return the resource stored at ``index``."""
        self._check_index(index)
        return self._nodes[index]

    def edges(self, index: int) -> list[tuple[int, Relation]]:
        """Outgoing edges of a node as (target, relation), newest first."""
        self._check_index(index)
        return [
            (self._edges[e].target, self._edges[e].relation)
            for e in reversed(self._outgoing[index])
        ]

    def sorted(self) -> list[int]:
        """Node indices in a topological order."""
        indegree = {index: 0 for index in self._outgoing}
        for edge in self._edges:
            indegree[edge.target] += 1
        ready = [index for index, degree in indegree.items() if degree == 0]
        heapq.heapify(ready)
        order: list[int] = []
        while ready:
            current = heapq.heappop(ready)
            order.append(current)
            for edge_id in self._outgoing[current]:
                target = self._edges[edge_id].target
                indegree[target] -= 1
                if indegree[target] == 0:
                    heapq.heappush(ready, target)
        if len(order) != len(indegree):
            raise PlanError("Plan is not acyclic")
        return order

    def sorted_weights(self) -> dict[int, Resource]:
        """Resources keyed by node index, in topological order."""
        return {index: self._nodes[index] for index in self.sorted()}

    def dot(self) -> str:
        """Graphviz rendering of the plan."""
        lines = ["digraph {"]
        lines.extend(
            f'    {index} [ label = "{node.id()}"]'
            for index, node in enumerate(self._nodes)
        )
        lines.extend(
            f'    {edge.source} -> {edge.target} '
            f'[ label = "{edge.relation.name.capitalize()}"]'
            for edge in self._edges
        )
        lines.append("}")
        return "\n".join(lines) + "\n"


_DIRECTIONS = {
    RelationOp.PROVIDE: (False, Relation.PROVIDE),
    RelationOp.REQUIRE: (True, Relation.PROVIDE),
    RelationOp.NOTIFY: (False, Relation.NOTIFY),
    RelationOp.SUBSCRIBE: (True, Relation.NOTIFY),
}


def _add_relation(
    plan: Plan, nodes: dict[str, int], relation: RelationExpr
) -> None:
    reverse, kind = _DIRECTIONS[relation.op]
    sources, targets = relation.sources, relation.targets
    if reverse:
        sources, targets = targets, sources
    for source in sources:
        for target in targets:
            _add_edge(plan, nodes, source, target, kind)


def _add_edge(
    plan: Plan,
    nodes: dict[str, int],
    source: ResourceRef,
    target: ResourceRef,
    kind: Relation,
) -> None:
    for ref in (source, target):
        if ref.id() not in nodes:
            raise PlanError(f"Unknown resource: {ref.id()}")
    try:
        plan.try_add_edge(nodes[source.id()], nodes[target.id()], kind)
    except PlanError:
        raise PlanError(
            f"Error creating edge in acyclic graph: {source} {kind} {target}"
        ) from None


def parse_puppet_manifest(manifest: Manifest) -> Plan:
    """Build an execution plan from a parsed manifest."""
    plan = Plan()
    nodes: dict[str, int] = {}
    for expr in manifest.resources():
        resource = resource_from_expr(expr)
        nodes[resource.id()] = plan.add_node(resource)
    for relation in manifest.relations():
        _add_relation(plan, nodes, relation)
    return plan