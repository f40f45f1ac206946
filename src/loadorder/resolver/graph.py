"""Dependency graph construction and topological ordering.

Nodes are the enabled descriptors, indexed by their precedence rank.
An edge ``u -> v`` means *u must load before v* and comes from any of:

* ``v`` declares a dependency on ``u``'s id;
* ``v`` lists ``u``'s id in ``loadAfter``;
* ``u`` lists ``v``'s id in ``loadBefore``.

Ids that name no enabled descriptor produce no edge; ordering hints never
require presence.  A descriptor naming its own id is ignored.

Ordering uses Kahn's algorithm with a min-heap on the precedence rank,
so unrelated descriptors come out in precedence order.  Nodes Kahn's
algorithm cannot place are split into strongly connected components
(iterative Tarjan); every component with more than one member is
reported as a :class:`Cycle` and excluded, and the remainder is ordered
again.  No step recurses on the call stack.
"""
from __future__ import annotations

import heapq
import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from itertools import chain

from loadorder.catalog.descriptor import PluginDescriptor, by_precedence

logger = logging.getLogger(__name__)


@dataclass
class DependencyGraph:
    """Must-precede graph over a set of descriptors.

    Parameters
    ----------
    nodes:
        Descriptors in precedence order; a node's index is its rank.
    successors:
        ``successors[u]`` holds every node that must load after ``u``.
    predecessors:
        ``predecessors[v]`` holds every node that must load before ``v``.
    """

    nodes: list[PluginDescriptor]
    successors: list[set[int]] = field(default_factory=list)
    predecessors: list[set[int]] = field(default_factory=list)

    def add_edge(self, before: int, after: int) -> None:
        if before == after:
            return
        self.successors[before].add(after)
        self.predecessors[after].add(before)

    @property
    def edge_count(self) -> int:
        return sum(len(s) for s in self.successors)


@dataclass(frozen=True)
class Cycle:
    """A circular ordering constraint.

    Parameters
    ----------
    members:
        Every descriptor of the strongly connected component, in
        precedence order.  All of them are excluded from the load order.
    path:
        A shortest cycle anywhere in the component, in must-precede
        order, starting at its lowest-ranked member.  Ties between
        equally short cycles go to the lowest-ranked start.  The first
        descriptor is implied again at the end.
    """

    members: tuple[PluginDescriptor, ...]
    path: tuple[PluginDescriptor, ...]

    def __str__(self) -> str:
        names = [d.identity for d in self.path]
        names.append(self.path[0].identity)
        return " -> ".join(names)


@dataclass
class OrderResult:
    """Outcome of ordering a graph: a load order plus excluded cycles."""

    order: list[PluginDescriptor]
    cycles: list[Cycle] = field(default_factory=list)


def build_graph(descriptors: Iterable[PluginDescriptor]) -> DependencyGraph:
    """Build the must-precede graph for ``descriptors``.

    Also stores each descriptor's direct predecessors in its
    ``resolved_dependencies`` field.
    """
    nodes = by_precedence(descriptors)
    graph = DependencyGraph(
        nodes=nodes,
        successors=[set() for _ in nodes],
        predecessors=[set() for _ in nodes],
    )
    rank_by_id = {d.id: rank for rank, d in enumerate(nodes) if d.id is not None}

    for rank, descriptor in enumerate(nodes):
        manifest = descriptor.manifest
        for required_id in chain(manifest.dependencies, manifest.load_after):
            other = rank_by_id.get(required_id)
            if other is not None:
                graph.add_edge(other, rank)
        for later_id in manifest.load_before:
            other = rank_by_id.get(later_id)
            if other is not None:
                graph.add_edge(rank, other)

    for rank, descriptor in enumerate(nodes):
        descriptor.resolved_dependencies.clear()
        descriptor.resolved_dependencies.update(nodes[p] for p in graph.predecessors[rank])

    logger.debug("Built dependency graph: %d node(s), %d edge(s)", len(nodes), graph.edge_count)
    return graph


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def _kahn(graph: DependencyGraph, active: set[int]) -> list[int]:
    indegree = {v: sum(1 for u in graph.predecessors[v] if u in active) for v in active}
    ready = [v for v, degree in indegree.items() if degree == 0]
    heapq.heapify(ready)
    order: list[int] = []
    while ready:
        u = heapq.heappop(ready)
        order.append(u)
        for v in graph.successors[u]:
            if v not in active:
                continue
            indegree[v] -= 1
            if indegree[v] == 0:
                heapq.heappush(ready, v)
    return order


def strongly_connected_components(graph: DependencyGraph, subset: set[int]) -> list[list[int]]:
    """Iterative Tarjan over the subgraph induced by ``subset``.

    Components are returned with their members sorted by rank.
    """
    index_of: dict[int, int] = {}
    lowlink: dict[int, int] = {}
    stack: list[int] = []
    on_stack: set[int] = set()
    components: list[list[int]] = []
    counter = 0

    def successors(node: int) -> list[int]:
        return sorted(v for v in graph.successors[node] if v in subset)

    for root in sorted(subset):
        if root in index_of:
            continue
        index_of[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        work = [(root, iter(successors(root)))]

        while work:
            node, pending = work[-1]
            descended = False
            for succ in pending:
                if succ not in index_of:
                    index_of[succ] = lowlink[succ] = counter
                    counter += 1
                    stack.append(succ)
                    on_stack.add(succ)
                    work.append((succ, iter(successors(succ))))
                    descended = True
                    break
                if succ in on_stack:
                    lowlink[node] = min(lowlink[node], index_of[succ])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])
            if lowlink[node] == index_of[node]:
                component: list[int] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(sorted(component))

    return components


def shortest_cycle(
    graph: DependencyGraph, start: int, component: set[int], limit: int | None = None
) -> list[int]:
    """Breadth-first search for the shortest cycle through ``start``.

    Only cycles of fewer than ``limit`` nodes are searched for when a
    limit is given.  Returns ``[start]`` when no such cycle exists.
    """
    parents: dict[int, int | None] = {start: None}
    depth = {start: 1}
    queue = deque([start])
    while queue:
        node = queue.popleft()
        if limit is not None and depth[node] >= limit:
            continue
        for succ in sorted(graph.successors[node]):
            if succ not in component:
                continue
            if succ == start:
                path = [node]
                while (parent := parents[path[-1]]) is not None:
                    path.append(parent)
                return list(reversed(path))
            if succ not in parents:
                parents[succ] = node
                depth[succ] = depth[node] + 1
                queue.append(succ)
    return [start]


def minimal_cycle(graph: DependencyGraph, component: list[int]) -> list[int]:
    """Return a shortest cycle of the strongly connected ``component``.

    Among cycles of equal length the one through the lowest-ranked
    member wins, and the path starts at that member.
    """
    members = set(component)
    internal_edges = sum(len(graph.successors[u] & members) for u in component)
    if internal_edges == len(component):
        # A plain ring: the only cycle visits every member.
        return shortest_cycle(graph, component[0], members)

    best: list[int] = []
    for start in component:
        path = shortest_cycle(graph, start, members, limit=len(best) or None)
        if len(path) > 1 and (not best or len(path) < len(best)):
            best = path
            if len(best) == 2:
                break
    return best or [component[0]]


def topological_order(graph: DependencyGraph) -> OrderResult:
    """Order ``graph``, excluding every descriptor that sits on a cycle.

    Returns
    -------
    OrderResult
        The load order of the acyclic remainder and every cycle found.
    """
    active = set(range(len(graph.nodes)))
    order = _kahn(graph, active)
    if len(order) == len(active):
        return OrderResult(order=[graph.nodes[i] for i in order])

    stuck = active - set(order)
    cycles: list[Cycle] = []
    for component in strongly_connected_components(graph, stuck):
        if len(component) < 2:
            continue
        path = minimal_cycle(graph, component)
        cycle = Cycle(
            members=tuple(graph.nodes[i] for i in component),
            path=tuple(graph.nodes[i] for i in path),
        )
        logger.debug("Detected circular ordering constraint: %s", cycle)
        cycles.append(cycle)
        active.difference_update(component)

    order = _kahn(graph, active)
    return OrderResult(order=[graph.nodes[i] for i in order], cycles=cycles)
