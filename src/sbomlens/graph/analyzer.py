"""
Dependency graph analysis for normalized SBOMs.

Provides adjacency and reverse-adjacency over canonical ids, cycle
detection, blast-radius computation, root/orphan detection and depth
analysis. Dependency graphs may contain cycles and are never assumed to
be acyclic.

Structural query results are cached against a content hash of the node
set and edge list, so repeated queries on an unchanged graph are cheap.
A DependencyGraph is not thread-safe; it is meant to be owned by a
single caller.
"""

from __future__ import annotations

import hashlib
import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Iterable

from sbomlens.models.identifiers import CanonicalId
from sbomlens.models.sbom import DependencyEdge, NormalizedSbom

logger = logging.getLogger(__name__)

MAX_REPORTED_CYCLES = 10


@dataclass
class DependencyCycle:
    """A cycle detected in the dependency graph."""

    nodes: list[CanonicalId]  # Node ids in traversal order
    length: int = 0

    def __post_init__(self):
        self.length = len(self.nodes)

    def edges(self) -> list[tuple[CanonicalId, CanonicalId]]:
        """Edges of the closed walk, including the closing edge."""
        return [
            (self.nodes[i], self.nodes[(i + 1) % self.length])
            for i in range(self.length)
        ]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        values = [n.value for n in self.nodes]
        return {
            "nodes": values,
            "length": self.length,
            "cycle_path": " -> ".join(values + values[:1]),
        }


@dataclass
class GraphMetrics:
    """Metrics computed from the dependency graph."""

    # Node counts
    total_nodes: int = 0
    root_count: int = 0
    orphan_count: int = 0

    # Depth metrics
    max_depth: int = 0
    avg_depth: float = 0.0
    unreachable_count: int = 0  # only reachable through cycles

    # Connectivity
    total_edges: int = 0
    avg_in_degree: float = 0.0
    avg_out_degree: float = 0.0

    # Hot spots (highly depended upon)
    hub_nodes: list[CanonicalId] = field(default_factory=list)
    hub_threshold: int = 5

    # Cycles
    has_cycles: bool = False
    cycle_count: int = 0
    cycles: list[DependencyCycle] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "nodes": {
                "total": self.total_nodes,
                "roots": self.root_count,
                "orphans": self.orphan_count,
            },
            "depth": {
                "max": self.max_depth,
                "average": round(self.avg_depth, 2),
                "unreachable": self.unreachable_count,
            },
            "edges": {
                "total": self.total_edges,
                "avg_in_degree": round(self.avg_in_degree, 2),
                "avg_out_degree": round(self.avg_out_degree, 2),
            },
            "hub_nodes": [n.value for n in self.hub_nodes[:10]],
            "cycles": {
                "detected": self.has_cycles,
                "count": self.cycle_count,
                "cycles": [c.to_dict() for c in self.cycles],
            },
        }


class DependencyGraph:
    """
    Directed dependency graph keyed by canonical id.

    Edges are the only mutable state (via set_edges); every structural
    query is recomputed only when the content hash changes.
    """

    def __init__(
        self,
        edges: Iterable[DependencyEdge] = (),
        nodes: Iterable[CanonicalId] = (),
    ):
        """
        Initialize the graph.

        Args:
            edges: Dependency edges
            nodes: Additional nodes, e.g. components with no edges
        """
        self._edges: list[DependencyEdge] = []
        self._explicit_nodes: set[CanonicalId] = set()
        self._content_hash = ""
        self._cache_hash: str | None = None
        self._cache: dict[Any, Any] = {}
        self.set_edges(edges, nodes)

    @classmethod
    def from_sbom(cls, sbom: NormalizedSbom) -> DependencyGraph:
        """Build the graph of an SBOM, including components with no edges."""
        return cls(edges=sbom.edges, nodes=sbom.components.keys())

    def set_edges(
        self,
        edges: Iterable[DependencyEdge],
        nodes: Iterable[CanonicalId] | None = None,
    ) -> None:
        """
        Replace the edge list (and optionally the explicit node set).

        Cached query results stay valid if the content is unchanged.
        """
        self._edges = [e for e in edges if e.from_id != e.to_id]
        if nodes is not None:
            self._explicit_nodes = set(nodes)
        self._content_hash = self._compute_hash()

    @property
    def edges(self) -> list[DependencyEdge]:
        """Edges in insertion order."""
        return list(self._edges)

    @property
    def content_hash(self) -> str:
        """SHA-256 of the node set and the ordered edge list."""
        return self._content_hash

    @property
    def nodes(self) -> list[CanonicalId]:
        """All nodes, sorted."""
        return list(self._structure()["nodes"])

    def __len__(self) -> int:
        return len(self._structure()["nodes"])

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._structure()["node_set"]

    def children(self, node_id: CanonicalId) -> list[CanonicalId]:
        """Direct dependencies of a node, sorted."""
        return list(self._structure()["adjacency"].get(node_id, ()))

    def parents(self, node_id: CanonicalId) -> list[CanonicalId]:
        """Direct dependents of a node, sorted."""
        return list(self._structure()["reverse"].get(node_id, ()))

    def reverse_graph(self) -> dict[CanonicalId, list[CanonicalId]]:
        """Reverse adjacency: node -> nodes that depend on it."""
        return {k: list(v) for k, v in self._structure()["reverse"].items()}

    def adjacency(self) -> dict[CanonicalId, list[CanonicalId]]:
        """Forward adjacency: node -> its dependencies."""
        return {k: list(v) for k, v in self._structure()["adjacency"].items()}

    def roots(self) -> list[CanonicalId]:
        """Nodes with dependencies but no dependents."""
        return self._cached("roots", self._compute_roots)

    def orphans(self) -> list[CanonicalId]:
        """Nodes that take part in no edge at all."""
        return self._cached("orphans", self._compute_orphans)

    def depths(self) -> dict[CanonicalId, int]:
        """
        Breadth-first depth of every node reachable from a top-level node.

        Top-level nodes (roots and orphans) have depth 1 and their direct
        dependencies depth 2. Nodes only reachable through a cycle get no
        entry.
        """
        return dict(self._cached("depths", self._compute_depths))

    def detect_cycles(self, max_cycles: int = MAX_REPORTED_CYCLES) -> list[DependencyCycle]:
        """
        Detect cycles using depth-first search.

        Every back-edge into the current recursion stack yields the path
        slice from the target's position to the current node. Reporting
        stops after max_cycles cycles.

        Args:
            max_cycles: Maximum number of cycles to report

        Returns:
            Detected cycles, in discovery order
        """
        found = self._cached(("cycles", max_cycles), lambda: self._find_cycles(max_cycles))
        return [DependencyCycle(nodes=list(c.nodes)) for c in found]

    def has_cycles(self) -> bool:
        """Whether the graph contains at least one cycle."""
        return bool(self.detect_cycles(max_cycles=1))

    def affected_components(
        self, node_id: CanonicalId, transitive: bool = False
    ) -> list[CanonicalId]:
        """
        Components affected by a change to node_id.

        By default this is the direct dependents plus their direct
        dependents. With transitive=True the full reverse closure is
        returned.

        Args:
            node_id: Component to evaluate
            transitive: Follow dependents all the way up

        Returns:
            Sorted affected component ids, excluding node_id itself
        """
        if node_id not in self:
            return []

        reverse = self._structure()["reverse"]
        affected: set[CanonicalId] = set()

        if transitive:
            queue = deque([node_id])
            while queue:
                current = queue.popleft()
                for parent in reverse.get(current, ()):
                    if parent not in affected and parent != node_id:
                        affected.add(parent)
                        queue.append(parent)
        else:
            for parent in reverse.get(node_id, ()):
                affected.add(parent)
                affected.update(reverse.get(parent, ()))
            affected.discard(node_id)

        return sorted(affected)

    def blast_radius(self, node_id: CanonicalId, transitive: bool = False) -> int:
        """Number of components affected by a change to node_id."""
        return len(self.affected_components(node_id, transitive=transitive))

    def path_to_root(self, node_id: CanonicalId) -> list[CanonicalId]:
        """
        A dependency path from a top-level node down to node_id.

        Follows the first (lowest-sorted) parent at each step and stops at
        a cycle.
        """
        if node_id not in self:
            return []

        reverse = self._structure()["reverse"]
        path = [node_id]
        visited = {node_id}
        current = node_id

        while True:
            parents = reverse.get(current, ())
            if not parents:
                break
            parent = parents[0]
            if parent in visited:
                break  # Cycle detected
            visited.add(parent)
            path.append(parent)
            current = parent

        return list(reversed(path))

    def compute_metrics(self, hub_threshold: int = 5) -> GraphMetrics:
        """Compute graph metrics."""
        metrics = GraphMetrics(hub_threshold=hub_threshold)
        structure = self._structure()
        nodes = structure["nodes"]
        if not nodes:
            return metrics

        adjacency = structure["adjacency"]
        reverse = structure["reverse"]

        metrics.total_nodes = len(nodes)
        metrics.total_edges = sum(len(v) for v in adjacency.values())
        metrics.root_count = len(self.roots())
        metrics.orphan_count = len(self.orphans())

        depths = self.depths()
        if depths:
            metrics.max_depth = max(depths.values())
            metrics.avg_depth = sum(depths.values()) / len(depths)
        metrics.unreachable_count = len(nodes) - len(depths)

        metrics.avg_in_degree = metrics.total_edges / len(nodes)
        metrics.avg_out_degree = metrics.total_edges / len(nodes)

        in_degrees = {n: len(reverse.get(n, ())) for n in nodes}
        metrics.hub_nodes = sorted(
            (n for n, degree in in_degrees.items() if degree >= hub_threshold),
            key=lambda n: (-in_degrees[n], n),
        )

        cycles = self.detect_cycles()
        metrics.has_cycles = len(cycles) > 0
        metrics.cycle_count = len(cycles)
        metrics.cycles = cycles

        return metrics

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "content_hash": self.content_hash,
            "nodes": [n.value for n in self.nodes],
            "edges": [e.to_dict() for e in self._edges],
            "metrics": self.compute_metrics().to_dict(),
        }

    def _compute_hash(self) -> str:
        hasher = hashlib.sha256()
        for node in sorted(self._explicit_nodes):
            hasher.update(f"n:{node.value}\n".encode("utf-8"))
        for edge in self._edges:
            hasher.update(f"e:{edge.from_id.value}->{edge.to_id.value}\n".encode("utf-8"))
        return hasher.hexdigest()

    def _cached(self, key: Any, compute: Any) -> Any:
        if self._cache_hash != self._content_hash:
            self._cache = {}
            self._cache_hash = self._content_hash
        if key not in self._cache:
            self._cache[key] = compute()
        return self._cache[key]

    def _structure(self) -> dict[str, Any]:
        return self._cached("structure", self._build_structure)

    def _build_structure(self) -> dict[str, Any]:
        logger.debug(f"Building adjacency for graph {self._content_hash[:12]}")
        adjacency: dict[CanonicalId, set[CanonicalId]] = defaultdict(set)
        reverse: dict[CanonicalId, set[CanonicalId]] = defaultdict(set)
        node_set = set(self._explicit_nodes)

        for edge in self._edges:
            adjacency[edge.from_id].add(edge.to_id)
            reverse[edge.to_id].add(edge.from_id)
            node_set.add(edge.from_id)
            node_set.add(edge.to_id)

        return {
            "nodes": tuple(sorted(node_set)),
            "node_set": frozenset(node_set),
            "adjacency": {k: tuple(sorted(v)) for k, v in adjacency.items()},
            "reverse": {k: tuple(sorted(v)) for k, v in reverse.items()},
        }

    def _compute_roots(self) -> list[CanonicalId]:
        structure = self._structure()
        return [
            n
            for n in structure["nodes"]
            if n in structure["adjacency"] and n not in structure["reverse"]
        ]

    def _compute_orphans(self) -> list[CanonicalId]:
        structure = self._structure()
        return [
            n
            for n in structure["nodes"]
            if n not in structure["adjacency"] and n not in structure["reverse"]
        ]

    def _compute_depths(self) -> dict[CanonicalId, int]:
        structure = self._structure()
        adjacency = structure["adjacency"]
        depths: dict[CanonicalId, int] = {}
        queue: deque[CanonicalId] = deque()

        for node in structure["nodes"]:
            if node not in structure["reverse"]:
                depths[node] = 1
                queue.append(node)

        while queue:
            current = queue.popleft()
            for child in adjacency.get(current, ()):
                if child not in depths:
                    depths[child] = depths[current] + 1
                    queue.append(child)

        return depths

    def _find_cycles(self, max_cycles: int) -> list[DependencyCycle]:
        adjacency = self._structure()["adjacency"]
        cycles: list[DependencyCycle] = []
        visited: set[CanonicalId] = set()

        for start in self._structure()["nodes"]:
            if start in visited:
                continue

            visited.add(start)
            rec_stack = {start}
            path = [start]
            stack = [(start, iter(adjacency.get(start, ())))]

            while stack:
                node_id, neighbors = stack[-1]
                descended = False
                for neighbor in neighbors:
                    if neighbor not in visited:
                        visited.add(neighbor)
                        rec_stack.add(neighbor)
                        path.append(neighbor)
                        stack.append((neighbor, iter(adjacency.get(neighbor, ()))))
                        descended = True
                        break
                    if neighbor in rec_stack:
                        cycle_start = path.index(neighbor)
                        cycles.append(DependencyCycle(nodes=path[cycle_start:]))
                        if len(cycles) >= max_cycles:
                            logger.debug(f"Cycle report limit reached ({max_cycles})")
                            return cycles
                if not descended:
                    stack.pop()
                    path.pop()
                    rec_stack.discard(node_id)

        return cycles


def cycles(graph: DependencyGraph) -> list[DependencyCycle]:
    """Cycles in a graph, capped at the default report limit."""
    return graph.detect_cycles()


def blast_radius(
    graph: DependencyGraph, node_id: CanonicalId, transitive: bool = False
) -> int:
    """Blast radius of a component in a graph."""
    return graph.blast_radius(node_id, transitive=transitive)
