"""
Unit tests for dependency graph analysis.

Tests cover:
- Roots, orphans and depth computation
- Cycle detection and the report cap
- Blast radius (one-level and transitive)
- Content-hash keyed caching
"""

from __future__ import annotations

from sbomlens.graph import (
    MAX_REPORTED_CYCLES,
    DependencyCycle,
    DependencyGraph,
    blast_radius,
    cycles,
)
from sbomlens.models import CanonicalId, DependencyEdge, IdSource


def cid(name: str) -> CanonicalId:
    return CanonicalId(f"pkg:npm/{name}@1.0.0", IdSource.PURL)


def edge(parent: str, child: str) -> DependencyEdge:
    return DependencyEdge(cid(parent), cid(child))


def chain(*names: str) -> list[DependencyEdge]:
    return [edge(a, b) for a, b in zip(names, names[1:])]


# =============================================================================
# Structure Tests
# =============================================================================


class TestGraphStructure:
    """Tests for basic graph structure queries."""

    def test_nodes_include_explicit_nodes(self):
        """Test components without edges are nodes."""
        graph = DependencyGraph(edges=chain("a", "b"), nodes=[cid("d")])
        assert graph.nodes == [cid("a"), cid("b"), cid("d")]
        assert len(graph) == 3
        assert cid("d") in graph

    def test_children_and_parents_sorted(self):
        """Test adjacency queries are sorted."""
        graph = DependencyGraph(edges=[edge("a", "c"), edge("a", "b"), edge("d", "b")])
        assert graph.children(cid("a")) == [cid("b"), cid("c")]
        assert graph.parents(cid("b")) == [cid("a"), cid("d")]
        assert graph.children(cid("zzz")) == []

    def test_self_edges_ignored(self):
        """Test self-referential edges are dropped."""
        graph = DependencyGraph(edges=[edge("a", "a"), edge("a", "b")])
        assert len(graph.edges) == 1
        assert not graph.has_cycles()

    def test_roots_and_orphans(self):
        """Test root and orphan detection."""
        graph = DependencyGraph(edges=chain("a", "b", "c"), nodes=[cid("d")])
        assert graph.roots() == [cid("a")]
        assert graph.orphans() == [cid("d")]

    def test_depths(self):
        """Test breadth-first depths from top-level nodes."""
        graph = DependencyGraph(
            edges=chain("a", "b", "c") + [edge("a", "c")], nodes=[cid("d")]
        )
        depths = graph.depths()
        assert depths[cid("a")] == 1
        assert depths[cid("b")] == 2
        assert depths[cid("c")] == 2
        assert depths[cid("d")] == 1

    def test_cycle_only_nodes_have_no_depth(self):
        """Test nodes reachable only through a cycle get no depth."""
        graph = DependencyGraph(edges=[edge("a", "b"), edge("b", "a")])
        assert graph.depths() == {}

    def test_path_to_root(self):
        """Test dependency path from a top-level node."""
        graph = DependencyGraph(edges=chain("a", "b", "c"))
        assert graph.path_to_root(cid("c")) == [cid("a"), cid("b"), cid("c")]
        assert graph.path_to_root(cid("missing")) == []

    def test_path_to_root_stops_at_cycle(self):
        """Test path walking terminates on cycles."""
        graph = DependencyGraph(edges=[edge("a", "b"), edge("b", "a")])
        assert graph.path_to_root(cid("a")) == [cid("b"), cid("a")]

    def test_from_sbom(self, app_sbom, app_components):
        """Test building from an SBOM."""
        graph = DependencyGraph.from_sbom(app_sbom)
        assert len(graph) == 4
        assert graph.roots() == [app_components["webapp"].canonical_id]
        assert graph.orphans() == []


# =============================================================================
# Cycle Tests
# =============================================================================


class TestCycleDetection:
    """Tests for cycle detection."""

    def test_acyclic(self):
        """Test a DAG has no cycles."""
        graph = DependencyGraph(edges=chain("a", "b", "c") + [edge("a", "c")])
        assert graph.detect_cycles() == []
        assert not graph.has_cycles()

    def test_simple_cycle(self):
        """Test a three-node cycle."""
        graph = DependencyGraph(edges=chain("a", "b", "c") + [edge("c", "a")])
        found = graph.detect_cycles()
        assert len(found) == 1
        assert found[0].nodes == [cid("a"), cid("b"), cid("c")]
        assert found[0].length == 3
        assert found[0].edges()[-1] == (cid("c"), cid("a"))

    def test_cycle_report_is_capped(self):
        """Test at most ten cycles are reported."""
        edges = []
        for i in range(12):
            edges.append(edge(f"x{i:02d}", f"y{i:02d}"))
            edges.append(edge(f"y{i:02d}", f"x{i:02d}"))
        graph = DependencyGraph(edges=edges)
        assert len(graph.detect_cycles()) == MAX_REPORTED_CYCLES == 10
        assert len(graph.detect_cycles(max_cycles=3)) == 3
        assert len(cycles(graph)) == 10

    def test_cycle_to_dict(self):
        """Test cycle dictionary conversion."""
        cycle = DependencyCycle(nodes=[cid("a"), cid("b")])
        data = cycle.to_dict()
        assert data["length"] == 2
        assert data["cycle_path"] == (
            "pkg:npm/a@1.0.0 -> pkg:npm/b@1.0.0 -> pkg:npm/a@1.0.0"
        )

    def test_metrics_report_cycles(self):
        """Test metrics include cycle information."""
        graph = DependencyGraph(edges=[edge("a", "b"), edge("b", "a")])
        metrics = graph.compute_metrics()
        assert metrics.has_cycles
        assert metrics.cycle_count == 1


# =============================================================================
# Blast Radius Tests
# =============================================================================


class TestBlastRadius:
    """Tests for affected components and blast radius."""

    def test_one_level_approximation(self):
        """Test parents plus grandparents are counted."""
        graph = DependencyGraph(edges=chain("a", "b", "c", "d"))
        assert graph.affected_components(cid("d")) == [cid("b"), cid("c")]
        assert graph.blast_radius(cid("d")) == 2

    def test_transitive(self):
        """Test the full reverse closure."""
        graph = DependencyGraph(edges=chain("a", "b", "c", "d"))
        assert graph.blast_radius(cid("d"), transitive=True) == 3

    def test_excludes_self_in_cycle(self):
        """Test the evaluated node is never counted."""
        graph = DependencyGraph(edges=[edge("a", "b"), edge("b", "a")])
        assert graph.affected_components(cid("a")) == [cid("b")]
        assert graph.blast_radius(cid("a"), transitive=True) == 1

    def test_unknown_node(self):
        """Test nodes outside the graph affect nothing."""
        graph = DependencyGraph(edges=chain("a", "b"))
        assert graph.blast_radius(cid("zzz")) == 0

    def test_root_has_no_blast_radius(self):
        """Test top-level nodes affect nothing above them."""
        graph = DependencyGraph(edges=chain("a", "b"))
        assert blast_radius(graph, cid("a")) == 0

    def test_hub_nodes(self):
        """Test hub detection by in-degree."""
        graph = DependencyGraph(edges=[edge("a", "x"), edge("b", "x"), edge("c", "x")])
        metrics = graph.compute_metrics(hub_threshold=3)
        assert metrics.hub_nodes == [cid("x")]


# =============================================================================
# Caching Tests
# =============================================================================


class TestGraphCaching:
    """Tests for content-hash keyed caching."""

    def test_same_edges_same_hash(self):
        """Test identical content hashes identically."""
        assert (
            DependencyGraph(edges=chain("a", "b")).content_hash
            == DependencyGraph(edges=chain("a", "b")).content_hash
        )

    def test_set_edges_invalidates(self):
        """Test results are recomputed after the edges change."""
        graph = DependencyGraph(edges=chain("a", "b"))
        assert graph.roots() == [cid("a")]
        old_hash = graph.content_hash

        graph.set_edges(chain("c", "a", "b"))
        assert graph.content_hash != old_hash
        assert graph.roots() == [cid("c")]
        assert graph.blast_radius(cid("b")) == 2

    def test_set_same_edges_keeps_hash(self):
        """Test replacing edges with equal content keeps the hash."""
        graph = DependencyGraph(edges=chain("a", "b"))
        old_hash = graph.content_hash
        graph.set_edges(chain("a", "b"))
        assert graph.content_hash == old_hash

    def test_to_dict(self):
        """Test dictionary conversion."""
        data = DependencyGraph(edges=chain("a", "b")).to_dict()
        assert data["nodes"] == ["pkg:npm/a@1.0.0", "pkg:npm/b@1.0.0"]
        assert len(data["edges"]) == 1
