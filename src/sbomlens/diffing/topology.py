"""
Dependency graph topology comparison.

Detects where components moved in the dependency graph between two
snapshots: new or dropped parent edges, reparenting and depth changes.
Each change is rated by impact, with vulnerable components entering the
graph close to the root rated highest.
"""

from __future__ import annotations

from typing import Mapping

from sbomlens.diffing.result import ImpactLevel, TopologyChange, TopologyChangeType
from sbomlens.graph.analyzer import DependencyGraph
from sbomlens.models.component import Component
from sbomlens.models.identifiers import CanonicalId
from sbomlens.models.sbom import NormalizedSbom

# Depth of a direct dependency (top-level components have depth 1)
DIRECT_DEPTH = 2


def _is_vulnerable(component: Component | None) -> bool:
    return component is not None and bool(component.vulnerabilities)


def _added_edge_impact(
    component: Component | None, parent_depth: int | None
) -> ImpactLevel:
    direct = parent_depth == 1
    vulnerable = _is_vulnerable(component)
    if vulnerable and direct:
        return ImpactLevel.CRITICAL
    if vulnerable:
        return ImpactLevel.HIGH
    if direct:
        return ImpactLevel.MEDIUM
    return ImpactLevel.LOW


def _depth_impact(component: Component | None, old_depth: int, new_depth: int) -> ImpactLevel:
    if new_depth < old_depth and _is_vulnerable(component):
        return ImpactLevel.HIGH
    if new_depth == DIRECT_DEPTH:
        return ImpactLevel.MEDIUM
    return ImpactLevel.LOW


def detect_topology_changes(
    old: NormalizedSbom,
    new: NormalizedSbom,
    id_map: Mapping[CanonicalId, CanonicalId],
    old_graph: DependencyGraph | None = None,
    new_graph: DependencyGraph | None = None,
) -> list[TopologyChange]:
    """
    Compare the placement of components in two dependency graphs.

    Args:
        old: Old snapshot
        new: New snapshot
        id_map: Old id -> new id for every matched component (exact and fuzzy)
        old_graph: Prebuilt graph of the old snapshot
        new_graph: Prebuilt graph of the new snapshot

    Returns:
        Topology changes, most impactful first
    """
    old_graph = old_graph or DependencyGraph.from_sbom(old)
    new_graph = new_graph or DependencyGraph.from_sbom(new)
    old_depths = old_graph.depths()
    new_depths = new_graph.depths()

    def mapped(ids: list[CanonicalId]) -> set[CanonicalId]:
        return {id_map.get(i, i) for i in ids}

    changes: list[TopologyChange] = []
    matched_new = set(id_map.values())

    for old_id, new_id in sorted(id_map.items(), key=lambda item: item[1]):
        component = new.get_component(new_id)
        name = component.name if component else new_id.value

        old_parents = mapped(old_graph.parents(old_id))
        new_parents = set(new_graph.parents(new_id))
        gained = sorted(new_parents - old_parents)
        lost = sorted(old_parents - new_parents)

        if gained and lost:
            changes.append(
                TopologyChange(
                    change_type=TopologyChangeType.REPARENTED,
                    component_id=new_id,
                    component_name=name,
                    impact=ImpactLevel.MEDIUM,
                    old_parents=tuple(sorted(old_parents)),
                    new_parents=tuple(sorted(new_parents)),
                    description=(
                        f"{name} moved from {len(lost)} parent(s) "
                        f"to {len(gained)} new parent(s)"
                    ),
                )
            )
        else:
            for parent in gained:
                changes.append(
                    TopologyChange(
                        change_type=TopologyChangeType.DEPENDENCY_ADDED,
                        component_id=new_id,
                        component_name=name,
                        impact=_added_edge_impact(component, new_depths.get(parent)),
                        parent_id=parent,
                        description=f"{parent.value} now depends on {name}",
                    )
                )
            for parent in lost:
                changes.append(
                    TopologyChange(
                        change_type=TopologyChangeType.DEPENDENCY_REMOVED,
                        component_id=new_id,
                        component_name=name,
                        impact=ImpactLevel.LOW,
                        parent_id=parent,
                        description=f"{parent.value} no longer depends on {name}",
                    )
                )

        old_depth = old_depths.get(old_id)
        new_depth = new_depths.get(new_id)
        if old_depth is not None and new_depth is not None and old_depth != new_depth:
            changes.append(
                TopologyChange(
                    change_type=TopologyChangeType.DEPTH_CHANGED,
                    component_id=new_id,
                    component_name=name,
                    impact=_depth_impact(component, old_depth, new_depth),
                    old_depth=old_depth,
                    new_depth=new_depth,
                    description=f"{name} depth changed from {old_depth} to {new_depth}",
                )
            )

    # Components that are new to the graph
    for new_id in sorted(new.ids - matched_new):
        component = new.get_component(new_id)
        name = component.name if component else new_id.value
        for parent in new_graph.parents(new_id):
            changes.append(
                TopologyChange(
                    change_type=TopologyChangeType.DEPENDENCY_ADDED,
                    component_id=new_id,
                    component_name=name,
                    impact=_added_edge_impact(component, new_depths.get(parent)),
                    parent_id=parent,
                    new_depth=new_depths.get(new_id),
                    description=f"{parent.value} now depends on new component {name}",
                )
            )

    # Components that left the graph
    for old_id in sorted(old.ids - set(id_map)):
        component = old.get_component(old_id)
        name = component.name if component else old_id.value
        for parent in old_graph.parents(old_id):
            changes.append(
                TopologyChange(
                    change_type=TopologyChangeType.DEPENDENCY_REMOVED,
                    component_id=old_id,
                    component_name=name,
                    impact=ImpactLevel.LOW,
                    parent_id=parent,
                    old_depth=old_depths.get(old_id),
                    description=f"{parent.value} no longer depends on removed component {name}",
                )
            )

    changes.sort(key=lambda c: c.sort_key)
    return changes
