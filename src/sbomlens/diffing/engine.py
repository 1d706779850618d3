"""
SBOM diff engine.

Compares two normalized SBOM snapshots:

1. Exact match by canonical id set difference, with field-by-field
   comparison of the components present in both.
2. Fuzzy re-pairing of the leftover removed/added components.
3. Derived deltas: dependencies, vulnerabilities, licenses and graph
   topology.
4. A semantic change score.

The engine holds no state between calls; the threshold is given per
engine instance and recorded in every result.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from sbomlens.diffing.matching import DEFAULT_THRESHOLD, ComponentMatcher, MatchWeights
from sbomlens.diffing.result import (
    ChangeType,
    ComponentChange,
    ComponentChangeSet,
    DependencyChangeSet,
    DiffResult,
    DiffSummary,
    FieldChange,
    LicenseChange,
    LicenseChangeSet,
    MatchKind,
    VulnerabilityChangeSet,
    VulnerabilityDetail,
)
from sbomlens.diffing.semantic import semantic_score
from sbomlens.diffing.topology import detect_topology_changes
from sbomlens.graph.analyzer import DependencyGraph
from sbomlens.models.component import Component
from sbomlens.models.identifiers import CanonicalId
from sbomlens.models.sbom import DependencyEdge, NormalizedSbom
from sbomlens.version import ENGINE_VERSION

logger = logging.getLogger(__name__)

# Fields whose difference puts a component in "modified"
TRACKED_FIELDS = ("version", "licenses", "hashes", "vulnerabilities", "supplier")

# Comparable value of each tracked field
FIELD_VALUES: dict[str, Callable[[Component], Any]] = {
    "version": lambda c: c.version,
    "licenses": lambda c: tuple(sorted(c.license_set)),
    "hashes": lambda c: tuple(sorted(f"{h.algorithm.value}:{h.digest}" for h in c.hash_set)),
    "vulnerabilities": lambda c: tuple(sorted(c.vulnerability_ids)),
    "supplier": lambda c: c.supplier,
}


def compare_components(
    old: Component, new: Component, include_identity: bool = False
) -> list[FieldChange]:
    """
    Compare the tracked fields of two components.

    Args:
        old: Old-side component
        new: New-side component
        include_identity: Also report id, name and ecosystem differences
            (used for fuzzy-matched pairs)

    Returns:
        Field changes, identity fields first and then in TRACKED_FIELDS order
    """
    changes: list[FieldChange] = []

    if include_identity:
        if old.canonical_id != new.canonical_id:
            changes.append(FieldChange("id", old.canonical_id.value, new.canonical_id.value))
        if old.name != new.name:
            changes.append(FieldChange("name", old.name, new.name))
        if old.ecosystem != new.ecosystem:
            changes.append(FieldChange("ecosystem", old.ecosystem.value, new.ecosystem.value))

    for name in TRACKED_FIELDS:
        value = FIELD_VALUES[name]
        old_value, new_value = value(old), value(new)
        if old_value != new_value:
            changes.append(FieldChange(name, old_value, new_value))

    return changes


class DiffEngine:
    """
    Compares two SBOM snapshots.

    Example:
        engine = DiffEngine(threshold=0.9)
        result = engine.diff(old_sbom, new_sbom)
        for change in result.components.modified:
            print(change.name, change.changed_fields)
    """

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        weights: MatchWeights | None = None,
        match_synthetic: bool = False,
    ):
        """
        Initialize the diff engine.

        Args:
            threshold: Fuzzy matching similarity threshold, in [0, 1]
            weights: Similarity dimension weights
            match_synthetic: Allow synthetic ids to be fuzzily paired

        Raises:
            ValueError: If the threshold is outside [0, 1]
        """
        self.matcher = ComponentMatcher(
            threshold=threshold, weights=weights, match_synthetic=match_synthetic
        )

    @property
    def threshold(self) -> float:
        return self.matcher.threshold

    def diff(self, old: NormalizedSbom, new: NormalizedSbom) -> DiffResult:
        """
        Compare two snapshots.

        Args:
            old: Baseline snapshot
            new: Snapshot to compare against the baseline

        Returns:
            DiffResult
        """
        components, id_map = self._component_changes(old, new)
        dependencies, dependency_total = self._dependency_changes(old, new)
        vulnerabilities = self._vulnerability_changes(old, new, id_map)
        licenses, license_total = self._license_changes(old, new)

        topology = detect_topology_changes(
            old,
            new,
            id_map,
            old_graph=DependencyGraph.from_sbom(old),
            new_graph=DependencyGraph.from_sbom(new),
        )

        semantic = semantic_score(
            component_changes=components.total_changes,
            component_total=components.total_changes + len(components.unchanged),
            dependency_changes=dependencies.total_changes,
            dependency_total=dependency_total,
            license_changes=licenses.total_changes,
            license_total=license_total,
            introduced=[v.severity for v in vulnerabilities.introduced],
            resolved=[v.severity for v in vulnerabilities.resolved],
        )

        summary = DiffSummary(
            components_added=len(components.added),
            components_removed=len(components.removed),
            components_modified=len(components.modified),
            components_unchanged=len(components.unchanged),
            fuzzy_matches=len(components.fuzzy_matches),
            dependencies_added=len(dependencies.added),
            dependencies_removed=len(dependencies.removed),
            vulnerabilities_introduced=len(vulnerabilities.introduced),
            vulnerabilities_resolved=len(vulnerabilities.resolved),
            vulnerabilities_persistent=len(vulnerabilities.persistent),
            licenses_new=len(licenses.new),
            licenses_removed=len(licenses.removed),
            topology_changes=len(topology),
        )

        logger.debug(
            f"Diff complete: +{summary.components_added} -{summary.components_removed} "
            f"~{summary.components_modified} (fuzzy {summary.fuzzy_matches}), "
            f"semantic score {semantic.score}"
        )

        return DiffResult(
            components=components,
            dependencies=dependencies,
            vulnerabilities=vulnerabilities,
            licenses=licenses,
            topology=topology,
            semantic_score=semantic.score,
            summary=summary,
            threshold=self.threshold,
            engine_version=ENGINE_VERSION,
        )

    def _component_changes(
        self, old: NormalizedSbom, new: NormalizedSbom
    ) -> tuple[ComponentChangeSet, dict[CanonicalId, CanonicalId]]:
        old_ids, new_ids = old.ids, new.ids
        changes = ComponentChangeSet()
        id_map: dict[CanonicalId, CanonicalId] = {}

        # Step 1: exact match on canonical id
        for cid in sorted(old_ids & new_ids):
            id_map[cid] = cid
            old_component, new_component = old.components[cid], new.components[cid]
            field_changes = compare_components(old_component, new_component)
            if field_changes:
                changes.modified.append(
                    ComponentChange(
                        change_type=ChangeType.MODIFIED,
                        old=old_component,
                        new=new_component,
                        match_kind=MatchKind.EXACT,
                        similarity=1.0,
                        field_changes=field_changes,
                    )
                )
            else:
                changes.unchanged.append(cid)

        # Step 2: fuzzy re-pairing of what is left
        removed = [old.components[cid] for cid in sorted(old_ids - new_ids)]
        added = [new.components[cid] for cid in sorted(new_ids - old_ids)]

        for pair in self.matcher.match(removed, added):
            id_map[pair.old.canonical_id] = pair.new.canonical_id
            changes.modified.append(
                ComponentChange(
                    change_type=ChangeType.MODIFIED,
                    old=pair.old,
                    new=pair.new,
                    match_kind=MatchKind.FUZZY,
                    similarity=pair.score,
                    field_changes=compare_components(pair.old, pair.new, include_identity=True),
                )
            )

        paired_new = set(id_map.values())
        changes.removed = [
            ComponentChange(change_type=ChangeType.REMOVED, old=c)
            for c in removed
            if c.canonical_id not in id_map
        ]
        changes.added = [
            ComponentChange(change_type=ChangeType.ADDED, new=c)
            for c in added
            if c.canonical_id not in paired_new
        ]
        changes.modified.sort(key=lambda c: (c.new_id, c.old_id))

        return changes, id_map

    def _dependency_changes(
        self, old: NormalizedSbom, new: NormalizedSbom
    ) -> tuple[DependencyChangeSet, int]:
        old_edges = _edges_by_key(old)
        new_edges = _edges_by_key(new)

        changes = DependencyChangeSet(
            added=[new_edges[k] for k in sorted(new_edges.keys() - old_edges.keys())],
            removed=[old_edges[k] for k in sorted(old_edges.keys() - new_edges.keys())],
        )
        return changes, len(old_edges.keys() | new_edges.keys())

    def _vulnerability_changes(
        self,
        old: NormalizedSbom,
        new: NormalizedSbom,
        id_map: Mapping[CanonicalId, CanonicalId],
    ) -> VulnerabilityChangeSet:
        # Old-side pairs are keyed by the new-side id of their component so
        # that a fuzzy-matched component keeps its persistent vulnerabilities.
        old_pairs: dict[tuple[CanonicalId, str], VulnerabilityDetail] = {}
        for component, vuln in old.all_vulnerabilities():
            key = (id_map.get(component.canonical_id, component.canonical_id), vuln.id)
            old_pairs.setdefault(key, VulnerabilityDetail.from_component(component, vuln))

        new_pairs: dict[tuple[CanonicalId, str], VulnerabilityDetail] = {}
        for component, vuln in new.all_vulnerabilities():
            key = (component.canonical_id, vuln.id)
            new_pairs.setdefault(key, VulnerabilityDetail.from_component(component, vuln))

        changes = VulnerabilityChangeSet(
            introduced=[new_pairs[k] for k in sorted(new_pairs.keys() - old_pairs.keys())],
            resolved=[old_pairs[k] for k in sorted(old_pairs.keys() - new_pairs.keys())],
            persistent=[new_pairs[k] for k in sorted(new_pairs.keys() & old_pairs.keys())],
        )
        return changes

    def _license_changes(
        self, old: NormalizedSbom, new: NormalizedSbom
    ) -> tuple[LicenseChangeSet, int]:
        old_map = _components_by_license(old)
        new_map = _components_by_license(new)

        changes = LicenseChangeSet(
            new=[
                LicenseChange(name, tuple(sorted(new_map[name])))
                for name in sorted(new_map.keys() - old_map.keys())
            ],
            removed=[
                LicenseChange(name, tuple(sorted(old_map[name])))
                for name in sorted(old_map.keys() - new_map.keys())
            ],
        )
        return changes, len(old_map.keys() | new_map.keys())


def _edges_by_key(sbom: NormalizedSbom) -> dict[tuple[CanonicalId, CanonicalId], DependencyEdge]:
    # An edge is only live while both endpoints are components of the snapshot
    by_key: dict[tuple[CanonicalId, CanonicalId], DependencyEdge] = {}
    for edge in sbom.edges:
        if edge.from_id not in sbom or edge.to_id not in sbom:
            continue
        by_key.setdefault(edge.key, edge)
    return by_key


def _components_by_license(sbom: NormalizedSbom) -> dict[str, set[CanonicalId]]:
    by_license: dict[str, set[CanonicalId]] = {}
    for component in sbom:
        for name in component.licenses:
            by_license.setdefault(name, set()).add(component.canonical_id)
    return by_license


def diff(
    old: NormalizedSbom,
    new: NormalizedSbom,
    threshold: float = DEFAULT_THRESHOLD,
    weights: MatchWeights | None = None,
    match_synthetic: bool = False,
) -> DiffResult:
    """
    Convenience function to compare two snapshots.

    Args:
        old: Baseline snapshot
        new: Snapshot to compare
        threshold: Fuzzy matching similarity threshold
        weights: Similarity dimension weights
        match_synthetic: Allow synthetic ids to be fuzzily paired

    Returns:
        DiffResult
    """
    engine = DiffEngine(threshold=threshold, weights=weights, match_synthetic=match_synthetic)
    return engine.diff(old, new)
