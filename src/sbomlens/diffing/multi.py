"""
Multi-snapshot comparison.

Builds on DiffEngine.diff to compare more than two SBOMs at once:

- diff_multi: one baseline against several targets, with a summary of
  the components that vary or go missing across them
- timeline: an ordered series of snapshots, each diffed against its
  predecessor and against the first one
- matrix: every pair of snapshots, with optional similarity clustering

Snapshots are passed as (name, sbom) pairs and names must be unique.
Across snapshots a component is identified by its ecosystem and
normalized name, so different versions of one package count as the same
component.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Sequence

from packaging.version import InvalidVersion, Version

from sbomlens.compliance.checker import ComplianceChecker
from sbomlens.compliance.standards import ComplianceStandard
from sbomlens.diffing.engine import DiffEngine
from sbomlens.diffing.matching import DEFAULT_THRESHOLD, MatchWeights, normalize_name
from sbomlens.diffing.result import ComponentChange, DiffResult
from sbomlens.graph.analyzer import DependencyGraph
from sbomlens.models.component import Component
from sbomlens.models.sbom import NormalizedSbom

logger = logging.getLogger(__name__)

NamedSbom = tuple[str, NormalizedSbom]

# Package key: (ecosystem, normalized name)
PackageKey = tuple[str, str]

# Name fragments of components whose version spread matters most
CRITICAL_COMPONENTS = ("openssl", "curl", "gnutls", "mbedtls", "wolfssl", "boringssl")
HIGH_COMPONENTS = ("zlib", "libssh", "openssh", "gnupg", "gpg", "sqlite", "kernel", "glibc")


class DivergenceType(Enum):
    """How a target's component differs from the baseline."""

    VERSION_MISMATCH = "version_mismatch"
    ADDED = "added"
    REMOVED = "removed"
    LICENSE_MISMATCH = "license_mismatch"
    SUPPLIER_MISMATCH = "supplier_mismatch"


class SecurityImpact(Enum):
    """Security relevance of a component with a version spread."""

    CRITICAL = "critical"
    HIGH = "high"
    LOW = "low"

    @classmethod
    def for_name(cls, name: str) -> SecurityImpact:
        lowered = name.lower()
        if any(fragment in lowered for fragment in CRITICAL_COMPONENTS):
            return cls.CRITICAL
        if any(fragment in lowered for fragment in HIGH_COMPONENTS):
            return cls.HIGH
        return cls.LOW


class VersionChangeType(Enum):
    """Version movement of a component between two timeline points."""

    INITIAL = "initial"
    MAJOR_UPGRADE = "major_upgrade"
    MINOR_UPGRADE = "minor_upgrade"
    PATCH_UPGRADE = "patch_upgrade"
    DOWNGRADE = "downgrade"
    UNCHANGED = "unchanged"
    REMOVED = "removed"
    ABSENT = "absent"


def _parse(version: str | None) -> Version | None:
    if not version:
        return None
    try:
        return Version(version)
    except InvalidVersion:
        return None


def _version_sort_key(version: str) -> tuple[bool, Version, str]:
    parsed = _parse(version)
    return (parsed is None, parsed or Version("0"), version)


def classify_version_change(old: str | None, new: str | None) -> VersionChangeType:
    """
    Classify the movement from one version to the next.

    Versions that do not parse are compared as strings; a larger string
    counts as a patch upgrade.
    """
    if old is None and new is None:
        return VersionChangeType.ABSENT
    if old is None:
        return VersionChangeType.INITIAL
    if new is None:
        return VersionChangeType.REMOVED
    if old == new:
        return VersionChangeType.UNCHANGED

    old_v, new_v = _parse(old), _parse(new)
    if old_v is None or new_v is None:
        return VersionChangeType.PATCH_UPGRADE if new > old else VersionChangeType.DOWNGRADE

    if new_v == old_v:
        return VersionChangeType.UNCHANGED
    if new_v < old_v:
        return VersionChangeType.DOWNGRADE
    if new_v.major != old_v.major:
        return VersionChangeType.MAJOR_UPGRADE
    if new_v.minor != old_v.minor:
        return VersionChangeType.MINOR_UPGRADE
    return VersionChangeType.PATCH_UPGRADE


def major_version_spread(versions: Iterable[str]) -> int:
    """Difference between the highest and lowest parseable major version."""
    majors = {v.major for v in (_parse(version) for version in versions) if v is not None}
    if not majors:
        return 0
    return max(majors) - min(majors)


def package_key(component: Component) -> PackageKey:
    """Version-independent key of a component across snapshots."""
    return (component.ecosystem.value, normalize_name(component.name))


def _key_label(key: PackageKey) -> str:
    return f"{key[0]}:{key[1]}"


def _packages(sbom: NormalizedSbom) -> dict[PackageKey, list[Component]]:
    packages: dict[PackageKey, list[Component]] = {}
    for component in sbom.sorted_components():
        packages.setdefault(package_key(component), []).append(component)
    return packages


def _representative_version(components: Sequence[Component]) -> str | None:
    versions = [c.version for c in components if c.version]
    if not versions:
        return None
    return max(versions, key=_version_sort_key)


def _check_names(names: Sequence[str]) -> None:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise ValueError(f"Duplicate snapshot name: {name}")
        seen.add(name)


# =============================================================================
# Shared result types
# =============================================================================


@dataclass
class SnapshotInfo:
    """Headline facts of one snapshot in a multi-snapshot comparison."""

    name: str
    component_count: int
    dependency_count: int
    vulnerability_counts: dict[str, int]
    timestamp: datetime | None = None

    @classmethod
    def from_sbom(cls, name: str, sbom: NormalizedSbom) -> SnapshotInfo:
        return cls(
            name=name,
            component_count=len(sbom),
            dependency_count=len(sbom.edges),
            vulnerability_counts=sbom.vulnerability_counts(),
            timestamp=sbom.metadata.timestamp,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "component_count": self.component_count,
            "dependency_count": self.dependency_count,
            "vulnerability_counts": dict(self.vulnerability_counts),
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


# =============================================================================
# Baseline against targets
# =============================================================================


@dataclass
class DivergentComponent:
    """A component of a target that differs from the baseline."""

    name: str
    divergence_type: DivergenceType
    baseline_version: str | None
    target_version: str | None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "divergence_type": self.divergence_type.value,
            "baseline_version": self.baseline_version,
            "target_version": self.target_version,
        }


@dataclass
class VariableComponent:
    """A component whose version differs between snapshots."""

    key: str
    name: str
    versions: dict[str, str | None]
    unique_versions: list[str]
    baseline_version: str | None
    major_version_spread: int
    security_impact: SecurityImpact

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "name": self.name,
            "versions": dict(self.versions),
            "unique_versions": list(self.unique_versions),
            "baseline_version": self.baseline_version,
            "major_version_spread": self.major_version_spread,
            "security_impact": self.security_impact.value,
        }


@dataclass
class InconsistentComponent:
    """A component missing from some of the snapshots."""

    key: str
    name: str
    in_baseline: bool
    present_in: list[str]
    missing_from: list[str]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "name": self.name,
            "in_baseline": self.in_baseline,
            "present_in": list(self.present_in),
            "missing_from": list(self.missing_from),
        }


@dataclass
class VulnerabilityMatrix:
    """
    Vulnerability ids across snapshots.

    Attributes:
        per_snapshot: Severity counts per snapshot
        unique: Ids found in exactly one snapshot, keyed by that snapshot
        common: Ids found in every snapshot
    """

    per_snapshot: dict[str, dict[str, int]] = field(default_factory=dict)
    unique: dict[str, list[str]] = field(default_factory=dict)
    common: list[str] = field(default_factory=list)

    @classmethod
    def from_snapshots(cls, snapshots: Sequence[NamedSbom]) -> VulnerabilityMatrix:
        ids = {name: {v.id for _, v in sbom.all_vulnerabilities()} for name, sbom in snapshots}
        matrix = cls(per_snapshot={name: sbom.vulnerability_counts() for name, sbom in snapshots})
        if not ids:
            return matrix

        matrix.common = sorted(set.intersection(*ids.values()))
        for name, own in ids.items():
            others = set().union(*(v for n, v in ids.items() if n != name))
            unique = own - others
            if unique:
                matrix.unique[name] = sorted(unique)
        return matrix

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "per_snapshot": {name: dict(c) for name, c in self.per_snapshot.items()},
            "unique": {name: list(ids) for name, ids in self.unique.items()},
            "common": list(self.common),
        }


@dataclass
class MultiDiffSummary:
    """
    Aggregate view of a baseline compared with several targets.

    Attributes:
        baseline_component_count: Components in the baseline
        universal_components: Keys present in every snapshot
        variable_components: Components with more than one version
        inconsistent_components: Components missing from some snapshot
        deviation_scores: Semantic score of each target against the baseline
        max_deviation: Highest deviation score
        vulnerability_matrix: Vulnerability ids across snapshots
    """

    baseline_component_count: int = 0
    universal_components: list[str] = field(default_factory=list)
    variable_components: list[VariableComponent] = field(default_factory=list)
    inconsistent_components: list[InconsistentComponent] = field(default_factory=list)
    deviation_scores: dict[str, float] = field(default_factory=dict)
    max_deviation: float = 0.0
    vulnerability_matrix: VulnerabilityMatrix = field(default_factory=VulnerabilityMatrix)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "baseline_component_count": self.baseline_component_count,
            "universal_components": list(self.universal_components),
            "variable_components": [c.to_dict() for c in self.variable_components],
            "inconsistent_components": [c.to_dict() for c in self.inconsistent_components],
            "deviation_scores": dict(self.deviation_scores),
            "max_deviation": self.max_deviation,
            "vulnerability_matrix": self.vulnerability_matrix.to_dict(),
        }


@dataclass
class Comparison:
    """One target compared with the baseline."""

    target: SnapshotInfo
    diff: DiffResult
    divergent_components: list[DivergentComponent] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "target": self.target.to_dict(),
            "diff": self.diff.to_dict(),
            "divergent_components": [c.to_dict() for c in self.divergent_components],
        }


@dataclass
class MultiDiffResult:
    """Result of comparing one baseline with several targets."""

    baseline: SnapshotInfo
    comparisons: list[Comparison]
    summary: MultiDiffSummary

    def get_comparison(self, target_name: str) -> Comparison | None:
        """Get the comparison of a target by name."""
        for comparison in self.comparisons:
            if comparison.target.name == target_name:
                return comparison
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "baseline": self.baseline.to_dict(),
            "comparisons": [c.to_dict() for c in self.comparisons],
            "summary": self.summary.to_dict(),
        }


# =============================================================================
# Timeline
# =============================================================================


@dataclass
class VersionAtPoint:
    """Version of a component at one timeline point."""

    index: int
    snapshot: str
    version: str | None
    change_type: VersionChangeType

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "index": self.index,
            "snapshot": self.snapshot,
            "version": self.version,
            "change_type": self.change_type.value,
        }


@dataclass
class ComponentEvolution:
    """
    Lifetime of a component across a timeline.

    last_seen_index is None while the component is still present in the
    last snapshot.
    """

    key: str
    name: str
    first_seen_index: int
    first_seen_version: str | None
    last_seen_index: int | None
    current_version: str | None
    version_change_count: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "name": self.name,
            "first_seen_index": self.first_seen_index,
            "first_seen_version": self.first_seen_version,
            "last_seen_index": self.last_seen_index,
            "current_version": self.current_version,
            "version_change_count": self.version_change_count,
        }


@dataclass
class VulnerabilitySnapshot:
    """Vulnerability counts at one timeline point."""

    index: int
    snapshot: str
    counts: dict[str, int]
    introduced: list[str] = field(default_factory=list)
    resolved: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "index": self.index,
            "snapshot": self.snapshot,
            "counts": dict(self.counts),
            "introduced": list(self.introduced),
            "resolved": list(self.resolved),
        }


@dataclass
class DependencySnapshot:
    """Dependency edge counts at one timeline point."""

    index: int
    snapshot: str
    total_edges: int
    direct_dependencies: int
    transitive_dependencies: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "index": self.index,
            "snapshot": self.snapshot,
            "total_edges": self.total_edges,
            "direct_dependencies": self.direct_dependencies,
            "transitive_dependencies": self.transitive_dependencies,
        }


@dataclass
class ComplianceScoreEntry:
    """Outcome of one standard at one timeline point."""

    standard: ComplianceStandard
    error_count: int
    warning_count: int
    info_count: int
    is_compliant: bool
    score: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "standard": self.standard.value,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "info_count": self.info_count,
            "is_compliant": self.is_compliant,
            "score": self.score,
        }


@dataclass
class ComplianceSnapshot:
    """Compliance outcomes at one timeline point."""

    index: int
    snapshot: str
    scores: list[ComplianceScoreEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "index": self.index,
            "snapshot": self.snapshot,
            "scores": [s.to_dict() for s in self.scores],
        }


@dataclass
class ComponentLicenseChange:
    """A license change on a component between adjacent snapshots."""

    index: int
    name: str
    old_licenses: list[str]
    new_licenses: list[str]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "index": self.index,
            "name": self.name,
            "old_licenses": list(self.old_licenses),
            "new_licenses": list(self.new_licenses),
        }


@dataclass
class EvolutionSummary:
    """
    How an SBOM evolved across a timeline.

    Attributes:
        components_added: Components first seen after the first snapshot
        components_removed: Components absent from the last snapshot
        version_history: Version of each component at every point
        vulnerability_trend: Vulnerability counts per point
        dependency_trend: Edge counts per point
        compliance_trend: Compliance outcomes per point
        license_changes: License changes between adjacent points
    """

    components_added: list[ComponentEvolution] = field(default_factory=list)
    components_removed: list[ComponentEvolution] = field(default_factory=list)
    version_history: dict[str, list[VersionAtPoint]] = field(default_factory=dict)
    vulnerability_trend: list[VulnerabilitySnapshot] = field(default_factory=list)
    dependency_trend: list[DependencySnapshot] = field(default_factory=list)
    compliance_trend: list[ComplianceSnapshot] = field(default_factory=list)
    license_changes: list[ComponentLicenseChange] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "components_added": [c.to_dict() for c in self.components_added],
            "components_removed": [c.to_dict() for c in self.components_removed],
            "version_history": {
                key: [p.to_dict() for p in points] for key, points in self.version_history.items()
            },
            "vulnerability_trend": [s.to_dict() for s in self.vulnerability_trend],
            "dependency_trend": [s.to_dict() for s in self.dependency_trend],
            "compliance_trend": [s.to_dict() for s in self.compliance_trend],
            "license_changes": [c.to_dict() for c in self.license_changes],
        }


@dataclass
class TimelineResult:
    """
    Result of a timeline comparison.

    Attributes:
        snapshots: Snapshot facts, in timeline order
        incremental_diffs: Diff of each snapshot against its predecessor
        cumulative_diffs: Diff of each later snapshot against the first
        evolution: Component and trend summary
    """

    snapshots: list[SnapshotInfo]
    incremental_diffs: list[DiffResult]
    cumulative_diffs: list[DiffResult]
    evolution: EvolutionSummary

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "snapshots": [s.to_dict() for s in self.snapshots],
            "incremental_diffs": [d.to_dict() for d in self.incremental_diffs],
            "cumulative_diffs": [d.to_dict() for d in self.cumulative_diffs],
            "evolution": self.evolution.to_dict(),
        }


# =============================================================================
# Matrix
# =============================================================================


@dataclass
class SnapshotCluster:
    """Snapshots whose pairwise similarity reaches the clustering threshold."""

    members: list[int]
    centroid_index: int
    internal_similarity: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "members": list(self.members),
            "centroid_index": self.centroid_index,
            "internal_similarity": self.internal_similarity,
        }


@dataclass
class SnapshotClustering:
    """Greedy clustering of a similarity matrix."""

    threshold: float
    clusters: list[SnapshotCluster] = field(default_factory=list)
    outliers: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "threshold": self.threshold,
            "clusters": [c.to_dict() for c in self.clusters],
            "outliers": list(self.outliers),
        }


@dataclass
class MatrixResult:
    """
    Pairwise comparison of snapshots.

    diffs and similarity_scores hold the upper triangle of the matrix in
    row order: (0, 1), (0, 2), ..., (1, 2), ... Similarity is
    1 - semantic_score / 100, so identical snapshots score 1.0.
    """

    snapshots: list[SnapshotInfo]
    diffs: list[DiffResult]
    similarity_scores: list[float]
    clustering: SnapshotClustering | None = None

    @property
    def num_pairs(self) -> int:
        n = len(self.snapshots)
        return n * (n - 1) // 2

    def _index(self, i: int, j: int) -> int:
        n = len(self.snapshots)
        if not (0 <= i < n and 0 <= j < n):
            raise IndexError(f"Snapshot index out of range: ({i}, {j})")
        if i > j:
            i, j = j, i
        return i * (2 * n - i - 1) // 2 + (j - i - 1)

    def get_diff(self, i: int, j: int) -> DiffResult | None:
        """Diff of snapshots i and j (older index as the old side), None when i == j."""
        if i == j:
            return None
        return self.diffs[self._index(i, j)]

    def similarity(self, i: int, j: int) -> float:
        """Similarity of snapshots i and j."""
        if i == j:
            return 1.0
        return self.similarity_scores[self._index(i, j)]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "snapshots": [s.to_dict() for s in self.snapshots],
            "diffs": [d.to_dict() for d in self.diffs],
            "similarity_scores": list(self.similarity_scores),
            "clustering": self.clustering.to_dict() if self.clustering else None,
        }


# =============================================================================
# Engine
# =============================================================================


class MultiDiffEngine:
    """
    Compares more than two SBOM snapshots.

    Every pairwise comparison goes through one DiffEngine, so all
    results share the same threshold and weights.

    Example:
        engine = MultiDiffEngine(threshold=0.9)
        result = engine.timeline([("1.0", v1), ("1.1", v11), ("2.0", v2)])
        for point in result.evolution.vulnerability_trend:
            print(point.snapshot, point.counts["critical"])
    """

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        weights: MatchWeights | None = None,
        match_synthetic: bool = False,
    ):
        """
        Initialize the engine.

        Raises:
            ValueError: If the threshold is outside [0, 1]
        """
        self.engine = DiffEngine(
            threshold=threshold, weights=weights, match_synthetic=match_synthetic
        )

    def diff_multi(
        self,
        baseline: NormalizedSbom,
        targets: Sequence[NamedSbom],
        baseline_name: str = "baseline",
    ) -> MultiDiffResult:
        """
        Compare a baseline with several targets.

        Args:
            baseline: Reference snapshot
            targets: (name, sbom) pairs to compare with the baseline
            baseline_name: Name of the baseline in the summary

        Returns:
            MultiDiffResult with one comparison per target, in input order

        Raises:
            ValueError: If snapshot names are not unique
        """
        snapshots: list[NamedSbom] = [(baseline_name, baseline), *targets]
        _check_names([name for name, _ in snapshots])

        comparisons = []
        for name, target in targets:
            result = self.engine.diff(baseline, target)
            comparisons.append(
                Comparison(
                    target=SnapshotInfo.from_sbom(name, target),
                    diff=result,
                    divergent_components=_divergent_components(result),
                )
            )

        summary = self._summarize(snapshots, comparisons)
        logger.debug(
            f"Compared baseline {baseline_name} with {len(targets)} targets: "
            f"{len(summary.variable_components)} variable, "
            f"{len(summary.inconsistent_components)} inconsistent components"
        )
        return MultiDiffResult(
            baseline=SnapshotInfo.from_sbom(baseline_name, baseline),
            comparisons=comparisons,
            summary=summary,
        )

    def _summarize(
        self, snapshots: Sequence[NamedSbom], comparisons: Sequence[Comparison]
    ) -> MultiDiffSummary:
        baseline_name, baseline = snapshots[0]
        packages = {name: _packages(sbom) for name, sbom in snapshots}
        all_keys = sorted(set().union(*packages.values()))

        summary = MultiDiffSummary(
            baseline_component_count=len(baseline),
            vulnerability_matrix=VulnerabilityMatrix.from_snapshots(snapshots),
        )

        for key in all_keys:
            present_in = [name for name in packages if key in packages[name]]
            first = next(packages[name][key][0] for name in present_in)
            label = _key_label(key)

            if len(present_in) == len(packages):
                summary.universal_components.append(label)
            else:
                summary.inconsistent_components.append(
                    InconsistentComponent(
                        key=label,
                        name=first.name,
                        in_baseline=key in packages[baseline_name],
                        present_in=present_in,
                        missing_from=[name for name in packages if name not in present_in],
                    )
                )

            versions = {
                name: _representative_version(packages[name][key]) for name in present_in
            }
            all_versions = {
                c.version for name in present_in for c in packages[name][key] if c.version
            }
            if len(set(versions.values())) > 1 or len(all_versions) > 1:
                unique_versions = sorted(all_versions, key=_version_sort_key)
                summary.variable_components.append(
                    VariableComponent(
                        key=label,
                        name=first.name,
                        versions=versions,
                        unique_versions=unique_versions,
                        baseline_version=versions.get(baseline_name),
                        major_version_spread=major_version_spread(unique_versions),
                        security_impact=SecurityImpact.for_name(first.name),
                    )
                )

        for comparison in comparisons:
            summary.deviation_scores[comparison.target.name] = comparison.diff.semantic_score
        summary.max_deviation = max(summary.deviation_scores.values(), default=0.0)
        return summary

    def timeline(
        self,
        snapshots: Sequence[NamedSbom],
        standards: Iterable[ComplianceStandard] | None = None,
    ) -> TimelineResult:
        """
        Follow an ordered series of snapshots.

        Args:
            snapshots: (name, sbom) pairs, oldest first
            standards: Standards for the compliance trend (default: all)

        Returns:
            TimelineResult

        Raises:
            ValueError: If snapshot names are not unique
        """
        _check_names([name for name, _ in snapshots])
        checkers = [ComplianceChecker(s) for s in (standards or list(ComplianceStandard))]

        incremental = [
            self.engine.diff(snapshots[i - 1][1], snapshots[i][1])
            for i in range(1, len(snapshots))
        ]
        # The first cumulative diff is the first incremental one
        cumulative = incremental[:1] + [
            self.engine.diff(snapshots[0][1], snapshots[i][1]) for i in range(2, len(snapshots))
        ]

        evolution = _evolution(snapshots, incremental)
        for index, (name, sbom) in enumerate(snapshots):
            evolution.compliance_trend.append(
                ComplianceSnapshot(
                    index=index,
                    snapshot=name,
                    scores=[_compliance_entry(checker, sbom) for checker in checkers],
                )
            )

        return TimelineResult(
            snapshots=[SnapshotInfo.from_sbom(name, sbom) for name, sbom in snapshots],
            incremental_diffs=incremental,
            cumulative_diffs=cumulative,
            evolution=evolution,
        )

    def matrix(
        self,
        snapshots: Sequence[NamedSbom],
        cluster_threshold: float | None = None,
    ) -> MatrixResult:
        """
        Compare every pair of snapshots.

        Args:
            snapshots: (name, sbom) pairs
            cluster_threshold: When set, group snapshots whose similarity
                is at least this value

        Returns:
            MatrixResult

        Raises:
            ValueError: If snapshot names are not unique
        """
        _check_names([name for name, _ in snapshots])

        diffs: list[DiffResult] = []
        similarity_scores: list[float] = []
        for i in range(len(snapshots)):
            for j in range(i + 1, len(snapshots)):
                result = self.engine.diff(snapshots[i][1], snapshots[j][1])
                diffs.append(result)
                similarity_scores.append(round(1.0 - result.semantic_score / 100.0, 4))

        matrix = MatrixResult(
            snapshots=[SnapshotInfo.from_sbom(name, sbom) for name, sbom in snapshots],
            diffs=diffs,
            similarity_scores=similarity_scores,
        )
        if cluster_threshold is not None:
            matrix.clustering = _cluster(matrix, cluster_threshold)
        return matrix


def _divergent_components(result: DiffResult) -> list[DivergentComponent]:
    divergent: list[DivergentComponent] = []

    def add(change: ComponentChange, divergence_type: DivergenceType) -> None:
        divergent.append(
            DivergentComponent(
                name=change.name,
                divergence_type=divergence_type,
                baseline_version=change.old.version if change.old else None,
                target_version=change.new.version if change.new else None,
            )
        )

    for change in result.components.modified:
        fields = change.changed_fields
        if "version" in fields:
            add(change, DivergenceType.VERSION_MISMATCH)
        elif "licenses" in fields:
            add(change, DivergenceType.LICENSE_MISMATCH)
        elif "supplier" in fields:
            add(change, DivergenceType.SUPPLIER_MISMATCH)
    for change in result.components.added:
        add(change, DivergenceType.ADDED)
    for change in result.components.removed:
        add(change, DivergenceType.REMOVED)
    return divergent


def _evolution(
    snapshots: Sequence[NamedSbom], incremental: Sequence[DiffResult]
) -> EvolutionSummary:
    evolution = EvolutionSummary()
    packages = [_packages(sbom) for _, sbom in snapshots]
    last = len(snapshots) - 1

    for key in sorted(set().union(*packages)):
        label = _key_label(key)
        history: list[VersionAtPoint] = []
        first_seen: int | None = None
        last_seen: int | None = None
        previous: str | None = None
        change_count = 0

        for index, (name, _) in enumerate(snapshots):
            components = packages[index].get(key)
            if components is None:
                change_type = (
                    VersionChangeType.ABSENT if first_seen is None else VersionChangeType.REMOVED
                )
                history.append(VersionAtPoint(index, name, None, change_type))
                continue

            version = _representative_version(components)
            if first_seen is None:
                first_seen = index
                change_type = VersionChangeType.INITIAL
            else:
                change_type = classify_version_change(previous, version)
                if change_type not in (VersionChangeType.UNCHANGED, VersionChangeType.ABSENT):
                    change_count += 1
            last_seen = index
            previous = version
            history.append(VersionAtPoint(index, name, version, change_type))

        evolution.version_history[label] = history
        if first_seen is None:
            continue

        still_present = last_seen == last
        component_name = packages[first_seen][key][0].name
        item = ComponentEvolution(
            key=label,
            name=component_name,
            first_seen_index=first_seen,
            first_seen_version=history[first_seen].version,
            last_seen_index=None if still_present else last_seen,
            current_version=history[last].version if still_present else None,
            version_change_count=change_count,
        )
        if first_seen > 0:
            evolution.components_added.append(item)
        if not still_present:
            evolution.components_removed.append(item)

    for index, (name, sbom) in enumerate(snapshots):
        point = VulnerabilitySnapshot(index, name, sbom.vulnerability_counts())
        if index > 0:
            changes = incremental[index - 1].vulnerabilities
            point.introduced = sorted({v.vuln_id for v in changes.introduced})
            point.resolved = sorted({v.vuln_id for v in changes.resolved})
        evolution.vulnerability_trend.append(point)
        evolution.dependency_trend.append(_dependency_snapshot(index, name, sbom))

    for index, result in enumerate(incremental, start=1):
        for change in result.components.modified:
            licenses = change.get_change("licenses")
            if licenses is not None:
                evolution.license_changes.append(
                    ComponentLicenseChange(
                        index=index,
                        name=change.name,
                        old_licenses=list(licenses.old_value),
                        new_licenses=list(licenses.new_value),
                    )
                )

    return evolution


def _dependency_snapshot(index: int, name: str, sbom: NormalizedSbom) -> DependencySnapshot:
    if sbom.primary_component_id is not None and sbom.primary_component_id in sbom:
        tops = {sbom.primary_component_id}
    else:
        tops = set(DependencyGraph.from_sbom(sbom).roots())
    direct = sum(1 for edge in sbom.edges if edge.from_id in tops)
    return DependencySnapshot(
        index=index,
        snapshot=name,
        total_edges=len(sbom.edges),
        direct_dependencies=direct,
        transitive_dependencies=len(sbom.edges) - direct,
    )


def _compliance_entry(checker: ComplianceChecker, sbom: NormalizedSbom) -> ComplianceScoreEntry:
    result = checker.check(sbom)
    return ComplianceScoreEntry(
        standard=result.standard,
        error_count=result.error_count,
        warning_count=result.warning_count,
        info_count=result.info_count,
        is_compliant=result.is_compliant,
        score=result.score,
    )


def _cluster(matrix: MatrixResult, threshold: float) -> SnapshotClustering:
    clustering = SnapshotClustering(threshold=threshold)
    assigned: set[int] = set()
    n = len(matrix.snapshots)

    for i in range(n):
        if i in assigned:
            continue
        members = [i]
        assigned.add(i)
        for j in range(i + 1, n):
            if j not in assigned and matrix.similarity(i, j) >= threshold:
                members.append(j)
                assigned.add(j)

        if len(members) == 1:
            clustering.outliers.append(i)
            continue

        pairs = [(a, b) for pos, a in enumerate(members) for b in members[pos + 1 :]]
        internal = sum(matrix.similarity(a, b) for a, b in pairs) / len(pairs)
        clustering.clusters.append(
            SnapshotCluster(
                members=members,
                centroid_index=members[0],
                internal_similarity=round(internal, 4),
            )
        )

    return clustering


def diff_multi(
    baseline: NormalizedSbom,
    targets: Sequence[NamedSbom],
    baseline_name: str = "baseline",
    threshold: float = DEFAULT_THRESHOLD,
) -> MultiDiffResult:
    """Compare a baseline with several (name, sbom) targets."""
    return MultiDiffEngine(threshold=threshold).diff_multi(baseline, targets, baseline_name)


def timeline(
    snapshots: Sequence[NamedSbom], threshold: float = DEFAULT_THRESHOLD
) -> TimelineResult:
    """Follow an ordered series of (name, sbom) snapshots."""
    return MultiDiffEngine(threshold=threshold).timeline(snapshots)


def matrix(
    snapshots: Sequence[NamedSbom],
    threshold: float = DEFAULT_THRESHOLD,
    cluster_threshold: float | None = None,
) -> MatrixResult:
    """Compare every pair of (name, sbom) snapshots."""
    return MultiDiffEngine(threshold=threshold).matrix(snapshots, cluster_threshold)
