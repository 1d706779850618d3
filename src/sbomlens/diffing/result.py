"""
Diff result types.

A DiffResult is a derived, read-only artifact: it is recomputed for each
comparison and never updated in place. Every list it holds is sorted so
that identical inputs produce identical output, including ordering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from sbomlens.models.component import Component, Severity, VexState, VulnerabilityRef
from sbomlens.models.identifiers import CanonicalId
from sbomlens.models.sbom import DependencyEdge
from sbomlens.risk.vulnerability import (
    SlaStatus,
    sla_due_date,
    sla_status,
    vex_actionable,
)


class ChangeType(Enum):
    """Kind of component change."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


class MatchKind(Enum):
    """How the old and new side of a modified component were paired."""

    EXACT = "exact"  # same canonical id
    FUZZY = "fuzzy"  # re-paired by similarity


class ImpactLevel(Enum):
    """Impact of a graph topology change."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Numeric rank (higher = more impactful)."""
        ranks = {
            ImpactLevel.CRITICAL: 3,
            ImpactLevel.HIGH: 2,
            ImpactLevel.MEDIUM: 1,
            ImpactLevel.LOW: 0,
        }
        return ranks[self]


class TopologyChangeType(Enum):
    """Kind of dependency graph topology change."""

    DEPENDENCY_ADDED = "dependency_added"
    DEPENDENCY_REMOVED = "dependency_removed"
    REPARENTED = "reparented"
    DEPTH_CHANGED = "depth_changed"


def _value(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(_value(v) for v in value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, CanonicalId):
        return value.value
    return value


@dataclass(frozen=True)
class FieldChange:
    """A single tracked field that differs between snapshots."""

    field: str
    old_value: Any
    new_value: Any

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "field": self.field,
            "old": _value(self.old_value),
            "new": _value(self.new_value),
        }


@dataclass
class ComponentChange:
    """
    A component-level change.

    For ADDED only new is set; for REMOVED only old is set. MODIFIED
    entries carry both sides plus the differing fields.
    """

    change_type: ChangeType
    old: Component | None = None
    new: Component | None = None
    match_kind: MatchKind | None = None
    similarity: float | None = None
    field_changes: list[FieldChange] = field(default_factory=list)

    @property
    def old_id(self) -> CanonicalId | None:
        return self.old.canonical_id if self.old else None

    @property
    def new_id(self) -> CanonicalId | None:
        return self.new.canonical_id if self.new else None

    @property
    def canonical_id(self) -> CanonicalId:
        """The new-side id when present, otherwise the old-side id."""
        component = self.new or self.old
        return component.canonical_id  # type: ignore[union-attr]

    @property
    def name(self) -> str:
        component = self.new or self.old
        return component.name  # type: ignore[union-attr]

    @property
    def changed_fields(self) -> list[str]:
        """Names of the fields that differ."""
        return [c.field for c in self.field_changes]

    def get_change(self, field_name: str) -> FieldChange | None:
        """Get the change record of a field, if it changed."""
        for change in self.field_changes:
            if change.field == field_name:
                return change
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {
            "change_type": self.change_type.value,
            "name": self.name,
            "old_id": self.old_id.value if self.old_id else None,
            "new_id": self.new_id.value if self.new_id else None,
            "old_version": self.old.version if self.old else None,
            "new_version": self.new.version if self.new else None,
        }
        if self.change_type is ChangeType.MODIFIED:
            data["match_kind"] = self.match_kind.value if self.match_kind else None
            data["similarity"] = self.similarity
            data["field_changes"] = [c.to_dict() for c in self.field_changes]
        return data


@dataclass
class ComponentChangeSet:
    """Component partitions of a diff."""

    added: list[ComponentChange] = field(default_factory=list)
    removed: list[ComponentChange] = field(default_factory=list)
    modified: list[ComponentChange] = field(default_factory=list)
    unchanged: list[CanonicalId] = field(default_factory=list)

    @property
    def fuzzy_matches(self) -> list[ComponentChange]:
        """Modified entries produced by fuzzy re-pairing."""
        return [c for c in self.modified if c.match_kind is MatchKind.FUZZY]

    @property
    def total_changes(self) -> int:
        return len(self.added) + len(self.removed) + len(self.modified)

    def is_empty(self) -> bool:
        """Whether no component was added, removed or modified."""
        return self.total_changes == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "added": [c.to_dict() for c in self.added],
            "removed": [c.to_dict() for c in self.removed],
            "modified": [c.to_dict() for c in self.modified],
            "unchanged_count": len(self.unchanged),
        }


@dataclass
class DependencyChangeSet:
    """Edge-set difference on (from, to)."""

    added: list[DependencyEdge] = field(default_factory=list)
    removed: list[DependencyEdge] = field(default_factory=list)

    @property
    def total_changes(self) -> int:
        return len(self.added) + len(self.removed)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "added": [e.to_dict() for e in self.added],
            "removed": [e.to_dict() for e in self.removed],
        }


@dataclass(frozen=True)
class VulnerabilityDetail:
    """One (component, vulnerability) pair in a diff."""

    vuln_id: str
    component_id: CanonicalId
    component_name: str
    component_version: str | None
    severity: Severity
    cvss_score: float | None = None
    cwes: tuple[str, ...] = ()
    published: date | None = None
    kev_due_date: date | None = None
    vex_state: VexState | None = None
    fixed_version: str | None = None

    @classmethod
    def from_component(cls, component: Component, vuln: VulnerabilityRef) -> VulnerabilityDetail:
        """Build a detail record from a component and one of its vulnerabilities."""
        return cls(
            vuln_id=vuln.id,
            component_id=component.canonical_id,
            component_name=component.name,
            component_version=component.version,
            severity=vuln.severity,
            cvss_score=vuln.cvss_score,
            cwes=vuln.cwes,
            published=vuln.published,
            kev_due_date=vuln.kev_due_date,
            vex_state=vuln.vex_state,
            fixed_version=vuln.fixed_version,
        )

    @property
    def sort_key(self) -> tuple:
        return (self.component_id, self.vuln_id)

    @property
    def is_kev(self) -> bool:
        return self.kev_due_date is not None

    @property
    def actionable(self) -> bool:
        """Whether the VEX state still calls for action."""
        return vex_actionable(self.vex_state)

    def sla_status(self, today: date | None = None) -> SlaStatus:
        """Remediation SLA status (KEV due date first, then severity window)."""
        ref = VulnerabilityRef(
            id=self.vuln_id,
            severity=self.severity,
            published=self.published,
            kev_due_date=self.kev_due_date,
        )
        return sla_status(sla_due_date(ref), today=today)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.vuln_id,
            "component_id": self.component_id.value,
            "component_name": self.component_name,
            "component_version": self.component_version,
            "severity": self.severity.value,
            "cvss_score": self.cvss_score,
            "cwes": list(self.cwes),
            "published": self.published.isoformat() if self.published else None,
            "kev_due_date": self.kev_due_date.isoformat() if self.kev_due_date else None,
            "vex_state": self.vex_state.value if self.vex_state else None,
            "fixed_version": self.fixed_version,
        }


@dataclass
class VulnerabilityChangeSet:
    """(component, vulnerability) pairs partitioned by snapshot membership."""

    introduced: list[VulnerabilityDetail] = field(default_factory=list)
    resolved: list[VulnerabilityDetail] = field(default_factory=list)
    persistent: list[VulnerabilityDetail] = field(default_factory=list)

    def introduced_by_severity(self) -> dict[str, int]:
        """Counts of introduced vulnerabilities by severity value."""
        counts = {s.value: 0 for s in Severity}
        for detail in self.introduced:
            counts[detail.severity.value] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "introduced": [v.to_dict() for v in self.introduced],
            "resolved": [v.to_dict() for v in self.resolved],
            "persistent": [v.to_dict() for v in self.persistent],
        }


@dataclass(frozen=True)
class LicenseChange:
    """A license that appeared in or disappeared from the SBOM."""

    license: str
    component_ids: tuple[CanonicalId, ...]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "license": self.license,
            "components": [c.value for c in self.component_ids],
        }


@dataclass
class LicenseChangeSet:
    """Licenses whose component set went empty -> non-empty or back."""

    new: list[LicenseChange] = field(default_factory=list)
    removed: list[LicenseChange] = field(default_factory=list)

    @property
    def total_changes(self) -> int:
        return len(self.new) + len(self.removed)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "new": [c.to_dict() for c in self.new],
            "removed": [c.to_dict() for c in self.removed],
        }


@dataclass(frozen=True)
class TopologyChange:
    """A change in where a component sits in the dependency graph."""

    change_type: TopologyChangeType
    component_id: CanonicalId
    component_name: str
    impact: ImpactLevel
    parent_id: CanonicalId | None = None
    old_parents: tuple[CanonicalId, ...] = ()
    new_parents: tuple[CanonicalId, ...] = ()
    old_depth: int | None = None
    new_depth: int | None = None
    description: str = ""

    @property
    def sort_key(self) -> tuple:
        return (
            -self.impact.rank,
            self.component_id,
            self.change_type.value,
            self.parent_id.value if self.parent_id else "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "change_type": self.change_type.value,
            "component_id": self.component_id.value,
            "component_name": self.component_name,
            "impact": self.impact.value,
            "parent_id": self.parent_id.value if self.parent_id else None,
            "old_parents": [p.value for p in self.old_parents],
            "new_parents": [p.value for p in self.new_parents],
            "old_depth": self.old_depth,
            "new_depth": self.new_depth,
            "description": self.description,
        }


@dataclass
class DiffSummary:
    """Summary counts of a diff."""

    components_added: int = 0
    components_removed: int = 0
    components_modified: int = 0
    components_unchanged: int = 0
    fuzzy_matches: int = 0
    dependencies_added: int = 0
    dependencies_removed: int = 0
    vulnerabilities_introduced: int = 0
    vulnerabilities_resolved: int = 0
    vulnerabilities_persistent: int = 0
    licenses_new: int = 0
    licenses_removed: int = 0
    topology_changes: int = 0

    @property
    def total_changes(self) -> int:
        return (
            self.components_added
            + self.components_removed
            + self.components_modified
            + self.dependencies_added
            + self.dependencies_removed
        )

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary."""
        return {
            "components_added": self.components_added,
            "components_removed": self.components_removed,
            "components_modified": self.components_modified,
            "components_unchanged": self.components_unchanged,
            "fuzzy_matches": self.fuzzy_matches,
            "dependencies_added": self.dependencies_added,
            "dependencies_removed": self.dependencies_removed,
            "vulnerabilities_introduced": self.vulnerabilities_introduced,
            "vulnerabilities_resolved": self.vulnerabilities_resolved,
            "vulnerabilities_persistent": self.vulnerabilities_persistent,
            "licenses_new": self.licenses_new,
            "licenses_removed": self.licenses_removed,
            "topology_changes": self.topology_changes,
            "total_changes": self.total_changes,
        }


@dataclass
class DiffResult:
    """
    Result of comparing two SBOM snapshots.

    Attributes:
        components: Added/removed/modified components
        dependencies: Edge-set difference
        vulnerabilities: Introduced/resolved/persistent vulnerabilities
        licenses: New/removed licenses
        topology: Graph topology changes, most impactful first
        semantic_score: Overall change magnitude (0-100)
        summary: Summary counts
        threshold: Similarity threshold used for fuzzy matching
        engine_version: Engine version that produced the result
    """

    components: ComponentChangeSet
    dependencies: DependencyChangeSet
    vulnerabilities: VulnerabilityChangeSet
    licenses: LicenseChangeSet
    topology: list[TopologyChange]
    semantic_score: float
    summary: DiffSummary
    threshold: float
    engine_version: str

    def has_changes(self) -> bool:
        """Whether anything differs between the snapshots."""
        return (
            not self.components.is_empty()
            or self.dependencies.total_changes > 0
            or bool(self.vulnerabilities.introduced)
            or bool(self.vulnerabilities.resolved)
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "engine_version": self.engine_version,
            "threshold": self.threshold,
            "semantic_score": self.semantic_score,
            "summary": self.summary.to_dict(),
            "components": self.components.to_dict(),
            "dependencies": self.dependencies.to_dict(),
            "vulnerabilities": self.vulnerabilities.to_dict(),
            "licenses": self.licenses.to_dict(),
            "topology": [t.to_dict() for t in self.topology],
        }
