"""
Vulnerability risk engine for sbomlens.

Derives fix urgency, remediation SLA status and VEX actionability for the
vulnerabilities attached to SBOM components, using blast radius from the
dependency graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from functools import total_ordering
from typing import Any

from sbomlens.graph.analyzer import DependencyGraph
from sbomlens.models.component import Severity, VexState, VulnerabilityRef
from sbomlens.models.identifiers import CanonicalId
from sbomlens.models.sbom import NormalizedSbom

logger = logging.getLogger(__name__)

# Remediation windows by severity, in days after publication
SEVERITY_SLA_DAYS = {
    Severity.CRITICAL: 1,
    Severity.HIGH: 7,
    Severity.MEDIUM: 30,
    Severity.LOW: 90,
}

DUE_SOON_DAYS = 3

ACTIONABLE_VEX_STATES = (VexState.AFFECTED, VexState.UNDER_INVESTIGATION)


class SlaState(Enum):
    """Remediation SLA state."""

    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    ON_TRACK = "on_track"
    NO_DUE_DATE = "no_due_date"


@total_ordering
@dataclass(frozen=True)
class SlaStatus:
    """
    Remediation SLA status of a vulnerability.

    For OVERDUE, days is how many days past due; for DUE_SOON and
    ON_TRACK it is the days remaining. Instances order by urgency: every
    overdue item sorts before any non-overdue one (most overdue first),
    then ascending days remaining, then NO_DUE_DATE last.
    """

    state: SlaState
    days: int | None = None

    @classmethod
    def overdue(cls, days: int) -> SlaStatus:
        return cls(SlaState.OVERDUE, days)

    @classmethod
    def due_soon(cls, days: int) -> SlaStatus:
        return cls(SlaState.DUE_SOON, days)

    @classmethod
    def on_track(cls, days: int) -> SlaStatus:
        return cls(SlaState.ON_TRACK, days)

    @classmethod
    def no_due_date(cls) -> SlaStatus:
        return cls(SlaState.NO_DUE_DATE)

    @property
    def sort_key(self) -> tuple[int, int]:
        """Ordering key; smaller is more urgent."""
        if self.state is SlaState.OVERDUE:
            return (0, -(self.days or 0))
        if self.state is SlaState.NO_DUE_DATE:
            return (2, 0)
        return (1, self.days or 0)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SlaStatus):
            return NotImplemented
        return self.sort_key < other.sort_key

    @property
    def label(self) -> str:
        """Short human-readable label."""
        if self.state is SlaState.OVERDUE:
            return f"{self.days}d late"
        if self.state in (SlaState.DUE_SOON, SlaState.ON_TRACK):
            return f"{self.days}d left"
        return "-"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"state": self.state.value, "days": self.days, "label": self.label}


@dataclass(frozen=True, order=True)
class FixUrgency:
    """
    Fix urgency ranking key.

    Compares lexicographically on (severity_rank, blast_radius,
    cvss_score): severity dominates, blast radius breaks ties within
    equal severity, and CVSS breaks remaining ties. Higher is more urgent.
    """

    severity_rank: int
    blast_radius: int
    cvss_score: float

    # Blast radius buckets for the display score: (upper bound, points)
    BLAST_BUCKETS = ((0, 0), (5, 10), (20, 20))
    BLAST_BUCKET_MAX = 30

    @property
    def score(self) -> int:
        """
        Display score from 0 to 100.

        severity_rank * 10 + cvss * 3 + blast bucket (0, 10, 20, 30).
        Only the ordering of FixUrgency itself is guaranteed to respect
        severity dominance.
        """
        bucket = self.BLAST_BUCKET_MAX
        for upper, points in self.BLAST_BUCKETS:
            if self.blast_radius <= upper:
                bucket = points
                break
        raw = self.severity_rank * 10 + self.cvss_score * 3 + bucket
        return int(min(100, max(0, round(raw))))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "severity_rank": self.severity_rank,
            "blast_radius": self.blast_radius,
            "cvss_score": self.cvss_score,
            "score": self.score,
        }


def fix_urgency(
    severity_rank: int | Severity,
    blast_radius: int,
    cvss_score: float | None,
) -> FixUrgency:
    """
    Build the fix urgency key for a vulnerability.

    Args:
        severity_rank: Severity rank (Critical 4 ... Unknown 0) or a Severity
        blast_radius: Number of components affected by the vulnerable one
        cvss_score: CVSS base score, if known

    Returns:
        FixUrgency (orderable, higher is more urgent)
    """
    if isinstance(severity_rank, Severity):
        severity_rank = severity_rank.rank
    return FixUrgency(
        severity_rank=max(0, int(severity_rank)),
        blast_radius=max(0, int(blast_radius)),
        cvss_score=float(cvss_score or 0.0),
    )


def sla_status(due_date: date | None, today: date | None = None) -> SlaStatus:
    """
    SLA status for a due date.

    Args:
        due_date: Remediation due date, or None
        today: Reference day (defaults to today)

    Returns:
        SlaStatus
    """
    if due_date is None:
        return SlaStatus.no_due_date()
    today = today or date.today()
    days = (due_date - today).days
    if days < 0:
        return SlaStatus.overdue(-days)
    if days <= DUE_SOON_DAYS:
        return SlaStatus.due_soon(days)
    return SlaStatus.on_track(days)


def sla_due_date(vuln: VulnerabilityRef) -> date | None:
    """
    Remediation due date for a vulnerability.

    A KEV due date takes priority; otherwise the severity window is
    applied to the publication date.
    """
    if vuln.kev_due_date is not None:
        return vuln.kev_due_date
    window = SEVERITY_SLA_DAYS.get(vuln.severity)
    if window is None or vuln.published is None:
        return None
    return vuln.published + timedelta(days=window)


def vulnerability_sla_status(vuln: VulnerabilityRef, today: date | None = None) -> SlaStatus:
    """SLA status of a vulnerability."""
    return sla_status(sla_due_date(vuln), today=today)


def vex_actionable(vuln: VulnerabilityRef | VexState | None) -> bool:
    """
    Whether a vulnerability still needs action.

    True when there is no VEX statement, or the statement says
    affected or under investigation. False for not-affected and fixed.
    """
    state = vuln.vex_state if isinstance(vuln, VulnerabilityRef) else vuln
    return state is None or state in ACTIONABLE_VEX_STATES


@dataclass
class VulnerabilityRisk:
    """Risk assessment of one vulnerability on one component."""

    component_id: CanonicalId
    component_name: str
    vulnerability: VulnerabilityRef
    urgency: FixUrgency
    blast_radius: int
    sla: SlaStatus
    due_date: date | None = None
    actionable: bool = True
    dependency_path: list[CanonicalId] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "component_id": self.component_id.value,
            "component_name": self.component_name,
            "vulnerability": self.vulnerability.to_dict(),
            "urgency": self.urgency.to_dict(),
            "blast_radius": self.blast_radius,
            "sla": self.sla.to_dict(),
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "actionable": self.actionable,
            "dependency_path": [c.value for c in self.dependency_path],
        }


@dataclass
class RiskSummary:
    """Aggregate view of a prioritized vulnerability list."""

    total: int = 0
    actionable: int = 0
    overdue: int = 0
    due_soon: int = 0
    kev_count: int = 0
    by_severity: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "actionable": self.actionable,
            "overdue": self.overdue,
            "due_soon": self.due_soon,
            "kev_count": self.kev_count,
            "by_severity": self.by_severity,
        }


class VulnerabilityRiskEngine:
    """
    Prioritizes the vulnerabilities of an SBOM.

    Blast radius comes from the dependency graph; the default one-level
    approximation is used unless transitive=True.
    """

    def __init__(self, graph: DependencyGraph | None = None, transitive: bool = False):
        """
        Initialize the engine.

        Args:
            graph: Dependency graph to take blast radius from. Built from
                the SBOM on each call when omitted.
            transitive: Use the full transitive blast radius
        """
        self._graph = graph
        self.transitive = transitive

    def prioritize(
        self,
        sbom: NormalizedSbom,
        today: date | None = None,
        include_non_actionable: bool = False,
    ) -> list[VulnerabilityRisk]:
        """
        Assess and order every vulnerability in an SBOM.

        Args:
            sbom: SBOM to assess
            today: Reference day for SLA computation
            include_non_actionable: Keep VEX not-affected/fixed entries

        Returns:
            Risks ordered by urgency (most urgent first), then by
            component id and vulnerability id
        """
        graph = self._graph or DependencyGraph.from_sbom(sbom)
        radius_cache: dict[CanonicalId, int] = {}
        risks: list[VulnerabilityRisk] = []

        for component, vuln in sbom.all_vulnerabilities():
            actionable = vex_actionable(vuln)
            if not actionable and not include_non_actionable:
                continue

            cid = component.canonical_id
            if cid not in radius_cache:
                radius_cache[cid] = graph.blast_radius(cid, transitive=self.transitive)
            radius = radius_cache[cid]

            severity = vuln.severity
            if severity is Severity.UNKNOWN and vuln.cvss_score is not None:
                severity = Severity.from_cvss(vuln.cvss_score)

            due = sla_due_date(vuln)
            risks.append(
                VulnerabilityRisk(
                    component_id=cid,
                    component_name=component.display_name,
                    vulnerability=vuln,
                    urgency=fix_urgency(severity.rank, radius, vuln.cvss_score),
                    blast_radius=radius,
                    sla=sla_status(due, today=today),
                    due_date=due,
                    actionable=actionable,
                    dependency_path=graph.path_to_root(cid),
                )
            )

        risks.sort(key=lambda r: (r.component_id, r.vulnerability.id))
        risks.sort(key=lambda r: r.urgency, reverse=True)
        logger.debug(f"Prioritized {len(risks)} vulnerabilities")
        return risks

    def summarize(self, risks: list[VulnerabilityRisk]) -> RiskSummary:
        """Aggregate counts over a prioritized list."""
        summary = RiskSummary(total=len(risks))
        for risk in risks:
            if risk.actionable:
                summary.actionable += 1
            if risk.sla.state is SlaState.OVERDUE:
                summary.overdue += 1
            elif risk.sla.state is SlaState.DUE_SOON:
                summary.due_soon += 1
            if risk.vulnerability.is_kev:
                summary.kev_count += 1
            key = risk.vulnerability.severity.value
            summary.by_severity[key] = summary.by_severity.get(key, 0) + 1
        return summary
