"""
Top-level analysis operations.

Thin wrappers over the engines that also emit the structured analysis
events (diff.completed, quality.scored, compliance.checked).
"""

from __future__ import annotations

from sbomlens.compliance.checker import ComplianceChecker, ComplianceResult
from sbomlens.compliance.standards import ComplianceStandard
from sbomlens.diffing.engine import DiffEngine
from sbomlens.diffing.matching import DEFAULT_THRESHOLD, MatchWeights
from sbomlens.diffing.result import DiffResult
from sbomlens.graph.analyzer import DependencyCycle, DependencyGraph
from sbomlens.models.identifiers import CanonicalId
from sbomlens.models.sbom import NormalizedSbom
from sbomlens.observability.logging import get_logger
from sbomlens.quality.profiles import ScoringProfile
from sbomlens.quality.scorer import QualityReport, QualityScorer

logger = get_logger(__name__)


def diff(
    old: NormalizedSbom,
    new: NormalizedSbom,
    threshold: float = DEFAULT_THRESHOLD,
    weights: MatchWeights | None = None,
) -> DiffResult:
    """
    Compare two SBOM snapshots.

    Args:
        old: Baseline snapshot
        new: Snapshot to compare
        threshold: Fuzzy matching similarity threshold, in [0, 1]
        weights: Similarity dimension weights

    Returns:
        DiffResult

    Raises:
        ValueError: If the threshold is outside [0, 1]
    """
    result = DiffEngine(threshold=threshold, weights=weights).diff(old, new)
    logger.diff_completed(
        components_added=result.summary.components_added,
        components_removed=result.summary.components_removed,
        components_modified=result.summary.components_modified,
        semantic_score=result.semantic_score,
        threshold=result.threshold,
    )
    return result


def score(
    sbom: NormalizedSbom, profile: ScoringProfile | str = ScoringProfile.STANDARD
) -> QualityReport:
    """
    Score the quality of an SBOM.

    Raises:
        ValueError: If a profile name is unknown
    """
    report = QualityScorer(profile).score(sbom)
    logger.quality_scored(
        profile=report.profile.value,
        overall_score=report.overall_score,
        grade=report.grade.value,
        component_count=len(sbom),
    )
    return report


def check_compliance(
    sbom: NormalizedSbom, standard: ComplianceStandard | str = ComplianceStandard.STANDARD
) -> ComplianceResult:
    """
    Check an SBOM against a compliance standard.

    Raises:
        ValueError: If a standard name is unknown
    """
    result = ComplianceChecker(standard).check(sbom)
    logger.compliance_checked(
        standard=result.standard.value,
        is_compliant=result.is_compliant,
        error_count=result.error_count,
        warning_count=result.warning_count,
        score=result.score,
    )
    return result


def cycles(graph: DependencyGraph | NormalizedSbom) -> list[DependencyCycle]:
    """Dependency cycles of a graph (or of an SBOM's graph), at most 10."""
    if isinstance(graph, NormalizedSbom):
        graph = DependencyGraph.from_sbom(graph)
    return graph.detect_cycles()


def blast_radius(
    graph: DependencyGraph | NormalizedSbom, canonical_id: CanonicalId, transitive: bool = False
) -> int:
    """Number of components affected by a problem in the given one."""
    if isinstance(graph, NormalizedSbom):
        graph = DependencyGraph.from_sbom(graph)
    return graph.blast_radius(canonical_id, transitive=transitive)
