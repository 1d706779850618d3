"""
SBOM quality scorer.

Computes the eight category scores, combines them with the weights of a
scoring profile into an overall score and letter grade, and derives a
prioritized list of recommendations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable

from sbomlens.compliance.checker import ComplianceChecker, ComplianceResult
from sbomlens.graph.analyzer import DependencyGraph
from sbomlens.models.sbom import NormalizedSbom
from sbomlens.quality.metrics import (
    SbomStatistics,
    completeness_score,
    dependency_score,
    identifier_score,
    integrity_score,
    license_score,
    lifecycle_score,
    provenance_score,
    vulnerability_score,
)
from sbomlens.quality.profiles import QualityCategory, QualityGrade, ScoringProfile
from sbomlens.version import ENGINE_VERSION

logger = logging.getLogger(__name__)

# Overall score of an SBOM without components
EMPTY_SBOM_SCORE = 0.0

DEFAULT_RECOMMENDATION_THRESHOLD = 80.0

COMPLIANCE_CATEGORY = "compliance"

CATEGORY_SCORERS: dict[QualityCategory, Callable[[SbomStatistics], float | None]] = {
    QualityCategory.COMPLETENESS: completeness_score,
    QualityCategory.IDENTIFIERS: identifier_score,
    QualityCategory.LICENSES: license_score,
    QualityCategory.VULNERABILITIES: vulnerability_score,
    QualityCategory.DEPENDENCIES: dependency_score,
    QualityCategory.INTEGRITY: integrity_score,
    QualityCategory.PROVENANCE: provenance_score,
    QualityCategory.LIFECYCLE: lifecycle_score,
}


@dataclass(frozen=True)
class Recommendation:
    """
    An improvement suggestion.

    Attributes:
        priority: 1 (highest) to 5
        category: Quality category value, or "compliance"
        message: What to do
        affected_count: Number of components (or violations) concerned
        impact: Estimated score gain
    """

    priority: int
    category: str
    message: str
    affected_count: int = 0
    impact: float = 0.0

    @property
    def sort_key(self) -> tuple[int, float, str, str]:
        return (self.priority, -self.impact, self.category, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "priority": self.priority,
            "category": self.category,
            "message": self.message,
            "affected_count": self.affected_count,
            "impact": round(self.impact, 2),
        }


@dataclass
class QualityReport:
    """Result of scoring one SBOM with one profile."""

    profile: ScoringProfile
    category_scores: dict[QualityCategory, float | None]
    weights: dict[QualityCategory, float]
    overall_score: float
    grade: QualityGrade
    recommendations: list[Recommendation] = field(default_factory=list)
    lifecycle_available: bool = False
    compliance: ComplianceResult | None = None
    statistics: SbomStatistics | None = None
    engine_version: str = ENGINE_VERSION

    def score_for(self, category: QualityCategory) -> float | None:
        return self.category_scores.get(category)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "profile": self.profile.value,
            "overall_score": self.overall_score,
            "grade": self.grade.value,
            "grade_description": self.grade.description,
            "categories": {
                category.value: None if score is None else round(score, 2)
                for category, score in self.category_scores.items()
            },
            "weights": {category.value: weight for category, weight in self.weights.items()},
            "lifecycle_available": self.lifecycle_available,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "compliance": self.compliance.to_dict() if self.compliance else None,
            "statistics": self.statistics.to_dict() if self.statistics else None,
            "engine_version": self.engine_version,
        }


def overall_score(
    scores: dict[QualityCategory, float | None], weights: dict[QualityCategory, float]
) -> float:
    """
    Weighted sum of category scores, clamped to [0, 100].

    Unavailable categories contribute nothing; the remaining weights are
    not renormalized.
    """
    total = sum(
        score * weights[category] for category, score in scores.items() if score is not None
    )
    return round(max(0.0, min(100.0, total)), 2)


def effective_weights(
    profile: ScoringProfile, lifecycle_available: bool
) -> dict[QualityCategory, float]:
    """Profile weights with the lifecycle weight zeroed when data is missing."""
    weights = profile.weights
    if not lifecycle_available:
        weights[QualityCategory.LIFECYCLE] = 0.0
    return weights


class QualityScorer:
    """
    Scores SBOM quality.

    Example:
        scorer = QualityScorer(ScoringProfile.SECURITY)
        report = scorer.score(sbom)
        print(report.overall_score, report.grade.value)
        for rec in report.recommendations:
            print(rec.priority, rec.message)
    """

    def __init__(
        self,
        profile: ScoringProfile | str = ScoringProfile.STANDARD,
        recommendation_threshold: float = DEFAULT_RECOMMENDATION_THRESHOLD,
    ):
        """
        Initialize the scorer.

        Args:
            profile: Scoring profile, or its name
            recommendation_threshold: Categories scoring below this get
                recommendations

        Raises:
            ValueError: If a profile name is unknown
        """
        if isinstance(profile, str):
            profile = ScoringProfile.from_string(profile)
        self.profile = profile
        self.recommendation_threshold = recommendation_threshold

    def score(
        self,
        sbom: NormalizedSbom,
        graph: DependencyGraph | None = None,
        today: date | None = None,
    ) -> QualityReport:
        """
        Score an SBOM.

        Args:
            sbom: SBOM to score
            graph: Dependency graph of the SBOM (built if not given)
            today: Reference day for lifecycle checks

        Returns:
            QualityReport
        """
        stats = SbomStatistics.from_sbom(sbom, graph=graph, today=today)
        compliance = ComplianceChecker(self.profile.compliance_standard).check(sbom)

        scores = {category: scorer(stats) for category, scorer in CATEGORY_SCORERS.items()}
        weights = effective_weights(self.profile, stats.lifecycle_available)

        if stats.total_components == 0:
            total = EMPTY_SBOM_SCORE
        else:
            total = overall_score(scores, weights)

        report = QualityReport(
            profile=self.profile,
            category_scores=scores,
            weights=weights,
            overall_score=total,
            grade=QualityGrade.from_score(total),
            recommendations=self._recommendations(stats, scores, compliance),
            lifecycle_available=stats.lifecycle_available,
            compliance=compliance,
            statistics=stats,
        )

        logger.debug(
            f"Quality score {report.overall_score} ({report.grade.value}) "
            f"for {stats.total_components} components with profile {self.profile.value}"
        )
        return report

    def _recommendations(
        self,
        stats: SbomStatistics,
        scores: dict[QualityCategory, float | None],
        compliance: ComplianceResult,
    ) -> list[Recommendation]:
        recommendations: list[Recommendation] = []

        if compliance.error_count:
            recommendations.append(
                Recommendation(
                    priority=1,
                    category=COMPLIANCE_CATEGORY,
                    message=(
                        f"Fix {compliance.error_count} "
                        f"{compliance.standard.display_name} compliance error(s)"
                    ),
                    affected_count=compliance.error_count,
                    impact=20.0,
                )
            )

        if stats.total_components == 0:
            recommendations.append(
                Recommendation(
                    priority=1,
                    category=QualityCategory.COMPLETENESS.value,
                    message="Add components to the SBOM",
                    impact=100.0,
                )
            )
        else:
            for category, score in scores.items():
                if score is None or score >= self.recommendation_threshold:
                    continue
                recommendations.extend(CATEGORY_RECOMMENDATIONS[category](stats))

        return _dedupe_sorted(recommendations)


def _missing(stats: SbomStatistics, present: int) -> tuple[int, float]:
    missing = stats.total_components - present
    return missing, missing / stats.total_components


def _completeness_recommendations(stats: SbomStatistics) -> list[Recommendation]:
    recs = []
    missing, ratio = _missing(stats, stats.with_version)
    if missing:
        recs.append(
            Recommendation(
                1,
                QualityCategory.COMPLETENESS.value,
                "Add version information to all components",
                missing,
                ratio * 15,
            )
        )
    return recs


def _identifier_recommendations(stats: SbomStatistics) -> list[Recommendation]:
    recs = []
    missing, ratio = _missing(stats, stats.with_valid_id)
    if missing:
        recs.append(
            Recommendation(
                2,
                QualityCategory.IDENTIFIERS.value,
                "Add PURL or CPE identifiers to components",
                missing,
                ratio * 20,
            )
        )
    if stats.invalid_ids:
        recs.append(
            Recommendation(
                2,
                QualityCategory.IDENTIFIERS.value,
                "Fix malformed PURL/CPE identifiers",
                stats.invalid_ids,
                10.0,
            )
        )
    return recs


def _license_recommendations(stats: SbomStatistics) -> list[Recommendation]:
    recs = []
    missing, ratio = _missing(stats, stats.with_licenses)
    if ratio > 0.2:
        recs.append(
            Recommendation(
                3,
                QualityCategory.LICENSES.value,
                "Add license information to components",
                missing,
                ratio * 12,
            )
        )
    if stats.with_noassertion:
        recs.append(
            Recommendation(
                3,
                QualityCategory.LICENSES.value,
                "Replace NOASSERTION with actual license information",
                stats.with_noassertion,
                5.0,
            )
        )
    non_spdx = stats.with_licenses - stats.with_spdx_licenses
    if non_spdx:
        recs.append(
            Recommendation(
                4,
                QualityCategory.LICENSES.value,
                "Use SPDX license identifiers for non-standard licenses",
                non_spdx,
                3.0,
            )
        )
    return recs


def _vulnerability_recommendations(stats: SbomStatistics) -> list[Recommendation]:
    recs = []
    total = stats.total_vulnerabilities
    missing_cvss = total - stats.vulns_with_cvss
    if missing_cvss:
        recs.append(
            Recommendation(
                3,
                QualityCategory.VULNERABILITIES.value,
                "Add CVSS scores to vulnerability entries",
                missing_cvss,
                missing_cvss / total * 10,
            )
        )
    missing_fix = total - stats.vulns_with_remediation
    if missing_fix:
        recs.append(
            Recommendation(
                4,
                QualityCategory.VULNERABILITIES.value,
                "Add remediation or fixed-version details to vulnerabilities",
                missing_fix,
                missing_fix / total * 5,
            )
        )
    return recs


def _dependency_recommendations(stats: SbomStatistics) -> list[Recommendation]:
    recs = []
    n = stats.total_components
    if stats.with_dependencies == 0 and n > 1:
        recs.append(
            Recommendation(
                4,
                QualityCategory.DEPENDENCIES.value,
                "Add dependency relationships between components",
                n,
                10.0,
            )
        )
    elif stats.orphans / n > 0.3:
        recs.append(
            Recommendation(
                4,
                QualityCategory.DEPENDENCIES.value,
                "Connect orphan components to the dependency graph",
                stats.orphans,
                5.0,
            )
        )
    if stats.cycles:
        recs.append(
            Recommendation(
                4,
                QualityCategory.DEPENDENCIES.value,
                "Resolve circular dependencies",
                stats.cycles,
                min(20.0, stats.cycles * 5.0),
            )
        )
    return recs


def _integrity_recommendations(stats: SbomStatistics) -> list[Recommendation]:
    recs = []
    missing, ratio = _missing(stats, stats.with_hashes)
    if missing:
        recs.append(
            Recommendation(
                5,
                QualityCategory.INTEGRITY.value,
                "Add cryptographic hashes for integrity verification",
                missing,
                ratio * 5,
            )
        )
    weak = stats.with_hashes - stats.with_strong_hash
    if weak:
        recs.append(
            Recommendation(
                5,
                QualityCategory.INTEGRITY.value,
                "Replace weak hashes with SHA-256 or stronger",
                weak,
                weak / stats.total_components * 3,
            )
        )
    return recs


def _provenance_recommendations(stats: SbomStatistics) -> list[Recommendation]:
    recs = []
    if not stats.has_creators:
        recs.append(
            Recommendation(
                5,
                QualityCategory.PROVENANCE.value,
                "Record the tool and author of the SBOM",
                0,
                5.0,
            )
        )
    missing, ratio = _missing(stats, stats.with_supplier)
    if ratio > 0.5:
        recs.append(
            Recommendation(
                5,
                QualityCategory.PROVENANCE.value,
                "Add supplier information to components",
                missing,
                ratio * 8,
            )
        )
    return recs


def _lifecycle_recommendations(stats: SbomStatistics) -> list[Recommendation]:
    unsupported = stats.with_lifecycle - stats.supported
    if not unsupported:
        return []
    return [
        Recommendation(
            3,
            QualityCategory.LIFECYCLE.value,
            "Replace end-of-life or deprecated components",
            unsupported,
            unsupported / stats.with_lifecycle * 10,
        )
    ]


RecommendationBuilder = Callable[[SbomStatistics], list[Recommendation]]

CATEGORY_RECOMMENDATIONS: dict[QualityCategory, RecommendationBuilder] = {
    QualityCategory.COMPLETENESS: _completeness_recommendations,
    QualityCategory.IDENTIFIERS: _identifier_recommendations,
    QualityCategory.LICENSES: _license_recommendations,
    QualityCategory.VULNERABILITIES: _vulnerability_recommendations,
    QualityCategory.DEPENDENCIES: _dependency_recommendations,
    QualityCategory.INTEGRITY: _integrity_recommendations,
    QualityCategory.PROVENANCE: _provenance_recommendations,
    QualityCategory.LIFECYCLE: _lifecycle_recommendations,
}


def _dedupe_sorted(recommendations: list[Recommendation]) -> list[Recommendation]:
    seen: set[tuple[str, str]] = set()
    unique = []
    for rec in sorted(recommendations, key=lambda r: r.sort_key):
        key = (rec.category, rec.message)
        if key not in seen:
            seen.add(key)
            unique.append(rec)
    return unique


def score(
    sbom: NormalizedSbom,
    profile: ScoringProfile | str = ScoringProfile.STANDARD,
    today: date | None = None,
) -> QualityReport:
    """
    Convenience function to score an SBOM.

    Args:
        sbom: SBOM to score
        profile: Scoring profile, or its name
        today: Reference day for lifecycle checks

    Returns:
        QualityReport
    """
    return QualityScorer(profile).score(sbom, today=today)
