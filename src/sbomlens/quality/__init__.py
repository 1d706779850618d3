"""
Quality scoring for sbomlens.

Scores an SBOM on eight categories, weights them with a scoring profile
into an overall score and letter grade, and suggests improvements.
"""

from sbomlens.quality.licenses import (
    LicenseCategory,
    is_noassertion,
    is_spdx_expression,
    is_spdx_id,
    license_category,
    license_ids,
)
from sbomlens.quality.metrics import (
    COMPLETENESS_WEIGHTS,
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
from sbomlens.quality.profiles import (
    PROFILE_WEIGHTS,
    QualityCategory,
    QualityGrade,
    ScoringProfile,
)
from sbomlens.quality.scorer import (
    EMPTY_SBOM_SCORE,
    QualityReport,
    QualityScorer,
    Recommendation,
    effective_weights,
    overall_score,
    score,
)

__all__ = [
    # Licenses
    "LicenseCategory",
    "is_noassertion",
    "is_spdx_expression",
    "is_spdx_id",
    "license_category",
    "license_ids",
    # Metrics
    "COMPLETENESS_WEIGHTS",
    "SbomStatistics",
    "completeness_score",
    "dependency_score",
    "identifier_score",
    "integrity_score",
    "license_score",
    "lifecycle_score",
    "provenance_score",
    "vulnerability_score",
    # Profiles
    "PROFILE_WEIGHTS",
    "QualityCategory",
    "QualityGrade",
    "ScoringProfile",
    # Scorer
    "EMPTY_SBOM_SCORE",
    "QualityReport",
    "QualityScorer",
    "Recommendation",
    "effective_weights",
    "overall_score",
    "score",
]
