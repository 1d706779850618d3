"""
Scoring profiles and quality grades.

A scoring profile is a named weight vector over the quality categories.
Each profile's weights sum to 1.
"""

from __future__ import annotations

from enum import Enum

from sbomlens.compliance.standards import ComplianceStandard


class QualityCategory(Enum):
    """Quality score categories."""

    COMPLETENESS = "completeness"
    IDENTIFIERS = "identifiers"
    LICENSES = "licenses"
    VULNERABILITIES = "vulnerabilities"
    DEPENDENCIES = "dependencies"
    INTEGRITY = "integrity"
    PROVENANCE = "provenance"
    LIFECYCLE = "lifecycle"


class ScoringProfile(Enum):
    """Named weightings of the quality categories."""

    MINIMAL = "minimal"
    STANDARD = "standard"
    SECURITY = "security"
    LICENSE_COMPLIANCE = "license_compliance"
    CRA = "cra"
    COMPREHENSIVE = "comprehensive"

    @classmethod
    def from_string(cls, value: str) -> ScoringProfile:
        """
        Get profile from string.

        Accepts "license-compliance" and "LicenseCompliance" spellings.

        Raises:
            ValueError: If the profile is unknown
        """
        normalized = value.strip().replace("-", "_").lower()
        if normalized == "licensecompliance":
            normalized = "license_compliance"
        for profile in cls:
            if profile.value == normalized:
                return profile
        raise ValueError(f"Unknown scoring profile: {value}")

    @property
    def weights(self) -> dict[QualityCategory, float]:
        """Category weights for this profile."""
        return dict(zip(QualityCategory, PROFILE_WEIGHTS[self]))

    @property
    def compliance_standard(self) -> ComplianceStandard:
        """Compliance standard checked alongside this profile."""
        return PROFILE_STANDARDS[self]


# Weights in QualityCategory order:
# completeness, identifiers, licenses, vulnerabilities,
# dependencies, integrity, provenance, lifecycle
PROFILE_WEIGHTS: dict[ScoringProfile, tuple[float, ...]] = {
    ScoringProfile.MINIMAL: (0.40, 0.20, 0.10, 0.05, 0.10, 0.05, 0.05, 0.05),
    ScoringProfile.STANDARD: (0.25, 0.20, 0.12, 0.08, 0.12, 0.08, 0.10, 0.05),
    ScoringProfile.SECURITY: (0.12, 0.18, 0.05, 0.25, 0.10, 0.15, 0.05, 0.10),
    ScoringProfile.LICENSE_COMPLIANCE: (0.15, 0.12, 0.35, 0.05, 0.10, 0.05, 0.13, 0.05),
    ScoringProfile.CRA: (0.15, 0.20, 0.08, 0.17, 0.12, 0.10, 0.10, 0.08),
    ScoringProfile.COMPREHENSIVE: (0.15, 0.15, 0.12, 0.12, 0.12, 0.12, 0.12, 0.10),
}

PROFILE_STANDARDS: dict[ScoringProfile, ComplianceStandard] = {
    ScoringProfile.MINIMAL: ComplianceStandard.MINIMUM,
    ScoringProfile.STANDARD: ComplianceStandard.STANDARD,
    ScoringProfile.SECURITY: ComplianceStandard.NTIA_MINIMUM,
    ScoringProfile.LICENSE_COMPLIANCE: ComplianceStandard.STANDARD,
    ScoringProfile.CRA: ComplianceStandard.CRA_PHASE_2,
    ScoringProfile.COMPREHENSIVE: ComplianceStandard.COMPREHENSIVE,
}


class QualityGrade(Enum):
    """Letter grade for an overall quality score."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"

    @classmethod
    def from_score(cls, score: float) -> QualityGrade:
        """Grade for a 0-100 score."""
        for threshold, grade in GRADE_THRESHOLDS:
            if score >= threshold:
                return grade
        return cls.F

    @property
    def description(self) -> str:
        return GRADE_DESCRIPTIONS[self]


GRADE_THRESHOLDS = (
    (90.0, QualityGrade.A),
    (80.0, QualityGrade.B),
    (70.0, QualityGrade.C),
    (60.0, QualityGrade.D),
)

GRADE_DESCRIPTIONS = {
    QualityGrade.A: "Excellent",
    QualityGrade.B: "Good",
    QualityGrade.C: "Fair",
    QualityGrade.D: "Poor",
    QualityGrade.F: "Failing",
}
