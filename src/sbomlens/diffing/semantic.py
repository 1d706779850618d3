"""
Semantic change score.

Collapses a diff into a single 0-100 magnitude. Churn ratios and a
severity-weighted vulnerability term are summed into a raw score, which
is then passed through a saturating curve. A single critical
vulnerability introduction outweighs any amount of churn without new
vulnerabilities.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from sbomlens.models.component import Severity

# Points per unit of churn ratio
CHURN_WEIGHTS = {
    "components": 40.0,
    "dependencies": 20.0,
    "licenses": 10.0,
}

# Points per introduced vulnerability
SEVERITY_WEIGHTS = {
    Severity.CRITICAL: 75.0,
    Severity.HIGH: 35.0,
    Severity.MEDIUM: 10.0,
    Severity.LOW: 3.0,
    Severity.NONE: 1.0,
    Severity.UNKNOWN: 2.0,
}

# Resolved vulnerabilities count for a fraction of their weight
RESOLVED_FACTOR = 0.2

# Raw score at which the curve reaches ~63
SATURATION = 25.0


@dataclass
class SemanticScoreBreakdown:
    """Inputs and result of the semantic score."""

    component_churn: float = 0.0
    dependency_churn: float = 0.0
    license_churn: float = 0.0
    vulnerability_term: float = 0.0
    raw: float = 0.0
    score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "component_churn": round(self.component_churn, 4),
            "dependency_churn": round(self.dependency_churn, 4),
            "license_churn": round(self.license_churn, 4),
            "vulnerability_term": round(self.vulnerability_term, 4),
            "raw": round(self.raw, 4),
            "score": self.score,
        }


def _ratio(changed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return min(1.0, changed / total)


def semantic_score(
    component_changes: int,
    component_total: int,
    dependency_changes: int,
    dependency_total: int,
    license_changes: int,
    license_total: int,
    introduced: list[Severity],
    resolved: list[Severity] | None = None,
) -> SemanticScoreBreakdown:
    """
    Compute the semantic change score.

    Args:
        component_changes: Added + removed + modified components
        component_total: Size of the union of both component sets
        dependency_changes: Added + removed edges
        dependency_total: Size of the union of both edge sets
        license_changes: New + removed licenses
        license_total: Size of the union of both license sets
        introduced: Severities of introduced vulnerabilities
        resolved: Severities of resolved vulnerabilities

    Returns:
        SemanticScoreBreakdown with score in [0, 100]
    """
    breakdown = SemanticScoreBreakdown(
        component_churn=_ratio(component_changes, component_total),
        dependency_churn=_ratio(dependency_changes, dependency_total),
        license_churn=_ratio(license_changes, license_total),
    )

    breakdown.vulnerability_term = sum(SEVERITY_WEIGHTS[s] for s in introduced) + (
        RESOLVED_FACTOR * sum(SEVERITY_WEIGHTS[s] for s in (resolved or []))
    )

    breakdown.raw = (
        CHURN_WEIGHTS["components"] * breakdown.component_churn
        + CHURN_WEIGHTS["dependencies"] * breakdown.dependency_churn
        + CHURN_WEIGHTS["licenses"] * breakdown.license_churn
        + breakdown.vulnerability_term
    )
    breakdown.score = round(100.0 * (1.0 - math.exp(-breakdown.raw / SATURATION)), 2)
    return breakdown
