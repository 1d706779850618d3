"""
Compliance checker for normalized SBOMs.

Evaluates the fixed rule list of a standard. Each rule runs
independently: a rule that fails on malformed data is reported as an
informational DATA-QUALITY violation and the remaining rules still run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from sbomlens.compliance.rules import RULES
from sbomlens.compliance.standards import ComplianceStandard
from sbomlens.compliance.violations import (
    DATA_QUALITY,
    Violation,
    ViolationCategory,
    ViolationSeverity,
)
from sbomlens.models.sbom import NormalizedSbom

logger = logging.getLogger(__name__)

MAX_SCORE = 100


@dataclass
class ComplianceResult:
    """
    Result of checking one SBOM against one standard.

    Attributes:
        standard: Standard checked against
        violations: Violations, in rule order
    """

    standard: ComplianceStandard
    violations: list[Violation] = field(default_factory=list)

    def _count(self, severity: ViolationSeverity) -> int:
        return sum(1 for v in self.violations if v.severity is severity)

    @property
    def error_count(self) -> int:
        return self._count(ViolationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return self._count(ViolationSeverity.WARNING)

    @property
    def info_count(self) -> int:
        return self._count(ViolationSeverity.INFO)

    @property
    def is_compliant(self) -> bool:
        """Compliant iff there are no error-severity violations."""
        return self.error_count == 0

    @property
    def score(self) -> int:
        """100 minus the summed severity penalties, floored at 0."""
        penalty = sum(v.severity.penalty for v in self.violations)
        return MAX_SCORE - min(MAX_SCORE, penalty)

    def violations_by_severity(self, severity: ViolationSeverity) -> list[Violation]:
        return [v for v in self.violations if v.severity is severity]

    def violations_by_category(self, category: ViolationCategory) -> list[Violation]:
        return [v for v in self.violations if v.category is category]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "standard": self.standard.value,
            "is_compliant": self.is_compliant,
            "score": self.score,
            "counts": {
                "error": self.error_count,
                "warning": self.warning_count,
                "info": self.info_count,
            },
            "violations": [v.to_dict() for v in self.violations],
        }


@dataclass
class ComplianceDelta:
    """Violations introduced and resolved between two results."""

    introduced: list[Violation] = field(default_factory=list)
    resolved: list[Violation] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.introduced or self.resolved)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "introduced": [v.to_dict() for v in self.introduced],
            "resolved": [v.to_dict() for v in self.resolved],
        }


class ComplianceChecker:
    """
    Checks SBOMs against a compliance standard.

    Example:
        checker = ComplianceChecker(ComplianceStandard.NTIA_MINIMUM)
        result = checker.check(sbom)
        if not result.is_compliant:
            for violation in result.violations_by_severity(ViolationSeverity.ERROR):
                print(violation.message, violation.remediation)
    """

    def __init__(self, standard: ComplianceStandard | str = ComplianceStandard.STANDARD):
        """
        Initialize the checker.

        Args:
            standard: Standard to check, or its name

        Raises:
            ValueError: If a standard name is unknown
        """
        if isinstance(standard, str):
            standard = ComplianceStandard.from_string(standard)
        self.standard = standard

    def check(self, sbom: NormalizedSbom) -> ComplianceResult:
        """
        Check an SBOM.

        Args:
            sbom: SBOM to check

        Returns:
            ComplianceResult
        """
        violations: list[Violation] = []

        for rule in RULES[self.standard]:
            try:
                violation = rule(sbom, self.standard)
            except Exception as e:
                logger.warning(
                    f"Compliance rule {rule.__name__} failed for {self.standard.value}: {e}"
                )
                violation = Violation(
                    ViolationSeverity.INFO,
                    ViolationCategory.DOCUMENT_METADATA,
                    DATA_QUALITY,
                    f"Rule '{rule.__name__}' could not be evaluated: {e}",
                )
            if violation is not None:
                violations.append(violation)

        result = ComplianceResult(standard=self.standard, violations=violations)
        logger.debug(
            f"Compliance {self.standard.value}: {result.error_count} errors, "
            f"{result.warning_count} warnings, {result.info_count} info"
        )
        return result


def check_compliance(
    sbom: NormalizedSbom, standard: ComplianceStandard | str = ComplianceStandard.STANDARD
) -> ComplianceResult:
    """
    Convenience function to check an SBOM against one standard.

    Args:
        sbom: SBOM to check
        standard: Standard, or its name

    Returns:
        ComplianceResult
    """
    return ComplianceChecker(standard).check(sbom)


def check_all(
    sbom: NormalizedSbom, standards: Iterable[ComplianceStandard | str]
) -> dict[ComplianceStandard, ComplianceResult]:
    """Check an SBOM against several standards, one call per standard."""
    results: dict[ComplianceStandard, ComplianceResult] = {}
    for standard in standards:
        result = check_compliance(sbom, standard)
        results[result.standard] = result
    return results


def diff_compliance(old: ComplianceResult, new: ComplianceResult) -> ComplianceDelta:
    """
    Compare two compliance results by violation message.

    Args:
        old: Result for the baseline snapshot
        new: Result for the newer snapshot

    Returns:
        ComplianceDelta with violations only present in new (introduced)
        and only present in old (resolved)
    """
    old_messages = {v.message for v in old.violations}
    new_messages = {v.message for v in new.violations}

    return ComplianceDelta(
        introduced=[v for v in new.violations if v.message not in old_messages],
        resolved=[v for v in old.violations if v.message not in new_messages],
    )
