"""
Compliance checking for sbomlens.

Evaluates normalized SBOMs against named standards (NTIA minimum
elements, EU CRA phases, FDA medical device guidance and general
profiles) and reports severity-graded violations with remediation
guidance.
"""

from sbomlens.compliance.checker import (
    ComplianceChecker,
    ComplianceDelta,
    ComplianceResult,
    check_all,
    check_compliance,
    diff_compliance,
)
from sbomlens.compliance.rules import RULES, is_valid_email
from sbomlens.compliance.standards import ComplianceStandard
from sbomlens.compliance.violations import (
    DATA_QUALITY,
    REMEDIATION,
    Violation,
    ViolationCategory,
    ViolationSeverity,
)

__all__ = [
    "ComplianceChecker",
    "ComplianceDelta",
    "ComplianceResult",
    "check_all",
    "check_compliance",
    "diff_compliance",
    "RULES",
    "is_valid_email",
    "ComplianceStandard",
    "DATA_QUALITY",
    "REMEDIATION",
    "Violation",
    "ViolationCategory",
    "ViolationSeverity",
]
