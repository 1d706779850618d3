"""
Vulnerability risk engine for sbomlens.

Provides fix urgency ranking, remediation SLA status, VEX actionability
and a prioritized view of an SBOM's vulnerabilities.
"""

from sbomlens.risk.vulnerability import (
    DUE_SOON_DAYS,
    SEVERITY_SLA_DAYS,
    FixUrgency,
    RiskSummary,
    SlaState,
    SlaStatus,
    VulnerabilityRisk,
    VulnerabilityRiskEngine,
    fix_urgency,
    sla_due_date,
    sla_status,
    vex_actionable,
    vulnerability_sla_status,
)

__all__ = [
    "DUE_SOON_DAYS",
    "SEVERITY_SLA_DAYS",
    "FixUrgency",
    "RiskSummary",
    "SlaState",
    "SlaStatus",
    "VulnerabilityRisk",
    "VulnerabilityRiskEngine",
    "fix_urgency",
    "sla_due_date",
    "sla_status",
    "vex_actionable",
    "vulnerability_sla_status",
]
