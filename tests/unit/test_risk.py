"""
Unit tests for the vulnerability risk engine.

Tests cover:
- Fix urgency ordering (severity dominance, blast radius, CVSS)
- Remediation SLA status and ordering
- VEX actionability
- End-to-end prioritization of an SBOM's vulnerabilities
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from sbomlens.models import Severity, VexState, VulnerabilityRef
from sbomlens.risk import (
    SlaState,
    SlaStatus,
    VulnerabilityRiskEngine,
    fix_urgency,
    sla_due_date,
    sla_status,
    vex_actionable,
    vulnerability_sla_status,
)


# =============================================================================
# Fix Urgency Tests
# =============================================================================


class TestFixUrgency:
    """Tests for fix urgency ranking."""

    def test_severity_dominates_blast_radius(self):
        """Test a critical vuln outranks a high one with any blast radius."""
        critical = fix_urgency(Severity.CRITICAL, 0, None)
        high = fix_urgency(Severity.HIGH, 10_000, 10.0)
        assert critical > high

    def test_blast_radius_breaks_severity_ties(self):
        """Test wider blast radius wins within equal severity."""
        assert fix_urgency(3, 5, 7.0) > fix_urgency(3, 1, 9.9)

    def test_cvss_breaks_remaining_ties(self):
        """Test CVSS decides between equal severity and radius."""
        assert fix_urgency(3, 2, 8.1) > fix_urgency(3, 2, 7.2)

    def test_accepts_rank_or_severity(self):
        """Test both rank and Severity inputs."""
        assert fix_urgency(4, 1, 9.0) == fix_urgency(Severity.CRITICAL, 1, 9.0)

    def test_missing_cvss_is_zero(self):
        """Test an unknown CVSS score."""
        assert fix_urgency(2, 0, None).cvss_score == 0.0

    @pytest.mark.parametrize(
        "rank,radius,cvss,expected",
        [
            (4, 100, 10.0, 100),
            (0, 0, None, 0),
            (3, 3, 7.0, 61),
            (2, 0, 5.0, 35),
        ],
    )
    def test_display_score(self, rank, radius, cvss, expected):
        """Test the 0-100 display score."""
        assert fix_urgency(rank, radius, cvss).score == expected


# =============================================================================
# SLA Tests
# =============================================================================


class TestSlaStatus:
    """Tests for SLA status computation."""

    def test_overdue(self, today):
        """Test a past due date."""
        status = sla_status(today - timedelta(days=5), today=today)
        assert status == SlaStatus.overdue(5)
        assert status.label == "5d late"

    def test_due_today_is_due_soon(self, today):
        """Test a due date of today."""
        assert sla_status(today, today=today) == SlaStatus.due_soon(0)

    def test_due_soon_boundary(self, today):
        """Test three days out is still due soon."""
        assert sla_status(today + timedelta(days=3), today=today).state == SlaState.DUE_SOON
        assert sla_status(today + timedelta(days=4), today=today).state == SlaState.ON_TRACK

    def test_no_due_date(self, today):
        """Test a missing due date."""
        status = sla_status(None, today=today)
        assert status.state == SlaState.NO_DUE_DATE
        assert status.label == "-"

    def test_ordering(self):
        """Test overdue first (most overdue first), then days left, then no date."""
        statuses = [
            SlaStatus.on_track(10),
            SlaStatus.overdue(1),
            SlaStatus.no_due_date(),
            SlaStatus.due_soon(1),
            SlaStatus.overdue(5),
        ]
        assert sorted(statuses) == [
            SlaStatus.overdue(5),
            SlaStatus.overdue(1),
            SlaStatus.due_soon(1),
            SlaStatus.on_track(10),
            SlaStatus.no_due_date(),
        ]

    def test_to_dict(self):
        """Test dictionary conversion."""
        assert SlaStatus.due_soon(2).to_dict() == {
            "state": "due_soon",
            "days": 2,
            "label": "2d left",
        }


class TestSlaDueDate:
    """Tests for remediation due dates."""

    def test_kev_due_date_wins(self):
        """Test the KEV due date takes priority."""
        vuln = VulnerabilityRef(
            id="CVE-1",
            severity=Severity.LOW,
            published=date(2026, 1, 1),
            kev_due_date=date(2026, 1, 20),
        )
        assert sla_due_date(vuln) == date(2026, 1, 20)

    @pytest.mark.parametrize(
        "severity,expected",
        [
            (Severity.CRITICAL, date(2026, 1, 2)),
            (Severity.HIGH, date(2026, 1, 8)),
            (Severity.MEDIUM, date(2026, 1, 31)),
            (Severity.LOW, date(2026, 4, 1)),
            (Severity.NONE, None),
        ],
    )
    def test_severity_window(self, severity, expected):
        """Test severity windows from the publication date."""
        vuln = VulnerabilityRef(id="CVE-1", severity=severity, published=date(2026, 1, 1))
        assert sla_due_date(vuln) == expected

    def test_unpublished(self):
        """Test no due date without a publication date."""
        assert sla_due_date(VulnerabilityRef(id="CVE-1", severity=Severity.HIGH)) is None

    def test_vulnerability_sla_status(self, critical_vuln, today):
        """Test SLA status straight from a vulnerability."""
        status = vulnerability_sla_status(critical_vuln, today=today)
        assert status == SlaStatus.overdue(58)


class TestVexActionable:
    """Tests for VEX actionability."""

    @pytest.mark.parametrize(
        "state,expected",
        [
            (None, True),
            (VexState.AFFECTED, True),
            (VexState.UNDER_INVESTIGATION, True),
            (VexState.NOT_AFFECTED, False),
            (VexState.FIXED, False),
        ],
    )
    def test_states(self, state, expected):
        """Test each VEX state."""
        assert vex_actionable(state) is expected
        assert vex_actionable(VulnerabilityRef(id="CVE-1", vex_state=state)) is expected


# =============================================================================
# Engine Tests
# =============================================================================


@pytest.fixture
def vulnerable_sbom(make_component, make_sbom, critical_vuln):
    """Return webapp -> express -> body-parser, webapp -> lodash with vulns."""
    webapp = make_component("webapp", "2.0.0")
    express = make_component(
        "express",
        "4.18.2",
        vulnerabilities=(
            VulnerabilityRef(
                id="CVE-2026-0002",
                severity=Severity.HIGH,
                cvss_score=7.5,
                vex_state=VexState.NOT_AFFECTED,
            ),
        ),
    )
    body_parser = make_component("body-parser", "1.20.1", vulnerabilities=(critical_vuln,))
    lodash = make_component(
        "lodash",
        "4.17.21",
        vulnerabilities=(
            VulnerabilityRef(id="CVE-2026-0003", severity=Severity.LOW, cvss_score=3.1),
            VulnerabilityRef(id="GHSA-xxxx-yyyy-zzzz", cvss_score=7.5),
        ),
    )
    return make_sbom(
        [webapp, express, body_parser, lodash],
        edges=[(webapp, express), (express, body_parser), (webapp, lodash)],
        primary=webapp,
    )


class TestVulnerabilityRiskEngine:
    """Tests for VulnerabilityRiskEngine."""

    def test_prioritize_order(self, vulnerable_sbom, today):
        """Test risks are ordered by urgency."""
        risks = VulnerabilityRiskEngine().prioritize(vulnerable_sbom, today=today)
        assert [r.vulnerability.id for r in risks] == [
            "CVE-2026-0001",
            "GHSA-xxxx-yyyy-zzzz",
            "CVE-2026-0003",
        ]

    def test_not_affected_excluded_by_default(self, vulnerable_sbom, today):
        """Test VEX not-affected entries are dropped unless requested."""
        engine = VulnerabilityRiskEngine()
        ids = {r.vulnerability.id for r in engine.prioritize(vulnerable_sbom, today=today)}
        assert "CVE-2026-0002" not in ids

        all_risks = engine.prioritize(vulnerable_sbom, today=today, include_non_actionable=True)
        suppressed = [r for r in all_risks if r.vulnerability.id == "CVE-2026-0002"]
        assert len(suppressed) == 1
        assert not suppressed[0].actionable

    def test_blast_radius_and_path(self, vulnerable_sbom, today):
        """Test graph-derived fields."""
        top = VulnerabilityRiskEngine().prioritize(vulnerable_sbom, today=today)[0]
        assert top.component_name == "body-parser@1.20.1"
        assert top.blast_radius == 2
        assert [c.value for c in top.dependency_path] == [
            "pkg:npm/webapp@2.0.0",
            "pkg:npm/express@4.18.2",
            "pkg:npm/body-parser@1.20.1",
        ]
        assert top.sla == SlaStatus.overdue(58)
        assert top.due_date == date(2026, 1, 2)

    def test_unknown_severity_uses_cvss(self, vulnerable_sbom, today):
        """Test severity is derived from CVSS when unknown."""
        risks = VulnerabilityRiskEngine().prioritize(vulnerable_sbom, today=today)
        ghsa = next(r for r in risks if r.vulnerability.id == "GHSA-xxxx-yyyy-zzzz")
        assert ghsa.urgency.severity_rank == Severity.HIGH.rank

    def test_summarize(self, vulnerable_sbom, today):
        """Test summary counts."""
        engine = VulnerabilityRiskEngine()
        risks = engine.prioritize(vulnerable_sbom, today=today, include_non_actionable=True)
        summary = engine.summarize(risks)
        assert summary.total == 4
        assert summary.actionable == 3
        assert summary.overdue == 1
        assert summary.by_severity["critical"] == 1
        assert summary.by_severity["unknown"] == 1

    def test_empty_sbom(self, empty_sbom):
        """Test an SBOM without vulnerabilities."""
        assert VulnerabilityRiskEngine().prioritize(empty_sbom) == []

    def test_to_dict(self, vulnerable_sbom, today):
        """Test dictionary conversion."""
        data = VulnerabilityRiskEngine().prioritize(vulnerable_sbom, today=today)[0].to_dict()
        assert data["component_id"] == "pkg:npm/body-parser@1.20.1"
        assert data["sla"]["state"] == "overdue"
        assert data["due_date"] == "2026-01-02"
