"""
Unit tests for the top-level sbomlens API.

Tests cover:
- diff, score and check_compliance wrappers and their log events
- cycles and blast_radius on graphs and SBOMs
"""

from __future__ import annotations

import logging

import pytest

import sbomlens
from sbomlens import (
    ComplianceStandard,
    DependencyGraph,
    ScoringProfile,
    blast_radius,
    check_compliance,
    cycles,
    diff,
    score,
)


def events(caplog) -> list[str]:
    return [getattr(r, "event_type", None) for r in caplog.records]


class TestApi:
    """Tests for the API wrappers."""

    def test_version(self):
        """Test the package exposes its versions."""
        assert sbomlens.__version__
        assert sbomlens.ENGINE_VERSION

    def test_exports(self):
        """Test the top-level helpers are exported."""
        for name in ("fix_urgency", "sla_status", "vex_actionable", "resolve_identity"):
            assert name in sbomlens.__all__
            assert callable(getattr(sbomlens, name))

    def test_diff(self, app_sbom, caplog):
        """Test diff logs a completion event."""
        caplog.set_level(logging.INFO, logger="sbomlens")
        result = diff(app_sbom, app_sbom)
        assert not result.has_changes()
        assert events(caplog) == ["diff.completed"]
        assert caplog.records[0].threshold == 0.85

    def test_diff_invalid_threshold(self, app_sbom):
        """Test an invalid threshold raises."""
        with pytest.raises(ValueError):
            diff(app_sbom, app_sbom, threshold=2.0)

    def test_score(self, app_sbom, caplog):
        """Test score logs a quality event."""
        caplog.set_level(logging.INFO, logger="sbomlens")
        report = score(app_sbom, "security")
        assert report.profile == ScoringProfile.SECURITY
        assert events(caplog) == ["quality.scored"]
        assert caplog.records[0].grade == report.grade.value

    def test_check_compliance(self, app_sbom, caplog):
        """Test check_compliance logs a compliance event."""
        caplog.set_level(logging.INFO, logger="sbomlens")
        result = check_compliance(app_sbom, "ntia")
        assert result.standard == ComplianceStandard.NTIA_MINIMUM
        assert events(caplog) == ["compliance.checked"]
        assert caplog.records[0].is_compliant is True

    def test_cycles_accepts_sbom(self, make_component, make_sbom):
        """Test cycles on an SBOM and on its graph."""
        a, b = make_component("a"), make_component("b")
        sbom = make_sbom([a, b], edges=[(a, b), (b, a)])
        assert len(cycles(sbom)) == 1
        assert len(cycles(DependencyGraph.from_sbom(sbom))) == 1

    def test_blast_radius_accepts_sbom(self, app_sbom, app_components):
        """Test blast radius on an SBOM."""
        leaf = app_components["body-parser"].canonical_id
        assert blast_radius(app_sbom, leaf) == 2
        assert blast_radius(app_sbom, leaf, transitive=True) == 2
        assert blast_radius(DependencyGraph.from_sbom(app_sbom), leaf) == 2
