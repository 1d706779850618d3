"""
Unit tests for the normalized SBOM data model.

Tests cover:
- Canonical id ordering and identity tiers
- Enum parsing (ecosystems, severities, VEX states, hash algorithms)
- Component and lifecycle helpers
- NormalizedSbom construction and invariants
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import date

import pytest

from sbomlens.models import (
    CanonicalId,
    Component,
    DependencyEdge,
    DocumentMetadata,
    DuplicateComponentError,
    Ecosystem,
    Hash,
    HashAlgorithm,
    IdSource,
    InvalidSbomError,
    LifecycleInfo,
    LifecycleStatus,
    NormalizedSbom,
    Severity,
    StalenessLevel,
    VexState,
    VulnerabilityRef,
)


# =============================================================================
# Identifier Tests
# =============================================================================


class TestCanonicalId:
    """Tests for CanonicalId."""

    def test_ordering_is_lexical(self):
        """Test ids sort by value."""
        ids = [CanonicalId("pkg:npm/b@1"), CanonicalId("pkg:npm/a@1"), CanonicalId("cpe:2.3:a")]
        assert [i.value for i in sorted(ids)] == ["cpe:2.3:a", "pkg:npm/a@1", "pkg:npm/b@1"]

    def test_source_breaks_ties(self):
        """Test more reliable sources sort first for equal values."""
        purl = CanonicalId("x", IdSource.PURL)
        synthetic = CanonicalId("x", IdSource.SYNTHETIC)
        assert purl < synthetic

    def test_equal_ids_hash_equal(self):
        """Test ids are usable as dict keys."""
        a = CanonicalId("pkg:npm/a@1", IdSource.PURL)
        b = CanonicalId("pkg:npm/a@1", IdSource.PURL)
        assert a == b
        assert {a: 1}[b] == 1

    def test_immutable(self):
        """Test ids cannot be mutated."""
        cid = CanonicalId("pkg:npm/a@1")
        with pytest.raises(FrozenInstanceError):
            cid.value = "other"

    def test_is_synthetic(self):
        """Test synthetic detection."""
        assert CanonicalId("synthetic:abc:0", IdSource.SYNTHETIC).is_synthetic
        assert not CanonicalId("pkg:npm/a@1", IdSource.PURL).is_synthetic

    def test_to_dict(self):
        """Test dictionary conversion."""
        assert CanonicalId("pkg:npm/a@1", IdSource.PURL).to_dict() == {
            "value": "pkg:npm/a@1",
            "source": "purl",
        }


class TestIdSource:
    """Tests for IdSource enum."""

    def test_rank_order(self):
        """Test reliability ranks."""
        tiers = (IdSource.PURL, IdSource.CPE, IdSource.COMPOSITE, IdSource.SYNTHETIC)
        ranks = [s.rank for s in tiers]
        assert ranks == sorted(ranks)

    def test_only_synthetic_unstable(self):
        """Test stability flag."""
        assert IdSource.PURL.is_stable
        assert IdSource.COMPOSITE.is_stable
        assert not IdSource.SYNTHETIC.is_stable


class TestEcosystem:
    """Tests for Ecosystem enum."""

    def test_from_string(self):
        """Test direct values."""
        assert Ecosystem.from_string("npm") == Ecosystem.NPM
        assert Ecosystem.from_string("PyPI") == Ecosystem.PYPI

    def test_aliases(self):
        """Test common aliases."""
        assert Ecosystem.from_string("go") == Ecosystem.GOLANG
        assert Ecosystem.from_string("rubygems") == Ecosystem.GEM
        assert Ecosystem.from_string("crates.io") == Ecosystem.CARGO

    def test_unknown(self):
        """Test unrecognized and empty values."""
        assert Ecosystem.from_string("cobolpkg") == Ecosystem.UNKNOWN
        assert Ecosystem.from_string(None) == Ecosystem.UNKNOWN

    def test_unknown_purl_type_is_generic(self):
        """Test unknown purl types map to GENERIC."""
        assert Ecosystem.from_purl_type("bitbucket") == Ecosystem.GENERIC
        assert Ecosystem.from_purl_type("maven") == Ecosystem.MAVEN


# =============================================================================
# Component Tests
# =============================================================================


class TestSeverity:
    """Tests for Severity enum."""

    def test_rank(self):
        """Test severity ranks."""
        assert Severity.CRITICAL.rank == 4
        assert Severity.HIGH.rank == 3
        assert Severity.MEDIUM.rank == 2
        assert Severity.LOW.rank == 1
        assert Severity.NONE.rank == 0
        assert Severity.UNKNOWN.rank == 0

    def test_from_string(self):
        """Test string parsing."""
        assert Severity.from_string("HIGH") == Severity.HIGH
        assert Severity.from_string("moderate") == Severity.MEDIUM
        assert Severity.from_string("info") == Severity.NONE
        assert Severity.from_string("bogus") == Severity.UNKNOWN
        assert Severity.from_string(None) == Severity.UNKNOWN

    @pytest.mark.parametrize(
        "score,expected",
        [
            (9.8, Severity.CRITICAL),
            (7.5, Severity.HIGH),
            (5.0, Severity.MEDIUM),
            (2.1, Severity.LOW),
            (0.0, Severity.NONE),
            (None, Severity.UNKNOWN),
        ],
    )
    def test_from_cvss(self, score, expected):
        """Test CVSS banding."""
        assert Severity.from_cvss(score) == expected


class TestVexState:
    """Tests for VexState enum."""

    def test_from_string(self):
        """Test OpenVEX names."""
        assert VexState.from_string("not_affected") == VexState.NOT_AFFECTED
        assert VexState.from_string("under-investigation") == VexState.UNDER_INVESTIGATION

    def test_cyclonedx_aliases(self):
        """Test CycloneDX analysis states."""
        assert VexState.from_string("exploitable") == VexState.AFFECTED
        assert VexState.from_string("in_triage") == VexState.UNDER_INVESTIGATION
        assert VexState.from_string("false_positive") == VexState.NOT_AFFECTED
        assert VexState.from_string("resolved") == VexState.FIXED

    def test_invalid(self):
        """Test unknown states raise."""
        with pytest.raises(ValueError, match="Invalid VEX state"):
            VexState.from_string("maybe")


class TestHashAlgorithm:
    """Tests for HashAlgorithm enum."""

    def test_from_string(self):
        """Test spelling variants."""
        assert HashAlgorithm.from_string("SHA-256") == HashAlgorithm.SHA256
        assert HashAlgorithm.from_string("sha3_512") == HashAlgorithm.SHA3_512
        assert HashAlgorithm.from_string("MD5") == HashAlgorithm.MD5
        assert HashAlgorithm.from_string("crc32") == HashAlgorithm.OTHER

    def test_weak(self):
        """Test weak algorithm detection."""
        assert HashAlgorithm.MD5.is_weak
        assert HashAlgorithm.SHA1.is_weak
        assert not HashAlgorithm.SHA256.is_weak
        assert HashAlgorithm.SHA512.strength > HashAlgorithm.SHA256.strength

    def test_digest_lowercased(self):
        """Test digests are normalized."""
        assert Hash(HashAlgorithm.SHA256, " ABCDEF ").digest == "abcdef"


class TestVulnerabilityRef:
    """Tests for VulnerabilityRef."""

    def test_defaults(self):
        """Test default values."""
        vuln = VulnerabilityRef(id="CVE-2026-1")
        assert vuln.severity == Severity.UNKNOWN
        assert not vuln.is_kev
        assert not vuln.has_remediation

    def test_kev_and_remediation(self):
        """Test KEV and remediation flags."""
        vuln = VulnerabilityRef(
            id="CVE-2026-1", kev_due_date=date(2026, 2, 1), remediation="Upgrade"
        )
        assert vuln.is_kev
        assert vuln.has_remediation

    def test_cwes_coerced_to_tuple(self):
        """Test list input becomes a tuple."""
        vuln = VulnerabilityRef(id="CVE-2026-1", cwes=["CWE-79"])
        assert vuln.cwes == ("CWE-79",)


class TestLifecycleInfo:
    """Tests for LifecycleInfo."""

    def test_end_of_life_by_status(self):
        """Test explicit EOL status."""
        info = LifecycleInfo(status=LifecycleStatus.END_OF_LIFE)
        assert info.is_end_of_life(date(2026, 1, 1))
        assert not info.is_supported(date(2026, 1, 1))

    def test_end_of_life_by_date(self):
        """Test EOL date comparison."""
        info = LifecycleInfo(status=LifecycleStatus.ACTIVE, eol_date=date(2025, 6, 1))
        assert info.is_end_of_life(date(2026, 1, 1))
        assert not info.is_end_of_life(date(2025, 1, 1))

    def test_deprecated_not_supported(self):
        """Test deprecated components are unsupported."""
        info = LifecycleInfo(status=LifecycleStatus.DEPRECATED)
        assert not info.is_end_of_life(date(2026, 1, 1))
        assert not info.is_supported(date(2026, 1, 1))

    def test_staleness(self):
        """Test staleness classification."""
        info = LifecycleInfo(last_release_date=date(2023, 1, 1))
        assert info.staleness(date(2026, 1, 1)) == StalenessLevel.ABANDONED
        assert LifecycleInfo().staleness(date(2026, 1, 1)) is None


class TestComponent:
    """Tests for Component."""

    def test_display_name(self, make_component):
        """Test name@version rendering."""
        assert make_component("lodash", "4.17.21").display_name == "lodash@4.17.21"
        assert make_component("lodash", None).display_name == "lodash"

    def test_sequences_coerced_to_tuples(self):
        """Test list fields become tuples."""
        component = Component(
            canonical_id=CanonicalId("npm:a@1"), name="a", licenses=["MIT"], hashes=[]
        )
        assert component.licenses == ("MIT",)
        assert component.hashes == ()

    def test_has_strong_hash(self, make_component):
        """Test strong hash detection."""
        weak = make_component("a", hashes=(Hash(HashAlgorithm.MD5, "abc"),))
        strong = make_component(
            "b", hashes=(Hash(HashAlgorithm.MD5, "abc"), Hash(HashAlgorithm.SHA512, "def"))
        )
        assert not weak.has_strong_hash
        assert strong.has_strong_hash

    def test_get_vulnerability(self, make_component, critical_vuln):
        """Test vulnerability lookup by id."""
        component = make_component("a", vulnerabilities=(critical_vuln,))
        assert component.get_vulnerability("CVE-2026-0001") is critical_vuln
        assert component.get_vulnerability("CVE-0000-0000") is None
        assert component.vulnerability_ids == frozenset({"CVE-2026-0001"})

    def test_to_dict(self, make_component):
        """Test dictionary conversion."""
        data = make_component("lodash", "4.17.21").to_dict()
        assert data["id"] == "pkg:npm/lodash@4.17.21"
        assert data["id_source"] == "purl"
        assert data["ecosystem"] == "npm"
        assert data["licenses"] == ["MIT"]


# =============================================================================
# NormalizedSbom Tests
# =============================================================================


class TestDocumentMetadata:
    """Tests for DocumentMetadata."""

    def test_parsed_support_end_date(self):
        """Test ISO date and datetime parsing."""
        assert DocumentMetadata(support_end_date="2030-12-31").parsed_support_end_date() == date(
            2030, 12, 31
        )
        assert DocumentMetadata(
            support_end_date="2030-12-31T00:00:00Z"
        ).parsed_support_end_date() == date(2030, 12, 31)
        assert DocumentMetadata().parsed_support_end_date() is None

    def test_malformed_support_end_date(self):
        """Test malformed dates raise."""
        with pytest.raises(ValueError):
            DocumentMetadata(support_end_date="next year").parsed_support_end_date()

    def test_creator_views(self, full_metadata):
        """Test organization and tool filters."""
        assert [c.name for c in full_metadata.organizations] == ["Acme Corp"]
        assert [c.name for c in full_metadata.tools] == ["syft"]


class TestNormalizedSbom:
    """Tests for NormalizedSbom."""

    def test_build(self, app_sbom, app_components):
        """Test basic construction."""
        assert len(app_sbom) == 4
        assert app_sbom.component_count == 4
        assert app_components["lodash"].canonical_id in app_sbom
        assert app_sbom.primary_component() == app_components["webapp"]

    def test_duplicate_ids_rejected(self, make_component):
        """Test duplicate canonical ids raise."""
        a = make_component("lodash", "4.17.21")
        b = make_component("lodash", "4.17.21", supplier="Someone Else")
        with pytest.raises(DuplicateComponentError) as exc_info:
            NormalizedSbom.build([a, b])
        assert exc_info.value.canonical_id == a.canonical_id
        assert isinstance(exc_info.value, InvalidSbomError)

    def test_self_edges_dropped(self, make_component):
        """Test self-referential edges are removed."""
        a = make_component("a")
        b = make_component("b")
        sbom = NormalizedSbom.build(
            [a, b],
            edges=[
                DependencyEdge(a.canonical_id, a.canonical_id),
                DependencyEdge(a.canonical_id, b.canonical_id),
            ],
        )
        assert [e.key for e in sbom.edges] == [(a.canonical_id, b.canonical_id)]

    def test_dangling_edges_dropped(self, make_component, caplog):
        """Test edges to unlisted components are removed with a warning."""
        a, b, gone = make_component("a"), make_component("b"), make_component("gone")
        sbom = NormalizedSbom.build(
            [a, b],
            edges=[
                DependencyEdge(a.canonical_id, gone.canonical_id),
                DependencyEdge(gone.canonical_id, b.canonical_id),
                DependencyEdge(a.canonical_id, b.canonical_id),
            ],
        )
        assert [e.key for e in sbom.edges] == [(a.canonical_id, b.canonical_id)]
        assert caplog.text.count("not in the component list") == 2

    def test_components_read_only(self, app_sbom, make_component):
        """Test the component mapping cannot be modified."""
        extra = make_component("extra")
        with pytest.raises(TypeError):
            app_sbom.components[extra.canonical_id] = extra

    def test_sorted_components(self, app_sbom):
        """Test components are ordered by canonical id."""
        ids = [c.canonical_id for c in app_sbom.sorted_components()]
        assert ids == sorted(ids)

    def test_all_vulnerabilities_ordered(self, make_component):
        """Test vulnerability pairs are ordered by component and id."""
        b = make_component(
            "b", vulnerabilities=(VulnerabilityRef("CVE-2"), VulnerabilityRef("CVE-1"))
        )
        a = make_component("a", vulnerabilities=(VulnerabilityRef("CVE-3"),))
        sbom = NormalizedSbom.build([b, a])
        pairs = [(c.name, v.id) for c, v in sbom.all_vulnerabilities()]
        assert pairs == [("a", "CVE-3"), ("b", "CVE-1"), ("b", "CVE-2")]

    def test_vulnerability_counts(self, make_component, critical_vuln):
        """Test counts include every severity."""
        sbom = NormalizedSbom.build([make_component("a", vulnerabilities=(critical_vuln,))])
        counts = sbom.vulnerability_counts()
        assert counts["critical"] == 1
        assert counts["high"] == 0
        assert set(counts) == {s.value for s in Severity}

    def test_content_hash_independent_of_input_order(self, app_components):
        """Test content hash is deterministic."""
        components = list(app_components.values())
        first = NormalizedSbom.build(components)
        second = NormalizedSbom.build(list(reversed(components)))
        assert first.content_hash() == second.content_hash()

    def test_to_dict(self, app_sbom):
        """Test dictionary conversion."""
        data = app_sbom.to_dict()
        assert data["metadata"]["name"] == "webapp"
        assert len(data["components"]) == 4
        assert len(data["edges"]) == 3
        assert data["primary_component"] == "pkg:npm/webapp@2.0.0"
