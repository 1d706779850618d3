"""
Quality metrics for normalized SBOMs.

SbomStatistics collects the counts every category scorer needs in a
single pass over the SBOM; the scorer functions turn those counts into
0-100 category scores.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any

from sbomlens.graph.analyzer import DependencyGraph
from sbomlens.identity.resolver import is_valid_cpe, is_valid_purl
from sbomlens.models.sbom import NormalizedSbom
from sbomlens.quality.licenses import is_noassertion, is_spdx_expression

# Completeness field weights
COMPLETENESS_WEIGHTS = {
    "version": 1.0,
    "purl": 1.5,
    "cpe": 0.5,
    "supplier": 1.0,
    "hashes": 1.0,
    "licenses": 1.2,
    "creator_info": 0.3,
    "serial_number": 0.2,
}

INVALID_ID_PENALTY = 20.0
NOASSERTION_PENALTY = 10.0
ORPHAN_PENALTY = 10.0
CYCLE_PENALTY = 5.0
MAX_CYCLE_PENALTY = 20.0


@dataclass
class SbomStatistics:
    """Counts gathered from an SBOM for quality scoring."""

    total_components: int = 0

    # Field presence
    with_version: int = 0
    with_purl: int = 0
    with_cpe: int = 0
    with_supplier: int = 0
    with_hashes: int = 0
    with_strong_hash: int = 0
    with_licenses: int = 0

    # Identifiers
    with_valid_id: int = 0
    invalid_ids: int = 0

    # Licenses
    with_spdx_licenses: int = 0
    with_noassertion: int = 0

    # Vulnerabilities
    total_vulnerabilities: int = 0
    vulns_with_cvss: int = 0
    vulns_with_cwe: int = 0
    vulns_with_remediation: int = 0

    # Dependencies
    with_dependencies: int = 0
    orphans: int = 0
    cycles: int = 0

    # Lifecycle
    with_lifecycle: int = 0
    supported: int = 0

    # Document
    has_creators: bool = False
    has_organization: bool = False
    has_timestamp: bool = False
    has_serial_number: bool = False

    @classmethod
    def from_sbom(
        cls,
        sbom: NormalizedSbom,
        graph: DependencyGraph | None = None,
        today: date | None = None,
    ) -> SbomStatistics:
        """
        Gather statistics from an SBOM.

        Args:
            sbom: SBOM to measure
            graph: Dependency graph of the SBOM (built if not given)
            today: Reference day for lifecycle checks

        Returns:
            SbomStatistics
        """
        graph = graph or DependencyGraph.from_sbom(sbom)
        today = today or date.today()
        metadata = sbom.metadata

        stats = cls(
            total_components=len(sbom),
            has_creators=bool(metadata.creators),
            has_organization=bool(metadata.organizations),
            has_timestamp=metadata.timestamp is not None,
            has_serial_number=bool(metadata.serial_number),
        )

        for component in sbom:
            stats.with_version += bool(component.version)
            stats.with_purl += bool(component.purl)
            stats.with_cpe += bool(component.cpe)
            stats.with_supplier += bool(component.supplier)
            stats.with_hashes += bool(component.hashes)
            stats.with_strong_hash += component.has_strong_hash

            valid_purl = is_valid_purl(component.purl)
            valid_cpe = is_valid_cpe(component.cpe)
            stats.with_valid_id += valid_purl or valid_cpe
            stats.invalid_ids += bool(component.purl) and not valid_purl
            stats.invalid_ids += bool(component.cpe) and not valid_cpe

            if component.licenses:
                stats.with_licenses += 1
                if all(is_spdx_expression(expr) for expr in component.licenses):
                    stats.with_spdx_licenses += 1
                if any(is_noassertion(expr) for expr in component.licenses):
                    stats.with_noassertion += 1

            for vuln in component.vulnerabilities:
                stats.total_vulnerabilities += 1
                stats.vulns_with_cvss += vuln.cvss_score is not None
                stats.vulns_with_cwe += bool(vuln.cwes)
                stats.vulns_with_remediation += vuln.has_remediation

            if graph.children(component.canonical_id):
                stats.with_dependencies += 1

            if component.lifecycle is not None:
                stats.with_lifecycle += 1
                stats.supported += component.lifecycle.is_supported(today)

        stats.orphans = len(graph.orphans())
        stats.cycles = len(graph.detect_cycles())
        return stats

    @property
    def lifecycle_available(self) -> bool:
        return self.with_lifecycle > 0

    def percent(self, count: int) -> float:
        """Count as a percentage of all components."""
        if self.total_components == 0:
            return 0.0
        return count / self.total_components * 100

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def completeness_score(stats: SbomStatistics) -> float:
    """Weighted share of populated component and document fields."""
    if stats.total_components == 0:
        return 0.0

    present = {
        "version": stats.percent(stats.with_version),
        "purl": stats.percent(stats.with_purl),
        "cpe": stats.percent(stats.with_cpe),
        "supplier": stats.percent(stats.with_supplier),
        "hashes": stats.percent(stats.with_hashes),
        "licenses": stats.percent(stats.with_licenses),
        "creator_info": 100.0 if stats.has_creators else 0.0,
        "serial_number": 100.0 if stats.has_serial_number else 0.0,
    }
    weighted = sum(present[name] * weight for name, weight in COMPLETENESS_WEIGHTS.items())
    total = sum(100.0 * weight for weight in COMPLETENESS_WEIGHTS.values())
    return _clamp(weighted / total * 100)


def identifier_score(stats: SbomStatistics) -> float:
    """Valid PURL/CPE coverage, penalized for malformed identifiers."""
    n = stats.total_components
    if n == 0:
        return 0.0
    coverage = min(stats.with_valid_id, n) / n * 100
    penalty = stats.invalid_ids / n * INVALID_ID_PENALTY
    return _clamp(coverage - penalty)


def license_score(stats: SbomStatistics) -> float:
    """Declared license coverage with an SPDX bonus and NOASSERTION penalty."""
    n = stats.total_components
    if n == 0:
        return 0.0
    coverage = stats.with_licenses / n * 60
    spdx_ratio = stats.with_spdx_licenses / stats.with_licenses if stats.with_licenses else 0.0
    penalty = stats.with_noassertion / n * NOASSERTION_PENALTY
    return _clamp(coverage + spdx_ratio * 30 - penalty)


def vulnerability_score(stats: SbomStatistics) -> float:
    """How well attached vulnerabilities are documented (100 if none)."""
    if stats.total_components == 0:
        return 0.0
    total = stats.total_vulnerabilities
    if total == 0:
        return 100.0
    return _clamp(
        stats.vulns_with_cvss / total * 40
        + stats.vulns_with_cwe / total * 30
        + stats.vulns_with_remediation / total * 30
    )


def dependency_score(stats: SbomStatistics) -> float:
    """Dependency coverage minus orphan and cycle penalties."""
    n = stats.total_components
    if n == 0:
        return 0.0
    coverage = stats.with_dependencies / (n - 1) * 100 if n > 1 else 100.0
    orphan_penalty = stats.orphans / n * ORPHAN_PENALTY
    cycle_penalty = min(MAX_CYCLE_PENALTY, stats.cycles * CYCLE_PENALTY)
    return _clamp(coverage - orphan_penalty - cycle_penalty)


def integrity_score(stats: SbomStatistics) -> float:
    """Hash coverage, with credit for SHA-256 or stronger digests."""
    if stats.total_components == 0:
        return 0.0
    hash_coverage = stats.with_hashes / stats.total_components
    strong_ratio = stats.with_strong_hash / stats.with_hashes if stats.with_hashes else 0.0
    return _clamp(hash_coverage * 70 + strong_ratio * 30)


def provenance_score(stats: SbomStatistics) -> float:
    """Document authorship and supplier attribution."""
    if stats.total_components == 0:
        return 0.0
    score = 0.0
    score += 25 if stats.has_creators else 0
    score += 15 if stats.has_organization else 0
    score += 15 if stats.has_timestamp else 0
    score += 15 if stats.has_serial_number else 0
    score += stats.with_supplier / stats.total_components * 30
    return _clamp(score)


def lifecycle_score(stats: SbomStatistics) -> float | None:
    """
    Share of components with lifecycle data that are still supported.

    Returns None when no component carries lifecycle data.
    """
    if not stats.lifecycle_available:
        return None
    return _clamp(stats.supported / stats.with_lifecycle * 100)
