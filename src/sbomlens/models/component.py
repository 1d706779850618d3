"""
Component data model for sbomlens.

Defines the normalized Component along with the value types it carries:
hashes, vulnerability references, lifecycle information and external
references. All of them are frozen; collection fields are stored as
tuples so that a built SBOM cannot be mutated in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from sbomlens.models.identifiers import CanonicalId, Ecosystem


class Severity(Enum):
    """Vulnerability severity level."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> int:
        """Numeric rank for comparison (higher = more severe)."""
        ranks = {
            Severity.CRITICAL: 4,
            Severity.HIGH: 3,
            Severity.MEDIUM: 2,
            Severity.LOW: 1,
            Severity.NONE: 0,
            Severity.UNKNOWN: 0,
        }
        return ranks[self]

    @classmethod
    def from_string(cls, value: str | None) -> Severity:
        """
        Create Severity from string value.

        Args:
            value: String representation (case-insensitive)

        Returns:
            Matching Severity, or UNKNOWN for unrecognized input
        """
        if not value:
            return cls.UNKNOWN
        value_lower = value.strip().lower()
        if value_lower == "moderate":
            return cls.MEDIUM
        if value_lower in ("info", "informational"):
            return cls.NONE
        for severity in cls:
            if severity.value == value_lower:
                return severity
        return cls.UNKNOWN

    @classmethod
    def from_cvss(cls, score: float | None) -> Severity:
        """Derive severity from a CVSS v3 base score."""
        if score is None:
            return cls.UNKNOWN
        if score >= 9.0:
            return cls.CRITICAL
        if score >= 7.0:
            return cls.HIGH
        if score >= 4.0:
            return cls.MEDIUM
        if score > 0.0:
            return cls.LOW
        return cls.NONE


class VexState(Enum):
    """VEX status values indicating vulnerability applicability."""

    AFFECTED = "affected"
    NOT_AFFECTED = "not_affected"
    FIXED = "fixed"
    UNDER_INVESTIGATION = "under_investigation"

    @classmethod
    def from_string(cls, value: str) -> VexState:
        """
        Create VexState from string value.

        Accepts CycloneDX analysis states ("exploitable", "in_triage",
        "resolved", "false_positive") as well as OpenVEX names.

        Raises:
            ValueError: If value is not a recognized VEX state
        """
        value_lower = value.strip().lower().replace("-", "_").replace(" ", "_")
        aliases = {
            "exploitable": cls.AFFECTED,
            "in_triage": cls.UNDER_INVESTIGATION,
            "resolved": cls.FIXED,
            "resolved_with_pedigree": cls.FIXED,
            "false_positive": cls.NOT_AFFECTED,
            "underinvestigation": cls.UNDER_INVESTIGATION,
            "notaffected": cls.NOT_AFFECTED,
        }
        if value_lower in aliases:
            return aliases[value_lower]
        for state in cls:
            if state.value == value_lower:
                return state
        raise ValueError(f"Invalid VEX state: {value}")


class HashAlgorithm(Enum):
    """Hash algorithms found in SBOM component hashes."""

    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"
    SHA3_256 = "sha3-256"
    SHA3_384 = "sha3-384"
    SHA3_512 = "sha3-512"
    BLAKE2B_256 = "blake2b-256"
    BLAKE2B_384 = "blake2b-384"
    BLAKE2B_512 = "blake2b-512"
    BLAKE3 = "blake3"
    OTHER = "other"

    @property
    def is_weak(self) -> bool:
        """Whether the algorithm is considered cryptographically weak."""
        return self in (HashAlgorithm.MD5, HashAlgorithm.SHA1, HashAlgorithm.OTHER)

    @property
    def strength(self) -> int:
        """Strength rank (0 = weak/unknown, 1 = SHA-2 256, 2 = stronger)."""
        if self.is_weak:
            return 0
        if self is HashAlgorithm.SHA256:
            return 1
        return 2

    @classmethod
    def from_string(cls, value: str) -> HashAlgorithm:
        """Create HashAlgorithm from names like "SHA-256" or "sha3_512"."""
        normalized = value.strip().lower().replace("_", "-")
        if normalized.startswith("sha-") and not normalized.startswith("sha-3"):
            normalized = normalized.replace("-", "", 1)
        normalized = normalized.replace("sha-3", "sha3")
        for algorithm in cls:
            if algorithm.value == normalized:
                return algorithm
        return cls.OTHER


@dataclass(frozen=True)
class Hash:
    """A component content hash. Digests are stored lowercase."""

    algorithm: HashAlgorithm
    digest: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "digest", self.digest.strip().lower())

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary."""
        return {"algorithm": self.algorithm.value, "digest": self.digest}


@dataclass(frozen=True)
class VulnerabilityRef:
    """
    A vulnerability attached to a component.

    Vulnerability data is consumed as precomputed input; nothing here is
    looked up from a database.

    Attributes:
        id: Vulnerability identifier (CVE, GHSA, OSV id)
        severity: Severity level
        cvss_score: CVSS base score, if known
        cwes: CWE identifiers
        published: Publication date
        kev_due_date: CISA KEV remediation due date, if listed
        vex_state: VEX status, if a statement exists
        fixed_version: Version that fixes the vulnerability
        remediation: Free-text remediation advice
        source: Data source that reported the vulnerability
        description: Short description
    """

    id: str
    severity: Severity = Severity.UNKNOWN
    cvss_score: float | None = None
    cwes: tuple[str, ...] = ()
    published: date | None = None
    kev_due_date: date | None = None
    vex_state: VexState | None = None
    fixed_version: str | None = None
    remediation: str | None = None
    source: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "cwes", tuple(self.cwes))

    @property
    def is_kev(self) -> bool:
        """Whether the vulnerability is on the known-exploited list."""
        return self.kev_due_date is not None

    @property
    def has_remediation(self) -> bool:
        """Whether any remediation information is present."""
        return bool(self.fixed_version or self.remediation)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "severity": self.severity.value,
            "cvss_score": self.cvss_score,
            "cwes": list(self.cwes),
            "published": self.published.isoformat() if self.published else None,
            "kev_due_date": self.kev_due_date.isoformat() if self.kev_due_date else None,
            "vex_state": self.vex_state.value if self.vex_state else None,
            "fixed_version": self.fixed_version,
            "remediation": self.remediation,
            "source": self.source,
        }


class LifecycleStatus(Enum):
    """Support status of a component release line."""

    ACTIVE = "active"
    LTS = "lts"
    DEPRECATED = "deprecated"
    END_OF_LIFE = "end_of_life"
    UNKNOWN = "unknown"


class StalenessLevel(Enum):
    """How long ago a component last saw a release."""

    FRESH = "fresh"  # released within ~6 months
    AGING = "aging"  # 6-12 months
    STALE = "stale"  # 1-2 years
    ABANDONED = "abandoned"  # over 2 years

    @classmethod
    def from_age_days(cls, days: int) -> StalenessLevel:
        """Classify a release age in days."""
        if days <= 182:
            return cls.FRESH
        if days <= 365:
            return cls.AGING
        if days <= 730:
            return cls.STALE
        return cls.ABANDONED


@dataclass(frozen=True)
class LifecycleInfo:
    """End-of-life and release recency information for a component."""

    status: LifecycleStatus = LifecycleStatus.UNKNOWN
    eol_date: date | None = None
    support_end_date: date | None = None
    last_release_date: date | None = None

    def is_end_of_life(self, today: date | None = None) -> bool:
        """Whether the component is past end-of-life on the given day."""
        if self.status is LifecycleStatus.END_OF_LIFE:
            return True
        today = today or date.today()
        return self.eol_date is not None and self.eol_date <= today

    def is_supported(self, today: date | None = None) -> bool:
        """Whether the component is neither EOL nor deprecated."""
        if self.status is LifecycleStatus.DEPRECATED:
            return False
        return not self.is_end_of_life(today)

    def staleness(self, today: date | None = None) -> StalenessLevel | None:
        """Staleness level based on the last release date, if known."""
        if self.last_release_date is None:
            return None
        today = today or date.today()
        return StalenessLevel.from_age_days((today - self.last_release_date).days)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "eol_date": self.eol_date.isoformat() if self.eol_date else None,
            "support_end_date": (
                self.support_end_date.isoformat() if self.support_end_date else None
            ),
            "last_release_date": (
                self.last_release_date.isoformat() if self.last_release_date else None
            ),
        }


@dataclass(frozen=True)
class ExternalReference:
    """External reference attached to a component or document."""

    ref_type: str  # security-contact, advisories, support, vcs, website, ...
    url: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary."""
        return {"type": self.ref_type, "url": self.url}


@dataclass(frozen=True)
class Component:
    """
    A normalized SBOM component.

    Attributes:
        canonical_id: Key assigned by the identity resolver
        name: Component name
        version: Version string, if known
        ecosystem: Package ecosystem
        licenses: Declared license expressions
        supplier: Supplier / publisher name
        author: Author name
        group: Group or namespace (maven groupId, npm scope)
        description: Free-text description
        hashes: Content hashes
        vulnerabilities: Attached vulnerability references
        purl: Package URL as delivered by the parser
        cpe: CPE string as delivered by the parser
        format_id: Format-specific id (bom-ref, SPDXID)
        external_refs: External references
        lifecycle: End-of-life/staleness information
    """

    canonical_id: CanonicalId
    name: str
    version: str | None = None
    ecosystem: Ecosystem = Ecosystem.UNKNOWN
    licenses: tuple[str, ...] = ()
    supplier: str | None = None
    author: str | None = None
    group: str | None = None
    description: str | None = None
    hashes: tuple[Hash, ...] = ()
    vulnerabilities: tuple[VulnerabilityRef, ...] = ()
    purl: str | None = None
    cpe: str | None = None
    format_id: str | None = None
    external_refs: tuple[ExternalReference, ...] = field(default_factory=tuple)
    lifecycle: LifecycleInfo | None = None

    def __post_init__(self) -> None:
        for name in ("licenses", "hashes", "vulnerabilities", "external_refs"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @property
    def display_name(self) -> str:
        """Name with version, e.g. "lodash@4.17.21"."""
        if self.version:
            return f"{self.name}@{self.version}"
        return self.name

    @property
    def has_strong_hash(self) -> bool:
        """Whether at least one non-weak hash is present."""
        return any(not h.algorithm.is_weak for h in self.hashes)

    @property
    def license_set(self) -> frozenset[str]:
        """Declared licenses as a set."""
        return frozenset(self.licenses)

    @property
    def hash_set(self) -> frozenset[Hash]:
        """Hashes as a set."""
        return frozenset(self.hashes)

    @property
    def vulnerability_ids(self) -> frozenset[str]:
        """Ids of attached vulnerabilities."""
        return frozenset(v.id for v in self.vulnerabilities)

    def get_vulnerability(self, vuln_id: str) -> VulnerabilityRef | None:
        """Get an attached vulnerability by id."""
        for vuln in self.vulnerabilities:
            if vuln.id == vuln_id:
                return vuln
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.canonical_id.value,
            "id_source": self.canonical_id.source.value,
            "name": self.name,
            "version": self.version,
            "ecosystem": self.ecosystem.value,
            "licenses": list(self.licenses),
            "supplier": self.supplier,
            "hashes": [h.to_dict() for h in self.hashes],
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
            "purl": self.purl,
            "cpe": self.cpe,
            "lifecycle": self.lifecycle.to_dict() if self.lifecycle else None,
        }
