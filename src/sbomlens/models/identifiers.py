"""
Canonical component identifiers.

A CanonicalId is the single key used to recognize "the same component"
across two independently produced SBOM snapshots. It records which tier
of the identity chain produced it so that matching can treat weak
(synthetic) identities differently from package URLs.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering


class IdSource(Enum):
    """Identity tier that produced a canonical id."""

    PURL = "purl"
    CPE = "cpe"
    COMPOSITE = "composite"
    SYNTHETIC = "synthetic"

    @property
    def rank(self) -> int:
        """Reliability rank (lower = more reliable)."""
        ranks = {
            IdSource.PURL: 0,
            IdSource.CPE: 1,
            IdSource.COMPOSITE: 2,
            IdSource.SYNTHETIC: 3,
        }
        return ranks[self]

    @property
    def is_stable(self) -> bool:
        """Whether the id is derived from real identifying data."""
        return self is not IdSource.SYNTHETIC


class Ecosystem(Enum):
    """Package ecosystems recognized by the identity resolver."""

    NPM = "npm"
    PYPI = "pypi"
    MAVEN = "maven"
    GOLANG = "golang"
    CARGO = "cargo"
    NUGET = "nuget"
    GEM = "gem"
    COMPOSER = "composer"
    DEB = "deb"
    RPM = "rpm"
    APK = "apk"
    CONAN = "conan"
    CONDA = "conda"
    GITHUB = "github"
    GENERIC = "generic"
    UNKNOWN = "unknown"

    @classmethod
    def from_string(cls, value: str | None) -> Ecosystem:
        """
        Create Ecosystem from a free-form string.

        Accepts purl types and common aliases ("go", "rubygems", "crates.io").
        Unrecognized values map to UNKNOWN instead of raising.
        """
        if not value:
            return cls.UNKNOWN
        value_lower = value.strip().lower()
        aliases = {
            "go": cls.GOLANG,
            "rubygems": cls.GEM,
            "crates.io": cls.CARGO,
            "crates": cls.CARGO,
            "pip": cls.PYPI,
            "python": cls.PYPI,
            "alpine": cls.APK,
            "debian": cls.DEB,
            "packagist": cls.COMPOSER,
        }
        if value_lower in aliases:
            return aliases[value_lower]
        for ecosystem in cls:
            if ecosystem.value == value_lower:
                return ecosystem
        return cls.UNKNOWN

    @classmethod
    def from_purl_type(cls, purl_type: str) -> Ecosystem:
        """Map a package-URL type to an ecosystem."""
        ecosystem = cls.from_string(purl_type)
        if ecosystem is cls.UNKNOWN and purl_type:
            return cls.GENERIC
        return ecosystem


@total_ordering
@dataclass(frozen=True)
class CanonicalId:
    """
    Immutable, totally ordered component key.

    Ordering is lexical on the id value, with the source rank as a
    secondary key, so sorting a set of ids is stable for the same input.

    Attributes:
        value: Normalized identifier text (purl, cpe, composite, synthetic)
        source: Identity tier that produced the value
    """

    value: str
    source: IdSource = IdSource.COMPOSITE

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CanonicalId):
            return NotImplemented
        return (self.value, self.source.rank) < (other.value, other.source.rank)

    def __str__(self) -> str:
        return self.value

    @property
    def is_synthetic(self) -> bool:
        """Whether this id is a synthetic fallback."""
        return self.source is IdSource.SYNTHETIC

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary."""
        return {"value": self.value, "source": self.source.value}
