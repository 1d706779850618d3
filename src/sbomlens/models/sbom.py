"""
Normalized SBOM document model.

NormalizedSbom is the single input type of every analysis in sbomlens.
It is built once by a format parser (outside this package) through
NormalizedSbom.build(), which enforces the structural invariants, and is
read-only afterwards.
"""

from __future__ import annotations

import hashlib
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

from sbomlens.models.component import Component, Severity, VulnerabilityRef
from sbomlens.models.identifiers import CanonicalId, Ecosystem

logger = logging.getLogger(__name__)


class InvalidSbomError(Exception):
    """Raised when an SBOM violates structural invariants."""


class DuplicateComponentError(InvalidSbomError):
    """Raised when two components share the same canonical id."""

    def __init__(self, canonical_id: CanonicalId):
        self.canonical_id = canonical_id
        super().__init__(f"Duplicate component id: {canonical_id.value}")


class SbomFormat(Enum):
    """Source document format."""

    CYCLONEDX = "cyclonedx"
    SPDX = "spdx"
    UNKNOWN = "unknown"


class CreatorType(Enum):
    """Kind of SBOM creator."""

    TOOL = "tool"
    ORGANIZATION = "organization"
    PERSON = "person"


@dataclass(frozen=True)
class Creator:
    """Entity that produced the SBOM document."""

    creator_type: CreatorType
    name: str
    email: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"type": self.creator_type.value, "name": self.name, "email": self.email}


@dataclass(frozen=True)
class DocumentMetadata:
    """
    Document-level SBOM metadata.

    support_end_date is kept as the text delivered by the parser; it is
    only interpreted by the compliance rules that need it.
    """

    name: str | None = None
    creators: tuple[Creator, ...] = ()
    timestamp: datetime | None = None
    serial_number: str | None = None
    format: SbomFormat = SbomFormat.UNKNOWN
    spec_version: str | None = None
    security_contact: str | None = None
    vulnerability_disclosure_url: str | None = None
    support_end_date: str | None = None
    lifecycle_phase: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "creators", tuple(self.creators))

    @property
    def organizations(self) -> list[Creator]:
        """Creators of type organization."""
        return [c for c in self.creators if c.creator_type is CreatorType.ORGANIZATION]

    @property
    def tools(self) -> list[Creator]:
        """Creators of type tool."""
        return [c for c in self.creators if c.creator_type is CreatorType.TOOL]

    def parsed_support_end_date(self) -> date | None:
        """
        Parse support_end_date as an ISO date.

        Raises:
            ValueError: If the value is present but not an ISO date
        """
        if not self.support_end_date:
            return None
        return date.fromisoformat(self.support_end_date.strip()[:10])

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "creators": [c.to_dict() for c in self.creators],
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "serial_number": self.serial_number,
            "format": self.format.value,
            "spec_version": self.spec_version,
            "security_contact": self.security_contact,
            "vulnerability_disclosure_url": self.vulnerability_disclosure_url,
            "support_end_date": self.support_end_date,
        }


@dataclass(frozen=True)
class DependencyEdge:
    """Directed dependency edge. Cycles are allowed."""

    from_id: CanonicalId
    to_id: CanonicalId
    relationship: str = "depends_on"
    scope: str | None = None

    @property
    def key(self) -> tuple[CanonicalId, CanonicalId]:
        """Identity of the edge for set comparison."""
        return (self.from_id, self.to_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "from": self.from_id.value,
            "to": self.to_id.value,
            "relationship": self.relationship,
            "scope": self.scope,
        }


@dataclass(frozen=True, eq=False)
class NormalizedSbom:
    """
    Immutable normalized SBOM.

    Use NormalizedSbom.build() rather than the constructor; it rejects
    duplicate component ids and drops self-referential and dangling
    edges.

    Attributes:
        metadata: Document metadata
        components: Read-only mapping of CanonicalId to Component
        edges: Ordered dependency edges
        primary_component_id: Id of the described product, if any
    """

    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    components: Mapping[CanonicalId, Component] = field(
        default_factory=lambda: MappingProxyType({})
    )
    edges: tuple[DependencyEdge, ...] = ()
    primary_component_id: CanonicalId | None = None

    @classmethod
    def build(
        cls,
        components: Iterable[Component],
        edges: Iterable[DependencyEdge] = (),
        metadata: DocumentMetadata | None = None,
        primary_component_id: CanonicalId | None = None,
    ) -> NormalizedSbom:
        """
        Build a validated, immutable SBOM.

        Self-referential edges and edges whose endpoints are not listed
        components are dropped with a warning.

        Args:
            components: Components with resolved canonical ids
            edges: Dependency edges
            metadata: Document metadata
            primary_component_id: Id of the described product

        Returns:
            NormalizedSbom

        Raises:
            DuplicateComponentError: If two components share a canonical id
        """
        component_map: dict[CanonicalId, Component] = {}
        for component in components:
            if component.canonical_id in component_map:
                raise DuplicateComponentError(component.canonical_id)
            component_map[component.canonical_id] = component

        kept_edges: list[DependencyEdge] = []
        for edge in edges:
            if edge.from_id == edge.to_id:
                logger.warning(f"Dropping self-referential edge on {edge.from_id.value}")
                continue
            if edge.from_id not in component_map or edge.to_id not in component_map:
                logger.warning(
                    f"Dropping edge {edge.from_id.value} -> {edge.to_id.value}: "
                    "endpoint is not in the component list"
                )
                continue
            kept_edges.append(edge)

        if primary_component_id is not None and primary_component_id not in component_map:
            logger.warning(
                f"Primary component {primary_component_id.value} is not in the component list"
            )

        return cls(
            metadata=metadata or DocumentMetadata(),
            components=MappingProxyType(component_map),
            edges=tuple(kept_edges),
            primary_component_id=primary_component_id,
        )

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self) -> Iterator[Component]:
        return iter(self.components.values())

    def __contains__(self, canonical_id: object) -> bool:
        return canonical_id in self.components

    @property
    def component_count(self) -> int:
        """Number of components."""
        return len(self.components)

    @property
    def ids(self) -> frozenset[CanonicalId]:
        """All component ids."""
        return frozenset(self.components)

    def get_component(self, canonical_id: CanonicalId) -> Component | None:
        """Get a component by id."""
        return self.components.get(canonical_id)

    def primary_component(self) -> Component | None:
        """The component this SBOM describes, if declared and present."""
        if self.primary_component_id is None:
            return None
        return self.components.get(self.primary_component_id)

    def sorted_components(self) -> list[Component]:
        """Components ordered by canonical id."""
        return [self.components[cid] for cid in sorted(self.components)]

    def ecosystems(self) -> list[Ecosystem]:
        """Distinct ecosystems present, sorted by value."""
        return sorted({c.ecosystem for c in self}, key=lambda e: e.value)

    def all_vulnerabilities(self) -> list[tuple[Component, VulnerabilityRef]]:
        """Every (component, vulnerability) pair, ordered by id."""
        pairs = []
        for component in self.sorted_components():
            for vuln in sorted(component.vulnerabilities, key=lambda v: v.id):
                pairs.append((component, vuln))
        return pairs

    def vulnerability_counts(self) -> dict[str, int]:
        """Vulnerability counts by severity value."""
        counts: Counter[str] = Counter()
        for _, vuln in self.all_vulnerabilities():
            counts[vuln.severity.value] += 1
        return {severity.value: counts.get(severity.value, 0) for severity in Severity}

    def content_hash(self) -> str:
        """SHA-256 over component ids, versions and edges."""
        hasher = hashlib.sha256()
        for component in self.sorted_components():
            hasher.update(component.canonical_id.value.encode("utf-8"))
            hasher.update(b"@")
            hasher.update((component.version or "").encode("utf-8"))
            hasher.update(b"\n")
        for edge in sorted(self.edges, key=lambda e: e.key):
            hasher.update(f"{edge.from_id.value}->{edge.to_id.value}\n".encode("utf-8"))
        return hasher.hexdigest()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "metadata": self.metadata.to_dict(),
            "components": [c.to_dict() for c in self.sorted_components()],
            "edges": [e.to_dict() for e in self.edges],
            "primary_component": (
                self.primary_component_id.value if self.primary_component_id else None
            ),
        }
