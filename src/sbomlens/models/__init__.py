"""
Normalized SBOM data model for sbomlens.

This package defines the format-independent representation every
analysis consumes: canonical ids, components, dependency edges and the
immutable NormalizedSbom document.
"""

from sbomlens.models.identifiers import (
    CanonicalId,
    Ecosystem,
    IdSource,
)
from sbomlens.models.component import (
    Component,
    ExternalReference,
    Hash,
    HashAlgorithm,
    LifecycleInfo,
    LifecycleStatus,
    Severity,
    StalenessLevel,
    VexState,
    VulnerabilityRef,
)
from sbomlens.models.sbom import (
    Creator,
    CreatorType,
    DependencyEdge,
    DocumentMetadata,
    DuplicateComponentError,
    InvalidSbomError,
    NormalizedSbom,
    SbomFormat,
)

__all__ = [
    # Identifiers
    "CanonicalId",
    "Ecosystem",
    "IdSource",
    # Component
    "Component",
    "ExternalReference",
    "Hash",
    "HashAlgorithm",
    "LifecycleInfo",
    "LifecycleStatus",
    "Severity",
    "StalenessLevel",
    "VexState",
    "VulnerabilityRef",
    # Document
    "Creator",
    "CreatorType",
    "DependencyEdge",
    "DocumentMetadata",
    "DuplicateComponentError",
    "InvalidSbomError",
    "NormalizedSbom",
    "SbomFormat",
]
