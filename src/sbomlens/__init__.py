"""
sbomlens - SBOM comparison, quality scoring and compliance checking

Works on normalized SBOMs produced by an external CycloneDX/SPDX parser
and answers three questions:
"What changed between these two SBOMs?", "How good is this SBOM?" and
"Does it meet the standard we ship against?"

Key Features:
- Stable component identity: purl, cpe, composite key or synthetic fallback
- Exact plus threshold-tunable fuzzy component matching
- Multi-snapshot views: baseline against targets, timelines, pairwise matrices
- Dependency graph analysis: cycles, blast radius, depth, topology changes
- Vulnerability prioritization with SLA and VEX awareness
- Eight-category quality scoring with weighting profiles
- NTIA, EU CRA and FDA compliance rule sets

Quick Start:
    >>> from sbomlens import diff, score, check_compliance
    >>>
    >>> result = diff(old_sbom, new_sbom, threshold=0.85)
    >>> print(result.semantic_score, result.summary.to_dict())
    >>>
    >>> report = score(new_sbom, "security")
    >>> print(report.overall_score, report.grade.value)
    >>>
    >>> compliance = check_compliance(new_sbom, "cra_phase_2")
    >>> print(compliance.is_compliant, compliance.score)
"""

from __future__ import annotations

from sbomlens.version import ENGINE_VERSION, __version__

# Core models
from sbomlens.models import (
    CanonicalId,
    Component,
    Creator,
    CreatorType,
    DependencyEdge,
    DocumentMetadata,
    DuplicateComponentError,
    Ecosystem,
    Hash,
    HashAlgorithm,
    IdSource,
    InvalidSbomError,
    NormalizedSbom,
    SbomFormat,
    Severity,
    VexState,
    VulnerabilityRef,
)

# Identity
from sbomlens.identity import ComponentRecord, IdentityResolver, resolve_identity

# Graph
from sbomlens.graph import DependencyCycle, DependencyGraph

# Engines
from sbomlens.diffing import (
    DiffEngine,
    DiffResult,
    MatrixResult,
    MultiDiffEngine,
    MultiDiffResult,
    TimelineResult,
    diff_multi,
    matrix,
    timeline,
)
from sbomlens.risk import VulnerabilityRiskEngine, fix_urgency, sla_status, vex_actionable
from sbomlens.quality import QualityReport, QualityScorer, ScoringProfile
from sbomlens.compliance import (
    ComplianceChecker,
    ComplianceResult,
    ComplianceStandard,
    diff_compliance,
)

# Configuration
from sbomlens.config import AnalysisConfig, ConfigError

# Top-level operations
from sbomlens.api import blast_radius, check_compliance, cycles, diff, score

__all__ = [
    "ENGINE_VERSION",
    "__version__",
    # Models
    "CanonicalId",
    "Component",
    "Creator",
    "CreatorType",
    "DependencyEdge",
    "DocumentMetadata",
    "DuplicateComponentError",
    "Ecosystem",
    "Hash",
    "HashAlgorithm",
    "IdSource",
    "InvalidSbomError",
    "NormalizedSbom",
    "SbomFormat",
    "Severity",
    "VexState",
    "VulnerabilityRef",
    # Identity
    "ComponentRecord",
    "IdentityResolver",
    "resolve_identity",
    # Graph
    "DependencyCycle",
    "DependencyGraph",
    # Engines
    "DiffEngine",
    "DiffResult",
    "MultiDiffEngine",
    "MultiDiffResult",
    "TimelineResult",
    "MatrixResult",
    "VulnerabilityRiskEngine",
    "QualityReport",
    "QualityScorer",
    "ScoringProfile",
    "ComplianceChecker",
    "ComplianceResult",
    "ComplianceStandard",
    "diff_compliance",
    # Configuration
    "AnalysisConfig",
    "ConfigError",
    # Operations
    "blast_radius",
    "check_compliance",
    "cycles",
    "diff",
    "diff_multi",
    "timeline",
    "matrix",
    "score",
    "fix_urgency",
    "sla_status",
    "vex_actionable",
]
