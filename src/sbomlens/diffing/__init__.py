"""
SBOM comparison for sbomlens.

Provides the DiffEngine (exact plus fuzzy component matching, derived
dependency/vulnerability/license/topology deltas and a semantic change
score) and the result types it produces. MultiDiffEngine composes those
diffs into baseline-versus-targets, timeline and pairwise matrix views.

Example:
    from sbomlens.diffing import DiffEngine

    result = DiffEngine(threshold=0.85).diff(old_sbom, new_sbom)
    print(result.summary.to_dict())
    for vuln in result.vulnerabilities.introduced:
        print(vuln.vuln_id, vuln.component_name)
"""

from sbomlens.diffing.engine import (
    TRACKED_FIELDS,
    DiffEngine,
    compare_components,
    diff,
)
from sbomlens.diffing.matching import (
    DEFAULT_THRESHOLD,
    ComponentMatcher,
    MatchCandidate,
    MatchWeights,
    levenshtein,
    name_similarity,
    normalize_name,
    version_proximity,
)
from sbomlens.diffing.result import (
    ChangeType,
    ComponentChange,
    ComponentChangeSet,
    DependencyChangeSet,
    DiffResult,
    DiffSummary,
    FieldChange,
    ImpactLevel,
    LicenseChange,
    LicenseChangeSet,
    MatchKind,
    TopologyChange,
    TopologyChangeType,
    VulnerabilityChangeSet,
    VulnerabilityDetail,
)
from sbomlens.diffing.multi import (
    DivergenceType,
    MatrixResult,
    MultiDiffEngine,
    MultiDiffResult,
    SecurityImpact,
    TimelineResult,
    VersionChangeType,
    classify_version_change,
    diff_multi,
    matrix,
    timeline,
)
from sbomlens.diffing.semantic import (
    SEVERITY_WEIGHTS,
    SemanticScoreBreakdown,
    semantic_score,
)
from sbomlens.diffing.topology import detect_topology_changes

__all__ = [
    # Engine
    "TRACKED_FIELDS",
    "DiffEngine",
    "compare_components",
    "diff",
    # Matching
    "DEFAULT_THRESHOLD",
    "ComponentMatcher",
    "MatchCandidate",
    "MatchWeights",
    "levenshtein",
    "name_similarity",
    "normalize_name",
    "version_proximity",
    # Results
    "ChangeType",
    "ComponentChange",
    "ComponentChangeSet",
    "DependencyChangeSet",
    "DiffResult",
    "DiffSummary",
    "FieldChange",
    "ImpactLevel",
    "LicenseChange",
    "LicenseChangeSet",
    "MatchKind",
    "TopologyChange",
    "TopologyChangeType",
    "VulnerabilityChangeSet",
    "VulnerabilityDetail",
    # Multi-snapshot
    "DivergenceType",
    "MatrixResult",
    "MultiDiffEngine",
    "MultiDiffResult",
    "SecurityImpact",
    "TimelineResult",
    "VersionChangeType",
    "classify_version_change",
    "diff_multi",
    "matrix",
    "timeline",
    # Semantic score
    "SEVERITY_WEIGHTS",
    "SemanticScoreBreakdown",
    "semantic_score",
    # Topology
    "detect_topology_changes",
]
