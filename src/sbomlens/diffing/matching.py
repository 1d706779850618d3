"""
Fuzzy component matching.

Scores how likely two components with different canonical ids are the
same component (renamed, moved between ecosystems, or re-identified by
a different tool) and pairs them greedily.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Sequence

from packaging.version import InvalidVersion, Version
from packaging.version import parse as parse_version

from sbomlens.models.component import Component

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.85

_NAME_SEPARATORS = re.compile(r"[-_.@/\s]+")


@dataclass(frozen=True)
class MatchWeights:
    """Weights of the similarity dimensions. Must sum to 1.0."""

    name: float = 0.6
    ecosystem: float = 0.2
    version: float = 0.2

    def __post_init__(self):
        total = self.name + self.ecosystem + self.version
        if any(w < 0 for w in (self.name, self.ecosystem, self.version)):
            raise ValueError("Match weights must be non-negative")
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Match weights must sum to 1.0, got {total:.3f}")

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary."""
        return {"name": self.name, "ecosystem": self.ecosystem, "version": self.version}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MatchWeights:
        """Create from dictionary."""
        return cls(
            name=data.get("name", 0.6),
            ecosystem=data.get("ecosystem", 0.2),
            version=data.get("version", 0.2),
        )


@dataclass(frozen=True)
class MatchCandidate:
    """A scored (removed, added) pair."""

    old: Component
    new: Component
    score: float

    @property
    def sort_key(self) -> tuple:
        """Highest score first, then (name, id) of old, then of new."""
        return (
            -self.score,
            self.old.name,
            self.old.canonical_id,
            self.new.name,
            self.new.canonical_id,
        )


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        curr = [i]
        for j, cb in enumerate(b, 1):
            cost = 0 if ca == cb else 1
            curr.append(min(prev[j] + 1, curr[j - 1] + 1, prev[j - 1] + cost))
        prev = curr
    return prev[-1]


def normalize_name(name: str) -> str:
    """Lowercase a name and collapse separators to "-"."""
    return _NAME_SEPARATORS.sub("-", name.strip().lower()).strip("-")


def name_similarity(a: str, b: str) -> float:
    """
    Similarity of two component names in [0, 1].

    1.0 for names equal after normalization; otherwise the larger of the
    normalized edit-distance ratio and the token overlap (Jaccard), so
    that reordered names like "react-dom" / "dom-react" still score.
    """
    norm_a, norm_b = normalize_name(a), normalize_name(b)
    if norm_a == norm_b:
        return 1.0
    if not norm_a or not norm_b:
        return 0.0

    edit_ratio = 1.0 - levenshtein(norm_a, norm_b) / max(len(norm_a), len(norm_b))

    tokens_a = set(t for t in norm_a.split("-") if t)
    tokens_b = set(t for t in norm_b.split("-") if t)
    union = tokens_a | tokens_b
    jaccard = len(tokens_a & tokens_b) / len(union) if union else 0.0

    return max(edit_ratio, jaccard)


def _release(version: str) -> Version | None:
    try:
        return parse_version(version)
    except InvalidVersion:
        return None


def version_proximity(a: str | None, b: str | None) -> float:
    """
    Closeness of two versions in [0, 1].

    Equal (or both missing) 1.0; same major.minor 0.8; same major 0.6;
    different major or unparseable 0.3; one side missing 0.5.
    """
    a = (a or "").strip()
    b = (b or "").strip()
    if a == b:
        return 1.0
    if not a or not b:
        return 0.5

    va, vb = _release(a), _release(b)
    if va is None or vb is None:
        return 0.3

    if va == vb:
        return 1.0
    ra = va.release + (0,) * (2 - len(va.release[:2]))
    rb = vb.release + (0,) * (2 - len(vb.release[:2]))
    if ra[0] == rb[0] and ra[1] == rb[1]:
        return 0.8
    if ra[0] == rb[0]:
        return 0.6
    return 0.3


class ComponentMatcher:
    """
    Scores and greedily pairs unmatched components.

    All candidate pairs at or above the threshold are ranked once by
    (score desc, old name, old id, new name, new id); pairs are accepted
    in that order unless either side was already consumed. The accepted
    pairs at a higher threshold are therefore always a subset of those at
    a lower one.
    """

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        weights: MatchWeights | None = None,
        match_synthetic: bool = False,
    ):
        """
        Initialize the matcher.

        Args:
            threshold: Minimum similarity for a pair, in [0, 1]
            weights: Dimension weights
            match_synthetic: Allow synthetic ids to take part in matching

        Raises:
            ValueError: If the threshold is outside [0, 1]
        """
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"Similarity threshold must be in [0, 1], got {threshold}")
        self.threshold = threshold
        self.weights = weights or MatchWeights()
        self.match_synthetic = match_synthetic

    def similarity(self, old: Component, new: Component) -> float:
        """Weighted similarity of two components in [0, 1]."""
        name_score = name_similarity(old.name, new.name)
        if old.group or new.group:
            name_score = min(
                name_score,
                name_similarity(
                    f"{old.group or ''}/{old.name}", f"{new.group or ''}/{new.name}"
                ),
            )
        ecosystem_score = 1.0 if old.ecosystem == new.ecosystem else 0.0
        version_score = version_proximity(old.version, new.version)

        score = (
            self.weights.name * name_score
            + self.weights.ecosystem * ecosystem_score
            + self.weights.version * version_score
        )
        return round(score, 6)

    def candidates(
        self, removed: Sequence[Component], added: Sequence[Component]
    ) -> list[MatchCandidate]:
        """Every eligible pair at or above the threshold, ranked."""
        eligible_removed = [c for c in removed if self._eligible(c)]
        eligible_added = [c for c in added if self._eligible(c)]

        found: list[MatchCandidate] = []
        for old in eligible_removed:
            for new in eligible_added:
                score = self.similarity(old, new)
                if score >= self.threshold:
                    found.append(MatchCandidate(old=old, new=new, score=score))

        found.sort(key=lambda c: c.sort_key)
        return found

    def match(
        self, removed: Sequence[Component], added: Sequence[Component]
    ) -> list[MatchCandidate]:
        """
        Pair removed and added components one-to-one.

        Args:
            removed: Components only in the old snapshot
            added: Components only in the new snapshot

        Returns:
            Accepted pairs, in acceptance order
        """
        accepted: list[MatchCandidate] = []
        used_old: set = set()
        used_new: set = set()

        for candidate in self.candidates(removed, added):
            old_id = candidate.old.canonical_id
            new_id = candidate.new.canonical_id
            if old_id in used_old or new_id in used_new:
                continue
            used_old.add(old_id)
            used_new.add(new_id)
            accepted.append(candidate)

        logger.debug(
            f"Fuzzy matching paired {len(accepted)} of {len(removed)} removed / "
            f"{len(added)} added components at threshold {self.threshold}"
        )
        return accepted

    def _eligible(self, component: Component) -> bool:
        return self.match_synthetic or not component.canonical_id.is_synthetic
