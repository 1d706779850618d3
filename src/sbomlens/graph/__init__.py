"""
Dependency graph analysis for sbomlens.

Provides DependencyGraph with cycle detection, blast radius, root/orphan
detection and depth analysis, plus the cycles() and blast_radius()
convenience functions.
"""

from sbomlens.graph.analyzer import (
    MAX_REPORTED_CYCLES,
    DependencyCycle,
    DependencyGraph,
    GraphMetrics,
    blast_radius,
    cycles,
)

__all__ = [
    "MAX_REPORTED_CYCLES",
    "DependencyCycle",
    "DependencyGraph",
    "GraphMetrics",
    "blast_radius",
    "cycles",
]
