"""Dependency graph and build staging.

This module handles:
- Dependency graph construction and cycle detection
- Topological leveling of assets into build stages
"""

from unibuild.graph.dependency import DependencyGraph, DependencyNode
from unibuild.graph.stages import BuildStages, DependencyCycleError, compute_stages

__all__ = [
    "BuildStages",
    "DependencyCycleError",
    "DependencyGraph",
    "DependencyNode",
    "compute_stages",
]
