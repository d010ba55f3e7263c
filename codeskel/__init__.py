"""codeskel: structural analysis of source repositories."""

from __future__ import annotations

from codeskel.architecture import build_architecture_graph
from codeskel.graph import build_dependency_graph
from codeskel.incremental import build_incremental_state, detect_changes
from codeskel.ranking import rank_files
from codeskel.skeleton import build_skeleton
from codeskel.validation import validate_consistency

__version__ = "0.1.0"

__all__ = [
    "build_architecture_graph",
    "build_dependency_graph",
    "build_incremental_state",
    "build_skeleton",
    "detect_changes",
    "rank_files",
    "validate_consistency",
]
