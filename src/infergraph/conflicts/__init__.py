"""infergraph conflicts module.

Exports the ``ConflictTracker`` and its report types.
"""
from __future__ import annotations

from infergraph.conflicts.tracker import (
    ConflictEntry,
    ConflictSample,
    ConflictTracker,
    meaningful_type_name,
)

__all__ = ["ConflictEntry", "ConflictSample", "ConflictTracker", "meaningful_type_name"]
