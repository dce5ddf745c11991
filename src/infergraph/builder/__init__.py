"""infergraph builder module.

Exports the ``TypeBuilder`` and the value heuristics it applies.
"""
from __future__ import annotations

from infergraph.builder.builder import EXCLUDE_KEYS, TypeBuilder, find_linked_record
from infergraph.builder.heuristics import (
    FILE_KIND,
    looks_like_date,
    looks_like_relative_file,
    points_to_file,
)

__all__ = [
    "EXCLUDE_KEYS",
    "FILE_KIND",
    "TypeBuilder",
    "find_linked_record",
    "looks_like_date",
    "looks_like_relative_file",
    "points_to_file",
]
