"""infergraph merger module.

Exports the ``ExampleMerger`` and the field name helpers built on it.
"""
from __future__ import annotations

from infergraph.merger.merger import (
    FLATTEN_DELIMITER,
    FLATTEN_MAX_DEPTH,
    ExampleMerger,
    build_field_enum_values,
    extract_field_names,
    flatten_example,
)

__all__ = [
    "FLATTEN_DELIMITER",
    "FLATTEN_MAX_DEPTH",
    "ExampleMerger",
    "build_field_enum_values",
    "extract_field_names",
    "flatten_example",
]
