"""infergraph schema module.

Exports the build pass driver, its result type and the ``build_schema``
convenience function.
"""
from __future__ import annotations

from infergraph.schema.build import SchemaBuilder, SchemaResult, build_schema, group_by_kind

__all__ = ["SchemaBuilder", "SchemaResult", "build_schema", "group_by_kind"]
