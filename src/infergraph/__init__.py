"""infergraph: infer a typed schema from heterogeneous records.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import infergraph

    # Load records from a JSON / JSON Lines / YAML file
    store = infergraph.load_records("records.json")

    # Or build a store from dicts
    store = infergraph.records_from_dicts([
        {"id": "p1", "kind": "Post", "title": "Hello", "author___NODE": "a1"},
        {"id": "a1", "kind": "Author", "name": "Ada"},
    ])

    # Run a build pass
    result = infergraph.build_schema(store)
    result.types["Post"].fields["author"]   # LinkType(target='Author', ...)

    # Render as SDL
    print(infergraph.format(result.types))

    # Merge records into a single example value per field
    example = infergraph.merge(store.records_of_kind("Post"))

    infergraph.__version__
    '0.1.0'
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from infergraph.config import InferenceConfig
    from infergraph.model.types import TypeNode
    from infergraph.model.values import ExampleValue
    from infergraph.schema.build import SchemaResult
    from infergraph.store.store import MemoryRecordStore, RecordStore


def load_records(path: str | Path) -> "MemoryRecordStore":
    """Read a records file into an in-memory record store.

    Raises
    ------
    infergraph.store.RecordLoadError
        If the file cannot be read or does not hold a list of records.
    """
    from infergraph.store.loaders import load_records as _load_records

    return _load_records(path)


def records_from_dicts(rows: Iterable[Mapping[str, Any]]) -> "MemoryRecordStore":
    """Build an in-memory record store from flat record dicts."""
    from infergraph.store.store import MemoryRecordStore

    return MemoryRecordStore.from_dicts(rows)


def load_config(path: str | Path) -> "InferenceConfig":
    """Read a YAML inference configuration file."""
    from infergraph.config import InferenceConfig

    return InferenceConfig.load(path)


def build_schema(
    store: "RecordStore", config: "InferenceConfig | None" = None
) -> "SchemaResult":
    """Run one schema build pass over ``store``.

    Parameters
    ----------
    store:
        The records to infer from.
    config:
        Link mappings, declared types and the unresolved link policy.

    Returns
    -------
    SchemaResult
        The type snapshot and the conflict report.

    Raises
    ------
    infergraph.errors.InferenceError
        If the pass fails; see ``SchemaBuilder.build``.
    """
    from infergraph.schema.build import build_schema as _build_schema

    return _build_schema(store, config)


def merge(records: Iterable[Any]) -> dict[str, "ExampleValue"]:
    """Merge records (or plain data dicts) into one example value per field.

    Plain dicts are converted with ``from_python`` first, so link marker
    keys such as ``author___NODE`` hold ``LinkRef`` values.
    """
    from infergraph.merger.merger import ExampleMerger
    from infergraph.model.values import from_python

    return ExampleMerger().merge(
        from_python(r) if isinstance(r, Mapping) else r for r in records
    )


def format(types: Mapping[str, "TypeNode"]) -> str:  # noqa: A001
    """Render a type snapshot as SDL text ending with a newline."""
    from infergraph.formatter.sdl import format_schema

    return format_schema(types)


__all__ = [
    "__version__",
    "load_records",
    "records_from_dicts",
    "load_config",
    "build_schema",
    "merge",
    "format",
]
