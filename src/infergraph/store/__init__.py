"""infergraph record store module.

Exports the ``RecordStore`` protocol, the in-memory implementation and
the file loaders.
"""
from __future__ import annotations

from infergraph.store.loaders import (
    LoaderNotFoundError,
    LoaderRegistry,
    RecordLoader,
    RecordLoadError,
    load_records,
    loader_registry,
)
from infergraph.store.store import (
    MAX_ANCESTOR_DEPTH,
    DuplicateRecordError,
    MemoryRecordStore,
    RecordStore,
)

__all__ = [
    "MAX_ANCESTOR_DEPTH",
    "DuplicateRecordError",
    "LoaderNotFoundError",
    "LoaderRegistry",
    "MemoryRecordStore",
    "RecordLoadError",
    "RecordLoader",
    "RecordStore",
    "load_records",
    "loader_registry",
]
