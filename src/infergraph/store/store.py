"""Record store interface and an in-memory implementation.

The schema build pass only *consumes* a record store.  ``RecordStore``
is the protocol it relies on; ``MemoryRecordStore`` is a complete
in-memory implementation used by the CLI and the test suite.

Ownership tracking
------------------
Every nested value is assigned an arena handle when its record is
ingested, and a parallel table maps each handle to the id of the
record that contains it.  ``resolve_owning_record`` is therefore an
O(1) table lookup and needs no back-pointers from values to records.

Usage
-----
::

    from infergraph.store import MemoryRecordStore

    store = MemoryRecordStore.from_dicts([
        {"id": "a", "kind": "Post", "title": "Hello", "author___NODE": "u1"},
        {"id": "u1", "kind": "Author", "name": "Ada"},
    ])
    store.get_record("a").kind  # 'Post'
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Protocol, runtime_checkable

from infergraph.errors import AmbiguousOwnership
from infergraph.model.records import RESERVED_KEYS, Record
from infergraph.model.values import Value, from_python, is_link_key

logger = logging.getLogger(__name__)

#: Upper bound on parent-pointer hops before a walk is abandoned.
MAX_ANCESTOR_DEPTH = 100


@runtime_checkable
class RecordStore(Protocol):
    """What a schema build pass needs from the record store."""

    def get_record(self, record_id: str) -> Record | None: ...

    def get_records(self) -> Iterable[Record]: ...

    def resolve_owning_record(self, value: Any) -> str | None: ...

    def find_root_record(self, record: Record) -> Record | None: ...


class DuplicateRecordError(ValueError):
    """Raised when a record id is added twice."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(
            f"Record {record_id!r} is already in the store. "
            "Remove the existing record first or use a unique id."
        )


class MemoryRecordStore:
    """Dict-backed record store with an ownership arena.

    Records keep their insertion order; ``get_records`` yields them in
    that order.
    """

    def __init__(self) -> None:
        self._records: dict[str, Record] = {}
        self._owners: list[str] = []

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def add(
        self,
        record_id: str,
        kind: str,
        fields: Mapping[str, Any] | None = None,
        parent_id: str | None = None,
    ) -> Record:
        """Ingest one record from plain Python field data.

        Raises
        ------
        DuplicateRecordError
            If ``record_id`` is already present.
        TypeError
            If a field holds data that cannot be converted to a ``Value``.
        """
        if record_id in self._records:
            raise DuplicateRecordError(record_id)

        def allocate() -> int:
            self._owners.append(record_id)
            return len(self._owners) - 1

        values: dict[str, Value] = {
            str(key): from_python(data, allocate, link=is_link_key(str(key)))
            for key, data in (fields or {}).items()
        }
        record = Record(id=record_id, kind=kind, fields=values, parent_id=parent_id)
        self._records[record_id] = record
        logger.debug("Added record %r of kind %r with %d field(s)", record_id, kind, len(values))
        return record

    def add_dict(self, data: Mapping[str, Any]) -> Record:
        """Ingest a record written as a flat dict.

        ``id`` and ``kind`` are required; ``parent`` is optional; every
        other key except ``children`` becomes a field.

        Raises
        ------
        ValueError
            If ``id`` or ``kind`` is missing.
        """
        if "id" not in data or "kind" not in data:
            raise ValueError(f"Record is missing 'id' or 'kind': {dict(data)!r}")
        fields = {k: v for k, v in data.items() if k not in RESERVED_KEYS}
        return self.add(str(data["id"]), str(data["kind"]), fields, data.get("parent"))

    @classmethod
    def from_dicts(cls, rows: Iterable[Mapping[str, Any]]) -> "MemoryRecordStore":
        """Build a store from an iterable of flat record dicts."""
        store = cls()
        for row in rows:
            store.add_dict(row)
        return store

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_record(self, record_id: str) -> Record | None:
        return self._records.get(record_id)

    def get_records(self) -> Iterator[Record]:
        return iter(list(self._records.values()))

    def records_of_kind(self, kind: str) -> list[Record]:
        return [r for r in self._records.values() if r.kind == kind]

    def kinds(self) -> list[str]:
        """Return the sorted distinct record kinds."""
        return sorted({r.kind for r in self._records.values()})

    def resolve_owning_record(self, value: Any) -> str | None:
        """Return the id of the record containing ``value``, if known.

        Values without a handle (built by hand, or merged placeholders)
        resolve to ``None``.
        """
        handle = getattr(value, "handle", None)
        if handle is None or not 0 <= handle < len(self._owners):
            return None
        return self._owners[handle]

    def find_root_record(self, record: Record) -> Record | None:
        """Walk parent pointers from ``record`` up to its root ancestor.

        A record without a (resolvable) parent is its own root.  The walk
        is bounded by ``MAX_ANCESTOR_DEPTH``; exceeding it, which happens
        when parent pointers form a cycle, logs an ``AmbiguousOwnership``
        warning and returns ``None``.
        """
        current = record
        for _ in range(MAX_ANCESTOR_DEPTH):
            if current.parent_id is None:
                return current
            parent = self._records.get(current.parent_id)
            if parent is None:
                return current
            current = parent
        logger.warning("%s", AmbiguousOwnership(record.id, MAX_ANCESTOR_DEPTH))
        return None

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def __repr__(self) -> str:
        return f"MemoryRecordStore(records={len(self._records)}, handles={len(self._owners)})"
