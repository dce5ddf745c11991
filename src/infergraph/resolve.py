"""Query-time resolution of inferred fields against the record store.

The type graph says *what* a field is; this module reads a record's
stored value for that field and turns it into the data a query would
return.  Link fields become the linked ``Record`` (or ``None`` when the
target is gone), union links are dispatched to one of their member
kinds, file links are joined against the owning record's root ``File``
directory, and nested objects are resolved field by field.

Usage
-----
::

    from infergraph.resolve import resolve_field, resolve_record

    result = build_schema(store)
    post_type = result.kinds["Post"]
    author = resolve_field(post_type, store.get_record("p1"), "author", store)
    resolve_record(post_type, store.get_record("p1"), store)
"""
from __future__ import annotations

import logging
from typing import Any

from infergraph.builder.builder import find_linked_record
from infergraph.builder.heuristics import FILE_DIR_FIELD, FILE_KIND, find_file_record
from infergraph.model.records import Record
from infergraph.model.types import (
    LinkType,
    ListType,
    ObjectType,
    TypeNode,
    UnionLinkType,
)
from infergraph.model.values import ListValue, NullValue, ObjectValue, StringValue, Value
from infergraph.names import link_alternate_key
from infergraph.store.store import RecordStore

logger = logging.getLogger(__name__)


def resolve_field(
    object_type: ObjectType, record: Record, field_name: str, store: RecordStore
) -> Any:
    """Resolve field ``field_name`` of ``record`` as typed by ``object_type``.

    Raises
    ------
    KeyError
        If ``object_type`` has no field ``field_name``.
    """
    if field_name not in object_type.fields:
        raise KeyError(
            f"Type {object_type.name!r} has no field {field_name!r}. "
            f"Available fields: {', '.join(sorted(object_type.fields)) or '(none)'}"
        )
    key = object_type.source_key(field_name)
    return resolve_value(object_type.fields[field_name], record.get(key), record, store, key)


def resolve_record(object_type: ObjectType, record: Record, store: RecordStore) -> dict[str, Any]:
    """Resolve every field of ``record``; keys are public field names."""
    return {name: resolve_field(object_type, record, name, store) for name in object_type.fields}


def resolve_value(
    node: TypeNode,
    value: Value | None,
    owner: Record,
    store: RecordStore,
    key: str = "",
) -> Any:
    """Resolve one stored value against its inferred type.

    Parameters
    ----------
    node:
        The field's type.
    value:
        The stored value; ``None`` for a missing field.
    owner:
        The record the value belongs to; file links resolve relative to
        its root ancestor.
    store:
        Record store used to look up linked records.
    key:
        Raw record key of the field.  Union links read their alternate
        key from its link marker.
    """
    if value is None or isinstance(value, NullValue):
        return None

    if isinstance(node, ListType):
        items = value.items if isinstance(value, ListValue) else (value,)
        return [resolve_value(node.of, item, owner, store, key) for item in items]

    if isinstance(node, LinkType):
        return _resolve_link(node, value, owner, store)

    if isinstance(node, UnionLinkType):
        record = find_linked_record(store, value.to_python(), link_alternate_key(key))
        if record is None:
            return None
        node.dispatch(record)
        return record

    if isinstance(node, ObjectType) and isinstance(value, ObjectValue):
        resolved = {}
        for name, field_node in node.fields.items():
            source = node.source_key(name)
            resolved[name] = resolve_value(field_node, value.get(source), owner, store, source)
        return resolved

    # Scalars, and objects stored as something else, come back as plain data.
    return value.to_python()


def _resolve_link(link: LinkType, value: Value, owner: Record, store: RecordStore) -> Record | None:
    target = value.to_python()

    if link.relative_file:
        root = store.find_root_record(owner)
        directory = root.get(FILE_DIR_FIELD) if root is not None else None
        if root is None or root.kind != FILE_KIND or not isinstance(directory, StringValue):
            logger.debug("No root File record for %r; cannot resolve %r", owner.id, target)
            return None
        return find_file_record(store, directory.value, str(target))

    alternate = None if link.key == "id" else link.key
    record = find_linked_record(store, target, alternate)
    if record is not None and link.restrict_kind and record.kind != link.target:
        logger.debug(
            "Link %r resolved to %r of kind %r, expected %r",
            target,
            record.id,
            record.kind,
            link.target,
        )
        return None
    return record
