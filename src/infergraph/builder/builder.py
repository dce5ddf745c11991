"""Type builder: merged examples → type graph nodes.

``TypeBuilder.build_field`` decides the type of one field from its
merged example value.  The checks run in a fixed order and the first
match wins:

1. file-like relative paths that resolve to another ``File`` record
2. date-like strings and native dates
3. lists (other than link lists), typed by their representative element
4. declared link mappings (``Kind.path -> TargetKind``)
5. link fields by naming convention (``author___NODE``)
6. declared type overrides
7. primitives by runtime kind
8. nested objects, registered as named object types

Object types always include the fields declared for them in
configuration, even when no record carries data for those fields.
Keys that map to the same public field name (``author`` and
``author___NODE``) keep the first key in sorted order; the others are
dropped with a warning.

Usage
-----
::

    builder = TypeBuilder(store, registry, link_mapping={"Post.author": "Author"})
    post_type = builder.build_kind("Post", merger.merge(records, "Post"))
"""
from __future__ import annotations

import logging
from collections.abc import Mapping

from infergraph.builder.heuristics import (
    FILE_KIND,
    FILE_PATH_FIELD,
    looks_like_date,
    points_to_file,
)
from infergraph.errors import CannotInferType, MappingTargetNotFound, UnresolvedLink
from infergraph.model.records import FieldPath, Record
from infergraph.model.types import (
    BOOLEAN,
    DATE,
    FLOAT,
    INT,
    STRING,
    DeclaredTypeRef,
    LinkType,
    ListRef,
    NamedRef,
    ObjectType,
    TypeNode,
    UnionLinkType,
    is_scalar_ref,
    union_name,
)
from infergraph.model.values import (
    INVALID,
    BoolValue,
    ExampleValue,
    FloatValue,
    IntValue,
    LinkRef,
    ListValue,
    ObjectValue,
    StringValue,
    Value,
    is_empty,
    is_link_key,
)
from infergraph.names import create_key, link_alternate_key, strip_link_marker, type_name_for_path
from infergraph.registry.registry import TypeRegistry
from infergraph.store.store import RecordStore

logger = logging.getLogger(__name__)

#: Top-level keys describing the record itself; never inferred.
EXCLUDE_KEYS = frozenset({"id", "parent", "children"})


def mapping_selector(path: FieldPath) -> str:
    """Return the selector used for link mapping lookups (no ``[]`` markers)."""
    return str(path).replace("[]", "")


class TypeBuilder:
    """Builds type nodes from merged example values.

    Parameters
    ----------
    store:
        Record store used to resolve links and file paths.
    registry:
        Registry that receives every named type.  Record kinds that may be
        linked to must already be declared in it.
    link_mapping:
        Declared link fields, ``"Kind.path" -> target kind``.
    """

    def __init__(
        self,
        store: RecordStore,
        registry: TypeRegistry,
        link_mapping: Mapping[str, str] | None = None,
    ) -> None:
        self._store = store
        self._registry = registry
        self._link_mapping: dict[str, str] = dict(link_mapping or {})

    # ------------------------------------------------------------------
    # Object types
    # ------------------------------------------------------------------

    def build_kind(self, kind: str, example: Mapping[str, ExampleValue]) -> ObjectType:
        """Build (or rebuild) the object type of record kind ``kind``."""
        node = self._registry.declare_object(kind)
        fields, sources = self.build_object_fields(
            example, FieldPath.root(kind), kind, is_root=True
        )
        node.fields.clear()
        node.fields.update(fields)
        node.sources.clear()
        node.sources.update(sources)
        logger.debug("Built type %r with %d field(s)", kind, len(fields))
        return node

    def build_object_fields(
        self,
        example: Mapping[str, ExampleValue],
        path: FieldPath,
        type_name: str,
        is_root: bool = False,
    ) -> tuple[dict[str, TypeNode], dict[str, str]]:
        """Build the fields of object type ``type_name``.

        Returns
        -------
        tuple[dict[str, TypeNode], dict[str, str]]
            Public field name to type, and public field name to raw key
            for fields whose name differs from the key.
        """
        declared = self._registry.declared_types.get(type_name, {})
        fields: dict[str, TypeNode] = {}
        sources: dict[str, str] = {}

        for key in sorted(example):
            if is_root and key in EXCLUDE_KEYS:
                continue
            node = self.build_field(example[key], path.child(key), declared.get(key))
            if node is None:
                continue
            name = create_key(strip_link_marker(key))
            if name in fields:
                logger.warning(
                    "Dropping field %r of type %r: its name collides with %r",
                    key,
                    type_name,
                    sources.get(name, name),
                )
                continue
            fields[name] = node
            if name != key:
                sources[name] = key

        # Declared fields appear even without any observed data.
        for key, ref in sorted(declared.items()):
            name = create_key(strip_link_marker(key))
            if name in fields:
                continue
            fields[name] = self._registry.resolve_declared(ref, owner=f"{type_name}.{key}")
            if name != key:
                sources[name] = key
        return fields, sources

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    def build_field(
        self,
        example: ExampleValue,
        path: FieldPath,
        declared: DeclaredTypeRef | None = None,
    ) -> TypeNode | None:
        """Infer the type of the field at ``path`` from its example value.

        Returns ``None`` when the example is null, empty or conflicting,
        which drops the field from the schema.

        Raises
        ------
        CannotInferType
            If a list's representative element has no inferable type.
        MappingTargetNotFound
            If a declared link mapping names a kind with no type.
        UnresolvedLink
            If a link-marked value matches no record, or the matched
            record's kind has no type.
        """
        if example is INVALID or is_empty(example):
            return None
        key = path.key

        if self._is_file_link(example, path):
            link = LinkType(FILE_KIND, key=FILE_PATH_FIELD, relative_file=True)
            return self._registry.wrap_in_list(link) if isinstance(example, ListValue) else link

        if looks_like_date(example):
            return DATE

        if (
            isinstance(example, ListValue)
            and not is_link_key(key)
            and mapping_selector(path) not in self._link_mapping
            and not isinstance(declared, NamedRef)
        ):
            return self._build_list(example, path, declared)

        target = self._link_mapping.get(mapping_selector(path))
        if target is not None:
            return self._build_mapped_link(example, path, target)

        if is_link_key(key):
            return self._build_named_link(example, path)

        if declared is not None and not self._extends_declared_object(example, declared):
            return self._registry.resolve_declared(declared, owner=str(path))

        if isinstance(example, BoolValue):
            return BOOLEAN
        if isinstance(example, StringValue):
            return STRING
        if isinstance(example, IntValue):
            return INT
        if isinstance(example, FloatValue):
            return FLOAT

        if isinstance(example, ObjectValue):
            return self._build_object(example, path, declared)
        return None

    def _extends_declared_object(self, example: ExampleValue, declared: DeclaredTypeRef) -> bool:
        # Inferred fields of an object are kept and extended by a declared object type.
        return (
            isinstance(example, ObjectValue)
            and isinstance(declared, NamedRef)
            and not is_scalar_ref(declared)
        )

    def _build_list(
        self, example: ListValue, path: FieldPath, declared: DeclaredTypeRef | None
    ) -> TypeNode:
        element = example.items[0]
        element_declared = declared.of if isinstance(declared, ListRef) else None
        inferred = self.build_field(element, path.element(), element_declared)
        if inferred is None:
            raise CannotInferType(str(path), element.to_python())
        return self._registry.wrap_in_list(inferred)

    def _build_object(
        self, example: ObjectValue, path: FieldPath, declared: DeclaredTypeRef | None
    ) -> TypeNode:
        if isinstance(declared, NamedRef):
            type_name = declared.name
            if self._registry.owner_of(type_name) == type_name:
                # A record kind only gets its fields from its own records.
                return self._registry.resolve_declared(declared, owner=str(path))
            self._registry.claim(type_name, str(path))
        else:
            type_name = self._registry.unique_name(type_name_for_path(path), owner=str(path))
        node = self._registry.declare_object(type_name)
        fields, sources = self.build_object_fields(example.as_dict(), path, type_name)
        node.fields.update(fields)
        node.sources.update(sources)
        return node

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def _is_file_link(self, example: ExampleValue, path: FieldPath) -> bool:
        if path.kind == FILE_KIND or not isinstance(self._registry.get_type(FILE_KIND), ObjectType):
            return False
        if isinstance(example, ListValue):
            candidate: Value = example.items[0]
        else:
            candidate = example
        return isinstance(candidate, StringValue) and points_to_file(self._store, candidate)

    def _build_mapped_link(self, example: ExampleValue, path: FieldPath, target: str) -> TypeNode:
        if not isinstance(self._registry.get_type(target), ObjectType):
            raise MappingTargetNotFound(mapping_selector(path), target)
        link = LinkType(target, restrict_kind=True)
        return self._registry.wrap_in_list(link) if isinstance(example, ListValue) else link

    def _build_named_link(self, example: ExampleValue, path: FieldPath) -> TypeNode:
        alternate = link_alternate_key(path.key)
        values = example.items if isinstance(example, ListValue) else (example,)

        kinds: list[str] = []
        for value in values:
            record = self._resolve_link_target(value, path, alternate)
            if record.kind not in kinds:
                kinds.append(record.kind)
        distinct = sorted(kinds)

        if not isinstance(example, ListValue):
            return LinkType(distinct[0], key=alternate or "id")
        if len(distinct) == 1:
            return self._registry.wrap_in_list(LinkType(distinct[0], key=alternate or "id"))

        name = union_name(distinct)
        union = self._registry.get_type(name)
        if not isinstance(union, UnionLinkType):
            union = self._registry.register_type(
                name,
                UnionLinkType(
                    name=name,
                    targets=tuple(distinct),
                    description=(
                        f"Union interface for the field {strip_link_marker(path.key)!r} "
                        f"for types [{', '.join(distinct)}]"
                    ),
                ),
            )
        return self._registry.wrap_in_list(union)

    def _resolve_link_target(self, value: Value, path: FieldPath, alternate: str | None) -> Record:
        target = value.target_id if isinstance(value, LinkRef) else value.to_python()
        record = find_linked_record(self._store, target, alternate)
        if record is None:
            raise UnresolvedLink(
                str(path),
                target,
                f"there is no corresponding record with the {alternate or 'id'} "
                f"field matching {target!r}",
            )
        if not isinstance(self._registry.get_type(record.kind), ObjectType):
            raise UnresolvedLink(
                str(path),
                target,
                f"there is no corresponding type {record.kind!r} available to link to",
            )
        return record


def find_linked_record(
    store: RecordStore, target: object, alternate: str | None = None
) -> Record | None:
    """Find the record a link value points at.

    Links match a record id by default, or the value of the record field
    named ``alternate`` when the link marker names one.
    """
    if alternate is None:
        return store.get_record(str(target))
    for record in store.get_records():
        value = record.get(alternate)
        if value is not None and value.to_python() == target:
            return record
    return None
