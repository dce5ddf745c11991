"""Type registry for infergraph.

The registry is the name-keyed cache of every type built during a
schema build pass.  It guarantees structural sharing: asking twice for
the list of a type, for the same union, or for the object type of a
record kind returns the very same node.

A registry is created (or ``reset``) at the start of each pass and its
``snapshot`` is the pass's output.  Entries are never carried from one
pass into the next.

Example
-------
::

    from infergraph.registry import TypeRegistry
    from infergraph.model.types import NamedRef, ListRef

    registry = TypeRegistry()
    post = registry.declare_object("Post")
    registry.wrap_in_list(post) is registry.wrap_in_list(post)  # True
    registry.resolve_declared(ListRef(NamedRef("String")))      # [String]
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from infergraph.errors import DeclaredTypeError, TypeNotFoundError
from infergraph.model.types import (
    BUILTIN_SCALARS,
    DeclaredTypeRef,
    ListRef,
    ListType,
    NamedRef,
    ObjectType,
    TypeNode,
)
from infergraph.names import create_key

logger = logging.getLogger(__name__)

DeclaredTypeMap = Mapping[str, Mapping[str, DeclaredTypeRef]]


@dataclass(frozen=True)
class RegistryCheckpoint:
    """Registry state saved by ``TypeRegistry.checkpoint``."""

    types: dict[str, TypeNode]
    claims: dict[str, str]
    lists: dict[TypeNode, ListType]
    objects: tuple[tuple[ObjectType, dict[str, TypeNode], dict[str, str]], ...]


class TypeRegistry:
    """Name-keyed cache of built type nodes.

    Parameters
    ----------
    declared_types:
        Declared object types, ``type name -> field name -> ref``.  Used
        by ``resolve_declared`` to build declared types on demand and
        kept across ``reset``.
    """

    def __init__(self, declared_types: DeclaredTypeMap | None = None) -> None:
        self._declared: dict[str, Mapping[str, DeclaredTypeRef]] = dict(declared_types or {})
        self._types: dict[str, TypeNode] = {}
        self._claims: dict[str, str] = {}
        self._lists: dict[TypeNode, ListType] = {}
        self.reset()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Drop every entry and re-register the built-in scalars."""
        self._types.clear()
        self._claims.clear()
        self._lists.clear()
        for scalar in BUILTIN_SCALARS:
            self._types[scalar.name] = scalar
        logger.debug("Type registry reset")

    def checkpoint(self) -> RegistryCheckpoint:
        """Save the current entries, including the fields of object types."""
        return RegistryCheckpoint(
            types=dict(self._types),
            claims=dict(self._claims),
            lists=dict(self._lists),
            objects=tuple(
                (node, dict(node.fields), dict(node.sources))
                for node in self._types.values()
                if isinstance(node, ObjectType)
            ),
        )

    def rollback(self, checkpoint: RegistryCheckpoint) -> None:
        """Restore the entries saved in ``checkpoint``.

        Types registered since are dropped.  Object types that existed at
        the checkpoint keep their identity and get their fields back.
        """
        dropped = sorted(set(self._types) - set(checkpoint.types))
        self._types.clear()
        self._types.update(checkpoint.types)
        self._claims.clear()
        self._claims.update(checkpoint.claims)
        self._lists.clear()
        self._lists.update(checkpoint.lists)
        for node, fields, sources in checkpoint.objects:
            node.fields.clear()
            node.fields.update(fields)
            node.sources.clear()
            node.sources.update(sources)
        logger.debug("Type registry rolled back, dropped %s", dropped)

    @property
    def declared_types(self) -> Mapping[str, Mapping[str, DeclaredTypeRef]]:
        return MappingProxyType(self._declared)

    def set_declared_types(self, declared_types: DeclaredTypeMap | None) -> None:
        """Replace the declared type map used by ``resolve_declared``."""
        self._declared = dict(declared_types or {})

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_type(self, name: str, node: TypeNode) -> TypeNode:
        """Register ``node`` under ``name`` and return it.

        Registration is an upsert: a later registration for the same name
        replaces the earlier one.
        """
        previous = self._types.get(name)
        self._types[name] = node
        if previous is not None and previous is not node:
            logger.debug("Replaced type %r in registry", name)
        else:
            logger.debug("Registered type %r", name)
        return node

    def declare_object(self, name: str, description: str | None = None) -> ObjectType:
        """Return the object type registered as ``name``, creating it if needed.

        Fields are filled in later by the type builder, which lets other
        types reference a record kind before its own fields are built.

        Raises
        ------
        TypeError
            If ``name`` is registered to a type that is not an object type.
        """
        existing = self._types.get(name)
        if isinstance(existing, ObjectType):
            return existing
        if existing is not None:
            raise TypeError(
                f"Cannot declare object type {name!r}: the name is already used by "
                f"{type(existing).__name__}."
            )
        node = ObjectType(name=name, description=description)
        self.register_type(name, node)
        return node

    def unique_name(self, base: str, owner: str) -> str:
        """Return a type name derived from ``base`` that ``owner`` may use.

        The same ``owner`` (usually a field path) always gets the same
        name back; a different owner asking for a taken base gets a
        numbered variant (``Base_2``, ``Base_3``, ...).  Names already held
        by registered types or declared types count as taken.
        """
        base = create_key(base)
        candidate = base
        counter = 1
        while True:
            holder = self._claims.get(candidate)
            if holder == owner:
                return candidate
            taken = holder is not None or (
                candidate in self._declared or candidate in self._types
            )
            if not taken:
                self._claims[candidate] = owner
                return candidate
            counter += 1
            candidate = f"{base}_{counter}"

    def claim(self, name: str, owner: str) -> None:
        """Reserve ``name`` for ``owner`` without numbering."""
        self._claims[name] = owner

    def owner_of(self, name: str) -> str | None:
        """Return the owner that claimed ``name``, or ``None``.

        Record kinds are claimed by themselves.
        """
        return self._claims.get(name)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_type(self, name: str) -> TypeNode | None:
        """Return the type registered as ``name``, or ``None``."""
        return self._types.get(name)

    def require_type(self, name: str) -> TypeNode:
        """Return the type registered as ``name``.

        Raises
        ------
        TypeNotFoundError
            If nothing is registered under ``name``.
        """
        try:
            return self._types[name]
        except KeyError:
            raise TypeNotFoundError(name) from None

    def object_types(self) -> list[ObjectType]:
        """Return every registered object type, sorted by name."""
        return [t for _, t in sorted(self._types.items()) if isinstance(t, ObjectType)]

    def snapshot(self) -> Mapping[str, TypeNode]:
        """Return a read-only, name-sorted view of the registered types."""
        return MappingProxyType(dict(sorted(self._types.items())))

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        return f"TypeRegistry(types={sorted(self._types)})"

    # ------------------------------------------------------------------
    # Derived types
    # ------------------------------------------------------------------

    def wrap_in_list(self, node: TypeNode) -> ListType:
        """Return the list type of ``node``.

        Repeated calls for the same node return the same ``ListType``.  The
        list is also registered as ``[Name]`` unless that name is already
        taken: a link to ``Post`` and the ``Post`` object type share a
        display name, and the first registration keeps it.
        """
        cached = self._lists.get(node)
        if cached is not None:
            return cached
        name = f"[{node.name}]"
        existing = self._types.get(name)
        if isinstance(existing, ListType) and existing.of == node:
            self._lists[node] = existing
            return existing
        list_type = ListType(node)
        self._lists[node] = list_type
        if existing is None:
            self.register_type(name, list_type)
        return list_type

    def resolve_declared(self, ref: DeclaredTypeRef, owner: str | None = None) -> TypeNode:
        """Resolve a declared type reference into a registered type node.

        ``ListRef`` values resolve to memoized list types.  ``NamedRef``
        values resolve to a registered type, or, for names present in the
        declared type map, to a declared object type built on demand.

        Raises
        ------
        DeclaredTypeError
            If the name matches no registered or declared type.
        """
        if isinstance(ref, ListRef):
            return self.wrap_in_list(self.resolve_declared(ref.of, owner))
        if not isinstance(ref, NamedRef):
            raise DeclaredTypeError(ref, owner)

        existing = self._types.get(ref.name)
        if existing is not None:
            return existing
        if ref.name not in self._declared:
            raise DeclaredTypeError(ref, owner)

        node = self.declare_object(ref.name)
        for field_name, field_ref in sorted(self._declared[ref.name].items()):
            node.fields[create_key(field_name)] = self.resolve_declared(
                field_ref, owner=f"{ref.name}.{field_name}"
            )
            if create_key(field_name) != field_name:
                node.sources[create_key(field_name)] = field_name
        return node
