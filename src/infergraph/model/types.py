"""Type graph nodes produced by the type builder.

The inferred schema is a graph of ``TypeNode`` values:

- ``ScalarType`` for ``String``, ``Int``, ``Float``, ``Boolean`` and ``Date``
- ``ListType`` wrapping any other node
- ``ObjectType`` for record kinds and nested objects
- ``LinkType`` for fields that reference another record
- ``UnionLinkType`` for link lists whose targets span several kinds

``ObjectType`` is deliberately *not* a value type: its identity is the
registry entry, so two fields that resolve to the same name share the
very same object, and the fields of a record kind's type can be filled
in after other types already point at it.

Declared type references (``NamedRef`` / ``ListRef``) describe the
types users pin in configuration; the registry resolves them to nodes.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from infergraph.model.records import Record


class ScalarKind(Enum):
    """Built-in scalar types, valued by their schema name."""

    STRING = "String"
    INT = "Int"
    FLOAT = "Float"
    BOOLEAN = "Boolean"
    DATE = "Date"


@dataclass(frozen=True, slots=True)
class ScalarType:
    kind: ScalarKind

    @property
    def name(self) -> str:
        return self.kind.value


@dataclass(frozen=True, slots=True)
class ListType:
    of: "TypeNode"

    @property
    def name(self) -> str:
        return f"[{self.of.name}]"


@dataclass(eq=False)
class ObjectType:
    """A named object type.

    Parameters
    ----------
    name:
        Unique type name within a registry.
    fields:
        Public field name to field type.
    sources:
        Public field name to the raw record key it reads from, for fields
        whose public name differs from the key (link fields drop their
        ``___NODE`` marker, unsafe keys are sanitized).
    description:
        Optional human-readable description.
    """

    name: str
    fields: dict[str, "TypeNode"] = field(default_factory=dict)
    sources: dict[str, str] = field(default_factory=dict)
    description: str | None = None

    def source_key(self, field_name: str) -> str:
        """Return the raw record key backing ``field_name``."""
        return self.sources.get(field_name, field_name)

    def __repr__(self) -> str:
        return f"ObjectType({self.name!r}, fields={sorted(self.fields)})"


@dataclass(frozen=True, slots=True)
class LinkType:
    """A reference to a record of kind ``target``.

    Parameters
    ----------
    target:
        Name of the linked record kind.
    key:
        Record field compared against the stored value; ``"id"`` links by
        record id.
    restrict_kind:
        Only records of kind ``target`` match (declared link mappings).
    relative_file:
        The stored value is a file path relative to the owning record's
        root ``File`` record.
    """

    target: str
    key: str = "id"
    restrict_kind: bool = False
    relative_file: bool = False

    @property
    def name(self) -> str:
        return self.target


@dataclass(frozen=True, slots=True)
class UnionLinkType:
    """A link whose target may be a record of any kind in ``targets``."""

    name: str
    targets: tuple[str, ...]
    description: str | None = None

    def dispatch(self, record: "Record") -> str:
        """Return the concrete type name for a resolved ``record``.

        Raises
        ------
        ValueError
            If the record's kind is not a member of this union.
        """
        if record.kind not in self.targets:
            raise ValueError(
                f"Record {record.id!r} of kind {record.kind!r} is not a member of "
                f"union {self.name!r} ({', '.join(self.targets)})."
            )
        return record.kind


TypeNode = Union[ScalarType, ListType, ObjectType, LinkType, UnionLinkType]

STRING = ScalarType(ScalarKind.STRING)
INT = ScalarType(ScalarKind.INT)
FLOAT = ScalarType(ScalarKind.FLOAT)
BOOLEAN = ScalarType(ScalarKind.BOOLEAN)
DATE = ScalarType(ScalarKind.DATE)

BUILTIN_SCALARS: tuple[ScalarType, ...] = (STRING, INT, FLOAT, BOOLEAN, DATE)


def union_name(targets: tuple[str, ...] | list[str]) -> str:
    """Derive the registry name of a union over ``targets``.

    The name depends only on the set of kinds, so the same union is
    shared regardless of the order the linked records were seen in.
    """
    return "Union_" + "__".join(sorted(set(targets)))


# ---------------------------------------------------------------------------
# Declared type references
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NamedRef:
    """A declared reference to a type by name, e.g. ``String`` or ``Author``."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class ListRef:
    """A declared list of another declared reference, e.g. ``[String]``."""

    of: "DeclaredTypeRef"

    def __str__(self) -> str:
        return f"[{self.of}]"


DeclaredTypeRef = Union[NamedRef, ListRef]

_DECLARED_RE = re.compile(r"^\s*(\[)?\s*(.*?)\s*(\])?\s*!?\s*$")


def parse_declared(text: str) -> DeclaredTypeRef:
    """Parse a declared reference written as ``Name`` or ``[Name]``.

    Nested lists (``[[Int]]``) are supported; a trailing ``!`` non-null
    hint is accepted and discarded.

    Raises
    ------
    ValueError
        If ``text`` is empty or its brackets are unbalanced.
    """
    match = _DECLARED_RE.match(text)
    if match is None or not match.group(2):
        raise ValueError(f"Invalid declared type reference: {text!r}")
    opening, inner, closing = match.groups()
    if bool(opening) != bool(closing):
        raise ValueError(f"Unbalanced brackets in declared type reference: {text!r}")
    if opening:
        return ListRef(parse_declared(inner))
    if not re.fullmatch(r"[_A-Za-z][_A-Za-z0-9]*", inner):
        raise ValueError(f"Invalid type name in declared type reference: {text!r}")
    return NamedRef(inner)


def is_scalar_ref(ref: DeclaredTypeRef) -> bool:
    """Return True if ``ref`` names one of the built-in scalars."""
    return isinstance(ref, NamedRef) and ref.name in {s.name for s in BUILTIN_SCALARS}
