"""infergraph model module.

Exports the record value model, records and field paths, the type graph
nodes, and the serializer for converting type snapshots to and from
JSON/YAML.
"""
from __future__ import annotations

from infergraph.model.records import RESERVED_KEYS, FieldPath, Record
from infergraph.model.serializer import TypeSerializer
from infergraph.model.types import (
    BOOLEAN,
    BUILTIN_SCALARS,
    DATE,
    FLOAT,
    INT,
    STRING,
    DeclaredTypeRef,
    LinkType,
    ListRef,
    ListType,
    NamedRef,
    ObjectType,
    ScalarKind,
    ScalarType,
    TypeNode,
    UnionLinkType,
    parse_declared,
    union_name,
)
from infergraph.model.values import (
    INVALID,
    LINK_MARKER,
    NULL,
    BoolValue,
    DateValue,
    ExampleValue,
    FloatValue,
    IntValue,
    LinkRef,
    ListValue,
    NullValue,
    ObjectValue,
    StringValue,
    Value,
    ValueKind,
    from_python,
    is_empty,
    is_link_key,
)

__all__ = [
    # values
    "INVALID",
    "LINK_MARKER",
    "NULL",
    "BoolValue",
    "DateValue",
    "ExampleValue",
    "FloatValue",
    "IntValue",
    "LinkRef",
    "ListValue",
    "NullValue",
    "ObjectValue",
    "StringValue",
    "Value",
    "ValueKind",
    "from_python",
    "is_empty",
    "is_link_key",
    # records
    "RESERVED_KEYS",
    "FieldPath",
    "Record",
    # types
    "BOOLEAN",
    "BUILTIN_SCALARS",
    "DATE",
    "FLOAT",
    "INT",
    "STRING",
    "DeclaredTypeRef",
    "LinkType",
    "ListRef",
    "ListType",
    "NamedRef",
    "ObjectType",
    "ScalarKind",
    "ScalarType",
    "TypeNode",
    "UnionLinkType",
    "parse_declared",
    "union_name",
    # serializer
    "TypeSerializer",
]
