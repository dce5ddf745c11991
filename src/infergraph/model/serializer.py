"""Type graph serialization for infergraph.

Converts a registry snapshot (``name -> TypeNode``) to and from a plain
dict/list structure that maps naturally to both JSON and YAML.  Only
named types are written at the top level: object types and union links.
Field types are written inline as references with a ``"kind"``
discriminator, and object types are referenced by name, so cyclic
graphs (``Post.author -> Author.posts -> Post``) serialize without
recursion.

Usage
-----
::

    from infergraph.model.serializer import TypeSerializer

    serializer = TypeSerializer()
    text = serializer.to_json(result.types)
    types = serializer.from_json(text)
    types["Post"].fields["title"]  # ScalarType(kind=<ScalarKind.STRING: 'String'>)
"""
from __future__ import annotations

import json
from collections.abc import Mapping

import yaml

from infergraph.model.types import (
    BUILTIN_SCALARS,
    LinkType,
    ListType,
    ObjectType,
    ScalarKind,
    ScalarType,
    TypeNode,
    UnionLinkType,
)


class TypeSerializer:
    """Converts between type graph snapshots and plain Python dicts."""

    # ------------------------------------------------------------------
    # Serialization (types → dict)
    # ------------------------------------------------------------------

    def to_dict(self, types: Mapping[str, TypeNode]) -> dict[str, object]:
        """Serialize the named types of ``types`` to a JSON-compatible dict."""
        objects = [t for _, t in sorted(types.items()) if isinstance(t, ObjectType)]
        unions = [t for _, t in sorted(types.items()) if isinstance(t, UnionLinkType)]
        return {
            "kind": "Schema",
            "types": [self._object_to_dict(t) for t in objects]
            + [self._union_to_dict(u) for u in unions],
        }

    def _object_to_dict(self, node: ObjectType) -> dict[str, object]:
        return {
            "kind": "Object",
            "name": node.name,
            "description": node.description,
            "fields": [
                {
                    "name": name,
                    "source": node.source_key(name),
                    "type": self._ref_to_dict(field_type),
                }
                for name, field_type in sorted(node.fields.items())
            ],
        }

    def _union_to_dict(self, node: UnionLinkType) -> dict[str, object]:
        return {
            "kind": "Union",
            "name": node.name,
            "description": node.description,
            "targets": list(node.targets),
        }

    def _ref_to_dict(self, node: TypeNode) -> dict[str, object]:
        if isinstance(node, ScalarType):
            return {"kind": "Scalar", "name": node.name}
        if isinstance(node, ListType):
            return {"kind": "List", "of": self._ref_to_dict(node.of)}
        if isinstance(node, ObjectType):
            return {"kind": "Object", "name": node.name}
        if isinstance(node, UnionLinkType):
            return {"kind": "Union", "name": node.name}
        if isinstance(node, LinkType):
            return {
                "kind": "Link",
                "target": node.target,
                "key": node.key,
                "restrict_kind": node.restrict_kind,
                "relative_file": node.relative_file,
            }
        raise ValueError(f"Unknown type node: {node!r}")

    # ------------------------------------------------------------------
    # Deserialization (dict → types)
    # ------------------------------------------------------------------

    def from_dict(self, data: Mapping[str, object]) -> dict[str, TypeNode]:
        """Deserialize a dict produced by ``to_dict``.

        Object types are created first and their fields filled in
        afterwards, so references between objects resolve to the very
        same ``ObjectType`` instances.

        Raises
        ------
        ValueError
            If the document is not a schema or holds an unknown kind.
        """
        if data.get("kind") != "Schema":
            raise ValueError(f"Expected a 'Schema' document, got kind {data.get('kind')!r}")
        entries = list(data.get("types", []))
        types: dict[str, TypeNode] = {s.name: s for s in BUILTIN_SCALARS}

        for entry in entries:
            if entry["kind"] == "Object":
                types[entry["name"]] = ObjectType(
                    name=entry["name"], description=entry.get("description")
                )
            elif entry["kind"] == "Union":
                types[entry["name"]] = UnionLinkType(
                    name=entry["name"],
                    targets=tuple(entry["targets"]),
                    description=entry.get("description"),
                )
            else:
                raise ValueError(f"Unknown type kind: {entry['kind']!r}")

        for entry in entries:
            if entry["kind"] != "Object":
                continue
            node = types[entry["name"]]
            for field_entry in entry.get("fields", []):
                name = field_entry["name"]
                node.fields[name] = self._ref_from_dict(field_entry["type"], types)
                source = field_entry.get("source", name)
                if source != name:
                    node.sources[name] = source
        return dict(sorted(types.items()))

    def _ref_from_dict(self, d: Mapping[str, object], types: Mapping[str, TypeNode]) -> TypeNode:
        kind = d["kind"]
        if kind == "Scalar":
            return ScalarType(ScalarKind(d["name"]))
        if kind == "List":
            return ListType(self._ref_from_dict(d["of"], types))
        if kind in ("Object", "Union"):
            try:
                return types[d["name"]]
            except KeyError:
                raise ValueError(f"Reference to undefined type {d['name']!r}") from None
        if kind == "Link":
            return LinkType(
                target=d["target"],
                key=d.get("key", "id"),
                restrict_kind=bool(d.get("restrict_kind", False)),
                relative_file=bool(d.get("relative_file", False)),
            )
        raise ValueError(f"Unknown type reference kind: {kind!r}")

    # ------------------------------------------------------------------
    # JSON helpers
    # ------------------------------------------------------------------

    def to_json(self, types: Mapping[str, TypeNode], indent: int = 2) -> str:
        """Serialize a type snapshot to a JSON string."""
        return json.dumps(self.to_dict(types), indent=indent, ensure_ascii=False)

    def from_json(self, text: str) -> dict[str, TypeNode]:
        """Deserialize a type snapshot from a JSON string."""
        data: dict[str, object] = json.loads(text)
        return self.from_dict(data)

    # ------------------------------------------------------------------
    # YAML helpers
    # ------------------------------------------------------------------

    def to_yaml(self, types: Mapping[str, TypeNode]) -> str:
        """Serialize a type snapshot to a YAML string."""
        return yaml.dump(
            self.to_dict(types), default_flow_style=False, allow_unicode=True, sort_keys=False
        )

    def from_yaml(self, text: str) -> dict[str, TypeNode]:
        """Deserialize a type snapshot from a YAML string."""
        data: dict[str, object] = yaml.safe_load(text)
        return self.from_dict(data)
