"""SDL formatter: type graph → GraphQL-style schema text.

The ``SdlFormatter`` renders a registry snapshot as schema definition
language with:

- 2-space indentation
- A blank line between type definitions
- Union definitions first, then object types, both sorted by name
- Fields sorted by name
- Link fields annotated with ``@link`` (``@link(by: "slug")`` for links
  on an alternate key) and file links with ``@fileByRelativePath``

``scalar Date`` is declared only when some field uses it; the other
built-in scalars are standard GraphQL types.

Usage
-----
::

    from infergraph.formatter import SdlFormatter

    result = build_schema(store)
    print(SdlFormatter().format(result.types))
"""
from __future__ import annotations

from collections.abc import Mapping

from infergraph.model.types import (
    DATE,
    LinkType,
    ListType,
    ObjectType,
    ScalarType,
    TypeNode,
    UnionLinkType,
)

_INDENT = "  "  # 2 spaces per level


class SdlFormatter:
    """Produces SDL text from a ``name -> TypeNode`` snapshot."""

    def format(self, types: Mapping[str, TypeNode]) -> str:
        """Render ``types`` as SDL.

        Parameters
        ----------
        types:
            Registry snapshot, e.g. ``SchemaResult.types``.

        Returns
        -------
        str
            SDL text, always ending with a newline.
        """
        objects = [t for _, t in sorted(types.items()) if isinstance(t, ObjectType)]
        unions = [t for _, t in sorted(types.items()) if isinstance(t, UnionLinkType)]

        blocks: list[str] = []
        if any(self._uses_date(f) for o in objects for f in o.fields.values()):
            blocks.append(f"scalar {DATE.name}")
        blocks.extend(self._format_union(u) for u in unions)
        blocks.extend(self._format_object(o) for o in objects)
        return "\n\n".join(blocks) + "\n"

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def _format_union(self, node: UnionLinkType) -> str:
        line = f"union {node.name} = {' | '.join(node.targets)}"
        if node.description:
            return f"{self._format_description(node.description, '')}\n{line}"
        return line

    def _format_object(self, node: ObjectType) -> str:
        lines: list[str] = []
        if node.description:
            lines.append(self._format_description(node.description, ""))
        lines.append(f"type {node.name} {{")
        for name, field_type in sorted(node.fields.items()):
            rendered = self.format_type(field_type) + self._directives(field_type)
            lines.append(f"{_INDENT}{name}: {rendered}")
        lines.append("}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Type references
    # ------------------------------------------------------------------

    def format_type(self, node: TypeNode) -> str:
        """Render a field type reference, e.g. ``[Post]`` or ``String``."""
        if isinstance(node, ListType):
            return f"[{self.format_type(node.of)}]"
        return node.name

    def _directives(self, node: TypeNode) -> str:
        while isinstance(node, ListType):
            node = node.of
        if not isinstance(node, LinkType):
            return ""
        if node.relative_file:
            return " @fileByRelativePath"
        if node.key != "id":
            return f' @link(by: "{node.key}")'
        return " @link"

    def _uses_date(self, node: TypeNode) -> bool:
        while isinstance(node, ListType):
            node = node.of
        return isinstance(node, ScalarType) and node == DATE

    @staticmethod
    def _format_description(text: str, indent: str) -> str:
        escaped = text.replace('"""', '\\"""')
        return f'{indent}"""{escaped}"""'


def format_schema(types: Mapping[str, TypeNode]) -> str:
    """Convenience function: render a type snapshot as SDL text."""
    return SdlFormatter().format(types)
