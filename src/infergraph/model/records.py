"""Records and field paths.

A ``Record`` is one unit of ingested data.  A ``FieldPath`` addresses a
field inside the records of one kind, e.g. ``Post.frontmatter.tags[]``.
Field paths are the keys for conflict tracking, declared link mappings
and derived type names.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from infergraph.model.values import Value

#: Keys that describe the record itself rather than its data.
RESERVED_KEYS: frozenset[str] = frozenset({"id", "kind", "parent", "children"})

_ELEMENT_SUFFIX = "[]"


@dataclass(frozen=True)
class Record:
    """One record held by the record store.

    Parameters
    ----------
    id:
        Unique record id.
    kind:
        The grouping category used as the unit of inference.
    fields:
        The record's data, keyed by field name.
    parent_id:
        Id of the record this one was derived from, if any.
    """

    id: str
    kind: str
    fields: Mapping[str, Value] = field(default_factory=dict, hash=False)
    parent_id: str | None = None

    def get(self, name: str) -> Value | None:
        return self.fields.get(name)


@dataclass(frozen=True, slots=True)
class FieldPath:
    """Dot/bracket addressed selector such as ``Post.author.tags[]``.

    ``parts`` holds the path segments; a segment ending in ``[]`` marks
    the elements of a list field.
    """

    parts: tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> "FieldPath":
        """Parse ``"a.b[].c"`` into a ``FieldPath``."""
        if not text:
            return cls()
        return cls(tuple(text.split(".")))

    @classmethod
    def root(cls, kind: str) -> "FieldPath":
        return cls((kind,))

    def child(self, key: str) -> "FieldPath":
        """Return the path of field ``key`` below this path."""
        return FieldPath(self.parts + (key,))

    def element(self) -> "FieldPath":
        """Return the path addressing the elements of this list field."""
        if not self.parts or self.parts[-1].endswith(_ELEMENT_SUFFIX):
            return self
        return FieldPath(self.parts[:-1] + (self.parts[-1] + _ELEMENT_SUFFIX,))

    @property
    def kind(self) -> str | None:
        """The record kind this path starts from."""
        return self.parts[0] if self.parts else None

    @property
    def key(self) -> str:
        """The raw key of the last segment, without any ``[]`` suffix."""
        if not self.parts:
            return ""
        last = self.parts[-1]
        return last[: -len(_ELEMENT_SUFFIX)] if last.endswith(_ELEMENT_SUFFIX) else last

    @property
    def depth(self) -> int:
        return len(self.parts)

    def relative(self) -> str:
        """Return the path without the leading kind segment."""
        return ".".join(self.parts[1:])

    def __str__(self) -> str:
        return ".".join(self.parts)
