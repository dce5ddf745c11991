"""Naming helpers for inferred fields and types."""
from __future__ import annotations

import re

from infergraph.model.records import FieldPath
from infergraph.model.values import LINK_MARKER

_UNSAFE = re.compile(r"[^_a-zA-Z0-9]")
_WORD_SPLIT = re.compile(r"[^a-zA-Z0-9]+")


def create_key(key: str) -> str:
    """Sanitize ``key`` into a valid schema field name.

    Characters outside ``[_a-zA-Z0-9]`` become ``_`` and a leading digit
    is prefixed with ``_``.
    """
    cleaned = _UNSAFE.sub("_", key)
    if cleaned[:1].isdigit():
        cleaned = f"_{cleaned}"
    return cleaned


def strip_link_marker(key: str) -> str:
    """Return the public name of a link field (``author___NODE`` → ``author``)."""
    return key.split(LINK_MARKER, 1)[0] if LINK_MARKER in key else key


def link_alternate_key(key: str) -> str | None:
    """Return the alternate key named by a link marker, if any.

    ``author___NODE___slug`` links by the target's ``slug`` field instead
    of its id.
    """
    if LINK_MARKER not in key:
        return None
    rest = key.split(LINK_MARKER, 1)[1]
    rest = rest[3:] if rest.startswith("___") else rest
    return rest or None


def _pascal(segment: str) -> str:
    return "".join(word[:1].upper() + word[1:] for word in _WORD_SPLIT.split(segment) if word)


def type_name_for_path(path: FieldPath) -> str:
    """Derive an object type name from a field path.

    ``Post.frontmatter.author[]`` becomes ``PostFrontmatterAuthor``.
    """
    words = [_pascal(strip_link_marker(part.removesuffix("[]"))) for part in path.parts]
    name = "".join(words) or "Object"
    return create_key(name)
