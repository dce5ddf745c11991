"""Shared test fixtures for infergraph.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific fixtures close to the tests that use them.
"""
from __future__ import annotations

from typing import Any

import pytest

from infergraph.store import MemoryRecordStore


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "infergraph"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


@pytest.fixture()
def blog_rows() -> list[dict[str, Any]]:
    """A small blog: two authors, two posts, a page, and nested data."""
    return [
        {"id": "a1", "kind": "Author", "name": "Ada", "age": 36},
        {"id": "a2", "kind": "Author", "name": "Grace", "age": 45.5},
        {
            "id": "p1",
            "kind": "Post",
            "title": "Hello",
            "published": "2018-01-28",
            "author___NODE": "a1",
            "tags": ["intro"],
            "meta": {"rating": 4, "draft": False},
        },
        {
            "id": "p2",
            "kind": "Post",
            "title": "World",
            "published": "2018-02-01T10:00:00Z",
            "author___NODE": "a2",
            "tags": ["news", "tech"],
            "meta": {"rating": 5},
        },
        {"id": "pg1", "kind": "Page", "title": "About"},
    ]


@pytest.fixture()
def blog_store(blog_rows: list[dict[str, Any]]) -> MemoryRecordStore:
    return MemoryRecordStore.from_dicts(blog_rows)
