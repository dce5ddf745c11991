#!/usr/bin/env python3
"""Example: infergraph quickstart

Minimal working example: build a record store, infer a schema,
print it as SDL, and resolve a link field.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install infergraph
"""
from __future__ import annotations

import infergraph
from infergraph.resolve import resolve_record

RECORDS = [
    {"id": "a1", "kind": "Author", "name": "Ada", "age": 36},
    {"id": "a2", "kind": "Author", "name": "Grace", "age": 45.5},
    {
        "id": "p1",
        "kind": "Post",
        "title": "Hello",
        "published": "2018-01-28",
        "author___NODE": "a1",
        "tags": ["intro"],
    },
    {"id": "p2", "kind": "Post", "title": "World", "author___NODE": "a2", "tags": []},
]


def main() -> None:
    print(f"infergraph version: {infergraph.__version__}")

    # Step 1: Load records into a store
    store = infergraph.records_from_dicts(RECORDS)
    print(f"Loaded {len(store)} records of kinds {store.kinds()}")

    # Step 2: Infer the schema
    result = infergraph.build_schema(store)
    print(f"Inferred {len(result.kinds)} object types, {len(result.conflicts)} conflicts")

    # Step 3: Render as SDL
    print()
    print(infergraph.format(result.types))

    # Step 4: Resolve a record against its type; links become records
    post = resolve_record(result.kinds["Post"], store.get_record("p1"), store)
    print(f"p1.author -> {post['author'].id} ({post['author'].kind})")


if __name__ == "__main__":
    main()
