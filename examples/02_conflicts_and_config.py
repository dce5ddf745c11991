#!/usr/bin/env python3
"""Example: Conflicts, link mappings and declared types

Shows how inconsistent field types are reported instead of failing
the build, and how configuration adds links and declared fields.

Usage:
    python examples/02_conflicts_and_config.py

Requirements:
    pip install infergraph
"""
from __future__ import annotations

import infergraph
from infergraph.config import InferenceConfig

RECORDS = [
    {"id": "c1", "kind": "Category", "label": "News"},
    {"id": "p1", "kind": "Post", "title": "Hello", "category": "c1", "rating": 4},
    {"id": "p2", "kind": "Post", "title": "World", "category": "c1", "rating": "five"},
]

CONFIG_YAML = """\
mapping:
  Post.category: Category
declared:
  Post:
    summary: String
    keywords: "[String]"
"""


def main() -> None:
    store = infergraph.records_from_dicts(RECORDS)
    config = InferenceConfig.from_yaml(CONFIG_YAML)
    result = infergraph.build_schema(store, config)

    # 'rating' holds an Int in one post and a String in another
    for selector, samples in result.conflicts:
        print(f"Conflict at {selector}:")
        for sample in samples:
            print(f"  {sample}")

    # 'category' is a link by mapping; 'summary' and 'keywords' are declared
    print()
    print(infergraph.format(result.types))


if __name__ == "__main__":
    main()
