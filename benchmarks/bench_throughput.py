"""Benchmark: merge and schema build throughput.

Measures how many example merges and full build passes can complete per
second over a synthetic record set, using the public
``ExampleMerger`` and ``build_schema`` APIs.
"""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from infergraph.merger import ExampleMerger
from infergraph.schema import build_schema
from infergraph.store import MemoryRecordStore

_ITERATIONS: int = 200
_BUILD_ITERATIONS: int = 50
_RECORDS_PER_KIND: int = 100


def make_records(count: int = _RECORDS_PER_KIND) -> list[dict[str, Any]]:
    """Return ``count`` authors and ``count`` posts linking to them."""
    rows: list[dict[str, Any]] = []
    for i in range(count):
        rows.append({"id": f"a{i}", "kind": "Author", "name": f"Author {i}", "age": 20 + i % 50})
    for i in range(count):
        rows.append(
            {
                "id": f"p{i}",
                "kind": "Post",
                "title": f"Post {i}",
                "views": i if i % 2 else float(i),
                "published": f"2020-01-{1 + i % 28:02d}",
                "author___NODE": f"a{i}",
                "tags": ["news", "tech"][: 1 + i % 2],
                "meta": {"rating": i % 5, "draft": i % 3 == 0},
            }
        )
    return rows


def bench_merge_throughput() -> dict[str, object]:
    """Benchmark merging one kind's records into an example.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms.
    """
    store = MemoryRecordStore.from_dicts(make_records())
    posts = store.records_of_kind("Post")
    merger = ExampleMerger()

    start = time.perf_counter()
    for _ in range(_ITERATIONS):
        merger.merge(posts, "Post")
    total = time.perf_counter() - start

    result: dict[str, object] = {
        "operation": "example_merge_throughput",
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(total / _ITERATIONS * 1000, 4),
    }
    print(
        f"[bench_throughput] {result['operation']}: "
        f"{result['ops_per_second']:,.0f} ops/sec  "
        f"avg {result['avg_latency_ms']:.4f} ms"
    )
    return result


def bench_build_throughput() -> dict[str, object]:
    """Benchmark complete build passes, link resolution included.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms.
    """
    store = MemoryRecordStore.from_dicts(make_records())

    start = time.perf_counter()
    for _ in range(_BUILD_ITERATIONS):
        build_schema(store)
    total = time.perf_counter() - start

    result: dict[str, object] = {
        "operation": "schema_build_throughput",
        "iterations": _BUILD_ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_BUILD_ITERATIONS / total, 1),
        "avg_latency_ms": round(total / _BUILD_ITERATIONS * 1000, 4),
    }
    print(
        f"[bench_throughput] {result['operation']}: "
        f"{result['ops_per_second']:,.0f} ops/sec  "
        f"avg {result['avg_latency_ms']:.4f} ms"
    )
    return result


if __name__ == "__main__":
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)

    for bench_fn, fname in [
        (bench_merge_throughput, "merge_throughput_baseline.json"),
        (bench_build_throughput, "build_throughput_baseline.json"),
    ]:
        result = bench_fn()
        output_path = results_dir / fname
        with open(output_path, "w", encoding="utf-8") as fh:
            json.dump(result, fh, indent=2)
        print(f"Results saved to {output_path}")
