#!/usr/bin/env python3
"""Benchmark script for exposure hot paths.

Outputs results in JSON format compatible with github-action-benchmark.
"""

from __future__ import annotations

import argparse
import json
import tempfile
import time
from pathlib import Path


def benchmark_import_time() -> float:
    """Measure import time of exposure package."""
    start = time.perf_counter()
    import exposure  # noqa: F401

    return time.perf_counter() - start


def benchmark_canonicalize() -> float:
    """Measure canonicalization of raw type names."""
    from exposure.domain.canonical import canonicalize

    names = ("NilClass", "Integer", "#<Foo:0x00007f8b1c0a2e38>", "TrueClass", "")
    start = time.perf_counter()
    for _ in range(20000):
        for name in names:
            canonicalize(name)
    return time.perf_counter() - start


def benchmark_call_stack(frames: int) -> float:
    """Measure push/add_local/pop throughput including the final drain."""
    from exposure.application.services.call_stack import CallStack
    from exposure.domain.events import MethodCall

    with tempfile.TemporaryDirectory() as tmp:
        start = time.perf_counter()
        with CallStack(Path(tmp)) as stack:
            for index in range(frames):
                stack.push(MethodCall("Foo", f"m{index % 100}"), "bench.py", index)
                stack.add_local("x", "Integer")
                stack.add_local("y", "NilClass")
                stack.pop_and_enqueue("String")
        return time.perf_counter() - start


def main() -> None:
    """Run benchmarks and output results."""
    parser = argparse.ArgumentParser(description="Run exposure benchmarks")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("benchmark-results.json"),
        help="Output file for benchmark results",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=10000,
        help="Frames pushed and popped by the call stack benchmark",
    )
    args = parser.parse_args()

    results = [
        {
            "name": "Import Time",
            "unit": "seconds",
            "value": benchmark_import_time(),
        },
        {
            "name": "Canonicalize (100k names)",
            "unit": "seconds",
            "value": benchmark_canonicalize(),
        },
        {
            "name": f"Call Stack ({args.frames} frames)",
            "unit": "seconds",
            "value": benchmark_call_stack(args.frames),
        },
    ]

    # Write results
    args.output.write_text(json.dumps(results, indent=2))
    print(f"Benchmark results written to {args.output}")
    for r in results:
        print(f"  {r['name']}: {r['value']:.4f} {r['unit']}")


if __name__ == "__main__":
    main()
