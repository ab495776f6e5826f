#!/usr/bin/env python3
"""Benchmark script for covcheck performance testing.

Outputs results in JSON format compatible with github-action-benchmark.
"""

from __future__ import annotations

import argparse
import json
import time
from pathlib import Path


def generate_module(functions: int) -> str:
    """Synthetic module: functions with branches, loops and docstrings."""
    parts = ['"""Generated module."""', "", "import os", ""]
    for i in range(functions):
        parts.extend(
            [
                f"def func_{i}(value, *args, **kwargs):",
                '    """',
                f"    Docstring of func_{i}.",
                '    """',
                "    total = 0",
                "    for item in range(value):",
                "        if item % 2:",
                "            total += item",
                "        else:",
                "            total -= 1",
                "    return total",
                "",
            ]
        )
    return "\n".join(parts) + "\n"


def benchmark_import_time() -> float:
    """Measure import time of covcheck package."""
    start = time.perf_counter()
    import covcheck  # noqa: F401

    return time.perf_counter() - start


def benchmark_static_analysis(source: str) -> float:
    """Measure full static analysis of one large module."""
    from covcheck.infrastructure.adapters.static_analyzer import StaticAnalyzer

    analyzer = StaticAnalyzer(max_bytes=len(source.encode()) + 1, budget_seconds=60.0)
    start = time.perf_counter()
    analyzer.analyze("/bench/generated.py", source)
    return time.perf_counter() - start


def benchmark_line_events(count: int) -> float:
    """Measure tracker throughput for line events on one file."""
    from covcheck.application.services.tracker import ExecutionTracker
    from covcheck.domain.model.configuration import CoverageConfig
    from covcheck.domain.model.session import Session

    source = "x = 1\n" * 100
    session = Session.create(CoverageConfig(enabled=True, source_dirs=("/bench",)))
    session.active = True
    tracker = ExecutionTracker(session, reader=lambda _path: source)

    start = time.perf_counter()
    for i in range(count):
        tracker.track_line("/bench/hot.py", i % 100 + 1)
    return time.perf_counter() - start


def main() -> None:
    """Run benchmarks and output results."""
    parser = argparse.ArgumentParser(description="Run covcheck benchmarks")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("benchmark-results.json"),
        help="Output file for benchmark results",
    )
    args = parser.parse_args()

    results = []

    # Import time
    import_time = benchmark_import_time()
    results.append(
        {
            "name": "Import Time",
            "unit": "seconds",
            "value": import_time,
        }
    )

    # Static analysis
    source = generate_module(500)
    analysis_time = benchmark_static_analysis(source)
    results.append(
        {
            "name": f"Static Analysis ({source.count(chr(10))} lines)",
            "unit": "seconds",
            "value": analysis_time,
        }
    )

    # Line events
    events_time = benchmark_line_events(100_000)
    results.append(
        {
            "name": "Line Events (100k)",
            "unit": "seconds",
            "value": events_time,
        }
    )

    # Write results
    args.output.write_text(json.dumps(results, indent=2))
    print(f"Benchmark results written to {args.output}")
    for r in results:
        print(f"  {r['name']}: {r['value']:.4f} {r['unit']}")


if __name__ == "__main__":
    main()
