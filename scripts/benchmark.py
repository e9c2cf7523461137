"""Micro-benchmarks for dissect patterns on generated syslog/apache lines."""

from __future__ import annotations

import time

from linedissect.data.generator import APPEND_SEPARATORS, PATTERNS, generate_sample_lines
from linedissect.pattern import compile_pattern


def benchmark_parse(kind: str = "syslog", lines: int = 10_000, runs: int = 3) -> dict[str, object]:
    samples = [sample.text for sample in generate_sample_lines(kind, lines)]
    pattern = compile_pattern(PATTERNS[kind], APPEND_SEPARATORS[kind])
    best = None
    for _ in range(runs):
        start = time.perf_counter()
        for text in samples:
            pattern.parse(text)
        elapsed = time.perf_counter() - start
        best = elapsed if best is None or elapsed < best else best
    per_second = lines / best if best else 0.0
    return {
        "kind": kind,
        "lines": lines,
        "best_seconds": best or 0.0,
        "lines_per_second": per_second,
    }


if __name__ == "__main__":
    for kind in PATTERNS:
        print(benchmark_parse(kind))
