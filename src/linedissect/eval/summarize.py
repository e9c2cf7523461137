"""Summaries over eval logs (CSV or JSONL)."""

from __future__ import annotations

import csv
import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any


def _iter_csv(path: Path) -> Iterator[dict[str, str]]:
    with path.open(newline="") as f:
        reader = csv.DictReader(f)
        yield from reader


def _iter_jsonl(path: Path) -> Iterator[dict[str, Any]]:
    with path.open() as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            yield json.loads(line)


def iter_log(path: Path) -> Iterator[dict[str, Any]]:
    """Yield flat rows from a CSV log, or rows / nested payloads from JSONL."""
    if path.suffix.lower() == ".csv":
        yield from _iter_csv(path)
        return
    for entry in _iter_jsonl(path):
        # JSONL payloads written by the CLI nest the summary under "evaluation"
        evaluation = entry.get("evaluation")
        if isinstance(evaluation, dict):
            yield {**evaluation, "tag": entry.get("tag") or ""}
        else:
            yield entry


def summarize_log(path: Path) -> dict[str, object]:
    """Compute simple aggregates from a CSV/JSONL log."""
    ratios: list[float] = []
    records_total = 0
    matched_total = 0
    field_counts: dict[str, int] = {}

    for entry in iter_log(path):
        if "match_ratio" in entry:
            ratios.append(float(entry["match_ratio"]))
        if "records" in entry:
            records_total += int(entry["records"])
        if "matched" in entry:
            matched_total += int(entry["matched"])
        if "field_counts" in entry:
            counts_raw = entry["field_counts"]
            counts = json.loads(counts_raw) if isinstance(counts_raw, str) else counts_raw
            for k, v in counts.items():
                field_counts[k] = field_counts.get(k, 0) + int(v)

    avg_ratio = sum(ratios) / len(ratios) if ratios else 0.0
    return {
        "entries": len(ratios),
        "records_total": records_total,
        "matched_total": matched_total,
        "average_match_ratio": round(avg_ratio, 4),
        "field_counts": field_counts,
    }
