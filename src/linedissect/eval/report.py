"""Helpers to log evaluation summaries for trend tracking."""

from __future__ import annotations

import csv
import json
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from linedissect.eval.harness import EvalSummary


def summary_to_row(
    summary: EvalSummary | Mapping[str, Any], source: str, tag: str | None = None
) -> dict[str, Any]:
    """Flatten an EvalSummary into a CSV/JSONL-friendly row."""
    if isinstance(summary, Mapping):
        pattern = str(summary.get("pattern", ""))
        records = int(summary.get("records", 0) or 0)
        matched = int(summary.get("matched", 0) or 0)
        ratio = float(summary.get("match_ratio", 0.0) or 0.0)
        counts_obj = summary.get("field_counts", {})
        counts = dict(counts_obj) if isinstance(counts_obj, Mapping) else {}
    else:
        pattern = summary.pattern
        records = summary.records
        matched = summary.matched
        ratio = summary.match_ratio
        counts = summary.field_counts
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": source,
        "tag": tag or "",
        "pattern": pattern,
        "records": records,
        "matched": matched,
        "match_ratio": ratio,
        "field_counts": json.dumps(counts),
    }


def append_csv(path: Path, row: dict[str, Any]) -> None:
    """Append a row to a CSV file, writing headers when the file is new."""
    path.parent.mkdir(parents=True, exist_ok=True)
    is_new = not path.exists()
    with path.open("a", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(row.keys()))
        if is_new:
            writer.writeheader()
        writer.writerow(row)


def append_jsonl(path: Path, payload: dict[str, Any]) -> None:
    """Append a JSON line (UTF-8) to a log file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(payload, default=_to_jsonable) + "\n")


def _to_jsonable(obj: object) -> object:
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
