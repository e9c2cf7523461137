"""Writers for dissected lines: JSONL, CSV and Arrow IPC."""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

import pyarrow as pa

from linedissect.errors import MatchError
from linedissect.pattern import Pattern


@dataclass
class DissectResult:
    line_number: int
    fields: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    @property
    def matched(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, object]:
        return {"line_number": self.line_number, "fields": self.fields, "error": self.error}


def dissect_lines(
    pattern: Pattern, lines: Iterable[str], strict: bool = False
) -> Iterator[DissectResult]:
    """Dissect each line, recording match failures unless ``strict``."""
    for line_number, line in enumerate(lines, start=1):
        try:
            fields = pattern.parse(line.rstrip("\r\n"))
        except MatchError as exc:
            if strict:
                raise
            yield DissectResult(line_number=line_number, error=str(exc))
            continue
        yield DissectResult(line_number=line_number, fields=fields)


def results_to_jsonl(results: Iterable[DissectResult], path: Path) -> None:
    """Write one JSON object per line."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for r in results:
            f.write(json.dumps(r.to_dict()) + "\n")


def results_to_csv(results: list[DissectResult], path: Path) -> None:
    """Write a CSV with one column per field seen across all results."""
    path.parent.mkdir(parents=True, exist_ok=True)
    columns: list[str] = []
    for r in results:
        for name in r.fields:
            if name not in columns:
                columns.append(name)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=["line_number", *columns, "error"])
        writer.writeheader()
        for r in results:
            writer.writerow({"line_number": r.line_number, **r.fields, "error": r.error or ""})


def results_to_arrow(results: list[DissectResult], path: Path) -> None:
    """Write results to Arrow IPC for analytics-friendly consumption."""
    path.parent.mkdir(parents=True, exist_ok=True)
    table = pa.table(
        {
            "line_number": pa.array([r.line_number for r in results], type=pa.int64()),
            # store fields as JSON to keep the schema fixed across patterns
            "fields": pa.array([json.dumps(r.fields) for r in results], type=pa.string()),
            "error": pa.array([r.error for r in results], type=pa.string()),
        }
    )
    with pa.OSFile(str(path), "wb") as sink:
        with pa.ipc.new_file(sink, table.schema) as writer:
            writer.write_table(table)
