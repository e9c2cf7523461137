"""Quick viewer for eval logs (CSV or JSONL).

Shows aggregate match ratio, record totals, and field counts in a Rich table.
"""

from __future__ import annotations

import argparse
from collections import Counter
from pathlib import Path

from rich.console import Console
from rich.table import Table

from linedissect.eval.summarize import iter_log, summarize_log


def main() -> None:
    parser = argparse.ArgumentParser(description="View eval logs.")
    parser.add_argument("log", type=Path, help="CSV or JSONL log file.")
    args = parser.parse_args()

    console = Console()
    summary = summarize_log(args.log)

    console.print("[bold]Aggregate[/]")
    console.print(
        f"- entries: {summary['entries']}, records: {summary['records_total']}, "
        f"matched: {summary['matched_total']}, avg match ratio: {summary['average_match_ratio']}"
    )

    field_table = Table(title="Field Counts")
    field_table.add_column("Field")
    field_table.add_column("Count", justify="right")
    field_counts = summary.get("field_counts", {}) or {}
    for name, count in sorted(field_counts.items(), key=lambda kv: kv[1], reverse=True):
        field_table.add_row(name, str(count))
    console.print(field_table)

    tag_counts: Counter[str] = Counter()
    tag_ratio_sum: Counter[str] = Counter()
    for entry in iter_log(args.log):
        tag = str(entry.get("tag") or "")
        if tag and "match_ratio" in entry:
            tag_counts[tag] += 1
            tag_ratio_sum[tag] += float(entry["match_ratio"])
    if tag_counts:
        tag_table = Table(title="Tags")
        tag_table.add_column("Tag")
        tag_table.add_column("Entries", justify="right")
        tag_table.add_column("Avg Ratio", justify="right")
        for tag, count in tag_counts.most_common():
            avg = tag_ratio_sum[tag] / count if count else 0.0
            tag_table.add_row(tag, str(count), f"{avg:.4f}")
        console.print(tag_table)


if __name__ == "__main__":
    main()
