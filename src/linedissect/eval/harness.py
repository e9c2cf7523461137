"""Match-rate evaluation for dissect patterns.

Purpose:
- Measure how many lines of a sample a pattern fully matches.
- Count which output fields were produced and keep a few failing lines.
- Run the same evaluation over generated syslog/apache samples as a baseline.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from linedissect.data.generator import (
    APPEND_SEPARATORS,
    DEFAULT_KIND,
    PATTERNS,
    generate_sample_lines,
)
from linedissect.errors import MatchError
from linedissect.pattern import Pattern, compile_pattern


@dataclass
class FailedLine:
    line_number: int
    text: str


@dataclass
class EvalSummary:
    pattern: str
    records: int
    matched: int
    failed: int
    match_ratio: float
    field_counts: dict[str, int]
    failures: list[FailedLine]
    notes: str


def evaluate_lines(pattern: Pattern, lines: Iterable[str], sample_limit: int = 3) -> EvalSummary:
    """Dissect every line and summarize matches, failures and produced fields."""
    field_counts: Counter[str] = Counter()
    failures: list[FailedLine] = []
    records = 0
    matched = 0

    for line_number, line in enumerate(lines, start=1):
        records += 1
        try:
            fields = pattern.parse(line)
        except MatchError:
            if len(failures) < sample_limit:
                failures.append(FailedLine(line_number=line_number, text=line))
            continue
        matched += 1
        field_counts.update(fields.keys())

    ratio = matched / records if records else 0.0
    return EvalSummary(
        pattern=pattern.text,
        records=records,
        matched=matched,
        failed=records - matched,
        match_ratio=round(ratio, 4),
        field_counts=dict(field_counts),
        failures=failures,
        notes="all-or-nothing matching; failed lines produce no fields",
    )


def evaluate_synthetic(
    kind: str = DEFAULT_KIND, count: int = 8, seed: int = 1234
) -> dict[str, Any]:
    """Generate sample lines and evaluate the built-in pattern for that kind."""
    samples = generate_sample_lines(kind, count, seed=seed)
    pattern = compile_pattern(PATTERNS[kind], APPEND_SEPARATORS[kind])
    summary = evaluate_lines(pattern, (sample.text for sample in samples))
    exact = sum(1 for sample in samples if _parses_to(pattern, sample.text, sample.fields))
    return {
        "generator": {"kind": kind, "count": count, "seed": seed},
        "evaluation": summary,
        "exact_matches": exact,
    }


def _parses_to(pattern: Pattern, text: str, expected: dict[str, str]) -> bool:
    try:
        return pattern.parse(text) == expected
    except MatchError:
        return False
