from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import orjson
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from linedissect.data.generator import DEFAULT_KIND, PATTERNS
from linedissect.errors import MatchError, PatternCompileError
from linedissect.eval.harness import evaluate_lines, evaluate_synthetic
from linedissect.eval.report import append_csv, append_jsonl, summary_to_row
from linedissect.eval.summarize import summarize_log
from linedissect.logging_utils import LOG_FORMATS, configure_logging
from linedissect.output import (
    DissectResult,
    dissect_lines,
    results_to_arrow,
    results_to_csv,
    results_to_jsonl,
)
from linedissect.pattern import Pattern, compile_pattern
from linedissect.processor import load_processor

app = typer.Typer(help="Split log lines into named fields using dissect patterns.")
eval_app = typer.Typer(help="Measure how well a pattern matches a sample of lines.")
console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)
SUPPORTED_FORMATS = {"json", "jsonl", "csv", "arrow"}
FILE_ONLY_FORMATS = {"csv", "arrow"}

app.add_typer(eval_app, name="eval")


@app.callback()
def main(
    log_level: str = typer.Option("warning", "--log-level", help="debug | info | warning | error."),
    log_format: str = typer.Option("human", "--log-format", help="human | json."),
) -> None:
    if log_format not in LOG_FORMATS:
        raise typer.BadParameter(
            f"Unsupported log format '{log_format}'. Choose from {LOG_FORMATS}."
        )
    configure_logging(level=log_level, log_format=log_format)


def _read_lines(path: Path | None) -> list[str]:
    if path is None:
        return sys.stdin.read().splitlines()
    if not path.is_file():
        raise typer.BadParameter(f"Input file not found: {path}")
    return path.read_text(encoding="utf-8").splitlines()


def _compile_or_exit(pattern: str, append_separator: str) -> Pattern:
    try:
        return compile_pattern(pattern, append_separator)
    except PatternCompileError as exc:
        err_console.print(f"[bold red]Invalid pattern[/]: {escape(exc.reason)}")
        raise typer.Exit(code=2) from exc


def _echo_json(payload: Any, indent: bool = True) -> None:
    option = orjson.OPT_INDENT_2 if indent else 0
    typer.echo(orjson.dumps(payload, option=option).decode())


@app.command()
def parse(
    pattern: str = typer.Argument(..., help="Dissect pattern, e.g. '%{a} %{b},%{c}'."),
    input: Path | None = typer.Argument(
        None, help="File with one line per record (stdin if omitted)."
    ),
    append_separator: str = typer.Option(
        "", "--append-separator", "-a", help="Separator used to join '+' keys."
    ),
    format: str = typer.Option("jsonl", "--format", "-f", help="json | jsonl | csv | arrow."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write results to this path."),
    strict: bool = typer.Option(False, "--strict", help="Abort on the first line that fails."),
) -> None:
    """Dissect each input line into named fields."""
    fmt = format.lower()
    if fmt not in SUPPORTED_FORMATS:
        raise typer.BadParameter(f"Unsupported format '{format}'. Choose from {SUPPORTED_FORMATS}.")
    if fmt in FILE_ONLY_FORMATS and output is None:
        raise typer.BadParameter(f"Format '{fmt}' requires --output.")

    compiled = _compile_or_exit(pattern, append_separator)
    lines = _read_lines(input)
    try:
        results = list(dissect_lines(compiled, lines, strict=strict))
    except MatchError as exc:
        err_console.print(f"[bold red]No match[/]: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    failed = sum(1 for r in results if not r.matched)
    logger.info("Dissected %d lines, %d failed", len(results), failed)

    if output is None:
        if fmt == "json":
            _echo_json([r.to_dict() for r in results])
        else:
            for r in results:
                _echo_json(r.to_dict(), indent=False)
        return

    _write_results(results, output, fmt)
    console.print(f"[bold green]Wrote[/] {len(results)} results ({failed} failed) to {output}")


def _write_results(results: list[DissectResult], output: Path, fmt: str) -> None:
    if fmt == "json":
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(orjson.dumps([r.to_dict() for r in results], option=orjson.OPT_INDENT_2))
    elif fmt == "jsonl":
        results_to_jsonl(results, output)
    elif fmt == "csv":
        results_to_csv(results, output)
    elif fmt == "arrow":
        results_to_arrow(results, output)
    else:
        raise typer.BadParameter(f"Unsupported format '{fmt}'.")


@app.command()
def inspect(
    pattern: str = typer.Argument(..., help="Dissect pattern to compile."),
    append_separator: str = typer.Option("", "--append-separator", "-a"),
) -> None:
    """Compile a pattern and show its keys, modifiers and delimiters."""
    compiled = _compile_or_exit(pattern, append_separator)
    table = Table(title="Keys")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Modifier")
    table.add_column("Order", justify="right")
    table.add_column("Pad")
    table.add_column("Delimiter")
    for index, pair in enumerate(compiled.pairs):
        key = pair.key
        table.add_row(
            str(index),
            "(skip)" if key.is_skip else key.name,
            key.modifier.name,
            "" if key.append_position is None else str(key.append_position),
            "yes" if key.skip_right_padding else "",
            repr(pair.delimiter),
        )
    console.print(f"Leading delimiter: {compiled.leading_delimiter!r}", markup=False)
    console.print(table)
    fields = ", ".join(compiled.field_names) or "(dynamic only)"
    console.print(f"Output fields: {fields}", markup=False)


@app.command()
def run(
    config: Path = typer.Argument(..., help="Processor config (yaml/json)."),
    input: Path = typer.Argument(..., help="JSONL file of records."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write processed JSONL here."),
    strict: bool = typer.Option(False, "--strict", help="Abort on the first failing record."),
) -> None:
    """Apply a dissect processor config to every record of a JSONL file."""
    if not config.is_file():
        raise typer.BadParameter(f"Config file not found: {config}")
    try:
        processor = load_processor(config)
    except PatternCompileError as exc:
        err_console.print(f"[bold red]Invalid pattern[/]: {escape(exc.reason)}")
        raise typer.Exit(code=2) from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    processed: list[dict[str, Any]] = []
    failed = 0
    for line_number, line in enumerate(_read_lines(input), start=1):
        if not line.strip():
            continue
        try:
            record = orjson.loads(line)
            if not isinstance(record, dict):
                raise ValueError(f"record must be a JSON object, got {type(record).__name__}")
            processed.append(dict(processor.execute(record)))
        except (MatchError, ValueError) as exc:
            if strict:
                err_console.print(f"[bold red]Record {line_number} failed[/]: {escape(str(exc))}")
                raise typer.Exit(code=1) from exc
            logger.warning("Record %d failed: %s", line_number, exc)
            failed += 1

    payload = b"".join(orjson.dumps(r) + b"\n" for r in processed)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(payload)
        console.print(
            f"[bold green]Wrote[/] {len(processed)} records ({failed} failed) to {output}"
        )
    else:
        typer.echo(payload.decode(), nl=False)


def _log_summary(
    payload: dict[str, Any],
    source: str,
    tag: str | None,
    log_csv: Path | None,
    log_jsonl: Path | None,
) -> None:
    evaluation = payload["evaluation"]
    if log_csv:
        append_csv(log_csv, summary_to_row(evaluation, source=source, tag=tag))
        console.print(f"[bold green]Appended CSV log[/] to {log_csv}")
    if log_jsonl:
        append_jsonl(log_jsonl, payload)
        console.print(f"[bold green]Appended JSONL log[/] to {log_jsonl}")


def _print_payload(payload: dict[str, Any], output: Path | None) -> None:
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(orjson.dumps(payload))
        console.print(f"[bold green]Wrote evaluation report[/] to {output}")
    else:
        _echo_json(payload)


@eval_app.command("lines")
def eval_lines(
    pattern: str = typer.Argument(..., help="Dissect pattern to evaluate."),
    input: Path = typer.Argument(..., help="File with one line per record."),
    append_separator: str = typer.Option("", "--append-separator", "-a"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write evaluation JSON."),
    log_csv: Path | None = typer.Option(None, "--log-csv", help="Append summary as a CSV row."),
    log_jsonl: Path | None = typer.Option(None, "--log-jsonl", help="Append payload as JSONL."),
    tag: str | None = typer.Option(None, "--tag", help="Optional tag to mark this run."),
    sample_limit: int = typer.Option(3, "--samples", help="Failing lines to keep."),
) -> None:
    """Evaluate a pattern over the lines of a file."""
    compiled = _compile_or_exit(pattern, append_separator)
    summary = evaluate_lines(compiled, _read_lines(input), sample_limit=sample_limit)
    payload: dict[str, Any] = {"source": str(input), "evaluation": summary, "tag": tag}
    _log_summary(payload, str(input), tag, log_csv, log_jsonl)
    _print_payload(payload, output)


@eval_app.command("synthetic")
def eval_synthetic(
    kind: str = typer.Option(DEFAULT_KIND, "--kind", "-k", help="syslog | apache."),
    count: int = typer.Option(8, "--count", "-c", help="Lines to generate."),
    seed: int = typer.Option(1234, "--seed", help="Seed for reproducible generation."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write evaluation JSON."),
    log_csv: Path | None = typer.Option(None, "--log-csv", help="Append summary as a CSV row."),
    log_jsonl: Path | None = typer.Option(None, "--log-jsonl", help="Append payload as JSONL."),
    tag: str | None = typer.Option(None, "--tag", help="Optional tag to mark this run."),
) -> None:
    """Evaluate the built-in pattern for a generated sample."""
    if kind not in PATTERNS:
        raise typer.BadParameter(f"Unknown kind '{kind}'. Choose from {sorted(PATTERNS)}.")
    payload = evaluate_synthetic(kind=kind, count=count, seed=seed)
    payload["tag"] = tag
    _log_summary(payload, "synthetic", tag, log_csv, log_jsonl)
    _print_payload(payload, output)


@eval_app.command("summarize")
def eval_summarize(
    log: Path = typer.Argument(..., help="CSV or JSONL log file produced by eval."),
) -> None:
    """Summarize log(s) produced by eval logging."""
    if not log.is_file():
        raise typer.BadParameter(f"Log file not found: {log}")
    _echo_json(summarize_log(log))


if __name__ == "__main__":
    app()
