from __future__ import annotations

import json
from pathlib import Path

import yaml
from typer.testing import CliRunner

from linedissect.cli import app

runner = CliRunner()


def test_parse_from_file_emits_jsonl(tmp_path: Path) -> None:
    source = tmp_path / "lines.txt"
    source.write_text("foo bar,baz\nfoo bar baz\n")

    result = runner.invoke(app, ["parse", "%{a} %{b},%{c}", str(source)])

    assert result.exit_code == 0
    rows = [json.loads(line) for line in result.stdout.splitlines()]
    assert rows[0]["fields"] == {"a": "foo", "b": "bar", "c": "baz"}
    assert rows[1]["fields"] == {}
    assert rows[1]["error"]


def test_parse_reads_stdin_as_json() -> None:
    result = runner.invoke(
        app, ["parse", "%{a} %{+a}", "-a", "-", "-f", "json"], input="x y\n"
    )

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload == [{"line_number": 1, "fields": {"a": "x-y"}, "error": None}]


def test_parse_strict_exits_on_first_failure(tmp_path: Path) -> None:
    source = tmp_path / "lines.txt"
    source.write_text("a,b\nnope\n")

    result = runner.invoke(app, ["parse", "%{a},%{b}", str(source), "--strict"])

    assert result.exit_code == 1


def test_parse_invalid_pattern_exits_with_code_2(tmp_path: Path) -> None:
    source = tmp_path / "lines.txt"
    source.write_text("x\n")

    result = runner.invoke(app, ["parse", "%{?a} %{b}", str(source)])

    assert result.exit_code == 2


def test_parse_writes_csv_output(tmp_path: Path) -> None:
    source = tmp_path / "lines.txt"
    source.write_text("1,2\n")
    out = tmp_path / "out.csv"

    result = runner.invoke(app, ["parse", "%{a},%{b}", str(source), "-f", "csv", "-o", str(out)])

    assert result.exit_code == 0
    assert out.read_text().splitlines()[0] == "line_number,a,b,error"


def test_parse_csv_requires_output(tmp_path: Path) -> None:
    source = tmp_path / "lines.txt"
    source.write_text("1,2\n")

    result = runner.invoke(app, ["parse", "%{a},%{b}", str(source), "-f", "csv"])

    assert result.exit_code != 0


def test_parse_missing_input_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["parse", "%{a}", str(tmp_path / "missing.txt")])

    assert result.exit_code != 0


def test_inspect_lists_keys() -> None:
    result = runner.invoke(app, ["inspect", "%{a->} %{+a/2} %{?k} %{&k}"])

    assert result.exit_code == 0
    assert "APPEND_WITH_ORDER" in result.stdout
    assert "FIELD_NAME" in result.stdout


def test_run_applies_processor_config(tmp_path: Path) -> None:
    config = tmp_path / "proc.yaml"
    config.write_text(yaml.safe_dump({"field": "message", "pattern": "%{verb} %{path}"}))
    records = tmp_path / "records.jsonl"
    records.write_text(
        json.dumps({"message": "GET /"}) + "\n" + json.dumps({"message": "broken"}) + "\n"
    )
    out = tmp_path / "out.jsonl"

    result = runner.invoke(app, ["run", str(config), str(records), "-o", str(out)])

    assert result.exit_code == 0
    rows = [json.loads(line) for line in out.read_text().splitlines()]
    assert rows == [{"message": "GET /", "verb": "GET", "path": "/"}]


def test_run_strict_aborts(tmp_path: Path) -> None:
    config = tmp_path / "proc.json"
    config.write_text(json.dumps({"field": "message", "pattern": "%{verb} %{path}"}))
    records = tmp_path / "records.jsonl"
    records.write_text(json.dumps({"message": "broken"}) + "\n")

    result = runner.invoke(app, ["run", str(config), str(records), "--strict"])

    assert result.exit_code == 1


def test_run_counts_malformed_json_as_failed(tmp_path: Path) -> None:
    config = tmp_path / "proc.json"
    config.write_text(json.dumps({"field": "message", "pattern": "%{verb} %{path}"}))
    records = tmp_path / "records.jsonl"
    records.write_text("not json\n" + json.dumps({"message": "GET /"}) + "\n")
    out = tmp_path / "out.jsonl"

    result = runner.invoke(app, ["run", str(config), str(records), "-o", str(out)])

    assert result.exit_code == 0
    rows = [json.loads(line) for line in out.read_text().splitlines()]
    assert rows == [{"message": "GET /", "verb": "GET", "path": "/"}]

    strict = runner.invoke(app, ["run", str(config), str(records), "--strict"])
    assert strict.exit_code == 1


def test_eval_synthetic_with_logs(tmp_path: Path) -> None:
    log_csv = tmp_path / "eval.csv"
    log_jsonl = tmp_path / "eval.jsonl"

    result = runner.invoke(
        app,
        [
            "eval",
            "synthetic",
            "--kind",
            "syslog",
            "--count",
            "5",
            "--log-csv",
            str(log_csv),
            "--log-jsonl",
            str(log_jsonl),
            "--tag",
            "ci",
        ],
    )

    assert result.exit_code == 0
    assert log_csv.exists()
    assert log_jsonl.exists()

    summary = runner.invoke(app, ["eval", "summarize", str(log_csv)])
    assert summary.exit_code == 0
    assert json.loads(summary.stdout)["records_total"] == 5


def test_eval_lines_writes_report(tmp_path: Path) -> None:
    source = tmp_path / "lines.txt"
    source.write_text("a b\nc\n")
    out = tmp_path / "report.json"

    result = runner.invoke(app, ["eval", "lines", "%{x} %{y}", str(source), "-o", str(out)])

    assert result.exit_code == 0
    payload = json.loads(out.read_text())
    assert payload["evaluation"]["matched"] == 1
    assert payload["evaluation"]["failed"] == 1


def test_json_log_format_is_accepted(tmp_path: Path) -> None:
    source = tmp_path / "lines.txt"
    source.write_text("x\n")

    result = runner.invoke(
        app, ["--log-format", "json", "--log-level", "debug", "parse", "%{a}", str(source)]
    )

    assert result.exit_code == 0
