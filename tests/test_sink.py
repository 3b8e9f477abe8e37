import csv
import json

from ipv4count.modules.reporting.sink import (
    CSVSink,
    JSONLSink,
    StdoutSink,
    build_sinks_from_config,
    format_result,
)
from ipv4count.pipeline.types import RunStats


def _stats(n=3):
    return RunStats(input_path="ipv4.txt", strict=True, lines_read=4, recorded=4, distinct_count=n)


def test_format_result():
    assert format_result(0) == "RESULT: 0 ipv4 found"


def test_stdout_sink_logs_summary_to_stderr(capsys):
    StdoutSink().write_run_stats(_stats(7), "run-1")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[Report] RunStats" in captured.err
    assert '"distinct_count": 7' in captured.err
    assert '"run_id": "run-1"' in captured.err


def test_jsonl_sink_appends_rows(tmp_path):
    path = tmp_path / "out" / "runs.jsonl"
    sink = JSONLSink(str(path))
    sink.write_run_stats(_stats(3), "run-1")
    sink.write_run_stats(_stats(5), "run-2")
    rows = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [r["run_id"] for r in rows] == ["run-1", "run-2"]
    assert rows[0]["distinct_count"] == 3
    assert rows[1]["strict"] is True
    assert "write_ts" in rows[0]


def test_csv_sink_writes_header_once(tmp_path):
    path = tmp_path / "runs.csv"
    CSVSink(str(path)).write_run_stats(_stats(3), "run-1")
    CSVSink(str(path)).write_run_stats(_stats(4), "run-2")
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert [r["distinct_count"] for r in rows] == ["3", "4"]
    assert rows[0]["input_path"] == "ipv4.txt"


def test_build_sinks_from_config(tmp_path):
    cfg = {
        "reporting": {
            "sinks": [
                {"type": "stdout"},
                {"type": "jsonl", "path": str(tmp_path / "a.jsonl")},
                {"type": "CSV", "path": str(tmp_path / "a.csv")},
            ]
        }
    }
    sinks = build_sinks_from_config(cfg)
    assert [type(s) for s in sinks] == [StdoutSink, JSONLSink, CSVSink]


def test_build_sinks_defaults_to_none(capsys):
    assert build_sinks_from_config({}) == []
    assert build_sinks_from_config({"reporting": {"sinks": [{"type": "webhook"}]}}) == []
    assert "Unknown sink type: webhook" in capsys.readouterr().err


def test_build_sinks_skips_entries_without_path(capsys):
    sinks = build_sinks_from_config({"reporting": {"sinks": [{"type": "csv"}, {"type": "jsonl", "path": ""}]}})
    assert sinks == []
    err = capsys.readouterr().err
    assert "Sink csv has no path" in err
    assert "Sink jsonl has no path" in err
