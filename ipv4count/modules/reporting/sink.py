"""
阶段5：结果落地（Reporting/Export Sinks）

用途
- 扫描结束时把 RunStats 落地到外部：Stdout/JSONL/CSV

实现
- ReportSink 抽象类：统一 write_run_stats 接口
- JSONLSink：每次运行追加一行 JSON
- CSVSink：追加一行 CSV（首次写入时生成表头）
- StdoutSink：把统计摘要打印到控制台（stderr），用于开发调试
- RESULT 结果行由 main 统一输出一次，不经过 sinks
"""

from __future__ import annotations
from typing import List, Dict, Any
import json
import csv
import sys
import time
import os
import threading

STATS_FIELDS = [
    "run_id", "input_path", "strict", "lines_read", "blank_lines",
    "malformed_lines", "recorded", "distinct_count", "elapsed_sec",
]


def _to_jsonable(obj: Any) -> Dict[str, Any]:
    """
    将 RunStats（或任意带同名属性的对象）转换为 JSON 友好的 dict
    """
    if obj is None:
        return {}
    out = {}
    for k in STATS_FIELDS:
        if hasattr(obj, k):
            v = getattr(obj, k)
            if isinstance(v, (str, int, float, bool)) or v is None:
                out[k] = v
            else:
                out[k] = str(v)
    return out


def _ensure_parent(path: str) -> None:
    d = os.path.dirname(os.path.abspath(path))
    if d and not os.path.exists(d):
        os.makedirs(d, exist_ok=True)


def format_result(distinct_count: int) -> str:
    return f"RESULT: {distinct_count} ipv4 found"


class ReportSink:
    def write_run_stats(self, stats: Any, run_id: str) -> None:
        raise NotImplementedError


class JSONLSink(ReportSink):
    def __init__(self, path: str, ensure_dir: bool = True):
        self.path = path
        if ensure_dir:
            _ensure_parent(path)
        self._lock = threading.Lock()

    def write_run_stats(self, stats: Any, run_id: str) -> None:
        row = _to_jsonable(stats)
        row["run_id"] = run_id
        row["write_ts"] = time.time()
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(row, ensure_ascii=False) + "\n")


class CSVSink(ReportSink):
    def __init__(self, path: str, ensure_dir: bool = True):
        self.path = path
        if ensure_dir:
            _ensure_parent(path)
        self._lock = threading.Lock()
        # 若文件不存在则写表头
        if not os.path.exists(path):
            with open(path, "w", newline="", encoding="utf-8") as f:
                csv.DictWriter(f, fieldnames=STATS_FIELDS).writeheader()

    def write_run_stats(self, stats: Any, run_id: str) -> None:
        row = _to_jsonable(stats)
        row["run_id"] = run_id
        with self._lock:
            with open(self.path, "a", newline="", encoding="utf-8") as f:
                w = csv.DictWriter(f, fieldnames=STATS_FIELDS)
                w.writerow({k: row.get(k, "") for k in STATS_FIELDS})


class StdoutSink(ReportSink):
    def write_run_stats(self, stats: Any, run_id: str) -> None:
        row = _to_jsonable(stats)
        row["run_id"] = run_id
        print(f"[Report] RunStats {json.dumps(row, ensure_ascii=False)}", file=sys.stderr)


def build_sinks_from_config(cfg: Dict[str, Any]) -> List[ReportSink]:
    """
    根据配置构建 sinks 列表；缺少 path 或类型未知的条目记录日志后跳过
    示例：
    reporting:
      sinks:
        - type: "stdout"
        - type: "jsonl"
          path: "out/runs.jsonl"
        - type: "csv"
          path: "out/runs.csv"
    """
    out: List[ReportSink] = []
    reporting = cfg.get("reporting", {}) or {}
    sinks = reporting.get("sinks", []) or []
    for s in sinks:
        t = (s.get("type") or "").lower()
        if t in ("jsonl", "csv") and not s.get("path"):
            print(f"[Report] Sink {t} has no path, skipped", file=sys.stderr)
        elif t == "jsonl":
            out.append(JSONLSink(path=s["path"]))
        elif t == "csv":
            out.append(CSVSink(path=s["path"]))
        elif t == "stdout":
            out.append(StdoutSink())
        else:
            print(f"[Report] Unknown sink type: {t}", file=sys.stderr)
    return out
