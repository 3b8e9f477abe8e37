"""
Streaming distinct-IPv4 pipeline (encode → record → count)

Purpose
- Count distinct IPv4 addresses in an arbitrarily large text file (one dotted quad per line)
  with a fixed 512 MiB presence bitmap instead of a hash set.
- Flow per line: strip → skip blank → address_to_key → MembershipTracker.record.
- At end of input: distinct count from the tracker, RunStats exported via reporting sinks.

Notes
- Lines are consumed lazily in a single pass; working memory does not grow with file size.
- Malformed lines follow parsing.strict: strict aborts on the first FormatError (with line number),
  lenient logs a warning, counts the line in malformed_lines and continues.

Config keys (recommended)
- input: { path: "ipv4.txt", encoding: "utf-8-sig" }
- parsing: { strict: true, max_warnings: 20 }
- tracking: { verify_popcount: false }
- logging: { trace: false, progress_every: 0 }
- reporting.sinks: see modules/reporting/sink.py docstring
"""

from typing import Iterable, Iterator, Dict, Any, List, Optional, TextIO
import sys
import time

from .types import RunStats
from .errors import FormatError, InputError
from ipv4count.modules.encoding.address import address_to_key
from ipv4count.modules.tracking.membership import MembershipTracker
from ipv4count.modules.reporting.sink import build_sinks_from_config, ReportSink


def open_input(path: str, encoding: str = "utf-8-sig") -> TextIO:
    try:
        return open(path, "r", encoding=encoding, errors="replace")
    except OSError as e:
        raise InputError(f"cannot open input file {path}: {e.strerror or e}") from e


def iter_lines(f: Iterable[str]) -> Iterator[str]:
    """
    Lazily yield lines without their line terminator. Single pass, not restartable.
    """
    for line in f:
        yield line.rstrip("\r\n")


class Pipeline:
    def __init__(self, config: Dict[str, Any]):
        self.cfg = config or {}

        inp = self.cfg.get("input", {}) or {}
        self.input_path = str(inp.get("path", "ipv4.txt"))
        self.encoding = str(inp.get("encoding", "utf-8-sig"))

        parsing = self.cfg.get("parsing", {}) or {}
        self.strict = bool(parsing.get("strict", True))
        self.max_warnings = int(parsing.get("max_warnings", 20))

        tr = self.cfg.get("tracking", {}) or {}
        self.verify_popcount = bool(tr.get("verify_popcount", False))

        log_cfg = self.cfg.get("logging", {}) or {}
        self.trace = bool(log_cfg.get("trace", False))
        self.progress_every = int(log_cfg.get("progress_every", 0))

        # Reporting sinks
        self.reporting_sinks: List[ReportSink] = build_sinks_from_config(self.cfg)

        self._warnings = 0

    # -------------------------- Stream processing -------------------------- #
    def process_stream(self, lines: Iterable[str], input_path: str = "<stream>") -> RunStats:
        """
        Stream processing:
        - blank lines are counted and skipped
        - every other line is encoded and recorded in the tracker
        Returns RunStats with distinct_count filled in.
        """
        stats = RunStats(input_path=input_path, strict=self.strict)
        self._warnings = 0
        started = time.perf_counter()

        with MembershipTracker() as tracker:
            for line_no, raw in enumerate(iter_lines(lines), start=1):
                stats.lines_read = line_no
                text = raw.strip()
                if not text:
                    stats.blank_lines += 1
                    continue

                try:
                    key = address_to_key(text)
                except FormatError as e:
                    if self.strict:
                        raise e.at_line(line_no) from None
                    stats.malformed_lines += 1
                    self._warn(e.at_line(line_no))
                    continue

                if self.trace:
                    print(f"[Stream] {text} to {key}", file=sys.stderr)
                tracker.record(key)
                stats.recorded += 1

                if self.progress_every > 0 and line_no % self.progress_every == 0:
                    print(f"[Stream] processed {line_no} lines, distinct so far {tracker.count()}",
                          file=sys.stderr)

            stats.distinct_count = tracker.count()
            if self.verify_popcount:
                self._verify(tracker, stats.distinct_count)

        stats.elapsed_sec = time.perf_counter() - started
        return stats

    def run(self, path: Optional[str] = None) -> RunStats:
        path = path or self.input_path
        with open_input(path, self.encoding) as f:
            return self.process_stream(f, input_path=path)

    # -------------------------- Export -------------------------- #
    def export(self, stats: RunStats, run_id: str) -> RunStats:
        for sink in self.reporting_sinks:
            try:
                sink.write_run_stats(stats, run_id)
            except OSError as e:
                print(f"[Report] write_run_stats failed: {e}", file=sys.stderr)
        return stats

    # -------------------------- Helpers -------------------------- #
    def _warn(self, err: FormatError) -> None:
        self._warnings += 1
        if self._warnings <= self.max_warnings:
            print(f"[Stream] skipping {err}", file=sys.stderr)
        elif self._warnings == self.max_warnings + 1:
            print("[Stream] further malformed-line warnings suppressed", file=sys.stderr)

    def _verify(self, tracker: MembershipTracker, expected: int) -> None:
        scanned = tracker.recount()
        if scanned != expected:
            raise RuntimeError(f"popcount mismatch: scanned {scanned}, tracked {expected}")
        print(f"[Tracker] popcount verified: {scanned}", file=sys.stderr)
