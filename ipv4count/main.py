"""
主程序入口
- 功能：加载配置，解析命令行，调用 Pipeline.run 扫描输入文件并通过 sinks 输出结果
- 结果行 RESULT: <N> ipv4 found 由本模块在成功运行后输出一次（与 sinks 配置无关）
- 退出码：0 成功；1 输入文件或配置错误；2 严格模式下格式错误；3 位图分配失败；4 --verify 校验不一致
"""
import argparse
import os
import sys
import time
from typing import Any, Dict, List, Optional

import yaml

from ipv4count.pipeline.pipeline import Pipeline, open_input, iter_lines
from ipv4count.pipeline.errors import AllocationError, FormatError, InputError
from ipv4count.modules.reporting.sink import format_result
from ipv4count.modules.testing.compare import (
    compare_with_reference,
    exact_distinct_count,
    write_compare_results,
)

DEFAULT_CONFIG_PATH = "configs/config.yaml"

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_FORMAT_ERROR = 2
EXIT_ALLOCATION_ERROR = 3
EXIT_VERIFY_MISMATCH = 4


def load_config(path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    sec = dict(cfg.get(name, {}) or {})
    cfg[name] = sec
    return sec


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Count distinct IPv4 addresses in a large text file")
    ap.add_argument("input", nargs="?", help="input file, one IPv4 address per line (default: input.path)")
    ap.add_argument("--config", default=None, help=f"YAML config (default: {DEFAULT_CONFIG_PATH} if present)")
    mode = ap.add_mutually_exclusive_group()
    mode.add_argument("--strict", dest="strict", action="store_true", default=None,
                      help="abort on the first malformed line")
    mode.add_argument("--lenient", dest="strict", action="store_false",
                      help="skip malformed lines with a warning")
    ap.add_argument("--trace", action="store_true", help="log every line and its key to stderr")
    ap.add_argument("--verify", action="store_true",
                    help="re-count with an exact set and compare (small inputs only)")
    return ap.parse_args(argv)


def build_config(args: argparse.Namespace) -> Dict[str, Any]:
    if args.config:
        cfg = load_config(args.config)
    elif os.path.exists(DEFAULT_CONFIG_PATH):
        cfg = load_config(DEFAULT_CONFIG_PATH)
    else:
        cfg = {}

    if args.input:
        _section(cfg, "input")["path"] = args.input
    if args.strict is not None:
        _section(cfg, "parsing")["strict"] = args.strict
    if args.trace:
        _section(cfg, "logging")["trace"] = True
    return cfg


def _verify(pipe: Pipeline, stats, cfg: Dict[str, Any]) -> bool:
    with open_input(stats.input_path, pipe.encoding) as f:
        reference = exact_distinct_count(iter_lines(f), strict=pipe.strict)
    row = compare_with_reference(stats, reference)
    compare_dir = (cfg.get("reporting", {}) or {}).get("compare_dir")
    if compare_dir:
        path = write_compare_results(compare_dir, row)
        print(f"[Verify] compare report written: {path}", file=sys.stderr)
    ok = row["status"]["count_ok"]
    print(f"[Verify] reference={reference} reported={stats.distinct_count} ok={ok}", file=sys.stderr)
    return ok


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        cfg = build_config(args)
    except (OSError, yaml.YAMLError) as e:
        print(f"Error: cannot read config: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    try:
        pipe = Pipeline(cfg)
    except (OSError, ValueError) as e:
        print(f"Error: invalid config: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    run_id = f"run-{time.strftime('%Y-%m-%dT%H:%M:%S', time.gmtime())}"

    try:
        stats = pipe.run()
    except InputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except FormatError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FORMAT_ERROR
    except AllocationError as e:
        print(f"Error: host does not meet the 512 MiB bitmap budget: {e}", file=sys.stderr)
        return EXIT_ALLOCATION_ERROR

    pipe.export(stats, run_id)
    print(format_result(stats.distinct_count))
    if stats.malformed_lines:
        print(f"[Stream] skipped {stats.malformed_lines} malformed lines", file=sys.stderr)

    if args.verify and not _verify(pipe, stats, cfg):
        return EXIT_VERIFY_MISMATCH
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
