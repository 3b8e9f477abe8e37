"""
Generate an IPv4 test file with a known number of distinct addresses.

Usage:
  python -m ipv4count.scripts.generate_ipv4_data out/ipv4.txt 1000 5000 --seed 42
"""

import argparse
import sys

from ipv4count.modules.testing.fake_stream_generator import fake_address_stream, write_address_file


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Generate IPv4 addresses dataset")
    ap.add_argument("output_file", help="Output file path")
    ap.add_argument("num_unique", type=int, help="Number of distinct IPv4 addresses")
    ap.add_argument("total_lines", type=int, help="Total number of lines in output")
    ap.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility (default: 42)")
    ap.add_argument("--no-edges", action="store_true", help="do not force boundary addresses into the set")
    args = ap.parse_args(argv)

    try:
        lines = fake_address_stream(
            args.num_unique, args.total_lines, seed=args.seed, include_edges=not args.no_edges
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    write_address_file(args.output_file, lines)
    print(f"wrote {len(lines)} lines ({args.num_unique} distinct) to {args.output_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
