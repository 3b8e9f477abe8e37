"""
Parameterized IPv4 address file generator

Purpose
- Generate input files with a known number of distinct addresses to validate:
  - exact distinct counting through the bitmap tracker
  - range boundaries (0.0.0.0, 127.255.255.255, 128.0.0.0, 255.255.255.255)
  - duplicates spread across the whole stream (order invariance)

Usage
- See scripts/generate_ipv4_data.py.
"""

from typing import List, Iterable
import random

from ipv4count.modules.encoding.address import key_to_address, MAX_KEY

EDGE_ADDRESSES = ["0.0.0.0", "127.255.255.255", "128.0.0.0", "255.255.255.255"]


def fake_address_stream(
    num_unique: int,
    total_lines: int,
    *,
    seed: int = 2026,
    include_edges: bool = True,
) -> List[str]:
    """
    Return a shuffled list of total_lines dotted quads containing exactly num_unique distinct addresses.
    When include_edges is set the boundary addresses are part of the distinct set (as far as num_unique allows).
    """
    if num_unique < 0 or total_lines < 0:
        raise ValueError("num_unique and total_lines must be non-negative")
    if total_lines < num_unique:
        raise ValueError(f"total_lines ({total_lines}) cannot be less than num_unique ({num_unique})")
    if num_unique == 0 and total_lines > 0:
        raise ValueError("total_lines must be 0 when num_unique is 0")

    rng = random.Random(int(seed))
    unique: List[str] = EDGE_ADDRESSES[:num_unique] if include_edges else []
    seen = set(unique)
    while len(unique) < num_unique:
        addr = key_to_address(rng.randint(0, MAX_KEY))
        if addr not in seen:
            seen.add(addr)
            unique.append(addr)

    lines = list(unique)
    while len(lines) < total_lines:
        lines.append(rng.choice(unique))
    rng.shuffle(lines)
    return lines


def write_address_file(path: str, lines: Iterable[str]) -> str:
    with open(path, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")
    return path
