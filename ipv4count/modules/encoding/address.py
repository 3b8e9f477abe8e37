"""
阶段1：IPv4 地址编码（点分十进制 <-> 32 位整数键）

- address_to_key("a.b.c.d") = a << 24 | b << 16 | c << 8 | d，范围 [0, 2^32 - 1]
- 每个八位组必须是十进制整数且在 [0, 255] 内，否则抛出 FormatError
  （越界八位组会产生超出位图范围的键，因此一律拒绝）
- key_to_address / key_to_octets 为逆映射，用于往返校验、trace 输出与测试数据生成
"""

from typing import Tuple

from ipv4count.pipeline.errors import FormatError

MAX_KEY = (1 << 32) - 1


def _parse_octet(token: str, text: str) -> int:
    # int() 接受 "+1"、" 1"、"1_0" 等写法，这里只允许 ASCII 数字
    if not token or not (token.isascii() and token.isdigit()):
        raise FormatError(text=text, reason=f"octet {token!r} is not a decimal integer")
    value = int(token)
    if value > 255:
        raise FormatError(text=text, reason=f"octet {value} out of range [0, 255]")
    return value


def address_to_key(text: str) -> int:
    tokens = text.split(".")
    if len(tokens) != 4:
        raise FormatError(text=text, reason=f"expected 4 octets, got {len(tokens)}")
    key = 0
    for token in tokens:
        key = (key << 8) | _parse_octet(token, text)
    return key


def key_to_octets(key: int) -> Tuple[int, int, int, int]:
    if not 0 <= key <= MAX_KEY:
        raise ValueError(f"key {key} outside [0, {MAX_KEY}]")
    return (key >> 24) & 0xFF, (key >> 16) & 0xFF, (key >> 8) & 0xFF, key & 0xFF


def key_to_address(key: int) -> str:
    return ".".join(str(o) for o in key_to_octets(key))
