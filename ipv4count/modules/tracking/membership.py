"""
阶段3：成员跟踪器（2^32 位存在性位图，按区间拆成两个位向量）

用途
- 记录已出现的 IPv4 键并报告不同键的数量，内存固定为 2 x 256 MiB，与去重数量无关
- 对比：直接用 set 存放数十亿个键需要数十 GB

区间划分
- 键 0                          -> 单独的 zero_seen 标志
- 键 1 .. 2^31 - 1              -> low 位向量，下标 = key
- 键 2^31 .. 2^32 - 1           -> high 位向量，下标 = key - 2^31

不变量
- record 幂等：同一键记录多次与记录一次效果相同
- 位只会由 0 变 1（单调），count() = popcount(low) + popcount(high) + zero_seen
"""

from typing import Dict, Any

from ipv4count.modules.bitmaps.bit_vector import BitVector
from ipv4count.pipeline.errors import AllocationError

HALF_RANGE = 1 << 31
KEY_SPACE = 1 << 32


class MembershipTracker:
    def __init__(self):
        self.low = BitVector(HALF_RANGE)
        try:
            self.high = BitVector(HALF_RANGE)
        except AllocationError:
            self.low.close()
            raise
        self.zero_seen = False

    def _locate(self, key: int):
        if not 0 <= key < KEY_SPACE:
            raise ValueError(f"key {key} outside [0, {KEY_SPACE - 1}]")
        if key >= HALF_RANGE:
            return self.high, key - HALF_RANGE
        return self.low, key

    def record(self, key: int) -> None:
        vec, idx = self._locate(key)
        if key == 0:
            self.zero_seen = True
            return
        vec.set(idx)

    def contains(self, key: int) -> bool:
        vec, idx = self._locate(key)
        if key == 0:
            return self.zero_seen
        return vec.get(idx)

    def count(self) -> int:
        return self.low.cardinality() + self.high.cardinality() + (1 if self.zero_seen else 0)

    def recount(self) -> int:
        """
        全量扫描两个位向量重新计数（用于一致性校验，耗时与位图大小成正比）
        """
        return self.low.popcount() + self.high.popcount() + (1 if self.zero_seen else 0)

    def close(self) -> None:
        self.low.close()
        self.high.close()

    def __enter__(self) -> "MembershipTracker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def stats(self) -> Dict[str, Any]:
        return {
            "low": self.low.stats(),
            "high": self.high.stats(),
            "zero_seen": self.zero_seen,
            "total_bytes": self.low.num_bytes + self.high.num_bytes,
            "distinct": self.count(),
        }
