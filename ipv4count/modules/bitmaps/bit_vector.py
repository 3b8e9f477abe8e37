"""
阶段2：定长位向量（packed bit array）

用途
- 为成员跟踪器提供每个键 1 bit 的存在性存储，内存占用固定为 num_bits / 8 字节

实现要点
- 底层为匿名内存映射（mmap(-1, n)）：内容初始全 0，页面仅在首次写入时由操作系统提交，
  因此稀疏输入的实际驻留内存远小于名义大小
- 位寻址：byte = i >> 3，mask = 1 << (i & 7)
- set(i) 返回该位是否由 0 变为 1，同时维护增量基数 cardinality()，使计数为 O(1)
- popcount() 为全量扫描（按块 int.from_bytes(...).bit_count()），全零块直接跳过
"""

from typing import Dict, Any
import mmap

from ipv4count.pipeline.errors import AllocationError

SCAN_CHUNK_BYTES = 1 << 20


class BitVector:
    def __init__(self, num_bits: int) -> None:
        if num_bits <= 0:
            raise ValueError(f"num_bits must be positive, got {num_bits}")
        self.num_bits = int(num_bits)
        self.num_bytes = (self.num_bits + 7) // 8
        try:
            self._buf = mmap.mmap(-1, self.num_bytes)
        except (OSError, MemoryError, OverflowError) as e:
            raise AllocationError(
                f"cannot allocate {self.num_bytes} bytes for a {self.num_bits}-bit vector: {e}"
            ) from e
        self._cardinality = 0

    def _check(self, i: int) -> None:
        if not 0 <= i < self.num_bits:
            raise IndexError(f"bit index {i} outside [0, {self.num_bits})")

    def get(self, i: int) -> bool:
        self._check(i)
        return bool(self._buf[i >> 3] & (1 << (i & 7)))

    def set(self, i: int) -> bool:
        """
        置位第 i 位；若该位此前为 0 返回 True（新出现），否则返回 False
        """
        self._check(i)
        byte_idx = i >> 3
        mask = 1 << (i & 7)
        current = self._buf[byte_idx]
        if current & mask:
            return False
        self._buf[byte_idx] = current | mask
        self._cardinality += 1
        return True

    def cardinality(self) -> int:
        return self._cardinality

    def popcount(self) -> int:
        """
        全量扫描统计已置位的位数（应与 cardinality() 一致）
        """
        zero = bytes(SCAN_CHUNK_BYTES)
        total = 0
        for off in range(0, self.num_bytes, SCAN_CHUNK_BYTES):
            chunk = self._buf[off: off + SCAN_CHUNK_BYTES]
            if chunk == zero[: len(chunk)]:
                continue
            total += int.from_bytes(chunk, "little").bit_count()
        return total

    def close(self) -> None:
        if not self._buf.closed:
            self._buf.close()

    @property
    def closed(self) -> bool:
        return self._buf.closed

    def stats(self) -> Dict[str, Any]:
        return {
            "num_bits": self.num_bits,
            "num_bytes": self.num_bytes,
            "set_bits": self._cardinality,
            "fill_ratio": self._cardinality / float(self.num_bits),
        }
