"""
阶段0：数据类型定义
- RunStats: 单次扫描的统计结果（读取行数、空行、格式错误行、去重计数等）
"""

from dataclasses import dataclass


@dataclass
class RunStats:
    input_path: str
    strict: bool
    lines_read: int = 0
    blank_lines: int = 0
    malformed_lines: int = 0
    recorded: int = 0            # 成功编码并写入位图的行数（含重复）
    distinct_count: int = 0      # 不同 IPv4 地址数
    elapsed_sec: float = 0.0
