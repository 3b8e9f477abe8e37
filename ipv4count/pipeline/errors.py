from __future__ import annotations

from typing import Optional


class FormatError(ValueError):
    def __init__(self, text: str, reason: str, line_no: Optional[int] = None):
        super().__init__(text, reason, line_no)
        self.text = text
        self.reason = reason
        self.line_no = line_no

    def __str__(self) -> str:
        where = f"line {self.line_no}: " if self.line_no is not None else ""
        return f"{where}malformed ipv4 {self.text!r} ({self.reason})"

    def at_line(self, line_no: int) -> "FormatError":
        return FormatError(text=self.text, reason=self.reason, line_no=line_no)


class InputError(OSError):
    """Input file missing or unreadable."""


class AllocationError(MemoryError):
    """Presence bitmaps could not be allocated on this host."""


__all__ = [
    "FormatError",
    "InputError",
    "AllocationError",
]
