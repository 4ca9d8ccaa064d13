from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True, slots=True)
class Span:
    """Source span.

    Positions are [start, end) character offsets into the source text.
    `file` is a path or a logical name such as ``<repl:3>`` or ``--query``.
    """

    file: Optional[str]
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < 0 or self.end < self.start:
            raise ValueError("invalid span range")

    def merge(self, other: Optional[Span]) -> Span:
        if other is None or self.file != other.file:
            return self
        return Span(self.file, min(self.start, other.start), max(self.end, other.end))

    def locate(self, source: str) -> Tuple[int, int]:
        """1-based (line, column) of `start` within `source`."""
        prefix = source[: self.start]
        line = prefix.count("\n") + 1
        column = self.start - (prefix.rfind("\n") + 1) + 1
        return line, column

    def __str__(self) -> str:
        file = self.file or "<unknown>"
        return f"{file}:{self.start}-{self.end}"
