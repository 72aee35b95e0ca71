from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True, order=True)
class Position:
    """A concrete source position.

    Line/column are 1-based and compare lexicographically; the 0-based offset
    rides along for slicing but never decides ordering.
    """

    line: int
    column: int
    offset: int = field(default=0, compare=False)

    def column_delta(self, other: Position) -> int:
        """Zero-based number of columns from `self` to `other` on one line."""
        return other.column - self.column


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open span [start, end) in a single file."""

    file: str
    start: Position
    end: Position

    def format(self) -> str:
        return f"{self.file}:{self.start.line}:{self.start.column}"

    @property
    def single_line(self) -> bool:
        return self.start.line == self.end.line

    def is_well_formed(self) -> bool:
        return self.start <= self.end

    def overlaps(self, other: Span) -> bool:
        return self.start < other.end and other.start < self.end
