"""Immutable composed text snapshots with a line index."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Iterable, Protocol, Tuple

from scrivenings.errors import BufferValidationError

Location = Tuple[int, int]  # (row, column)


class ChangeLike(Protocol):
    start: int
    end: int
    insert: str


def _line_starts(text: str) -> Tuple[int, ...]:
    starts = [0]
    pos = text.find("\n")
    while pos != -1:
        starts.append(pos + 1)
        pos = text.find("\n", pos + 1)
    return tuple(starts)


@dataclass(frozen=True, slots=True)
class ComposedText:
    """One version of the composed buffer.

    Every edit produces a new instance with a bumped ``version`` so caches
    keyed on identity (the boundary index, the decoration pass) stay valid
    for exactly one revision.
    """

    text: str = ""
    version: int = 0
    line_starts: Tuple[int, ...] = field(default=(), repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.line_starts:
            object.__setattr__(self, "line_starts", _line_starts(self.text))

    @classmethod
    def from_text(cls, text: str) -> "ComposedText":
        return cls(text=text, version=0)

    def __len__(self) -> int:
        return len(self.text)

    @property
    def line_count(self) -> int:
        return len(self.line_starts)

    def ensure_offset(self, offset: int) -> int:
        if offset < 0 or offset > len(self.text):
            raise BufferValidationError("Offset out of range", offset=offset)
        return offset

    def slice(self, start: int, end: int) -> str:
        return self.text[self.ensure_offset(start) : self.ensure_offset(end)]

    def apply(self, changes: Iterable["ChangeLike"]) -> "ComposedText":
        """Return a new snapshot with ascending, non-overlapping changes applied."""

        pieces = []
        cursor = 0
        for change in changes:
            pieces.append(self.text[cursor : change.start])
            pieces.append(change.insert)
            cursor = change.end
        pieces.append(self.text[cursor:])
        return ComposedText(text="".join(pieces), version=self.version + 1)

    def line_start(self, row: int) -> int:
        return self.line_starts[row]

    def line_end(self, row: int) -> int:
        """Offset of the end of ``row``, excluding its newline."""

        if row + 1 < len(self.line_starts):
            return self.line_starts[row + 1] - 1
        return len(self.text)

    def offset_for(self, location: Location) -> int:
        row, col = location
        if row < 0 or row >= self.line_count:
            raise BufferValidationError("Row out of range")
        if col < 0 or col > self.line_end(row) - self.line_start(row):
            raise BufferValidationError("Column out of range")
        return self.line_starts[row] + col

    def location_for(self, offset: int) -> Location:
        self.ensure_offset(offset)
        row = bisect_right(self.line_starts, offset) - 1
        return (row, offset - self.line_starts[row])


__all__ = ["ComposedText", "Location"]
