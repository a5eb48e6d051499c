"""Caret and selection state for the composed buffer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from .transaction import Change, map_position


@dataclass(frozen=True, slots=True)
class SelectionRange:
    """One selection range; ``head`` is where the caret sits."""

    anchor: int
    head: int

    @classmethod
    def caret(cls, offset: int) -> "SelectionRange":
        return cls(offset, offset)

    @property
    def start(self) -> int:
        return min(self.anchor, self.head)

    @property
    def end(self) -> int:
        return max(self.anchor, self.head)

    @property
    def empty(self) -> bool:
        return self.anchor == self.head

    def map(self, changes: Sequence[Change]) -> "SelectionRange":
        return SelectionRange(
            map_position(self.anchor, changes), map_position(self.head, changes)
        )


@dataclass(frozen=True, slots=True)
class SelectionSet:
    """All selection ranges plus the index of the main one."""

    ranges: Tuple[SelectionRange, ...] = (SelectionRange(0, 0),)
    main_index: int = 0

    def __post_init__(self) -> None:
        if not self.ranges:
            raise ValueError("SelectionSet requires at least one range")
        if not 0 <= self.main_index < len(self.ranges):
            raise ValueError("main_index out of range")

    @classmethod
    def caret(cls, offset: int) -> "SelectionSet":
        return cls((SelectionRange.caret(offset),))

    @property
    def main(self) -> SelectionRange:
        return self.ranges[self.main_index]

    @property
    def heads(self) -> Tuple[int, ...]:
        return tuple(r.head for r in self.ranges)

    def map(self, changes: Sequence[Change]) -> "SelectionSet":
        if not changes:
            return self
        return SelectionSet(tuple(r.map(changes) for r in self.ranges), self.main_index)


__all__ = ["SelectionRange", "SelectionSet"]
