"""Linear undo/redo history for user edits."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .state import SelectionSet
from .transaction import Change


@dataclass(frozen=True, slots=True)
class UndoEntry:
    label: str
    forward: Tuple[Change, ...]
    inverse: Tuple[Change, ...]
    selection_before: SelectionSet
    selection_after: SelectionSet


def invert_changes(before_text: str, changes: Tuple[Change, ...]) -> Tuple[Change, ...]:
    """Changes (in post-edit coordinates) that restore ``before_text``."""

    inverse = []
    shift = 0
    for change in changes:
        start = change.start + shift
        inverse.append(
            Change(start, start + len(change.insert), before_text[change.start : change.end])
        )
        shift += change.delta
    return tuple(inverse)


class UndoTimeline:
    """History of user edits to the composed buffer.

    Only ``USER`` transactions are pushed. A ``SYNC`` patch from an external
    change clears the timeline, since its inverse changes were computed
    against text that no longer exists. Undo and redo replay through
    ``dispatch`` and so still pass the separator edit filter.
    """

    def __init__(self) -> None:
        self._entries: List[UndoEntry] = []
        self._index: int = -1

    def push(self, entry: UndoEntry) -> None:
        if self._index < len(self._entries) - 1:
            self._entries = self._entries[: self._index + 1]
        self._entries.append(entry)
        self._index = len(self._entries) - 1

    def clear(self) -> None:
        self._entries.clear()
        self._index = -1

    def can_undo(self) -> bool:
        return self._index >= 0

    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def undo(self) -> Optional[UndoEntry]:
        if not self.can_undo():
            return None
        entry = self._entries[self._index]
        self._index -= 1
        return entry

    def redo(self) -> Optional[UndoEntry]:
        if not self.can_redo():
            return None
        self._index += 1
        return self._entries[self._index]


__all__ = ["UndoEntry", "UndoTimeline", "invert_changes"]
