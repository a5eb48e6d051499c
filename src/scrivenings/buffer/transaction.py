"""Transactions, change sets and the sync tag that classifies them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from .document import ComposedText
    from .state import SelectionSet


class SyncTag(str, Enum):
    """Origin of a transaction."""

    USER = "user"
    SYNC = "sync"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class Change:
    """Replace ``[start, end)`` of the pre-edit text with ``insert``."""

    start: int
    end: int
    insert: str = ""

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid change range [{self.start}, {self.end})")

    @property
    def delta(self) -> int:
        return len(self.insert) - (self.end - self.start)


def normalize_changes(changes: Sequence[Change]) -> Tuple[Change, ...]:
    ordered = tuple(sorted(changes, key=lambda c: (c.start, c.end)))
    for previous, current in zip(ordered, ordered[1:]):
        if current.start < previous.end:
            raise ValueError("Changes in one transaction cannot overlap")
    return ordered


def map_position(offset: int, changes: Sequence[Change]) -> int:
    """Map a pre-edit offset through ascending changes.

    Offsets inside a replaced range collapse into the inserted text; an
    insertion exactly at ``offset`` leaves it in front of the new text.
    """

    shift = 0
    for change in changes:
        if offset <= change.start:
            break
        if offset >= change.end:
            shift += change.delta
            continue
        return change.start + shift + min(offset - change.start, len(change.insert))
    return offset + shift


@dataclass(frozen=True, slots=True)
class Transaction:
    changes: Tuple[Change, ...] = ()
    selection: Optional["SelectionSet"] = None
    tag: SyncTag = SyncTag.USER
    viewport_top: Optional[int] = None
    label: str = "edit"

    def __post_init__(self) -> None:
        object.__setattr__(self, "changes", normalize_changes(self.changes))

    @classmethod
    def replace(
        cls,
        start: int,
        end: int,
        insert: str,
        *,
        tag: SyncTag = SyncTag.USER,
        selection: Optional["SelectionSet"] = None,
        label: str = "replace",
    ) -> "Transaction":
        return cls(
            changes=(Change(start, end, insert),),
            selection=selection,
            tag=tag,
            label=label,
        )

    @property
    def doc_changed(self) -> bool:
        return bool(self.changes)


@dataclass(frozen=True, slots=True)
class BufferUpdate:
    """What a listener sees after a transaction was applied."""

    transaction: Transaction
    before: "ComposedText"
    after: "ComposedText"
    selection: "SelectionSet"
    doc_changed: bool
    selection_set: bool
    viewport_changed: bool

    @property
    def tag(self) -> SyncTag:
        return self.transaction.tag


@dataclass(frozen=True, slots=True)
class DispatchResult:
    applied: bool
    update: Optional[BufferUpdate] = None
    reason: Optional[str] = None


__all__ = [
    "BufferUpdate",
    "Change",
    "DispatchResult",
    "SyncTag",
    "Transaction",
    "map_position",
    "normalize_changes",
]
