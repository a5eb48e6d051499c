"""Composed buffer, transactions and separator boundaries."""

from .composition import (
    ActiveSectionTracker,
    ChangeClassifier,
    CompositionBuffer,
    StickyLabelTracker,
)
from .document import ComposedText, Location
from .scope import RenderScope
from .separators import Boundaries, BoundaryIndex, SectionHeader, SeparatorToken, Span
from .state import SelectionRange, SelectionSet
from .transaction import (
    BufferUpdate,
    Change,
    DispatchResult,
    SyncTag,
    Transaction,
    map_position,
)
from .undo import UndoEntry, UndoTimeline

__all__ = [
    "ActiveSectionTracker",
    "Boundaries",
    "BoundaryIndex",
    "BufferUpdate",
    "Change",
    "ChangeClassifier",
    "ComposedText",
    "CompositionBuffer",
    "DispatchResult",
    "Location",
    "RenderScope",
    "SectionHeader",
    "SelectionRange",
    "SelectionSet",
    "SeparatorToken",
    "Span",
    "StickyLabelTracker",
    "SyncTag",
    "Transaction",
    "UndoEntry",
    "UndoTimeline",
    "map_position",
]
