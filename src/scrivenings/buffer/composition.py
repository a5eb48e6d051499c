"""Composition buffer: the single editable surface over all sections."""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from scrivenings.errors import (
    BufferClosedError,
    BufferReentrancyError,
    BufferValidationError,
)
from scrivenings.runtime import telemetry

from .document import ComposedText
from .scope import RenderScope
from .separators import Boundaries, BoundaryIndex, SectionHeader, SeparatorToken, Span
from .state import SelectionRange, SelectionSet
from .transaction import BufferUpdate, DispatchResult, SyncTag, Transaction
from .undo import UndoEntry, UndoTimeline, invert_changes

UpdateListener = Callable[[BufferUpdate], None]


class CompositionBuffer:
    """Owns the composed text, its selection and the render scope.

    ``dispatch`` is the only way to mutate state. It is synchronous and
    refuses re-entry, so a listener cannot start a transaction while
    another one is being applied.
    """

    def __init__(
        self,
        text: str,
        *,
        token: SeparatorToken,
        section_names: Sequence[str] = (),
        scope: Optional[RenderScope] = None,
        logger_name: Optional[str] = None,
    ) -> None:
        self.token = token
        self.document = ComposedText.from_text(text)
        self.selection = SelectionSet.caret(0)
        self.viewport_top = 0
        self.section_names = tuple(section_names)
        self.boundaries = BoundaryIndex(token)
        self.history = UndoTimeline()
        self.scope = (scope or RenderScope()).open()
        self.logger = telemetry.get_logger(logger_name or "scrivenings.buffer")
        self._logger_name = logger_name
        self._listeners: List[UpdateListener] = []
        self._dispatching = False
        self._closed = False

    @property
    def text(self) -> str:
        return self.document.text

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: UpdateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def current_boundaries(self) -> Boundaries:
        return self.boundaries.snapshot(self.document)

    # --- dispatch -----------------------------------------------------------
    def allows(self, transaction: Transaction) -> Optional[str]:
        """Return a rejection reason for ``transaction`` or ``None``.

        Sync patches are trusted: they replace a whole section span and may
        legitimately touch the padding next to a separator.
        """

        if transaction.tag is SyncTag.SYNC or not transaction.changes:
            return None
        markers = self.current_boundaries().markers
        for change in transaction.changes:
            if any(marker.overlaps(change.start, change.end) for marker in markers):
                return "separator_overlap"
            if self.token.marker in change.insert:
                return "separator_literal"
        return None

    def dispatch(self, transaction: Transaction, *, record: bool = True) -> DispatchResult:
        if self._closed:
            raise BufferClosedError("Buffer has been destroyed")
        if self._dispatching:
            raise BufferReentrancyError(
                f"Cannot dispatch '{transaction.label}' during another transaction"
            )
        self._dispatching = True
        try:
            with telemetry.span(
                f"buffer::{transaction.label}",
                logger_name=self._logger_name,
                component="buffer",
                metadata={
                    "tag": transaction.tag.value,
                    "version": self.document.version,
                },
            ) as handle:
                reason = self.allows(transaction)
                if reason is None:
                    reason = self._check_marker_count(transaction)
                if reason is not None:
                    handle.add_metadata("rejected", reason)
                    telemetry.record_event(
                        "buffer.rejected",
                        level="debug",
                        data={"label": transaction.label, "reason": reason},
                        logger_name=self._logger_name,
                    )
                    return DispatchResult(applied=False, reason=reason)
                update = self._apply(transaction, record=record)
            for listener in list(self._listeners):
                listener(update)
            return DispatchResult(applied=True, update=update)
        finally:
            self._dispatching = False

    def _check_marker_count(self, transaction: Transaction) -> Optional[str]:
        # A user edit must not assemble a marker out of surrounding text either.
        if transaction.tag is SyncTag.SYNC or not transaction.changes:
            return None
        for change in transaction.changes:
            self.document.ensure_offset(change.end)
        expected = len(self.current_boundaries().markers)
        candidate = self.document.apply(transaction.changes)
        if len(self.token.find_markers(candidate.text)) != expected:
            return "separator_count"
        return None

    def _apply(self, transaction: Transaction, *, record: bool) -> BufferUpdate:
        before = self.document
        for change in transaction.changes:
            before.ensure_offset(change.end)
        after = before.apply(transaction.changes) if transaction.changes else before

        if transaction.selection is not None:
            selection = transaction.selection
            for rng in selection.ranges:
                if not (0 <= rng.anchor <= len(after) and 0 <= rng.head <= len(after)):
                    raise BufferValidationError("Selection out of range", offset=rng.head)
        else:
            selection = self.selection.map(transaction.changes)

        viewport_changed = False
        if transaction.viewport_top is not None:
            top = after.ensure_offset(transaction.viewport_top)
            viewport_changed = top != self.viewport_top
            self.viewport_top = top
        elif transaction.changes:
            self.viewport_top = min(self.viewport_top, len(after))

        selection_set = selection != self.selection
        if transaction.changes:
            if transaction.tag is SyncTag.SYNC:
                self.history.clear()
            elif record:
                self.history.push(
                    UndoEntry(
                        label=transaction.label,
                        forward=transaction.changes,
                        inverse=invert_changes(before.text, transaction.changes),
                        selection_before=self.selection,
                        selection_after=selection,
                    )
                )

        self.document = after
        self.selection = selection
        return BufferUpdate(
            transaction=transaction,
            before=before,
            after=after,
            selection=selection,
            doc_changed=bool(transaction.changes),
            selection_set=selection_set or transaction.selection is not None,
            viewport_changed=viewport_changed,
        )

    # --- convenience ----------------------------------------------------------
    def replace(
        self,
        start: int,
        end: int,
        insert: str,
        *,
        tag: SyncTag = SyncTag.USER,
        label: str = "replace",
    ) -> DispatchResult:
        selection = None
        if tag is SyncTag.USER:
            selection = SelectionSet.caret(start + len(insert))
        return self.dispatch(
            Transaction.replace(start, end, insert, tag=tag, selection=selection, label=label)
        )

    def insert(self, text: str, offset: Optional[int] = None) -> DispatchResult:
        position = self.selection.main.head if offset is None else offset
        return self.replace(position, position, text, label="insert_text")

    def delete(self, start: int, end: int) -> DispatchResult:
        return self.replace(start, end, "", label="delete_range")

    def select(self, anchor: int, head: Optional[int] = None) -> DispatchResult:
        rng = SelectionRange(anchor, anchor if head is None else head)
        return self.dispatch(Transaction(selection=SelectionSet((rng,)), label="select"))

    def set_selection(self, selection: SelectionSet) -> DispatchResult:
        return self.dispatch(Transaction(selection=selection, label="select"))

    def scroll_to(self, offset: int) -> DispatchResult:
        return self.dispatch(Transaction(viewport_top=offset, tag=SyncTag.NONE, label="scroll"))

    def undo(self) -> bool:
        entry = self.history.undo()
        if entry is None:
            return False
        result = self.dispatch(
            Transaction(entry.inverse, selection=entry.selection_before, label="undo"),
            record=False,
        )
        if not result.applied:
            self.history.redo()
        return result.applied

    def redo(self) -> bool:
        entry = self.history.redo()
        if entry is None:
            return False
        result = self.dispatch(
            Transaction(entry.forward, selection=entry.selection_after, label="redo"),
            record=False,
        )
        if not result.applied:
            self.history.undo()
        return result.applied

    # --- section queries --------------------------------------------------------
    def section_span(self, index: int) -> Optional[Span]:
        return self.current_boundaries().section_span(index)

    def active_section_index(self) -> int:
        return self.current_boundaries().section_at(self.selection.main.head)

    def section_at(self, offset: int) -> int:
        return self.current_boundaries().section_at(offset)

    def sticky_section_index(self, offset_lines: int = 0) -> int:
        row, _ = self.document.location_for(self.viewport_top)
        row = min(row + max(offset_lines, 0), self.document.line_count - 1)
        return self.current_boundaries().section_above(self.document.line_start(row))

    def section_name(self, index: int) -> str:
        if 0 <= index < len(self.section_names):
            return self.section_names[index]
        return "Section"

    def boundary_headers(self) -> List[SectionHeader]:
        """Header widgets for section 0 and for every separator occurrence.

        Each marker's range is widened over one adjacent newline on either
        side so the padding collapses into the header.
        """

        text = self.document.text
        headers: List[SectionHeader] = []
        if self.section_names:
            headers.append(SectionHeader(0, 0, self.section_names[0], 0))
        for index, marker in enumerate(self.current_boundaries().markers):
            start, end = marker.start, marker.end
            if start > 0 and text[start - 1] == "\n":
                start -= 1
            if end < len(text) and text[end] == "\n":
                end += 1
            headers.append(
                SectionHeader(start, end, self.section_name(index + 1), index + 1)
            )
        return headers

    def destroy(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._listeners.clear()
        self.scope.close()
        telemetry.record_event(
            "buffer.destroyed",
            level="debug",
            data={"version": self.document.version},
            logger_name=self._logger_name,
        )


class ActiveSectionTracker:
    """Reports the section under the main caret, once per change of index."""

    def __init__(self, buffer: CompositionBuffer, on_change: Callable[[int], None]) -> None:
        self.buffer = buffer
        self.on_change = on_change
        self.last_index: Optional[int] = None
        self._unsubscribe = buffer.subscribe(self._on_update)

    def _on_update(self, update: BufferUpdate) -> None:
        if update.selection_set or update.doc_changed:
            self.check()

    def check(self) -> Optional[int]:
        index = self.buffer.active_section_index()
        if index == self.last_index:
            return None
        self.last_index = index
        self.on_change(index)
        return index

    def detach(self) -> None:
        self._unsubscribe()


class StickyLabelTracker:
    """Keeps a persistent label naming the section at the viewport top."""

    def __init__(
        self,
        buffer: CompositionBuffer,
        on_change: Callable[[int], None],
        *,
        offset_lines: int = 0,
    ) -> None:
        self.buffer = buffer
        self.on_change = on_change
        self.offset_lines = offset_lines
        self.last_index: Optional[int] = None
        self._unsubscribe = buffer.subscribe(self._on_update)

    def _on_update(self, update: BufferUpdate) -> None:
        if update.viewport_changed or update.doc_changed:
            self.check()

    def check(self) -> Optional[int]:
        index = self.buffer.sticky_section_index(self.offset_lines)
        if index == self.last_index:
            return None
        self.last_index = index
        self.on_change(index)
        return index

    def detach(self) -> None:
        self._unsubscribe()


class ChangeClassifier:
    """Schedules Sync-Out for every document change it did not originate."""

    def __init__(self, buffer: CompositionBuffer, schedule: Callable[[], object]) -> None:
        self.schedule = schedule
        self._unsubscribe = buffer.subscribe(self._on_update)

    def _on_update(self, update: BufferUpdate) -> None:
        if update.doc_changed and update.tag is not SyncTag.SYNC:
            self.schedule()

    def detach(self) -> None:
        self._unsubscribe()


__all__ = [
    "ActiveSectionTracker",
    "ChangeClassifier",
    "CompositionBuffer",
    "StickyLabelTracker",
    "UpdateListener",
]
