"""Bridges a ScriveningsSession to a Textual-style text widget."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from scrivenings.buffer import (
    Change,
    ComposedText,
    Location,
    SelectionRange,
    SelectionSet,
    Transaction,
)
from scrivenings.decoration import DecorationSet
from scrivenings.errors import BufferValidationError
from scrivenings.sections import LoadResult, SourceDocument
from scrivenings.session import ScriveningsSession, SessionHooks

REJECTED_STATUS = "Edit rejected: section boundaries are protected"


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    restore_text: Callable[[str, Location], None]
    update_sticky: Callable[[str], None] = _noop
    update_status: Callable[[str], None] = _noop
    update_preview: Callable[[DecorationSet], None] = _noop
    select_document: Callable[[str], None] = _noop
    log: Callable[[str], None] = _noop


def diff_change(before: str, after: str, caret: Optional[int] = None) -> Optional[Change]:
    """Smallest single change turning ``before`` into ``after``.

    ``caret`` is the host's caret offset after the edit; it pins ambiguous
    diffs (typing a character equal to its neighbour) to where the user
    actually typed.
    """

    if before == after:
        return None
    limit = min(len(before), len(after))
    prefix = 0
    while prefix < limit and before[prefix] == after[prefix]:
        prefix += 1
    if caret is not None:
        growth = max(0, len(after) - len(before))
        prefix = max(0, min(prefix, caret - growth))
    suffix = 0
    while (
        suffix < limit - prefix
        and before[len(before) - 1 - suffix] == after[len(after) - 1 - suffix]
    ):
        suffix += 1
    return Change(prefix, len(before) - suffix, after[prefix : len(after) - suffix])


class TextualScriveningsAdapter:
    """Translates widget edits into transactions and session events into UI."""

    def __init__(self, session: ScriveningsSession, hooks: TextualUIHooks) -> None:
        self.session = session
        self.hooks = hooks
        session.hooks = SessionHooks(
            notify_active_document=self._on_active_document,
            show_notice=self._on_notice,
            update_sticky_label=hooks.update_sticky,
            update_decorations=hooks.update_preview,
        )

    @property
    def text(self) -> str:
        return self.session.buffer.text

    async def open(self, documents: Sequence[SourceDocument]) -> LoadResult:
        result = await self.session.open(documents)
        status = f"Loaded {len(result.sections)} sections"
        if result.skipped:
            status += f" (skipped: {', '.join(result.skipped)})"
        self.hooks.update_status(status)
        self._log("open ->", sections=len(result.sections), skipped=len(result.skipped))
        return result

    def handle_text_changed(self, new_text: str, cursor: Location) -> bool:
        """Apply a host edit; restore the host text when it is rejected."""

        buffer = self.session.buffer
        caret: Optional[int]
        try:
            caret = ComposedText.from_text(new_text).offset_for(cursor)
        except BufferValidationError:
            caret = None
        change = diff_change(buffer.text, new_text, caret)
        if change is None:
            return True
        selection = SelectionSet.caret(caret) if caret is not None else None
        result = buffer.dispatch(
            Transaction(changes=(change,), selection=selection, label="host_edit")
        )
        self._log("edit ->", start=change.start, end=change.end, applied=result.applied)
        if not result.applied:
            self.hooks.update_status(REJECTED_STATUS)
            self.hooks.restore_text(
                buffer.text, buffer.document.location_for(buffer.selection.main.head)
            )
        return result.applied

    def handle_selection(self, anchor: Location, head: Location) -> None:
        document = self.session.buffer.document
        try:
            rng = SelectionRange(document.offset_for(anchor), document.offset_for(head))
        except BufferValidationError:
            # Host and buffer disagree mid-edit; the change event resyncs.
            return
        self.session.buffer.set_selection(SelectionSet((rng,)))

    def handle_scroll(self, top_row: int) -> None:
        buffer = self.session.buffer
        row = max(0, min(top_row, buffer.document.line_count - 1))
        offset = buffer.document.line_start(row)
        if offset != buffer.viewport_top:
            buffer.scroll_to(offset)

    async def handle_external_change(self, document_id: str) -> bool:
        patched = await self.session.on_document_modified(document_id)
        if patched:
            buffer = self.session.buffer
            self.hooks.restore_text(
                buffer.text, buffer.document.location_for(buffer.selection.main.head)
            )
            self.hooks.update_status(f"Reloaded {document_id}")
        return patched

    async def process_timers(self) -> None:
        report = await self.session.tick()
        if report is not None and report.written:
            self.hooks.update_status(f"Saved {', '.join(report.written)}")

    async def save_now(self) -> None:
        report = await self.session.flush()
        if report is not None and not report.aborted:
            self.hooks.update_status(f"Saved {len(report.written)} sections")

    async def close(self) -> None:
        if self.session.is_open:
            await self.session.flush()
        self.session.close()

    def _on_active_document(self, document_id: str) -> None:
        self._log("active ->", document=document_id)
        self.hooks.select_document(document_id)

    def _on_notice(self, message: str) -> None:
        self.hooks.update_status(message)

    def _log(self, prefix: str, **fields: object) -> None:
        parts = [prefix] + [f"{key}={value!r}" for key, value in fields.items()]
        self.hooks.log(" ".join(parts))


__all__ = ["REJECTED_STATUS", "TextualScriveningsAdapter", "TextualUIHooks", "diff_change"]
