"""Sync-Out (buffer -> documents) and Sync-In (document -> buffer)."""

from __future__ import annotations

from typing import Callable, Optional

from scrivenings.buffer.composition import CompositionBuffer
from scrivenings.buffer.transaction import SyncTag, Transaction
from scrivenings.errors import DocumentReadError, PartialSaveError
from scrivenings.runtime import telemetry
from scrivenings.runtime.scheduler import Debouncer, GraceFlag

from .header import split_header
from .loader import SaveReport, SectionLoader
from .ports import DocumentStore


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


class SyncOut:
    """Debounced writer with a single save in flight at any time.

    While a save runs, and for a short grace period after it, ``saving`` is
    raised so Sync-In can ignore the storage notifications it provokes.
    """

    def __init__(
        self,
        loader: SectionLoader,
        buffer: CompositionBuffer,
        *,
        debouncer: Debouncer,
        saving: GraceFlag,
        show_notice: Callable[[str], None] = _noop,
        logger_name: Optional[str] = None,
    ) -> None:
        self.loader = loader
        self.buffer = buffer
        self.debouncer = debouncer
        self.saving = saving
        self.show_notice = show_notice
        self._logger_name = logger_name or "scrivenings.sync"
        self.logger = telemetry.get_logger(self._logger_name)
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def schedule(self) -> None:
        if self.debouncer.closed:
            return
        self.debouncer.schedule()

    async def flush_due(self) -> Optional[SaveReport]:
        """Save if the quiet period elapsed since the last edit."""

        if self.debouncer.take_due() is None:
            return None
        return await self._run()

    async def flush(self) -> Optional[SaveReport]:
        """Save now, cancelling any pending deadline."""

        self.debouncer.take_now()
        return await self._run()

    async def _run(self) -> Optional[SaveReport]:
        if self._in_flight:
            self.schedule()
            return None
        if self.buffer.closed:
            return None
        self._in_flight = True
        self.saving.raise_flag()
        try:
            return await self.loader.save(self.buffer.text)
        except PartialSaveError as exc:
            self.logger.error(f"sync out partially failed: {exc}")
            self.show_notice(f"Some sections could not be saved: {', '.join(exc.report.failed)}")
            return exc.report
        finally:
            self._in_flight = False
            self.saving.lower()

    def close(self) -> None:
        self.debouncer.close()


class SyncIn:
    """Patches an externally modified document into its span of the buffer."""

    def __init__(
        self,
        loader: SectionLoader,
        store: DocumentStore,
        buffer: CompositionBuffer,
        *,
        saving: GraceFlag,
        logger_name: Optional[str] = None,
    ) -> None:
        self.loader = loader
        self.store = store
        self.buffer = buffer
        self.saving = saving
        self._logger_name = logger_name or "scrivenings.sync"
        self.logger = telemetry.get_logger(self._logger_name)
        self._closed = False

    def close(self) -> None:
        self._closed = True

    async def on_document_modified(self, document_id: str) -> bool:
        """Return ``True`` when the buffer was patched."""

        if self._closed or self.saving:
            return False
        index = self.loader.index_of(document_id)
        if index is None:
            return False

        try:
            raw = await self.store.read(document_id)
        except DocumentReadError as exc:
            self.logger.warning(f"sync in skipped: {exc}")
            return False

        # The read may have suspended; state is re-checked before patching.
        if self._closed or self.buffer.closed or self.saving:
            return False
        split = split_header(raw)
        if self.buffer.token.marker in split.body:
            self.logger.error(
                f"sync in refused for '{document_id}': body contains the separator marker"
            )
            return False

        span = self.buffer.section_span(index)
        if span is None:
            self.logger.warning(f"sync in: no span for section {index} ('{document_id}')")
            return False
        if self.buffer.document.slice(span.start, span.end) == split.body:
            return False

        self.buffer.dispatch(
            Transaction.replace(
                span.start, span.end, split.body, tag=SyncTag.SYNC, label="sync_in"
            )
        )
        self.loader.refresh_section(index, header=split.header, body=split.body)
        telemetry.record_event(
            "sync_in.patch",
            data={"document": document_id, "section": index, "span": (span.start, span.end)},
            logger_name=self._logger_name,
        )
        return True


__all__ = ["SyncIn", "SyncOut"]
