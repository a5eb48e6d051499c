"""Session wiring loader, buffer, sync services and decorations together."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from scrivenings.buffer import (
    ActiveSectionTracker,
    BufferUpdate,
    ChangeClassifier,
    CompositionBuffer,
    RenderScope,
    SeparatorToken,
    StickyLabelTracker,
)
from scrivenings.decoration import DecorationEngine, DecorationSet
from scrivenings.runtime import telemetry
from scrivenings.runtime.config import EngineConfig
from scrivenings.runtime.scheduler import Clock, Debouncer, GraceFlag
from scrivenings.sections import (
    DocumentStore,
    LoadResult,
    Renderer,
    SaveReport,
    Section,
    SectionLoader,
    SourceDocument,
    SyncIn,
    SyncOut,
)


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class SessionHooks:
    """Callbacks a host uses to follow the session."""

    notify_active_document: Callable[[str], None] = _noop
    show_notice: Callable[[str], None] = _noop
    update_sticky_label: Callable[[str], None] = _noop
    update_decorations: Callable[[DecorationSet], None] = _noop
    update_buffer: Callable[[BufferUpdate], None] = _noop


class ScriveningsSession:
    """One editing surface over an ordered list of documents."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        renderer: Renderer,
        hooks: Optional[SessionHooks] = None,
        config: Optional[EngineConfig] = None,
        clock: Clock = time.monotonic,
        logger_name: Optional[str] = None,
    ) -> None:
        self.store = store
        self.renderer = renderer
        self.hooks = hooks or SessionHooks()
        self.config = config or EngineConfig()
        self.token = SeparatorToken(self.config.marker, self.config.padding)
        self._clock = clock
        self._logger_name = logger_name or "scrivenings.session"
        self.logger = telemetry.get_logger(self._logger_name)
        self.loader = SectionLoader(
            store,
            token=self.token,
            strict=self.config.strict_load,
            show_notice=self._notice,
        )
        self._buffer: Optional[CompositionBuffer] = None
        self.engine: Optional[DecorationEngine] = None
        self.sync_out: Optional[SyncOut] = None
        self.sync_in: Optional[SyncIn] = None
        self.active: Optional[ActiveSectionTracker] = None
        self.sticky: Optional[StickyLabelTracker] = None
        self.decorations = DecorationSet()
        self._detach: List[Callable[[], None]] = []

    @property
    def buffer(self) -> CompositionBuffer:
        if self._buffer is None:
            raise RuntimeError("Session is not open")
        return self._buffer

    @property
    def is_open(self) -> bool:
        return self._buffer is not None and not self._buffer.closed

    @property
    def sections(self) -> Sequence[Section]:
        return self.loader.sections

    async def open(self, documents: Sequence[SourceDocument]) -> LoadResult:
        if self._buffer is not None:
            raise RuntimeError("Session already opened; create a new one to reload")
        result = await self.loader.load(documents)
        names = [section.display_name for section in result.sections]
        buffer = CompositionBuffer(
            result.text,
            token=self.token,
            section_names=names,
            scope=RenderScope(logger_name="scrivenings.render"),
        )
        self._buffer = buffer
        self.engine = DecorationEngine(
            self.renderer,
            buffer.scope,
            boundaries=buffer.boundaries,
            document_ids=[section.source_id for section in result.sections],
        )
        saving = GraceFlag(self.config.saving_grace_ms, clock=self._clock)
        self.sync_out = SyncOut(
            self.loader,
            buffer,
            debouncer=Debouncer(self.config.debounce_ms, clock=self._clock),
            saving=saving,
            show_notice=self._notice,
        )
        self.sync_in = SyncIn(self.loader, self.store, buffer, saving=saving)

        self.active = ActiveSectionTracker(buffer, self._on_active_section)
        self.sticky = StickyLabelTracker(
            buffer, self._on_sticky_section, offset_lines=self.config.sticky_offset_lines
        )
        classifier = ChangeClassifier(buffer, self.sync_out.schedule)
        self._detach = [
            self.active.detach,
            self.sticky.detach,
            classifier.detach,
            buffer.subscribe(self._on_update),
        ]

        if result.sections:
            self.active.check()
            self.sticky.check()
        self._redecorate()
        return result

    # --- host entry points ----------------------------------------------------
    async def tick(self) -> Optional[SaveReport]:
        """Timer callback: run Sync-Out once its quiet period has elapsed."""

        if not self.is_open or self.sync_out is None:
            return None
        return await self.sync_out.flush_due()

    async def flush(self) -> Optional[SaveReport]:
        if not self.is_open or self.sync_out is None:
            return None
        return await self.sync_out.flush()

    async def on_document_modified(self, document_id: str) -> bool:
        if not self.is_open or self.sync_in is None:
            return False
        return await self.sync_in.on_document_modified(document_id)

    def close(self) -> None:
        """Tear down: stop scheduling, release render resources."""

        if self._buffer is None or self._buffer.closed:
            return
        for detach in self._detach:
            detach()
        self._detach = []
        if self.sync_out:
            self.sync_out.close()
        if self.sync_in:
            self.sync_in.close()
        self._buffer.destroy()
        telemetry.record_event("session.closed", logger_name=self._logger_name)

    # --- listeners ----------------------------------------------------------------
    def _notice(self, message: str) -> None:
        self.hooks.show_notice(message)

    def _on_active_section(self, index: int) -> None:
        if 0 <= index < len(self.sections):
            self.hooks.notify_active_document(self.sections[index].source_id)

    def _on_sticky_section(self, index: int) -> None:
        if 0 <= index < len(self.sections):
            self.hooks.update_sticky_label(self.sections[index].display_name)

    def _on_update(self, update: BufferUpdate) -> None:
        self.hooks.update_buffer(update)
        if update.doc_changed or update.selection_set:
            self._redecorate()

    def _redecorate(self) -> None:
        if self.engine is None or self._buffer is None:
            return
        buffer = self._buffer
        self.decorations = self.engine.build(
            buffer.document, buffer.selection, headers=buffer.boundary_headers()
        )
        self.hooks.update_decorations(self.decorations)


__all__ = ["ScriveningsSession", "SessionHooks"]
