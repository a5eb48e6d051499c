from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from scrivenings.errors import DocumentReadError
from scrivenings.runtime.config import EngineConfig
from scrivenings.sections import SourceDocument, replace_body
from scrivenings.session import ScriveningsSession, SessionHooks


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms / 1000.0


class MemoryStore:
    """In-memory documents keyed by id, recording every body write."""

    def __init__(self, files: Dict[str, str]) -> None:
        self.files = dict(files)
        self.writes: List[Tuple[str, str]] = []
        self.reads: List[str] = []
        self.unreadable: Set[str] = set()
        self.fail_on: Set[str] = set()
        self.gate: Optional[asyncio.Event] = None

    def documents(self, ids: Optional[Sequence[str]] = None) -> List[SourceDocument]:
        return [SourceDocument(document_id=doc_id) for doc_id in (ids or list(self.files))]

    async def read(self, document_id: str) -> str:
        self.reads.append(document_id)
        if document_id in self.unreadable or document_id not in self.files:
            raise DocumentReadError(document_id, "not available")
        return self.files[document_id]

    async def replace_body(self, document_id: str, new_body: str) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if document_id in self.fail_on:
            raise OSError("disk full")
        self.writes.append((document_id, new_body))
        self.files[document_id] = replace_body(self.files[document_id], new_body)


class Recorder:
    """Collects every session hook invocation."""

    def __init__(self) -> None:
        self.active: List[str] = []
        self.notices: List[str] = []
        self.sticky: List[str] = []
        self.decorations: List[Any] = []

    def hooks(self) -> SessionHooks:
        return SessionHooks(
            notify_active_document=self.active.append,
            show_notice=self.notices.append,
            update_sticky_label=self.sticky.append,
            update_decorations=self.decorations.append,
        )


def echo_renderer(markup: str, document_id: str) -> str:
    return f"{document_id}:{markup}"


def make_session(
    files: Dict[str, str],
    *,
    marker: str = "<SEP>",
    padding: str = "",
    recorder: Optional[Recorder] = None,
    clock: Optional[FakeClock] = None,
    renderer=echo_renderer,
    store: Optional[MemoryStore] = None,
) -> Tuple[ScriveningsSession, MemoryStore]:
    store = store or MemoryStore(files)
    config = EngineConfig(marker=marker, padding=padding, debounce_ms=1000, saving_grace_ms=100)
    session = ScriveningsSession(
        store,
        renderer=renderer,
        hooks=recorder.hooks() if recorder else None,
        config=config,
        clock=clock or FakeClock(),
    )
    asyncio.run(session.open(store.documents()))
    return session, store
