"""Filesystem document store with a header-preserving body write."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from scrivenings.errors import DocumentReadError
from scrivenings.runtime import telemetry

from .header import replace_body
from .model import SourceDocument


class FileSystemStore:
    """Documents are UTF-8 files addressed by their path relative to ``root``."""

    def __init__(self, root: Path | str, *, encoding: str = "utf-8") -> None:
        self.root = Path(root)
        self.encoding = encoding
        self._mtimes: Dict[str, int] = {}
        self.logger = telemetry.get_logger("scrivenings.store")

    def path_for(self, document_id: str) -> Path:
        path = (self.root / document_id).resolve()
        if self.root.resolve() not in path.parents:
            raise DocumentReadError(document_id, "path escapes the store root")
        return path

    def documents(self, document_ids: Iterable[str]) -> List[SourceDocument]:
        return [SourceDocument(document_id=doc_id) for doc_id in document_ids]

    def _read_sync(self, document_id: str) -> str:
        path = self.path_for(document_id)
        try:
            text = path.read_text(encoding=self.encoding)
            self._mtimes[document_id] = path.stat().st_mtime_ns
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentReadError(document_id, str(exc)) from exc
        return text

    def _replace_sync(self, document_id: str, new_body: str) -> None:
        path = self.path_for(document_id)
        raw = path.read_text(encoding=self.encoding)
        path.write_text(replace_body(raw, new_body), encoding=self.encoding)
        self._mtimes[document_id] = path.stat().st_mtime_ns

    async def read(self, document_id: str) -> str:
        return await asyncio.to_thread(self._read_sync, document_id)

    async def replace_body(self, document_id: str, new_body: str) -> None:
        await asyncio.to_thread(self._replace_sync, document_id, new_body)
        self.logger.debug(f"wrote body of '{document_id}' chars={len(new_body)}")

    def poll_changes(self, document_ids: Optional[Iterable[str]] = None) -> List[str]:
        """Ids whose modification time moved since the store last touched them."""

        changed = []
        for document_id in document_ids or list(self._mtimes):
            try:
                mtime = self.path_for(document_id).stat().st_mtime_ns
            except (OSError, DocumentReadError):
                continue
            previous = self._mtimes.get(document_id)
            self._mtimes[document_id] = mtime
            if previous is not None and previous != mtime:
                changed.append(document_id)
        return changed


__all__ = ["FileSystemStore"]
