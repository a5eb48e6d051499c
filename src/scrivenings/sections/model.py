"""Section records and the documents they are loaded from."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Dict, Optional


@dataclass(frozen=True, slots=True)
class SourceDocument:
    """One entry of the ordered document list handed to the loader.

    ``raw_text`` may be omitted, in which case the loader reads the document
    through its store.
    """

    document_id: str
    raw_text: Optional[str] = None
    display_name: Optional[str] = None


@dataclass(slots=True)
class Section:
    """A document's slot inside the composed buffer.

    ``order`` never changes during a session; ``body_text`` is the cached
    body last known to match storage and is what Sync-Out diffs against.
    """

    source_id: str
    order: int
    header_block: str
    body_text: str
    display_name: str
    metadata: Dict[str, Any] = field(default_factory=dict)


def default_display_name(document_id: str, metadata: Dict[str, Any]) -> str:
    title = metadata.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()
    return PurePosixPath(document_id).stem or document_id


__all__ = ["Section", "SourceDocument", "default_display_name"]
