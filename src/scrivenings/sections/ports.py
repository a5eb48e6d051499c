"""Interfaces of the collaborators the engine consumes."""

from __future__ import annotations

from typing import Any, Protocol


class DocumentStore(Protocol):
    """Storage for individual documents.

    ``replace_body`` must leave the document's header block untouched.
    """

    async def read(self, document_id: str) -> str:
        """Return the raw text or raise ``DocumentReadError``."""
        ...

    async def replace_body(self, document_id: str, new_body: str) -> None:
        """Persist ``new_body`` below the existing header block."""
        ...


class Renderer(Protocol):
    """Turns a markup fragment into a host view."""

    def __call__(self, markup: str, document_id: str) -> Any:
        ...


__all__ = ["DocumentStore", "Renderer"]
