"""Exception hierarchy shared across the engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:  # pragma: no cover
    from scrivenings.sections.loader import SaveReport


class ScriveningsError(RuntimeError):
    """Base class for every error raised by the engine."""


class BufferValidationError(ScriveningsError):
    """Raised when a change or selection falls outside the buffer."""

    def __init__(self, message: str, *, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset


class BufferReentrancyError(ScriveningsError):
    """Raised when a listener dispatches while a transaction is being applied."""


class BufferClosedError(ScriveningsError):
    """Raised when dispatching into a buffer that has been torn down."""


class DocumentReadError(ScriveningsError):
    """Raised by stores when a document cannot be read."""

    def __init__(self, document_id: str, reason: str) -> None:
        super().__init__(f"Cannot read '{document_id}': {reason}")
        self.document_id = document_id
        self.reason = reason


class LoadError(ScriveningsError):
    """Raised when a strict load hits an unreadable document."""


class SeparatorCollisionError(ScriveningsError):
    """Raised when an authored body contains the separator marker literal."""

    def __init__(self, document_id: str, marker: str) -> None:
        super().__init__(
            f"Document '{document_id}' contains the separator marker {marker!r}"
        )
        self.document_id = document_id
        self.marker = marker


class PartialSaveError(ScriveningsError):
    """Raised after a save attempt in which at least one write failed."""

    def __init__(self, report: "SaveReport", failures: Sequence[BaseException]) -> None:
        failed = ", ".join(report.failed)
        super().__init__(f"Failed to write sections: {failed}")
        self.report = report
        self.failures = tuple(failures)


class ScopeClosedError(ScriveningsError):
    """Raised when rendering through a released render scope."""


__all__ = [
    "ScriveningsError",
    "BufferValidationError",
    "BufferReentrancyError",
    "BufferClosedError",
    "DocumentReadError",
    "LoadError",
    "SeparatorCollisionError",
    "PartialSaveError",
    "ScopeClosedError",
]
