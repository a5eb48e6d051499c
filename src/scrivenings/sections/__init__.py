"""Section loading, header handling and buffer/document synchronization."""

from .header import HeaderSplit, parse_header, replace_body, split_header
from .loader import LoadResult, SaveReport, SectionLoader
from .model import Section, SourceDocument
from .ports import DocumentStore, Renderer
from .store import FileSystemStore
from .sync import SyncIn, SyncOut

__all__ = [
    "DocumentStore",
    "FileSystemStore",
    "HeaderSplit",
    "LoadResult",
    "Renderer",
    "SaveReport",
    "Section",
    "SectionLoader",
    "SourceDocument",
    "SyncIn",
    "SyncOut",
    "parse_header",
    "replace_body",
    "split_header",
]
