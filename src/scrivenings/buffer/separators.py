"""Separator token handling and the lazily maintained boundary index."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .document import ComposedText


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open ``[start, end)`` range of buffer offsets."""

    start: int
    end: int

    def overlaps(self, start: int, end: int) -> bool:
        return start < self.end and end > self.start

    def __len__(self) -> int:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class SeparatorToken:
    """Marker literal joined between section bodies with newline padding.

    ``pattern`` tolerates up to as many newlines on each side of the marker
    as the padding contains, so a body keeps its own leading and trailing
    newlines while a user deleting the padding still splits cleanly.
    """

    marker: str
    padding: str = ""
    pattern: "re.Pattern[str]" = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.marker:
            raise ValueError("marker cannot be empty")
        newlines = self.padding.count("\n")
        pad = f"(?:\\r?\\n){{0,{newlines}}}" if newlines else ""
        object.__setattr__(
            self, "pattern", re.compile(f"{pad}{re.escape(self.marker)}{pad}")
        )

    @property
    def joiner(self) -> str:
        return f"{self.padding}{self.marker}{self.padding}"

    def join(self, bodies: Sequence[str]) -> str:
        return self.joiner.join(bodies)

    def split(self, text: str) -> List[str]:
        return self.pattern.split(text)

    def find_markers(self, text: str) -> List[Span]:
        spans: List[Span] = []
        size = len(self.marker)
        pos = text.find(self.marker)
        while pos != -1:
            spans.append(Span(pos, pos + size))
            pos = text.find(self.marker, pos + size)
        return spans

    def find_separators(self, text: str) -> List[Span]:
        return [Span(m.start(), m.end()) for m in self.pattern.finditer(text)]


@dataclass(frozen=True, slots=True)
class Boundaries:
    """Marker and padded-separator spans for one buffer version."""

    version: int
    length: int
    markers: Tuple[Span, ...]
    separators: Tuple[Span, ...]

    @property
    def section_count(self) -> int:
        return len(self.separators) + 1

    def section_at(self, offset: int) -> int:
        """Index of the section owning ``offset``: markers ending at or before it."""

        count = 0
        for marker in self.markers:
            if offset >= marker.end:
                count += 1
            else:
                break
        return count

    def section_above(self, offset: int) -> int:
        """Index of the section visible at a viewport top of ``offset``."""

        count = 0
        for marker in self.markers:
            if offset > marker.start:
                count += 1
            else:
                break
        return count

    def section_span(self, index: int) -> Optional[Span]:
        if index < 0 or index > len(self.separators):
            return None
        start = self.separators[index - 1].end if index > 0 else 0
        end = (
            self.separators[index].start
            if index < len(self.separators)
            else self.length
        )
        return Span(start, end)


class BoundaryIndex:
    """Caches ``Boundaries`` per document snapshot; never a source of truth."""

    def __init__(self, token: SeparatorToken) -> None:
        self.token = token
        self._document: Optional[ComposedText] = None
        self._cached: Optional[Boundaries] = None

    def snapshot(self, document: ComposedText) -> Boundaries:
        if self._cached is not None and self._document is document:
            return self._cached
        text = document.text
        boundaries = Boundaries(
            version=document.version,
            length=len(text),
            markers=tuple(self.token.find_markers(text)),
            separators=tuple(self.token.find_separators(text)),
        )
        self._document = document
        self._cached = boundaries
        return boundaries


@dataclass(frozen=True, slots=True)
class SectionHeader:
    """Non-editable header widget announcing the section that follows."""

    start: int
    end: int
    label: str
    section_index: int


__all__ = [
    "Boundaries",
    "BoundaryIndex",
    "SectionHeader",
    "SeparatorToken",
    "Span",
]
