"""Decoration values produced for the host view."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Tuple, Type, TypeVar, Union

from scrivenings.buffer.separators import SectionHeader

from .nodes import NodeKind


@dataclass(frozen=True, slots=True)
class BlockView:
    """Replace ``[start, end)`` with a rendered view."""

    start: int
    end: int
    kind: NodeKind
    document_id: str
    view: Any
    block: bool = True

    @property
    def css_class(self) -> str:
        return f"scrivenings-preview-block {self.kind.value}"


@dataclass(frozen=True, slots=True)
class HiddenMarkup:
    """Markup characters hidden while the caret is elsewhere."""

    start: int
    end: int


@dataclass(frozen=True, slots=True)
class StyledSpan:
    start: int
    end: int
    css_class: str
    attributes: Tuple[Tuple[str, str], ...] = ()


Decoration = Union[BlockView, HiddenMarkup, StyledSpan]
D = TypeVar("D", BlockView, HiddenMarkup, StyledSpan)


@dataclass(frozen=True, slots=True)
class DecorationSet:
    headers: Tuple[SectionHeader, ...] = ()
    items: Tuple[Decoration, ...] = ()

    def __iter__(self) -> Iterator[Decoration]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def of_type(self, cls: Type[D]) -> Tuple[D, ...]:
        return tuple(item for item in self.items if isinstance(item, cls))


__all__ = [
    "BlockView",
    "Decoration",
    "DecorationSet",
    "HiddenMarkup",
    "StyledSpan",
]
