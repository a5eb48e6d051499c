"""Closed set of structural node kinds the decoration engine understands."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class NodeKind(str, Enum):
    HEADING = "heading"
    BLOCKQUOTE = "blockquote"
    RULE = "rule"
    IMAGE = "image"
    TABLE = "table"
    FENCE = "fence"
    STRONG = "strong"
    EMPHASIS = "emphasis"
    INLINE_CODE = "inline_code"
    LINK = "link"


@dataclass(frozen=True, slots=True)
class SyntaxNode:
    """A construct spanning ``[start, end]`` of the composed text."""

    kind: NodeKind
    start: int
    end: int
    depth: int = 0

    def contains_any(self, offsets) -> bool:
        return any(self.start <= offset <= self.end for offset in offsets)


__all__ = ["NodeKind", "SyntaxNode"]
