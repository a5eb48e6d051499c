"""Structural parse of the composed text into ``SyntaxNode`` ranges.

Block structure comes from markdown-it token line maps. markdown-it does
not report character offsets for inline tokens, so inline constructs are
located with patterns over each inline region, code spans masked first so
nothing inside them is mistaken for emphasis or links. Sections are parsed
one at a time with ``parse_sections``; an unclosed block never spans a
separator.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from markdown_it import MarkdownIt

from scrivenings.buffer.document import ComposedText
from scrivenings.buffer.separators import Span

from .nodes import NodeKind, SyntaxNode

CODE_SPAN_PATTERN = re.compile(r"(?<![`\\])(`+)(?!`)(.+?)(?<!`)\1(?!`)", re.DOTALL)
IMAGE_PATTERN = re.compile(r"!\[(?P<alt>[^\]\n]*)\]\((?P<url>[^)\s]+)(?:\s+\"[^\"\n]*\")?\)")
LINK_PATTERN = re.compile(
    r"(?<![!\\])\[(?P<label>[^\]\n]+)\]\((?P<url>[^)\s]*)(?:\s+\"[^\"\n]*\")?\)"
)
STRONG_PATTERN = re.compile(r"(?<![\\*_])(\*\*|__)(?!\s)(.+?)(?<![\s\\])\1(?![*_])")
EMPHASIS_PATTERN = re.compile(r"(?<![\\*_\w])(\*|_)(?![\s*_])(.+?)(?<![\s\\*_])\1(?![*_\w])")

_BLOCK_TOKENS = {
    "heading_open": NodeKind.HEADING,
    "blockquote_open": NodeKind.BLOCKQUOTE,
    "hr": NodeKind.RULE,
    "table_open": NodeKind.TABLE,
    "fence": NodeKind.FENCE,
}

_md = MarkdownIt("commonmark").enable("table")


def _mask(match: "re.Match[str]") -> str:
    return "\x00" * len(match.group(0))


def scan_inline(text: str, start: int, end: int, *, depth: int = 0) -> Iterator[SyntaxNode]:
    region = text[start:end]

    for match in CODE_SPAN_PATTERN.finditer(region):
        yield SyntaxNode(NodeKind.INLINE_CODE, start + match.start(), start + match.end(), depth)
    masked = CODE_SPAN_PATTERN.sub(_mask, region)

    for match in IMAGE_PATTERN.finditer(masked):
        yield SyntaxNode(NodeKind.IMAGE, start + match.start(), start + match.end(), depth)
    masked = IMAGE_PATTERN.sub(_mask, masked)

    for kind, pattern in (
        (NodeKind.LINK, LINK_PATTERN),
        (NodeKind.STRONG, STRONG_PATTERN),
        (NodeKind.EMPHASIS, EMPHASIS_PATTERN),
    ):
        for match in pattern.finditer(masked):
            yield SyntaxNode(kind, start + match.start(), start + match.end(), depth)


def parse_nodes(text: str, document: Optional[ComposedText] = None) -> List[SyntaxNode]:
    """Every recognised node, outermost first for nodes sharing a start."""

    doc = document if document is not None else ComposedText.from_text(text)
    found: Dict[Tuple[NodeKind, int, int], SyntaxNode] = {}
    for token in _md.parse(text):
        if not token.map:
            continue
        first, last = token.map
        if last <= first:
            continue
        start, end = doc.line_start(first), doc.line_end(last - 1)
        kind = _BLOCK_TOKENS.get(token.type)
        if kind is not None:
            found.setdefault((kind, start, end), SyntaxNode(kind, start, end, token.level))
        elif token.type == "inline":
            for node in scan_inline(text, start, end, depth=token.level + 1):
                found.setdefault((node.kind, node.start, node.end), node)
    return sorted(found.values(), key=lambda n: (n.start, -n.end, n.depth))


def parse_sections(text: str, spans: Iterable[Span]) -> List[SyntaxNode]:
    """Parse each section on its own so no block runs past a separator."""

    nodes: List[SyntaxNode] = []
    for span in spans:
        for node in parse_nodes(text[span.start : span.end]):
            nodes.append(
                SyntaxNode(node.kind, node.start + span.start, node.end + span.start, node.depth)
            )
    return nodes


__all__ = [
    "CODE_SPAN_PATTERN",
    "EMPHASIS_PATTERN",
    "IMAGE_PATTERN",
    "LINK_PATTERN",
    "STRONG_PATTERN",
    "parse_nodes",
    "parse_sections",
    "scan_inline",
]
