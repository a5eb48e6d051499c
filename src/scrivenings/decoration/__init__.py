"""Live-preview decorations over the composed buffer."""

from .decorations import BlockView, Decoration, DecorationSet, HiddenMarkup, StyledSpan
from .engine import DecorationEngine
from .nodes import NodeKind, SyntaxNode
from .parser import parse_nodes, parse_sections, scan_inline

__all__ = [
    "BlockView",
    "Decoration",
    "DecorationEngine",
    "DecorationSet",
    "HiddenMarkup",
    "NodeKind",
    "StyledSpan",
    "SyntaxNode",
    "parse_nodes",
    "parse_sections",
    "scan_inline",
]
