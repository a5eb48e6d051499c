"""Cursor-aware live preview over the composed buffer."""

from __future__ import annotations

import re
from typing import Any, List, Optional, Sequence, Set, Tuple, assert_never

from scrivenings.buffer.document import ComposedText
from scrivenings.buffer.scope import RenderScope
from scrivenings.buffer.separators import Boundaries, BoundaryIndex, SectionHeader
from scrivenings.buffer.state import SelectionSet
from scrivenings.runtime import telemetry
from scrivenings.sections.ports import Renderer

from .decorations import BlockView, Decoration, DecorationSet, HiddenMarkup, StyledSpan
from .nodes import NodeKind, SyntaxNode
from .parser import parse_sections

_BACKTICKS = re.compile(r"^(`+)")
_LINK_HEAD = re.compile(r"^\[(?P<label>[^\]\n]+)\]\((?P<url>[^)\s]*)")

INLINE_CLASSES = {
    NodeKind.STRONG: ("cm-strong", (("style", "font-weight: bold;"),)),
    NodeKind.EMPHASIS: ("cm-em", (("style", "font-style: italic;"),)),
    NodeKind.INLINE_CODE: ("cm-inline-code", (("style", "font-family: monospace;"),)),
}


class DecorationEngine:
    """Rebuilds decorations from scratch on every document or selection change.

    Block constructs away from every caret become rendered views tied to the
    section they actually sit in; inline constructs away from every caret
    have their markers hidden and their content styled. Anything touching a
    caret stays raw.
    """

    def __init__(
        self,
        renderer: Renderer,
        scope: RenderScope,
        *,
        boundaries: BoundaryIndex,
        document_ids: Sequence[str],
        logger_name: Optional[str] = None,
    ) -> None:
        self.renderer = renderer
        self.scope = scope
        self.boundaries = boundaries
        self.document_ids = tuple(document_ids)
        self._logger_name = logger_name or "scrivenings.decoration"
        self.logger = telemetry.get_logger(self._logger_name)
        self._parsed: Optional[Tuple[ComposedText, List[SyntaxNode]]] = None

    def nodes(self, document: ComposedText) -> List[SyntaxNode]:
        if self._parsed is None or self._parsed[0] is not document:
            boundaries = self.boundaries.snapshot(document)
            spans = [
                span
                for span in map(boundaries.section_span, range(boundaries.section_count))
                if span is not None
            ]
            self._parsed = (document, parse_sections(document.text, spans))
        return self._parsed[1]

    def resolve_document(self, boundaries: Boundaries, offset: int) -> str:
        if not self.document_ids:
            return ""
        index = min(boundaries.section_at(offset), len(self.document_ids) - 1)
        return self.document_ids[index]

    def build(
        self,
        document: ComposedText,
        selection: SelectionSet,
        *,
        headers: Sequence[SectionHeader] = (),
    ) -> DecorationSet:
        if not self.scope.is_open:
            return DecorationSet(headers=tuple(headers))

        with telemetry.span(
            "decoration::build",
            logger_name=self._logger_name,
            component="decoration",
            metadata={"version": document.version},
        ) as handle:
            heads = selection.heads
            boundaries = self.boundaries.snapshot(document)
            items: List[Decoration] = []
            used: Set[Any] = set()
            replaced_until = -1

            for node in self.nodes(document):
                if node.start < replaced_until or node.contains_any(heads):
                    continue
                match node.kind:
                    case (
                        NodeKind.HEADING
                        | NodeKind.BLOCKQUOTE
                        | NodeKind.RULE
                        | NodeKind.IMAGE
                        | NodeKind.TABLE
                        | NodeKind.FENCE
                    ):
                        # A failed render leaves the whole block as raw source.
                        view = self._block(node, document.text, boundaries, used)
                        if view is not None:
                            items.append(view)
                        replaced_until = node.end
                    case NodeKind.STRONG | NodeKind.EMPHASIS | NodeKind.INLINE_CODE:
                        items.extend(self._inline(node, document.text))
                    case NodeKind.LINK:
                        items.extend(self._link(node, document.text))
                    case _:
                        assert_never(node.kind)

            self.scope.retain(used)
            handle.add_metadata("decorations", len(items))

        items.sort(key=lambda item: (item.start, item.end))
        return DecorationSet(headers=tuple(headers), items=tuple(items))

    def _block(
        self, node: SyntaxNode, text: str, boundaries: Boundaries, used: Set[Any]
    ) -> Optional[BlockView]:
        raw = text[node.start : node.end]
        document_id = self.resolve_document(boundaries, node.start)
        key = (node.kind, raw, document_id)
        view = self.scope.get(key)
        if view is None:
            try:
                view = self.renderer(raw, document_id)
            except Exception as exc:
                self.logger.warning(
                    f"render failed kind={node.kind.value} document={document_id}: {exc}"
                )
                telemetry.record_event(
                    "decoration.render_failed",
                    level="warning",
                    data={"kind": node.kind.value, "document": document_id},
                    logger_name=self._logger_name,
                )
                return None
            self.scope.track(key, view)
        used.add(key)
        return BlockView(
            start=node.start,
            end=node.end,
            kind=node.kind,
            document_id=document_id,
            view=view,
            block=node.kind is not NodeKind.IMAGE,
        )

    def _inline(self, node: SyntaxNode, text: str) -> List[Decoration]:
        raw = text[node.start : node.end]
        prefix = suffix = 0
        if node.kind is NodeKind.STRONG:
            prefix = 2 if raw.startswith(("**", "__")) else 0
            suffix = 2 if raw.endswith(("**", "__")) else 0
        elif node.kind is NodeKind.EMPHASIS:
            prefix = 1 if raw.startswith(("*", "_")) else 0
            suffix = 1 if raw.endswith(("*", "_")) else 0
        else:
            run = _BACKTICKS.match(raw)
            if run:
                prefix = suffix = len(run.group(1))

        if prefix == 0 or suffix == 0 or prefix + suffix >= len(raw):
            return []
        css_class, attributes = INLINE_CLASSES[node.kind]
        return [
            HiddenMarkup(node.start, node.start + prefix),
            StyledSpan(node.start + prefix, node.end - suffix, css_class, attributes),
            HiddenMarkup(node.end - suffix, node.end),
        ]

    def _link(self, node: SyntaxNode, text: str) -> List[Decoration]:
        raw = text[node.start : node.end]
        head = _LINK_HEAD.match(raw)
        if head is None:
            return []
        label_end = node.start + 1 + len(head.group("label"))
        return [
            HiddenMarkup(node.start, node.start + 1),
            StyledSpan(
                node.start + 1,
                label_end,
                "cm-link",
                (("data-href", head.group("url")),),
            ),
            HiddenMarkup(label_end, node.end),
        ]


__all__ = ["DecorationEngine", "INLINE_CLASSES"]
