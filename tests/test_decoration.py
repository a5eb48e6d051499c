from __future__ import annotations

from typing import List, Sequence, Tuple

from scrivenings.buffer import CompositionBuffer, RenderScope, SeparatorToken
from scrivenings.decoration import (
    BlockView,
    DecorationEngine,
    HiddenMarkup,
    NodeKind,
    StyledSpan,
    SyntaxNode,
    parse_nodes,
    scan_inline,
)
from scrivenings.runtime.config import DEFAULT_MARKER, DEFAULT_PADDING

SECTION_A = "# Title A\n\nSome **bold** and *soft* and ``a`b`` text, see [site](http://x)."
SECTION_B = "# Title B\n\n> quoted"


class View:
    def __init__(self, markup: str, document_id: str) -> None:
        self.markup = markup
        self.document_id = document_id
        self.closed = False

    def close(self) -> None:
        self.closed = True


class RecordingRenderer:
    def __init__(self, fail_prefix: str | None = None) -> None:
        self.calls: List[Tuple[str, str]] = []
        self.views: List[View] = []
        self.fail_prefix = fail_prefix

    def __call__(self, markup: str, document_id: str) -> View:
        self.calls.append((markup, document_id))
        if self.fail_prefix is not None and markup.startswith(self.fail_prefix):
            raise ValueError("cannot render")
        view = View(markup, document_id)
        self.views.append(view)
        return view


def make_engine(
    bodies: Sequence[str] = (SECTION_A, SECTION_B),
    renderer: RecordingRenderer | None = None,
) -> Tuple[CompositionBuffer, DecorationEngine, RecordingRenderer]:
    token = SeparatorToken(DEFAULT_MARKER, DEFAULT_PADDING)
    buffer = CompositionBuffer(token.join(bodies), token=token, scope=RenderScope())
    renderer = renderer or RecordingRenderer()
    ids = ["a.md", "b.md", "c.md"][: len(bodies)]
    engine = DecorationEngine(
        renderer, buffer.scope, boundaries=buffer.boundaries, document_ids=ids
    )
    return buffer, engine, renderer


def build(buffer: CompositionBuffer, engine: DecorationEngine):
    return engine.build(buffer.document, buffer.selection, headers=buffer.boundary_headers())


def test_parse_nodes_finds_block_constructs() -> None:
    text = (
        "# H\n\n---\n\n```\ncode\n```\n\n"
        "| a | b |\n| - | - |\n| 1 | 2 |\n\n![alt](img.png)\n"
    )

    nodes = parse_nodes(text)

    assert {node.kind for node in nodes} == {
        NodeKind.HEADING,
        NodeKind.RULE,
        NodeKind.FENCE,
        NodeKind.TABLE,
        NodeKind.IMAGE,
    }
    assert SyntaxNode(NodeKind.HEADING, 0, 3, 0) in nodes
    assert SyntaxNode(NodeKind.RULE, 5, 8, 0) in nodes


def test_code_spans_hide_their_content_from_other_patterns() -> None:
    text = "`*x*` and *y*"

    kinds = [(node.kind, node.start, node.end) for node in scan_inline(text, 0, len(text))]

    assert (NodeKind.INLINE_CODE, 0, 5) in kinds
    assert (NodeKind.EMPHASIS, 10, 13) in kinds
    assert len(kinds) == 2


def test_block_views_carry_their_own_section() -> None:
    buffer, engine, renderer = make_engine()

    decorations = build(buffer, engine)

    views = decorations.of_type(BlockView)
    heading_b = buffer.text.index("# Title B")
    quote = buffer.text.index("> quoted")
    assert [(v.kind, v.start, v.document_id) for v in views] == [
        (NodeKind.HEADING, heading_b, "b.md"),
        (NodeKind.BLOCKQUOTE, quote, "b.md"),
    ]
    assert ("# Title B", "b.md") in renderer.calls
    assert views[0].css_class == "scrivenings-preview-block heading"


def test_block_under_the_caret_stays_raw() -> None:
    buffer, engine, _ = make_engine()
    heading_b = buffer.text.index("# Title B")

    buffer.select(heading_b + 3)
    decorations = build(buffer, engine)

    kinds = [view.kind for view in decorations.of_type(BlockView)]
    assert NodeKind.HEADING in kinds  # heading A, the caret left it
    assert all(view.start != heading_b for view in decorations.of_type(BlockView))
    assert any(view.document_id == "a.md" for view in decorations.of_type(BlockView))


def test_inline_markup_is_hidden_away_from_the_caret() -> None:
    buffer, engine, _ = make_engine()
    text = buffer.text
    bold = text.index("**bold**")
    soft = text.index("*soft*")
    code = text.index("``a`b``")
    link = text.index("[site]")

    decorations = build(buffer, engine)

    hidden = decorations.of_type(HiddenMarkup)
    for span in [
        HiddenMarkup(bold, bold + 2),
        HiddenMarkup(bold + 6, bold + 8),
        HiddenMarkup(soft, soft + 1),
        HiddenMarkup(soft + 5, soft + 6),
        HiddenMarkup(code, code + 2),
        HiddenMarkup(code + 5, code + 7),
        HiddenMarkup(link, link + 1),
        HiddenMarkup(link + 5, link + len("[site](http://x)")),
    ]:
        assert span in hidden

    styled = {(s.start, s.end, s.css_class) for s in decorations.of_type(StyledSpan)}
    assert (bold + 2, bold + 6, "cm-strong") in styled
    assert (soft + 1, soft + 5, "cm-em") in styled
    assert (code + 2, code + 5, "cm-inline-code") in styled
    assert (link + 1, link + 5, "cm-link") in styled
    link_span = [s for s in decorations.of_type(StyledSpan) if s.css_class == "cm-link"][0]
    assert link_span.attributes == (("data-href", "http://x"),)


def test_caret_inside_inline_markup_reveals_it() -> None:
    buffer, engine, _ = make_engine()
    bold = buffer.text.index("**bold**")

    buffer.select(bold + 3)
    decorations = build(buffer, engine)

    assert HiddenMarkup(bold, bold + 2) not in decorations.of_type(HiddenMarkup)
    styled = {s.css_class for s in decorations.of_type(StyledSpan)}
    assert "cm-strong" not in styled
    assert "cm-em" in styled


def test_renderer_failure_leaves_block_raw() -> None:
    renderer = RecordingRenderer(fail_prefix="#")
    buffer, engine, _ = make_engine(renderer=renderer)

    decorations = build(buffer, engine)

    kinds = [view.kind for view in decorations.of_type(BlockView)]
    assert kinds == [NodeKind.BLOCKQUOTE]


def test_rendered_views_are_reused_then_disposed() -> None:
    buffer, engine, renderer = make_engine()

    build(buffer, engine)
    build(buffer, engine)
    assert renderer.calls.count(("# Title B", "b.md")) == 1

    heading_b = buffer.text.index("# Title B")
    buffer.replace(heading_b + 8, heading_b + 9, "Z")
    buffer.select(0)
    build(buffer, engine)

    old = [view for view in renderer.views if view.markup == "# Title B"][0]
    assert old.closed
    assert ("# Title Z", "b.md") in renderer.calls


def test_closed_scope_yields_only_headers() -> None:
    buffer, engine, _ = make_engine()
    buffer.destroy()

    decorations = build(buffer, engine)

    assert len(decorations) == 0
    assert [header.section_index for header in decorations.headers] == [1]


def test_unclosed_fence_stops_at_its_section() -> None:
    buffer, engine, renderer = make_engine(("intro\n\n```python\nprint(1)", "# Two", "text"))
    markers = buffer.current_boundaries().markers

    decorations = build(buffer, engine)

    views = decorations.of_type(BlockView)
    assert [(v.kind, v.document_id) for v in views] == [
        (NodeKind.FENCE, "a.md"),
        (NodeKind.HEADING, "b.md"),
    ]
    assert views[0].end == markers[0].start - len(DEFAULT_PADDING)
    for view in views:
        assert not any(marker.overlaps(view.start, view.end) for marker in markers)
    assert ("```python\nprint(1)", "a.md") in renderer.calls
    assert all(DEFAULT_MARKER not in markup for markup, _ in renderer.calls)
