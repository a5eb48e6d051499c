from __future__ import annotations

import pytest

from scrivenings.buffer import BoundaryIndex, ComposedText, SeparatorToken, Span
from scrivenings.buffer.transaction import Change
from scrivenings.runtime.config import DEFAULT_MARKER, DEFAULT_PADDING


def make_token() -> SeparatorToken:
    return SeparatorToken(DEFAULT_MARKER, DEFAULT_PADDING)


def test_join_then_split_keeps_body_newlines() -> None:
    token = make_token()
    bodies = ["Alpha\n", "Beta\n\n", "\nGamma"]

    assert token.split(token.join(bodies)) == bodies


def test_split_tolerates_missing_padding() -> None:
    token = make_token()

    assert token.split(f"A{DEFAULT_MARKER}B") == ["A", "B"]
    assert token.split(f"A\r\n{DEFAULT_MARKER}\nB") == ["A", "B"]


def test_empty_marker_is_rejected() -> None:
    with pytest.raises(ValueError):
        SeparatorToken("")


def test_find_markers_reports_every_occurrence() -> None:
    token = SeparatorToken("<SEP>")

    assert token.find_markers("a<SEP>b<SEP>") == [Span(1, 6), Span(7, 12)]
    assert token.find_markers("no markers") == []


def test_section_lookup_counts_markers() -> None:
    index = BoundaryIndex(SeparatorToken("<SEP>"))
    boundaries = index.snapshot(ComposedText.from_text("Hello<SEP>World"))

    assert boundaries.section_count == 2
    assert boundaries.section_at(5) == 0
    assert boundaries.section_at(7) == 0
    assert boundaries.section_at(10) == 1
    assert boundaries.section_above(5) == 0
    assert boundaries.section_above(6) == 1


def test_section_span_excludes_padding() -> None:
    index = BoundaryIndex(make_token())
    text = f"A{DEFAULT_PADDING}{DEFAULT_MARKER}{DEFAULT_PADDING}B"
    boundaries = index.snapshot(ComposedText.from_text(text))

    assert boundaries.separators == (Span(1, 22),)
    assert boundaries.section_span(0) == Span(0, 1)
    assert boundaries.section_span(1) == Span(22, 23)
    assert boundaries.section_span(2) is None
    assert boundaries.section_span(-1) is None


def test_boundary_index_is_cached_per_snapshot() -> None:
    index = BoundaryIndex(SeparatorToken("<SEP>"))
    document = ComposedText.from_text("a<SEP>b")

    first = index.snapshot(document)
    assert index.snapshot(document) is first

    edited = document.apply([Change(0, 0, "<SEP>")])
    second = index.snapshot(edited)
    assert second is not first
    assert second.version == 1
    assert len(second.markers) == 2
