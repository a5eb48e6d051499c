from __future__ import annotations

import asyncio
from typing import List

import pytest

from helpers import MemoryStore, Recorder, make_session

from scrivenings.decoration import BlockView
from scrivenings.runtime.config import DEFAULT_MARKER as MARKER, EngineConfig
from scrivenings.session import ScriveningsSession


class ClosableView:
    def __init__(self, markup: str) -> None:
        self.markup = markup
        self.closed = False

    def close(self) -> None:
        self.closed = True


def test_active_document_is_announced_once_per_section() -> None:
    recorder = Recorder()
    session, _ = make_session({"A": "Hello", "B": "World", "C": "Done"}, recorder=recorder)
    assert recorder.active == ["A"]

    session.buffer.select(12)
    session.buffer.select(13)
    session.buffer.select(14)

    assert recorder.active == ["A", "B"]

    session.buffer.select(0)
    assert recorder.active == ["A", "B", "A"]


def test_sticky_label_uses_display_names() -> None:
    recorder = Recorder()
    session, _ = make_session(
        {"notes/alpha.md": "Alpha", "notes/beta.md": "---\ntitle: The Beta\n---\nBeta"},
        marker="<!-- SC_BREAK -->",
        padding="\n\n",
        recorder=recorder,
    )
    buffer = session.buffer

    buffer.scroll_to(buffer.document.line_start(4))

    assert recorder.sticky == ["alpha", "The Beta"]


def test_empty_document_list_opens_an_empty_buffer() -> None:
    recorder = Recorder()
    session, _ = make_session({}, recorder=recorder)

    assert session.buffer.text == ""
    assert list(session.sections) == []
    assert recorder.active == []


def test_session_cannot_be_opened_twice() -> None:
    session, store = make_session({"A": "Hello"})

    with pytest.raises(RuntimeError):
        asyncio.run(session.open(store.documents()))


def test_buffer_is_unavailable_before_open() -> None:
    session = ScriveningsSession(MemoryStore({}), renderer=lambda markup, doc: markup)

    assert not session.is_open
    with pytest.raises(RuntimeError):
        session.buffer


def test_decorations_are_pushed_on_edits_and_moves() -> None:
    recorder = Recorder()
    session, _ = make_session(
        {"A": "# One", "B": "# Two"}, marker=MARKER, padding="\n\n", recorder=recorder
    )
    initial = len(recorder.decorations)

    session.buffer.select(12)
    session.buffer.insert("!", 0)

    assert len(recorder.decorations) == initial + 2
    latest = recorder.decorations[-1]
    assert [header.label for header in latest.headers] == ["A", "B"]


def test_close_disposes_rendered_views() -> None:
    views: List[ClosableView] = []

    def renderer(markup: str, document_id: str) -> ClosableView:
        view = ClosableView(markup)
        views.append(view)
        return view

    session, _ = make_session(
        {"A": "intro", "B": "# Two"}, marker=MARKER, padding="\n\n", renderer=renderer
    )
    assert len(session.decorations.of_type(BlockView)) == 1

    session.close()

    assert views and all(view.closed for view in views)
    assert not session.buffer.scope.is_open


def test_config_defaults_use_html_comment_marker() -> None:
    config = EngineConfig()

    assert config.separator == "\n\n<!-- SC_BREAK -->\n\n"
    with pytest.raises(ValueError):
        EngineConfig(padding="  ")
    with pytest.raises(ValueError):
        EngineConfig(debounce_ms=-1)
