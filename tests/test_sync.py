from __future__ import annotations

import asyncio

from helpers import FakeClock, MemoryStore, Recorder, make_session

from scrivenings.buffer import SyncTag, Transaction
from scrivenings.sections.loader import MISMATCH_NOTICE


def test_appending_to_first_section_writes_only_that_document() -> None:
    session, store = make_session({"Ch1": "Hello", "Ch2": "World"})
    assert session.buffer.text == "Hello<SEP>World"

    session.buffer.insert("!", 5)
    report = asyncio.run(session.flush())

    assert session.buffer.text == "Hello!<SEP>World"
    assert report is not None and report.written == ["Ch1"]
    assert store.writes == [("Ch1", "Hello!")]
    assert store.files["Ch2"] == "World"


def test_flush_without_edits_writes_nothing() -> None:
    session, store = make_session(
        {"a.md": "---\ntitle: A\n---\nAlpha\n", "b.md": "Beta"},
        marker="<!-- SC_BREAK -->",
        padding="\n\n",
    )

    report = asyncio.run(session.flush())

    assert report is not None and report.written == []
    assert store.writes == []


def test_debounce_coalesces_rapid_edits() -> None:
    clock = FakeClock()
    session, store = make_session({"A": "Hello", "B": "World"}, clock=clock)

    session.buffer.insert("x", 0)
    clock.advance(500)
    session.buffer.insert("y", 0)
    clock.advance(600)
    assert asyncio.run(session.tick()) is None
    assert store.writes == []

    clock.advance(500)
    report = asyncio.run(session.tick())

    assert report is not None and report.written == ["A"]
    assert store.writes == [("A", "yxHello")]
    assert asyncio.run(session.tick()) is None


def test_count_mismatch_after_sync_patch_aborts_save() -> None:
    recorder = Recorder()
    session, store = make_session({"A": "Hello", "B": "World"}, recorder=recorder)

    session.buffer.dispatch(Transaction.replace(5, 10, " ", tag=SyncTag.SYNC))
    session.buffer.insert("!", 0)
    report = asyncio.run(session.flush())

    assert report is not None and report.aborted
    assert store.writes == []
    assert recorder.notices == [MISMATCH_NOTICE]


def test_only_one_save_runs_at_a_time() -> None:
    session, store = make_session({"A": "Hello", "B": "World"})

    async def scenario():
        store.gate = asyncio.Event()
        session.buffer.insert("!", 5)
        first = asyncio.create_task(session.flush())
        await asyncio.sleep(0)
        assert session.sync_out.in_flight
        second = await session.flush()
        store.gate.set()
        return second, await first

    second, first = asyncio.run(scenario())

    assert second is None
    assert first is not None and first.written == ["A"]
    # The overlapping request was re-armed for the next tick.
    assert session.sync_out.debouncer.pending
    assert store.writes == [("A", "Hello!")]


def test_partial_failure_is_reported_through_notice() -> None:
    recorder = Recorder()
    store = MemoryStore({"A": "one", "B": "two"})
    store.fail_on.add("B")
    session, _ = make_session({}, store=store, recorder=recorder)

    session.buffer.insert("1", 0)
    session.buffer.insert("2", len(session.buffer.text))
    report = asyncio.run(session.flush())

    assert report is not None
    assert report.written == ["A"]
    assert report.failed == ["B"]
    assert recorder.notices == ["Some sections could not be saved: B"]


def test_external_change_patches_only_its_span() -> None:
    session, store = make_session({"A": "Hello", "B": "World", "C": "Done"})
    session.buffer.select(2)

    store.files["B"] = "World!!"
    patched = asyncio.run(session.on_document_modified("B"))

    assert patched
    assert session.buffer.text == "Hello<SEP>World!!<SEP>Done"
    assert session.buffer.selection.main.head == 2
    assert session.sections[1].body_text == "World!!"
    assert not session.sync_out.debouncer.pending
    assert store.writes == []


def test_external_change_keeps_header_out_of_the_buffer() -> None:
    session, store = make_session({"A": "Hello", "B": "World"})

    store.files["B"] = "---\ntitle: Renamed\n---\nPlanet"
    assert asyncio.run(session.on_document_modified("B"))

    assert session.buffer.text == "Hello<SEP>Planet"
    assert session.sections[1].header_block == "---\ntitle: Renamed\n---\n"
    assert session.sections[1].metadata == {"title": "Renamed"}


def test_external_change_is_ignored_while_saving() -> None:
    clock = FakeClock()
    session, store = make_session({"A": "Hello", "B": "World"}, clock=clock)
    session.buffer.insert("!", 5)
    asyncio.run(session.flush())

    store.files["B"] = "Elsewhere"
    assert not asyncio.run(session.on_document_modified("B"))
    assert session.buffer.text == "Hello!<SEP>World"

    clock.advance(150)
    assert asyncio.run(session.on_document_modified("B"))
    assert session.buffer.text == "Hello!<SEP>Elsewhere"


def test_unknown_or_identical_documents_are_not_patched() -> None:
    session, store = make_session({"A": "Hello", "B": "World"})
    version = session.buffer.document.version

    assert not asyncio.run(session.on_document_modified("Z"))
    assert not asyncio.run(session.on_document_modified("B"))
    assert session.buffer.document.version == version


def test_external_body_with_marker_is_refused() -> None:
    session, store = make_session({"A": "Hello", "B": "World"})

    store.files["B"] = "split<SEP>in two"

    assert not asyncio.run(session.on_document_modified("B"))
    assert session.buffer.text == "Hello<SEP>World"


def test_closed_session_stops_syncing() -> None:
    session, store = make_session({"A": "Hello", "B": "World"})
    session.buffer.insert("!", 0)
    buffer = session.buffer

    session.close()
    store.files["B"] = "Changed"

    assert buffer.closed
    assert not session.is_open
    assert asyncio.run(session.flush()) is None
    assert not asyncio.run(session.on_document_modified("B"))
    assert store.writes == []


def test_empty_session_flush_raises_no_warning() -> None:
    recorder = Recorder()
    session, store = make_session({}, recorder=recorder)

    report = asyncio.run(session.flush())

    assert report is not None and not report.aborted
    assert recorder.notices == []
    assert store.writes == []
