"""Executable Textual app editing several markdown files as one surface."""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Any, Optional, Sequence

try:  # pragma: no cover - imported only when demo is run
    from rich.console import Group
    from rich.markdown import Markdown
    from textual.app import App, ComposeResult
    from textual.containers import Horizontal, VerticalScroll
    from textual.widgets import Footer, Header, Static, TextArea
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use scrivenings.adapters.textual.app"
    ) from exc

from scrivenings.buffer import Location
from scrivenings.decoration import BlockView, DecorationSet
from scrivenings.runtime import telemetry
from scrivenings.runtime.config import EngineConfig
from scrivenings.sections import FileSystemStore
from scrivenings.session import ScriveningsSession

from .controller import TextualScriveningsAdapter, TextualUIHooks


def render_markdown(markup: str, document_id: str) -> Any:
    del document_id
    return Markdown(markup)


class ScriveningsApp(App[None]):
    """Editor on the left, rendered blocks of the live preview on the right."""

    CSS = """
	#sticky-label {
		height: 1;
		background: $accent;
		padding: 0 1;
		text-style: bold;
	}

	#editor {
		width: 3fr;
	}

	#preview {
		width: 2fr;
		border-left: dashed $panel;
		padding: 0 1;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+s", "save", "Save"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        root: Path,
        document_ids: Sequence[str],
        *,
        config: Optional[EngineConfig] = None,
        poll_interval: float = 1.0,
    ) -> None:
        super().__init__()
        self.store = FileSystemStore(root)
        self.document_ids = list(document_ids)
        self.config = config or EngineConfig.from_env()
        self.poll_interval = poll_interval
        self.adapter: TextualScriveningsAdapter | None = None
        self._last_scroll_row = 0

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Static("", id="sticky-label")
        with Horizontal():
            yield TextArea("", id="editor")
            with VerticalScroll(id="preview"):
                yield Static("", id="preview-body")
        yield Static("", id="status-line")
        yield Footer()

    async def on_mount(self) -> None:
        session = ScriveningsSession(
            self.store, renderer=render_markdown, config=self.config
        )
        hooks = TextualUIHooks(
            restore_text=self._restore_text,
            update_sticky=self._update_sticky,
            update_status=self._update_status,
            update_preview=self._update_preview,
            select_document=self._select_document,
            log=telemetry.get_logger("scrivenings.app").debug,
        )
        self.adapter = TextualScriveningsAdapter(session, hooks)
        await self.adapter.open(self.store.documents(self.document_ids))
        self._restore_text(self.adapter.text, (0, 0))
        self.set_interval(0.1, self._tick)
        self.set_interval(self.poll_interval, self._poll_storage)

    async def on_unmount(self) -> None:
        if self.adapter:
            await self.adapter.close()

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if self.adapter:
            area = event.text_area
            self.adapter.handle_text_changed(area.text, area.cursor_location)

    def on_text_area_selection_changed(self, event: TextArea.SelectionChanged) -> None:
        if self.adapter:
            self.adapter.handle_selection(event.selection.start, event.selection.end)

    async def action_save(self) -> None:
        if self.adapter:
            await self.adapter.save_now()

    async def _tick(self) -> None:
        if not self.adapter:
            return
        row = int(self.query_one("#editor", TextArea).scroll_offset.y)
        if row != self._last_scroll_row:
            self._last_scroll_row = row
            self.adapter.handle_scroll(row)
        await self.adapter.process_timers()

    async def _poll_storage(self) -> None:
        if not self.adapter:
            return
        for document_id in self.store.poll_changes(self.document_ids):
            await self.adapter.handle_external_change(document_id)

    def _restore_text(self, text: str, location: Location) -> None:
        area = self.query_one("#editor", TextArea)
        if area.text != text:
            area.load_text(text)
        area.cursor_location = location

    def _update_sticky(self, label: str) -> None:
        self.query_one("#sticky-label", Static).update(label)

    def _update_status(self, status: str) -> None:
        self.query_one("#status-line", Static).update(status)

    def _update_preview(self, decorations: DecorationSet) -> None:
        views = [item.view for item in decorations.of_type(BlockView)]
        self.query_one("#preview-body", Static).update(Group(*views))

    def _select_document(self, document_id: str) -> None:
        self.sub_title = document_id


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Edit several markdown documents as one continuous buffer."
    )
    parser.add_argument("documents", nargs="+", help="Document paths, in reading order")
    parser.add_argument(
        "--root",
        default=os.environ.get("SCRIVENINGS_ROOT", "."),
        help="Directory the document paths are relative to (default: .)",
    )
    parser.add_argument(
        "--debounce-ms",
        type=int,
        default=None,
        help="Quiet period before edits are written back (default: 1000)",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=1.0,
        help="Seconds between checks for external modifications (default: 1.0)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    # Console logging would draw over the TUI.
    os.environ.setdefault("SCRIVENINGS_DISABLE_CONSOLE", "1")
    telemetry.configure()
    overrides = {}
    if args.debounce_ms is not None:
        overrides["debounce_ms"] = args.debounce_ms
    app = ScriveningsApp(
        Path(args.root),
        args.documents,
        config=EngineConfig.from_env(**overrides),
        poll_interval=args.poll_interval,
    )
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
