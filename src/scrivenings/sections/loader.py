"""Section loader: builds the composed text and writes changed bodies back."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from scrivenings.buffer.separators import SeparatorToken
from scrivenings.errors import (
    DocumentReadError,
    LoadError,
    PartialSaveError,
    SeparatorCollisionError,
)
from scrivenings.runtime import telemetry

from .header import parse_header, split_header
from .model import Section, SourceDocument, default_display_name
from .ports import DocumentStore

MISMATCH_NOTICE = "Sync warning: section count mismatch. Save aborted to protect data."


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class LoadResult:
    text: str
    sections: Tuple[Section, ...]
    skipped: Tuple[str, ...] = ()


@dataclass(slots=True)
class SaveReport:
    """Outcome of one ``save`` call.

    A save is atomic only up to the section-count check: once writes start,
    the ones that succeed stay written even if a sibling fails.
    """

    expected: int
    found: int
    written: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def aborted(self) -> bool:
        return self.expected != self.found


class SectionLoader:
    def __init__(
        self,
        store: DocumentStore,
        *,
        token: SeparatorToken,
        strict: bool = False,
        show_notice: Callable[[str], None] = _noop,
        logger_name: Optional[str] = None,
    ) -> None:
        self.store = store
        self.token = token
        self.strict = strict
        self.show_notice = show_notice
        self.sections: List[Section] = []
        self._logger_name = logger_name or "scrivenings.sections"
        self.logger = telemetry.get_logger(self._logger_name)

    def index_of(self, document_id: str) -> Optional[int]:
        for section in self.sections:
            if section.source_id == document_id:
                return section.order
        return None

    async def load(self, documents: Sequence[SourceDocument]) -> LoadResult:
        with telemetry.span(
            "sections::load",
            logger_name=self._logger_name,
            component="loader",
            metadata={"documents": len(documents)},
        ) as handle:
            sections: List[Section] = []
            skipped: List[str] = []
            for document in documents:
                raw = document.raw_text
                if raw is None:
                    try:
                        raw = await self.store.read(document.document_id)
                    except DocumentReadError as exc:
                        if self.strict:
                            raise LoadError(str(exc)) from exc
                        self.logger.warning(f"skipping unreadable document: {exc}")
                        skipped.append(document.document_id)
                        continue
                sections.append(self._make_section(document, raw, order=len(sections)))

            self.sections = sections
            handle.add_metadata("sections", len(sections))
            if skipped:
                handle.add_metadata("skipped", ",".join(skipped))

        telemetry.record_event(
            "loader.load",
            data={"sections": len(sections), "skipped": len(skipped)},
            logger_name=self._logger_name,
        )
        text = self.token.join([section.body_text for section in sections])
        return LoadResult(text=text, sections=tuple(sections), skipped=tuple(skipped))

    def _make_section(self, document: SourceDocument, raw: str, *, order: int) -> Section:
        split = split_header(raw)
        if self.token.marker in split.body:
            raise SeparatorCollisionError(document.document_id, self.token.marker)
        metadata = parse_header(split.header)
        return Section(
            source_id=document.document_id,
            order=order,
            header_block=split.header,
            body_text=split.body,
            display_name=document.display_name
            or default_display_name(document.document_id, metadata),
            metadata=metadata,
        )

    def refresh_section(self, index: int, *, header: str, body: str) -> Section:
        section = self.sections[index]
        section.body_text = body
        if header != section.header_block:
            section.header_block = header
            section.metadata = parse_header(header)
        return section

    async def save(self, full_text: str) -> SaveReport:
        if not self.sections:
            # Nothing was loaded, so there is no document to write to.
            self.logger.debug("save skipped: no sections loaded")
            return SaveReport(expected=0, found=0)
        parts = self.token.split(full_text)
        report = SaveReport(expected=len(self.sections), found=len(parts))
        if report.aborted:
            self.logger.error(
                f"section count mismatch: expected={report.expected} found={report.found}"
            )
            telemetry.record_event(
                "loader.save.mismatch",
                level="warning",
                data={"expected": report.expected, "found": report.found},
                logger_name=self._logger_name,
            )
            self.show_notice(MISMATCH_NOTICE)
            return report

        changed = []
        for section, part in zip(self.sections, parts):
            if part == section.body_text:
                report.unchanged.append(section.source_id)
            else:
                changed.append((section, part))

        with telemetry.span(
            "sections::save",
            logger_name=self._logger_name,
            component="loader",
            metadata={"changed": len(changed)},
        ):
            results = await asyncio.gather(
                *(self._write(section, part) for section, part in changed),
                return_exceptions=True,
            )

        failures = []
        for (section, _part), result in zip(changed, results):
            if isinstance(result, BaseException):
                report.failed.append(section.source_id)
                failures.append(result)
                self.logger.error(f"write failed for '{section.source_id}': {result}")
            else:
                report.written.append(section.source_id)

        if report.written:
            telemetry.record_event(
                "loader.save",
                data={"written": ",".join(report.written)},
                logger_name=self._logger_name,
            )
        if failures:
            raise PartialSaveError(report, failures)
        return report

    async def _write(self, section: Section, body: str) -> None:
        await self.store.replace_body(section.source_id, body)
        section.body_text = body


__all__ = ["LoadResult", "MISMATCH_NOTICE", "SaveReport", "SectionLoader"]
