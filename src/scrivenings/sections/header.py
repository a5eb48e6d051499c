"""Header block (front-matter) splitting that never re-serializes."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict

import yaml

from scrivenings.runtime import telemetry

HEADER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(?:.*?\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

_logger = telemetry.get_logger("scrivenings.sections")


@dataclass(frozen=True, slots=True)
class HeaderSplit:
    header: str
    body: str


def split_header(raw: str) -> HeaderSplit:
    """Slice ``raw`` into its verbatim header block and the body after it."""

    match = HEADER_PATTERN.match(raw)
    if match is None:
        return HeaderSplit("", raw)
    return HeaderSplit(raw[: match.end()], raw[match.end() :])


def parse_header(header: str) -> Dict[str, Any]:
    """Best-effort YAML view of a header block; malformed YAML yields ``{}``."""

    if not header:
        return {}
    lines = header.splitlines()
    inner = "\n".join(lines[1:-1])
    try:
        data = yaml.safe_load(inner) if inner.strip() else {}
    except yaml.YAMLError as exc:
        _logger.warning(f"unparseable header block: {exc}")
        return {}
    return data if isinstance(data, dict) else {}


def replace_body(raw: str, new_body: str) -> str:
    """Keep ``raw``'s header block byte-for-byte and swap in ``new_body``."""

    header = split_header(raw).header
    if not header:
        return new_body
    if not header.endswith("\n") and not new_body.startswith(("\n", "\r\n")):
        header += "\n"
    return header + new_body


__all__ = ["HEADER_PATTERN", "HeaderSplit", "parse_header", "replace_body", "split_header"]
