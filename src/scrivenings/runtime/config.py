"""Engine configuration with ``SCRIVENINGS_*`` environment overrides."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping

from .telemetry import env, env_flag

DEFAULT_MARKER = "<!-- SC_BREAK -->"
DEFAULT_PADDING = "\n\n"


def _env_int(name: str, fallback: int) -> int:
    value = env(name)
    if value is None:
        return fallback
    try:
        return int(value)
    except ValueError:
        return fallback


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Tunables shared by the buffer, sync services and decoration engine."""

    marker: str = DEFAULT_MARKER
    padding: str = DEFAULT_PADDING
    debounce_ms: int = 1000
    saving_grace_ms: int = 100
    strict_load: bool = False
    sticky_offset_lines: int = 0

    def __post_init__(self) -> None:
        if not self.marker:
            raise ValueError("marker cannot be empty")
        if self.padding.strip("\r\n"):
            raise ValueError("padding may only contain newlines")
        if self.debounce_ms < 0 or self.saving_grace_ms < 0:
            raise ValueError("delays cannot be negative")

    @property
    def separator(self) -> str:
        return f"{self.padding}{self.marker}{self.padding}"

    @classmethod
    def from_env(cls, **overrides: object) -> "EngineConfig":
        base = cls(
            marker=env("MARKER") or DEFAULT_MARKER,
            debounce_ms=_env_int("DEBOUNCE_MS", 1000),
            saving_grace_ms=_env_int("SAVING_GRACE_MS", 100),
            strict_load=env_flag("STRICT_LOAD", False),
            sticky_offset_lines=_env_int("STICKY_OFFSET_LINES", 0),
        )
        return base.with_overrides(overrides)

    def with_overrides(self, overrides: Mapping[str, object]) -> "EngineConfig":
        if not overrides:
            return self
        return replace(self, **overrides)  # type: ignore[arg-type]


__all__ = ["DEFAULT_MARKER", "DEFAULT_PADDING", "EngineConfig"]
