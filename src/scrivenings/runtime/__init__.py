"""Runtime services: telemetry, configuration and scheduling."""

from . import telemetry
from .config import DEFAULT_MARKER, DEFAULT_PADDING, EngineConfig
from .scheduler import Clock, Debouncer, GraceFlag

__all__ = [
    "telemetry",
    "Clock",
    "Debouncer",
    "GraceFlag",
    "EngineConfig",
    "DEFAULT_MARKER",
    "DEFAULT_PADDING",
]
