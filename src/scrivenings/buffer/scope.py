"""Rendering lifecycle owned by a composition buffer."""

from __future__ import annotations

from typing import Any, Dict, Hashable, Iterable, Optional

from scrivenings.errors import ScopeClosedError
from scrivenings.runtime import telemetry


def _dispose(view: Any) -> None:
    for name in ("unload", "close"):
        method = getattr(view, name, None)
        if callable(method):
            method()
            return


class RenderScope:
    """Holds rendered views between decoration passes.

    The scope is opened by the buffer that owns it and closed on teardown;
    closing disposes every tracked view that exposes ``unload`` or ``close``.
    """

    def __init__(self, *, logger_name: Optional[str] = None) -> None:
        self._views: Dict[Hashable, Any] = {}
        self._open = False
        self._released = False
        self.logger = telemetry.get_logger(logger_name or "scrivenings.render")

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> "RenderScope":
        if self._released:
            raise ScopeClosedError("Render scope was already released")
        self._open = True
        return self

    def close(self) -> None:
        if not self._open:
            return
        for view in self._views.values():
            _dispose(view)
        self.logger.debug(f"render scope released views={len(self._views)}")
        self._views.clear()
        self._open = False
        self._released = True

    def __enter__(self) -> "RenderScope":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def get(self, key: Hashable) -> Any:
        return self._views.get(key)

    def track(self, key: Hashable, view: Any) -> Any:
        if not self._open:
            raise ScopeClosedError("Render scope is not open")
        self._views[key] = view
        return view

    def retain(self, keys: Iterable[Hashable]) -> None:
        """Dispose every view whose key is not in ``keys``."""

        keep = set(keys)
        for key in [k for k in self._views if k not in keep]:
            _dispose(self._views.pop(key))

    def __len__(self) -> int:
        return len(self._views)


__all__ = ["RenderScope"]
