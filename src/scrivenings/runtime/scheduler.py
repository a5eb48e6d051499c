"""Cancellable scheduled tasks driven by the host's timer tick."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

Clock = Callable[[], float]


@dataclass(slots=True)
class PendingTask:
    deadline: float
    delay_ms: int
    generation: int


class Debouncer:
    """Single pending deadline that every ``schedule`` call pushes back.

    The debouncer never fires on its own; hosts poll ``take_due`` from a
    timer (Textual's ``set_interval``) which keeps the event loop as the
    only driver of buffer mutations.
    """

    def __init__(self, delay_ms: int, *, clock: Clock = time.monotonic) -> None:
        self.delay_ms = delay_ms
        self._clock = clock
        self._pending: Optional[PendingTask] = None
        self._counter = 0
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def schedule(self) -> int:
        """Arm (or re-arm) the deadline and return its generation."""

        if self._closed:
            raise RuntimeError("Debouncer is closed")
        self._counter += 1
        self._pending = PendingTask(
            deadline=self._clock() + self.delay_ms / 1000.0,
            delay_ms=self.delay_ms,
            generation=self._counter,
        )
        return self._counter

    def cancel(self) -> None:
        self._pending = None

    def is_current(self, generation: int) -> bool:
        return self._pending is not None and self._pending.generation == generation

    def take_due(self) -> Optional[int]:
        """Clear and return the generation if its quiet period elapsed."""

        task = self._pending
        if task is None or task.deadline > self._clock():
            return None
        self._pending = None
        return task.generation

    def take_now(self) -> Optional[int]:
        """Clear and return the pending generation regardless of its deadline."""

        task, self._pending = self._pending, None
        return task.generation if task else None

    def close(self) -> None:
        self._pending = None
        self._closed = True


class GraceFlag:
    """Boolean flag that stays raised for a grace period after ``lower``."""

    def __init__(self, grace_ms: int, *, clock: Clock = time.monotonic) -> None:
        self.grace_ms = grace_ms
        self._clock = clock
        self._raised = False
        self._until = 0.0

    def raise_flag(self) -> None:
        self._raised = True

    def lower(self) -> None:
        self._raised = False
        self._until = self._clock() + self.grace_ms / 1000.0

    def __bool__(self) -> bool:
        return self._raised or self._clock() < self._until


__all__ = ["Clock", "Debouncer", "GraceFlag", "PendingTask"]
