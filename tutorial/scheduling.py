"""Deferred callbacks for the short settle delays the engine uses.

The engine never sleeps. When it wants to wait for a screen to settle it
asks a scheduler to call it back later and keeps the handle so the call can
be cancelled if the step changes first.
"""

from __future__ import annotations

import heapq
import itertools
from typing import Callable, List, Tuple


class ScheduledCall:
    __slots__ = ("due_ms", "callback", "cancelled")

    def __init__(self, due_ms: float, callback: Callable[[], None]) -> None:
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def run(self) -> bool:
        if self.cancelled:
            return False
        self.cancelled = True
        self.callback()
        return True


class Scheduler:
    """Interface for anything that can run a callback after a delay."""

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledCall:  # pragma: no cover
        raise NotImplementedError


class ImmediateScheduler(Scheduler):
    """Runs every callback inline, ignoring the delay."""

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(0, callback)
        call.run()
        return call


class ManualScheduler(Scheduler):
    """Queues callbacks until the owner advances its clock.

    Hosts driving their own frame loop call :meth:`advance` with the frame
    delta; tests use it to step through settle delays deterministically.
    """

    def __init__(self) -> None:
        self.now_ms: float = 0
        self._queue: List[Tuple[float, int, ScheduledCall]] = []
        self._sequence = itertools.count()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(self.now_ms + max(0, delay_ms), callback)
        heapq.heappush(self._queue, (call.due_ms, next(self._sequence), call))
        return call

    def advance(self, delta_ms: float) -> int:
        """Move the clock forward and run everything now due. Returns the count run."""
        target = self.now_ms + delta_ms
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, call = heapq.heappop(self._queue)
            self.now_ms = max(self.now_ms, due)
            if call.run():
                ran += 1
        self.now_ms = target
        return ran

    def flush(self) -> int:
        """Run every pending callback regardless of its due time."""
        ran = 0
        while self._queue:
            due, _, call = heapq.heappop(self._queue)
            self.now_ms = max(self.now_ms, due)
            if call.run():
                ran += 1
        return ran

    @property
    def pending(self) -> int:
        return sum(1 for _, _, call in self._queue if not call.cancelled)


__all__ = ["Scheduler", "ScheduledCall", "ImmediateScheduler", "ManualScheduler"]
