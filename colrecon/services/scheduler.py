from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol

"""Deferred-callback scheduling for debounce and settle delays.

The engine never blocks: scroll recomputation is debounced and layout
recomputation waits for a short settle delay, both as cancellable deferred
callbacks on the caller's event loop. The Scheduler protocol keeps that
loop injectable:

- AsyncioScheduler: runs callbacks on an asyncio event loop
- ManualScheduler: virtual clock advanced explicitly (tests, CLI)
"""

__all__ = [
    "TimerHandle",
    "Scheduler",
    "AsyncioScheduler",
    "ManualScheduler",
    "Debouncer",
]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Scheduler backed by ``loop.call_later``.

    The loop is resolved lazily so the scheduler can be built before the
    loop starts running.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class _ManualHandle:
    def __init__(self, due: float, seq: int, callback: Callable[[], None]) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-time scheduler. Nothing runs until ``advance()`` is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = 0
        self._timers: list[_ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        self._seq += 1
        handle = _ManualHandle(self.now + max(delay, 0.0), self._seq, callback)
        self._timers.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks in order. Returns the number fired."""
        target = self.now + seconds
        fired = 0
        while True:
            due = [t for t in self._timers if not t.cancelled and t.due <= target]
            if not due:
                break
            nxt = min(due, key=lambda t: (t.due, t.seq))
            self._timers.remove(nxt)
            self.now = nxt.due
            nxt.callback()  # コールバック内で再スケジュールされてもよい
            fired += 1
        self._timers = [t for t in self._timers if not t.cancelled]
        self.now = target
        return fired

    def run_all(self) -> int:
        """Fire every pending callback regardless of delay."""
        fired = 0
        while self.pending:
            nxt = min((t for t in self._timers if not t.cancelled), key=lambda t: (t.due, t.seq))
            fired += self.advance(max(nxt.due - self.now, 0.0))
        return fired


class Debouncer:
    """Coalesce rapid triggers into one callback ``delay`` seconds after the last."""

    def __init__(self, scheduler: Scheduler, delay: float, callback: Callable[[], None]) -> None:
        self._scheduler = scheduler
        self._delay = delay
        self._callback = callback
        self._handle: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self.cancel()
        self._handle = self._scheduler.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._callback()
