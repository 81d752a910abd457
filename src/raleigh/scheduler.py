"""Host timer facility used by debounce, throttle and delay.

Two implementations:
- ThreadingScheduler (the default): threading.Timer daemons on a
  monotonic clock. Callbacks run on the timer thread.
- ManualScheduler: a virtual clock that only moves when advance() is
  called. Deterministic, for tests and simulations.

Call set_scheduler() once at startup to change the default. Operators
bind the scheduler that is current when they are constructed.
"""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from typing import Any, Callable, Protocol


class Scheduler(Protocol):
    def now(self) -> float: ...

    def schedule(self, callback: Callable[[], None], delay: float) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class ThreadingScheduler:
    """Daemon threading.Timer per scheduled callback."""

    def now(self) -> float:
        return time.monotonic()

    def schedule(self, callback: Callable[[], None], delay: float) -> threading.Timer:
        t = threading.Timer(delay, callback)
        t.daemon = True
        t.start()
        return t

    def cancel(self, handle: threading.Timer) -> None:
        handle.cancel()


class _ManualTimer:
    __slots__ = ("due", "seq", "callback", "cancelled")

    def __init__(self, due: float, seq: int, callback: Callable[[], None]) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def __lt__(self, other: _ManualTimer) -> bool:
        return (self.due, self.seq) < (other.due, other.seq)


class ManualScheduler:
    """Virtual-time scheduler. Nothing fires until advance() is called.

    Usage:
        clock = ManualScheduler()
        debounced = stream.debounce(0.1, scheduler=clock)
        stream.emit_value(1)
        clock.advance(0.1)   # debounced emits 1 here
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[_ManualTimer] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def schedule(self, callback: Callable[[], None], delay: float) -> _ManualTimer:
        timer = _ManualTimer(self._now + max(delay, 0.0), next(self._seq), callback)
        heapq.heappush(self._queue, timer)
        return timer

    def cancel(self, handle: _ManualTimer) -> None:
        handle.cancelled = True

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have not fired or been cancelled."""
        return sum(1 for t in self._queue if not t.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in due-time order.

        Callbacks scheduled while advancing fire in the same call if they
        fall due before the target time.
        """
        target = self._now + seconds
        while self._queue and self._queue[0].due <= target:
            timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = timer.due
            timer.callback()
        self._now = target


_scheduler: Scheduler = ThreadingScheduler()


def set_scheduler(scheduler: Scheduler) -> None:
    """Set the default scheduler for timer operators created after this call."""
    global _scheduler
    _scheduler = scheduler


def get_scheduler() -> Scheduler:
    return _scheduler
