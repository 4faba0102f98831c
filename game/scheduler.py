"""Virtual-clock timer scheduler.

Every periodic activity in the game (the engine tick, order generation,
vehicle position updates, weather and popup dismissal) is a callback on a
single :class:`Scheduler`. Nothing runs on its own thread: the UI loop or a
test advances the clock with :meth:`Scheduler.advance`, and due callbacks
fire one at a time in time order. A callback and everything it publishes
finish before the next callback starts.
"""
from __future__ import annotations

import heapq
import itertools
from typing import Callable, List, Optional, Tuple


class TimerHandle:
    """Cancellable reference to a scheduled callback."""

    def __init__(self, scheduler: Scheduler, callback: Callable[[], None], interval: Optional[float]) -> None:
        self._scheduler = scheduler
        self._callback = callback
        self.interval = interval
        self.due: float = 0.0
        self.cancelled = False
        self.finished = False

    @property
    def repeating(self) -> bool:
        return self.interval is not None

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.finished)

    def cancel(self) -> None:
        self.cancelled = True

    def _run(self) -> None:
        self._callback()


class Scheduler:
    def __init__(self, start: float = 0.0) -> None:
        self.now: float = start
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._sequence = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once, ``delay`` seconds from now."""
        handle = TimerHandle(self, callback, None)
        self._push(handle, self.now + max(0.0, delay))
        return handle

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` every ``interval`` seconds, first after one interval.

        The handle's ``interval`` may be changed from inside the callback;
        the next firing is scheduled with the updated value.
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = TimerHandle(self, callback, interval)
        self._push(handle, self.now + interval)
        return handle

    def _push(self, handle: TimerHandle, due: float) -> None:
        handle.due = due
        heapq.heappush(self._queue, (due, next(self._sequence), handle))

    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if handle.active)

    def advance(self, dt: float) -> int:
        """Move the clock forward by ``dt`` and fire everything due. Returns the number fired."""
        target = self.now + max(0.0, dt)
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = due
            handle._run()
            fired += 1
            if not handle.repeating:
                handle.finished = True
            elif not handle.cancelled:
                self._push(handle, due + handle.interval)
        self.now = target
        return fired

    def cancel_all(self) -> None:
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()
