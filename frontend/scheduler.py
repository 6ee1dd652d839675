"""Timer scheduling for UI effects (auto-hide, throttled handlers).

Callbacks are registered on an explicit scheduler and return a handle that
can be cancelled. ``ManualScheduler`` keeps a virtual clock so tests can
fast-forward time deterministically; ``AsyncioScheduler`` runs on the event
loop.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from typing import Any, Protocol


class TimerHandle:
    def __init__(self, cancel_hook: Callable[[], None] | None = None) -> None:
        self._cancelled = False
        self._cancel_hook = cancel_hook

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._cancel_hook is not None:
            self._cancel_hook()


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        ...


class ManualScheduler:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self._queue: list[tuple[float, int, TimerHandle, Callable[[], Any]]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        handle = TimerHandle()
        heapq.heappush(self._queue, (self.now + max(delay, 0.0), next(self._counter), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self.now = due
            if not handle.cancelled:
                callback()
        self.now = target


class AsyncioScheduler:
    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        timer = loop.call_later(delay, callback)
        return TimerHandle(timer.cancel)


class Throttled:
    """Run ``func`` at most once per ``limit`` seconds; extra calls are dropped."""

    def __init__(self, scheduler: Scheduler, func: Callable[..., Any], limit: float = 0.1) -> None:
        self._scheduler = scheduler
        self._func = func
        self._limit = limit
        self._handle: TimerHandle | None = None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        if self._handle is not None:
            return
        self._func(*args, **kwargs)
        self._handle = self._scheduler.call_later(self._limit, self._release)

    def _release(self) -> None:
        self._handle = None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


def throttle(scheduler: Scheduler, func: Callable[..., Any], limit: float = 0.1) -> Throttled:
    return Throttled(scheduler, func, limit)
