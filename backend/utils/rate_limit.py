from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Callable
from threading import Lock
import time

from fastapi import Request


class InMemorySlidingWindowLimiter:
    """
    Per-key rate limiter used for anonymous contact form submissions.
    For horizontal scaling, replace this with Redis.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: dict[str, deque[float]] = defaultdict(deque)
        self._lock = Lock()

    def _prune(self, q: deque[float], now: float) -> None:
        while q and now - q[0] >= self.window_seconds:
            q.popleft()

    def check(self, key: str) -> tuple[bool, int]:
        now = self._clock()
        with self._lock:
            q = self._events[key]
            self._prune(q, now)

            if len(q) >= self.max_requests:
                retry_after = int(self.window_seconds - (now - q[0])) + 1
                return False, max(retry_after, 1)

            q.append(now)
            return True, 0

    def allow(self, key: str) -> bool:
        allowed, _ = self.check(key)
        return allowed

    def remaining(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            q = self._events.get(key)
            if not q:
                return self.max_requests
            self._prune(q, now)
            return max(self.max_requests - len(q), 0)

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._events.clear()
            else:
                self._events.pop(key, None)


def client_address(request: Request, *, trust_proxy: bool) -> str:
    # One trusted hop: the proxy appends the real peer as the last entry.
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
        if hops:
            return hops[-1]
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
